from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional

RELAY_TYPES = frozenset({"offer", "answer", "ice-candidate", "hangup"})

class SignalingMessage(BaseModel):
  # Routing envelope only; every other key is carried through untouched
  type: Optional[str] = None
  to: Optional[str] = None
  from_: Optional[str] = Field(default=None, alias="from")

  model_config = ConfigDict(extra="allow")

  @field_validator("type", "to", "from_", mode="before")
  @classmethod
  def drop_non_string(cls, value):
    return value if isinstance(value, str) else None

  def is_relay_type(self) -> bool:
    return self.type in RELAY_TYPES

  def to_wire(self) -> dict:
    return self.model_dump(by_alias=True)

class MyIdMessage(BaseModel):
  type: str = "myId"
  id: str

class PeerCountMessage(BaseModel):
  type: str = "peerCount"
  count: int
