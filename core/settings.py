from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
  HOST: str = "0.0.0.0"
  PORT: int = 3000
  WS_PATH: str = "/ws"
  STATIC_DIR: str = "public"
  SEND_TIMEOUT: float = 5.0  # seconds allowed for a single send to one peer
  LOG_LEVEL: str = "INFO"
  CORS_ORIGINS: List[str] = ["*"]

  model_config = SettingsConfigDict(env_file=".env")

settings = Settings()
