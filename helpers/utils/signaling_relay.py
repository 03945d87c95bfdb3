from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from schemas.signaling.signaling_schema import SignalingMessage, MyIdMessage
from .connection_registry import Connection, ConnectionRegistry
from typing import Optional, Union
import json
import logging

logger = logging.getLogger(__name__)

def _reject_constant(name):
  raise ValueError(f"{name} is not valid JSON")

def parse_frame(raw: Union[str, bytes]) -> Optional[SignalingMessage]:
  """Decode one inbound frame; None when it is not a JSON object."""
  try:
    data = json.loads(raw, parse_constant=_reject_constant)
  except (ValueError, TypeError) as e:
    logger.warning(f"invalid json: {e}")
    return None

  if not isinstance(data, dict):
    logger.warning(f"invalid json: expected an object, got {type(data).__name__}")
    return None

  try:
    return SignalingMessage.model_validate(data)
  except ValidationError as e:
    logger.warning(f"invalid message: {e}")
    return None

async def handle_frame(connection: Connection, registry: ConnectionRegistry, raw: Union[str, bytes]) -> bool:
  """
  Route a single frame from `connection`.
  Returns True only when the frame was handed to its target.
  """
  message = parse_frame(raw)
  if message is None:
    return False

  if not message.type:
    logger.debug(f"dropping frame without type from {connection.id}")
    return False

  if not message.is_relay_type():
    # Unknown types are ignored so newer clients keep working
    logger.debug(f"ignoring message type {message.type!r} from {connection.id}")
    return False

  if not message.to:
    logger.debug(f"dropping {message.type} without target from {connection.id}")
    return False

  message.from_ = connection.id
  target = await registry.lookup(message.to)
  if target is None:
    logger.debug(f"dropping {message.type} from {connection.id}: {message.to} is not connected")
    return False

  delivered = await target.send_json(message.to_wire())
  if delivered:
    logger.debug(f"relayed {message.type} {connection.id} -> {target.id}")
  return delivered

async def receive_frame(websocket: WebSocket) -> Optional[Union[str, bytes]]:
  """Next text or binary frame; None once the connection is gone."""
  try:
    message = await websocket.receive()
  except (WebSocketDisconnect, RuntimeError, OSError):
    return None

  if message["type"] == "websocket.disconnect":
    return None
  if message.get("text") is not None:
    return message["text"]
  return message.get("bytes") or b""

async def relay_messages(connection: Connection, registry: ConnectionRegistry):
  while True:
    raw = await receive_frame(connection.websocket)
    if raw is None:
      break
    await handle_frame(connection, registry, raw)

async def serve_connection(websocket: WebSocket, registry: ConnectionRegistry):
  """
  Full lifecycle of one accepted client: register, announce its id,
  relay until the socket goes away, then tear down.
  """
  connection = await registry.register(websocket)
  try:
    if not await connection.send_json(MyIdMessage(id=connection.id).model_dump()):
      logger.warning(f"send myId error: {connection.id}")

    await registry.broadcast_peer_count()
    logger.info(f"New user connected: {connection.id}")

    await relay_messages(connection, registry)
  except Exception:
    logger.exception(f"Unexpected error on connection {connection.id}")
  finally:
    await registry.unregister(connection.id)
    await connection.close()
    await registry.broadcast_peer_count()
    logger.info(f"User disconnected: {connection.id}")
