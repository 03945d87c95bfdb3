from fastapi import WebSocket, Depends
from helpers.utils.connection_registry import ConnectionRegistry, get_registry
from helpers.utils.signaling_relay import serve_connection
import logging

logger = logging.getLogger(__name__)

async def websocket_signaling_endpoint(websocket: WebSocket, registry: ConnectionRegistry = Depends(get_registry)):
  try:
    await websocket.accept()
  except Exception as e:
    logger.warning(f"upgrade error: {e!r}")
    return

  await serve_connection(websocket, registry)
