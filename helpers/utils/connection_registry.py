from fastapi import WebSocket, WebSocketDisconnect
from starlette.requests import HTTPConnection
from starlette.websockets import WebSocketState
from typing import Dict, Optional
from .generate_unique_id import generate_unique_id
from schemas.signaling.signaling_schema import PeerCountMessage
import asyncio
import json
import logging

logger = logging.getLogger(__name__)

class Connection:
  """A registered client: its id plus the socket used to reach it."""

  def __init__(self, connection_id: str, websocket: WebSocket, send_timeout: float):
    self.id = connection_id
    self.websocket = websocket
    self.send_timeout = send_timeout
    # Several tasks may write to the same socket (its own loop, forwarders, broadcasts)
    self._send_lock = asyncio.Lock()

  async def send_json(self, message: dict) -> bool:
    """
    Send a JSON message, bounded by the send timeout.
    Returns False instead of raising when the peer cannot be reached.
    """
    try:
      async with asyncio.timeout(self.send_timeout):
        async with self._send_lock:
          await self.websocket.send_text(json.dumps(message, allow_nan=False))
      return True
    except TimeoutError:
      logger.warning(f"Send to {self.id} timed out after {self.send_timeout}s")
    except (WebSocketDisconnect, RuntimeError, OSError, ValueError) as e:
      logger.warning(f"Send to {self.id} failed: {e!r}")
    return False

  async def close(self):
    # Nothing to do once either side has already closed
    if self.websocket.client_state != WebSocketState.CONNECTED:
      return
    if self.websocket.application_state != WebSocketState.CONNECTED:
      return
    try:
      async with asyncio.timeout(self.send_timeout):
        await self.websocket.close()
    except (WebSocketDisconnect, RuntimeError, OSError) as e:
      logger.debug(f"Close of {self.id} failed: {e!r}")

class ConnectionRegistry:
  def __init__(self, send_timeout: float = 5.0):
    # {connection_id: Connection}
    self.active_connections: Dict[str, Connection] = {}
    self.send_timeout = send_timeout
    self._lock = asyncio.Lock()

  def __len__(self):
    return len(self.active_connections)

  async def register(self, websocket: WebSocket) -> Connection:
    """
    Assign a fresh id to the socket and add it to the active connections.
    """
    async with self._lock:
      connection = Connection(generate_unique_id(), websocket, self.send_timeout)
      self.active_connections[connection.id] = connection
      return connection

  async def lookup(self, connection_id: str) -> Optional[Connection]:
    async with self._lock:
      return self.active_connections.get(connection_id)

  async def unregister(self, connection_id: str) -> Optional[Connection]:
    """
    Remove a connection by its ID. Unknown ids are ignored.
    """
    async with self._lock:
      return self.active_connections.pop(connection_id, None)

  async def count(self) -> int:
    async with self._lock:
      return len(self.active_connections)

  async def broadcast_peer_count(self) -> int:
    """
    Send the current number of connections to every connected client.
    Sends run side by side so a stuck client costs at most one send timeout.
    Clients that cannot be reached are dropped and their sockets closed.
    """
    async with self._lock:
      count = len(self.active_connections)
      message = PeerCountMessage(count=count).model_dump()
      connections = list(self.active_connections.values())
      results = await asyncio.gather(*(
        connection.send_json(message)
        for connection in connections
      ), return_exceptions=True)

      unreachable = []
      for connection, result in zip(connections, results):
        if isinstance(result, Exception):
          logger.warning(f"peerCount broadcast error: {result!r}")
        if result is not True:
          self.active_connections.pop(connection.id, None)
          unreachable.append(connection)

    # Closing may block on a dead peer too, so it happens outside the lock
    if unreachable:
      logger.warning(f"Dropping {len(unreachable)} unreachable connection(s)")
      await asyncio.gather(*(connection.close() for connection in unreachable))
    return count

def get_registry(connection: HTTPConnection) -> ConnectionRegistry:
  return connection.app.state.registry
