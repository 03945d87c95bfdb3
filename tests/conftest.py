import asyncio
import json

import pytest
from starlette.websockets import WebSocketState

from helpers.utils.connection_registry import ConnectionRegistry


class FakeWebSocket:
    """In-memory stand-in for a Starlette WebSocket."""

    def __init__(self):
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.sent: list[dict] = []
        self.closed = False
        self._incoming: asyncio.Queue = asyncio.Queue()
        self._outgoing: asyncio.Queue = asyncio.Queue()

    async def send_text(self, text: str) -> None:
        if self.application_state != WebSocketState.CONNECTED:
            raise RuntimeError('Cannot call "send" once a close message has been sent.')
        message = json.loads(text)
        self.sent.append(message)
        self._outgoing.put_nowait(message)

    async def receive(self) -> dict:
        message = await self._incoming.get()
        if message["type"] == "websocket.disconnect":
            self.client_state = WebSocketState.DISCONNECTED
        return message

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.application_state = WebSocketState.DISCONNECTED
        self.closed = True

    # -- test helpers --

    def feed_text(self, text: str) -> None:
        self._incoming.put_nowait({"type": "websocket.receive", "text": text})

    def feed_json(self, data) -> None:
        self.feed_text(json.dumps(data))

    def feed_bytes(self, data: bytes) -> None:
        self._incoming.put_nowait({"type": "websocket.receive", "bytes": data})

    def disconnect(self) -> None:
        self._incoming.put_nowait({"type": "websocket.disconnect", "code": 1000})

    async def next_message(self, timeout: float = 1.0) -> dict:
        return await asyncio.wait_for(self._outgoing.get(), timeout)

    def has_pending(self) -> bool:
        return not self._outgoing.empty()


class StuckWebSocket(FakeWebSocket):
    """A peer whose sends never complete."""

    async def send_text(self, text: str) -> None:
        await asyncio.Event().wait()


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry(send_timeout=0.5)


@pytest.fixture
def websocket_factory():
    return FakeWebSocket


@pytest.fixture
def stuck_websocket_factory():
    return StuckWebSocket
