from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.websockets import WebSocketClose
from core.settings import Settings, settings as default_settings
from helpers.utils.connection_registry import ConnectionRegistry
from .signaling.signaling_route import websocket_signaling_endpoint
from .peers.peer_route import router as peer_router
import logging
import os

logger = logging.getLogger(__name__)

class HTTPStaticFiles(StaticFiles):
  """StaticFiles that turns away WebSocket upgrades instead of failing on them."""

  async def __call__(self, scope, receive, send):
    if scope["type"] == "websocket":
      await WebSocketClose()(scope, receive, send)
      return
    await super().__call__(scope, receive, send)

def create_app(settings: Settings = default_settings) -> FastAPI:
  app = FastAPI()

  app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],  # Allow all HTTP methods
    allow_headers=["*"],  # Allow all headers
  )

  # One registry per app, shared by every connection handler
  app.state.registry = ConnectionRegistry(send_timeout=settings.SEND_TIMEOUT)

  app.add_api_websocket_route(settings.WS_PATH, websocket_signaling_endpoint)
  app.include_router(peer_router, prefix="/api", tags=["peers"])

  # Static files go last so "/" does not shadow the routes above
  if os.path.isdir(settings.STATIC_DIR):
    app.mount("/", HTTPStaticFiles(directory=settings.STATIC_DIR, html=True), name="static")
  else:
    logger.warning(f"Static directory {settings.STATIC_DIR!r} not found, serving no static files")

  return app

app = create_app()
