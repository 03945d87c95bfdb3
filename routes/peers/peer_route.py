from fastapi import APIRouter, Depends
from helpers.utils.connection_registry import ConnectionRegistry, get_registry

router = APIRouter()

@router.get("/peers")
async def get_peer_count(registry: ConnectionRegistry = Depends(get_registry)):
  return {"count": await registry.count()}
