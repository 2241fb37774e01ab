from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from artspark.core.environment import get_environment

router = APIRouter()


class ConnectivityUpdate(BaseModel):
    connected: bool


@router.get("/v1/connectivity")
async def get_connectivity():
    return {"connected": get_environment().monitor.is_connected}


@router.post("/v1/connectivity")
async def update_connectivity(update: ConnectivityUpdate):
    """Report a connectivity reading. A reconnect edge replays the offline queue."""
    env = get_environment()
    changed = await env.monitor.update(update.connected)
    return {"connected": env.monitor.is_connected, "changed": changed}
