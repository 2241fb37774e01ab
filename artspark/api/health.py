"""Liveness and readiness endpoints."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from artspark.core.database import check_connection
from artspark.core.environment import get_environment

logger = logging.getLogger("artspark")

root_router = APIRouter(tags=["health"])


@root_router.get("/healthz")
def healthz():
    """Lightweight liveness check (no deps)."""
    return {"status": "ok"}


@root_router.get("/readyz")
async def readyz():
    """Readiness: database reachable (live only) and queue readable."""
    env = get_environment()
    checks = {"data_source": env.name, "db": None}
    if env.name == "live":
        checks["db"] = check_connection()
    try:
        checks["queue_pending"] = await env.queue.length()
    except Exception as exc:
        logger.warning("readyz.queue.unavailable", extra={"error_code": "queue_unavailable", "error": str(exc)})
        checks["queue_pending"] = None

    ok = checks["db"] is not False and checks["queue_pending"] is not None
    return JSONResponse(status_code=200 if ok else 503, content={"ok": ok, **checks})
