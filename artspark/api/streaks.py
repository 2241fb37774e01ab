from __future__ import annotations

from fastapi import APIRouter, Query

from artspark.core.environment import get_environment

router = APIRouter()


@router.get("/v1/streaks/current")
async def get_current_streak(user_id: str = Query(..., min_length=1)):
    """Return the current streak snapshot for a user."""
    streak = await get_environment().streaks.get_streak(user_id)
    return {"user_id": user_id, **streak.to_dict()}
