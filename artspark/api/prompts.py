from __future__ import annotations

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from artspark.core.environment import get_environment

router = APIRouter()


class ManualPromptRequest(BaseModel):
    user_id: str = Field(..., min_length=1)


@router.get("/v1/prompts/today")
async def get_today_prompt(user_id: str = Query(..., min_length=1)):
    """Today's prompt for the user (created on first call, identical afterwards)."""
    env = get_environment()
    prompt = await env.engine.get_or_create_daily(user_id)
    difficulty = await env.engine.difficulty_for(user_id)
    return {
        "prompt": prompt.to_dict(),
        "difficulty": difficulty.id,
        "learning_resources": [
            {"title": link.title, "url": link.url}
            for link in env.engine.learning_resources(prompt, difficulty)
        ],
    }


@router.post("/v1/prompts/manual", status_code=201)
async def create_manual_prompt(req: ManualPromptRequest):
    env = get_environment()
    prompt = await env.engine.create_manual(req.user_id)
    return {"prompt": prompt.to_dict()}


@router.get("/v1/prompts/history")
async def get_prompt_history(
    user_id: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    env = get_environment()
    items, total = await env.engine.get_history(user_id, limit=limit, offset=offset)
    return {
        "items": [item.to_dict() for item in items],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


@router.delete("/v1/prompts/history")
async def reset_prompt_history(user_id: str = Query(..., min_length=1)):
    """Delete all prompts and responses of the user. Irreversible."""
    env = get_environment()
    counts = await env.engine.reset_history(user_id)
    streak = await env.streaks.recalculate(user_id)
    return {**counts, "streak": streak.to_dict()}


@router.get("/v1/prompts/{prompt_id}")
async def get_prompt(prompt_id: str, user_id: str = Query(..., min_length=1)):
    env = get_environment()
    item = await env.engine.get_prompt(user_id, prompt_id)
    responses = await env.response_service.responses_for_prompt(user_id, prompt_id)
    return {
        **item.to_dict(),
        "responses": [r.to_dict() for r in responses],
    }
