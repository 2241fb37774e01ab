from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from artspark.core.environment import get_environment
from artspark.models.submission import SubmissionInput

router = APIRouter()


class CreateResponseRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    prompt_id: str
    image_refs: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


@router.post("/v1/responses")
async def create_response(req: CreateResponseRequest):
    """
    Submit a response. 201 when persisted, 202 when saved to the offline queue.
    Validation failures return 400 with per-field errors and are never queued.
    """
    env = get_environment()
    outcome = await env.orchestrator.submit(
        req.user_id,
        SubmissionInput(
            prompt_id=req.prompt_id,
            image_refs=req.image_refs,
            notes=req.notes,
            tags=req.tags,
        ),
    )
    status_code = 201 if outcome.status == "persisted" else 202
    return JSONResponse(status_code=status_code, content=outcome.to_dict())


@router.get("/v1/responses")
async def list_responses(
    user_id: str = Query(..., min_length=1),
    prompt_id: Optional[str] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    env = get_environment()
    if prompt_id:
        records = await env.response_service.responses_for_prompt(user_id, prompt_id)
    else:
        records = await env.response_service.list_responses(user_id, limit=limit, offset=offset)
    return {"items": [r.to_dict() for r in records]}


@router.get("/v1/submissions/queue")
async def get_queue(user_id: Optional[str] = Query(None)):
    env = get_environment()
    stats = await env.queue.stats()
    items = await env.queue.items()
    if user_id:
        items = [item for item in items if item.user_id == user_id]
    return {
        "pending": stats.pending,
        "succeeded": stats.succeeded,
        "dropped": stats.dropped,
        "expired": stats.expired,
        "items": [
            {
                "id": item.id,
                "user_id": item.user_id,
                "submission_id": item.payload.submission_id,
                "prompt_id": item.payload.prompt_id,
                "enqueued_at": item.enqueued_at.isoformat(),
                "retry_count": item.retry_count,
            }
            for item in items
        ],
    }


@router.post("/v1/submissions/queue/replay")
async def replay_queue():
    env = get_environment()
    result = await env.orchestrator.replay()
    return {
        "succeeded": result.succeeded,
        "failed": result.failed,
        "retained": result.retained,
    }
