from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from artspark.core.dates import ensure_aware, utc_now
from artspark.core.errors import NotFoundError
from artspark.core.logging import log_event
from artspark.features.prompts.store import PromptStore
from artspark.features.responses.store import ResponseStore
from artspark.features.submissions.transfer import ImageTransfer
from artspark.models.submission import ResponseRecord, SubmissionPayload


class ResponseService:
    """Uploads a submission's images and persists the response row under its submission_id."""

    def __init__(
        self,
        response_store: ResponseStore,
        transfer: ImageTransfer,
        prompt_store: Optional[PromptStore] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._responses = response_store
        self._transfer = transfer
        self._prompts = prompt_store
        self._clock = clock

    async def create_response(self, user_id: str, payload: SubmissionPayload) -> Tuple[ResponseRecord, bool]:
        """
        Returns (record, created). A submission_id that is already stored
        returns the stored record without uploading again.
        """
        existing = await self._responses.get(user_id, payload.submission_id)
        if existing:
            return existing, False

        if self._prompts is not None:
            prompt = await self._prompts.get(user_id, payload.prompt_id)
            if prompt is None:
                raise NotFoundError(f"Prompt {payload.prompt_id} not found")

        image_urls: List[str] = list(
            await asyncio.gather(
                *(
                    self._transfer.compress_and_upload(ref, user_id, payload.submission_id, idx)
                    for idx, ref in enumerate(payload.image_refs)
                )
            )
        )

        record = ResponseRecord(
            id=payload.submission_id,
            user_id=user_id,
            prompt_id=payload.prompt_id,
            image_urls=image_urls,
            notes=payload.notes,
            tags=list(payload.tags),
            created_at=ensure_aware(self._clock()),
        )
        stored, created = await self._responses.insert(record)
        log_event(
            "info",
            "response.created" if created else "response.duplicate",
            user_id=user_id,
            prompt_id=payload.prompt_id,
            submission_id=payload.submission_id,
            event_type="response.persist",
            extra={"images": len(image_urls)},
        )
        return stored, created

    async def list_responses(self, user_id: str, limit: int = 20, offset: int = 0) -> List[ResponseRecord]:
        return await self._responses.list_for_user(user_id, limit=limit, offset=offset)

    async def responses_for_prompt(self, user_id: str, prompt_id: str) -> List[ResponseRecord]:
        return await self._responses.list_for_prompt(user_id, prompt_id)
