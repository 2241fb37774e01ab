"""
Submission orchestration.

    VALIDATE -> REJECTED | ONLINE_ATTEMPT | QUEUED
    ONLINE_ATTEMPT -> PERSISTED | QUEUED
    QUEUED -> PERSISTED | DROPPED

Invalid submissions are rejected and never queued. A valid submission is
attempted online only while connected; any failure of that attempt
(transient, permanent or timeout) puts it in the offline queue. The
submission_id is allocated here, once, and carried through every replay.
"""
from __future__ import annotations

import asyncio
from typing import Callable, Optional
from uuid import uuid4

from artspark.core.logging import log_event
from artspark.features.connectivity.monitor import ConnectivityMonitor
from artspark.features.responses.service import ResponseService
from artspark.features.streaks.service import StreakService
from artspark.features.submissions.queue import OfflineSubmissionQueue
from artspark.features.submissions.validator import ensure_valid
from artspark.models.streak import StreakSnapshot
from artspark.models.submission import (
    ReplayResult,
    ResponseRecord,
    SubmissionInput,
    SubmissionOutcome,
    SubmissionPayload,
)

DEFAULT_ONLINE_TIMEOUT_SECONDS = 20.0


class SubmissionOrchestrator:
    def __init__(
        self,
        response_service: ResponseService,
        queue: OfflineSubmissionQueue,
        monitor: ConnectivityMonitor,
        streaks: StreakService,
        *,
        online_timeout: float = DEFAULT_ONLINE_TIMEOUT_SECONDS,
    ):
        self._responses = response_service
        self._queue = queue
        self._monitor = monitor
        self._streaks = streaks
        self._online_timeout = online_timeout
        self._unsubscribe: Optional[Callable[[], None]] = None

    async def submit(self, user_id: str, submission: SubmissionInput) -> SubmissionOutcome:
        ensure_valid(submission)
        payload = SubmissionPayload(**submission.model_dump(), submission_id=str(uuid4()))

        if self._monitor.is_connected:
            try:
                record = await self._persist(user_id, payload)
            except Exception as exc:
                log_event(
                    "warning",
                    "submission.online.failed",
                    user_id=user_id,
                    prompt_id=payload.prompt_id,
                    submission_id=payload.submission_id,
                    event_type="submission.online",
                    error_code=getattr(exc, "code", type(exc).__name__),
                    extra={"error": exc},
                )
            else:
                streak = await self._refresh_streak(user_id)
                return SubmissionOutcome(
                    status="persisted",
                    submission_id=payload.submission_id,
                    response=record,
                    streak=streak,
                )

        queue_id = await self._queue.enqueue(user_id, payload)
        return SubmissionOutcome(status="queued", submission_id=payload.submission_id, queue_id=queue_id)

    async def replay(self) -> ReplayResult:
        await self._queue.purge_expired()
        return await self._queue.replay_all(self._submit_queued)

    async def start(self) -> None:
        """Purge expired items and replay on every disconnected -> connected edge."""
        await self._queue.purge_expired()
        if self._unsubscribe is None:
            self._unsubscribe = self._monitor.subscribe(self._on_connectivity_change)

    async def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def _on_connectivity_change(self, previous: bool, current: bool) -> None:
        if not previous and current:
            await self.replay()

    async def _persist(self, user_id: str, payload: SubmissionPayload) -> ResponseRecord:
        record, _ = await asyncio.wait_for(
            self._responses.create_response(user_id, payload),
            timeout=self._online_timeout,
        )
        return record

    async def _submit_queued(self, user_id: str, payload: SubmissionPayload) -> ResponseRecord:
        record = await self._persist(user_id, payload)
        await self._refresh_streak(user_id)
        return record

    async def _refresh_streak(self, user_id: str) -> Optional[StreakSnapshot]:
        # The response is already durable; a failed recompute only leaves the cache cold
        try:
            return await self._streaks.recalculate(user_id)
        except Exception:
            self._streaks.invalidate(user_id)
            log_event(
                "error",
                "streak.recalculate.failed",
                user_id=user_id,
                event_type="streak.recalculate",
                error_code="streak_failed",
                exc_info=True,
            )
            return None
