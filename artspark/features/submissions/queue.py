"""
Offline submission queue.

Holds submissions that could not be persisted online. Items store image
references only, never image bytes. The whole queue lives under one storage
key as a JSON array; every mutation is a read-modify-write of that snapshot
under a single asyncio.Lock. replay_all() performs its network work outside
the lock and merges results back by id, so an enqueue that lands during a
replay is kept.
"""
from __future__ import annotations

import asyncio
import json
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, List, Optional, Set
from uuid import uuid4

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from artspark.core.dates import ensure_aware, utc_now
from artspark.core.logging import log_event
from artspark.features.submissions.storage import KeyValueStorage
from artspark.models.submission import QueuedSubmission, QueueStats, ReplayResult, SubmissionPayload

DEFAULT_STORAGE_KEY = "@artspark:upload-queue"
MAX_RETRY_COUNT = 3
QUEUE_EXPIRY_DAYS = 7

SubmitFn = Callable[[str, SubmissionPayload], Awaitable[object]]

_snapshot_adapter = TypeAdapter(List[QueuedSubmission])


def _new_queue_id(now: datetime) -> str:
    return f"upload_{int(now.timestamp() * 1000)}_{uuid4().hex[:10]}"


class OfflineSubmissionQueue:
    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = DEFAULT_STORAGE_KEY,
        *,
        max_retry: int = MAX_RETRY_COUNT,
        expiry_days: int = QUEUE_EXPIRY_DAYS,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._storage = storage
        self._key = key
        self._max_retry = max_retry
        self._expiry = timedelta(days=expiry_days)
        self._clock = clock
        self._lock = asyncio.Lock()
        self._in_flight: Set[str] = set()
        self._succeeded_total = 0
        self._dropped_total = 0
        self._expired_total = 0

    async def _load(self) -> List[QueuedSubmission]:
        raw = await self._storage.get(self._key)
        if not raw:
            return []
        try:
            return _snapshot_adapter.validate_json(raw)
        except (PydanticValidationError, ValueError) as exc:
            # Unreadable snapshot: start over rather than block every submission
            log_event(
                "error",
                "queue.storage.corrupt",
                event_type="queue.load",
                error_code="queue_corrupt",
                extra={"key": self._key, "error": exc},
            )
            return []

    async def _save(self, items: List[QueuedSubmission]) -> None:
        data = [item.model_dump(mode="json", by_alias=True) for item in items]
        await self._storage.set(self._key, json.dumps(data))

    async def enqueue(self, user_id: str, payload: SubmissionPayload, now: Optional[datetime] = None) -> str:
        """Append a submission and persist the queue. Never touches the network."""
        moment = ensure_aware(now or self._clock())
        item = QueuedSubmission(
            id=_new_queue_id(moment),
            user_id=user_id,
            payload=payload,
            enqueued_at=moment,
            retry_count=0,
        )
        async with self._lock:
            items = await self._load()
            items.append(item)
            await self._save(items)
        log_event(
            "info",
            "queue.enqueued",
            user_id=user_id,
            prompt_id=payload.prompt_id,
            submission_id=payload.submission_id,
            event_type="queue.enqueue",
            extra={"queue_id": item.id, "pending": len(items)},
        )
        return item.id

    async def replay_all(self, submit_fn: SubmitFn) -> ReplayResult:
        """
        Submit every queued item concurrently.

        Success removes the item. Failure increments retry_count; an item
        reaching the retry limit is dropped and counted as failed. Items
        already being submitted by an overlapping replay are left alone.
        """
        async with self._lock:
            batch = [item for item in await self._load() if item.id not in self._in_flight]
            self._in_flight.update(item.id for item in batch)

        if not batch:
            return ReplayResult()

        try:
            results = await asyncio.gather(
                *(submit_fn(item.user_id, item.payload) for item in batch),
                return_exceptions=True,
            )
        except BaseException:
            async with self._lock:
                self._in_flight.difference_update(item.id for item in batch)
            raise

        outcomes: Dict[str, object] = {item.id: result for item, result in zip(batch, results)}
        succeeded_ids: List[str] = []
        failed = 0

        async with self._lock:
            self._in_flight.difference_update(outcomes)
            remaining: List[QueuedSubmission] = []
            for item in await self._load():
                if item.id not in outcomes:
                    # Enqueued during the replay, or purged and re-added elsewhere
                    remaining.append(item)
                    continue
                result = outcomes[item.id]
                if not isinstance(result, BaseException):
                    succeeded_ids.append(item.id)
                    continue
                retry_count = item.retry_count + 1
                if retry_count >= self._max_retry:
                    failed += 1
                    log_event(
                        "warning",
                        "queue.item.dropped",
                        user_id=item.user_id,
                        submission_id=item.payload.submission_id,
                        event_type="queue.drop",
                        error_code=getattr(result, "code", type(result).__name__),
                        extra={"queue_id": item.id, "retries": retry_count},
                    )
                else:
                    remaining.append(item.model_copy(update={"retry_count": retry_count}))
            await self._save(remaining)
            self._succeeded_total += len(succeeded_ids)
            self._dropped_total += failed

        result = ReplayResult(
            succeeded=len(succeeded_ids),
            failed=failed,
            retained=len(remaining),
            succeeded_ids=succeeded_ids,
        )
        log_event(
            "info",
            "queue.replayed",
            event_type="queue.replay",
            extra={"succeeded": result.succeeded, "failed": result.failed, "retained": result.retained},
        )
        return result

    async def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Drop items whose age has reached the expiry period, whatever their retry count."""
        moment = ensure_aware(now or self._clock())
        async with self._lock:
            items = await self._load()
            kept = [item for item in items if moment - ensure_aware(item.enqueued_at) < self._expiry]
            removed = len(items) - len(kept)
            if removed:
                await self._save(kept)
                self._expired_total += removed
        if removed:
            log_event("info", "queue.expired.purged", event_type="queue.purge", extra={"removed": removed})
        return removed

    async def length(self) -> int:
        async with self._lock:
            return len(await self._load())

    async def items(self) -> List[QueuedSubmission]:
        async with self._lock:
            return await self._load()

    async def stats(self) -> QueueStats:
        return QueueStats(
            pending=await self.length(),
            succeeded=self._succeeded_total,
            dropped=self._dropped_total,
            expired=self._expired_total,
        )
