import asyncio
import json
from datetime import datetime, timedelta, timezone

import pytest

from artspark.core.errors import PermanentIOError, TransientIOError
from artspark.features.submissions.queue import OfflineSubmissionQueue
from artspark.features.submissions.storage import InMemoryStorage
from artspark.models.submission import SubmissionPayload

KEY = "@artspark:upload-queue"
T0 = datetime(2024, 7, 1, 12, 0, tzinfo=timezone.utc)


def _payload(n: int = 0) -> SubmissionPayload:
    return SubmissionPayload(
        prompt_id="3f1c2a9e-5b7d-4c1e-8f2a-6d9b0e4a7c21",
        image_refs=[f"/photos/{n}.jpg"],
        notes=None,
        tags=[],
        submission_id=f"sub-{n}",
    )


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def _queue(storage=None, clock=None):
    return OfflineSubmissionQueue(storage or InMemoryStorage(), KEY, clock=clock or Clock(T0))


async def _ok(user_id, payload):
    return payload.submission_id


async def _fail(user_id, payload):
    raise TransientIOError("offline")


@pytest.mark.asyncio
async def test_enqueue_persists_metadata_only():
    storage = InMemoryStorage()
    queue = _queue(storage)

    queue_id = await queue.enqueue("u1", _payload(1))

    raw = json.loads(await storage.get(KEY))
    assert raw[0]["id"] == queue_id
    assert raw[0]["userId"] == "u1"
    assert raw[0]["retry_count"] == 0
    assert raw[0]["payload"]["image_refs"] == ["/photos/1.jpg"]
    assert queue_id.startswith("upload_")


@pytest.mark.asyncio
async def test_replay_removes_successes():
    queue = _queue()
    await queue.enqueue("u1", _payload(1))
    await queue.enqueue("u2", _payload(2))

    result = await queue.replay_all(_ok)

    assert (result.succeeded, result.failed, result.retained) == (2, 0, 0)
    assert await queue.length() == 0


@pytest.mark.asyncio
async def test_three_failures_drop_item():
    queue = _queue()
    await queue.enqueue("u1", _payload(1))

    first = await queue.replay_all(_fail)
    second = await queue.replay_all(_fail)
    assert (first.failed, second.failed) == (0, 0)
    assert (await queue.items())[0].retry_count == 2

    third = await queue.replay_all(_fail)
    assert third.failed == 1
    assert await queue.length() == 0
    assert (await queue.stats()).dropped == 1


@pytest.mark.asyncio
async def test_mixed_results_are_applied_per_item():
    queue = _queue()
    await queue.enqueue("u1", _payload(1))
    await queue.enqueue("u1", _payload(2))

    async def submit(user_id, payload):
        if payload.submission_id == "sub-2":
            raise PermanentIOError("rejected")
        return payload.submission_id

    result = await queue.replay_all(submit)

    assert result.succeeded == 1
    remaining = await queue.items()
    assert [i.payload.submission_id for i in remaining] == ["sub-2"]
    assert remaining[0].retry_count == 1


@pytest.mark.asyncio
async def test_purge_expired_at_seven_days():
    clock = Clock(T0)
    queue = _queue(clock=clock)
    await queue.enqueue("u1", _payload(1))
    clock.now = T0 + timedelta(days=3)
    await queue.enqueue("u1", _payload(2))

    clock.now = T0 + timedelta(days=6, hours=23)
    assert await queue.purge_expired() == 0

    clock.now = T0 + timedelta(days=8)
    assert await queue.purge_expired() == 1
    remaining = await queue.items()
    assert [i.payload.submission_id for i in remaining] == ["sub-2"]
    assert (await queue.stats()).expired == 1


@pytest.mark.asyncio
async def test_enqueue_during_replay_is_not_lost():
    queue = _queue()
    await queue.enqueue("u1", _payload(1))
    release = asyncio.Event()

    async def slow_submit(user_id, payload):
        await release.wait()
        return payload.submission_id

    replay = asyncio.create_task(queue.replay_all(slow_submit))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    await queue.enqueue("u1", _payload(2))
    release.set()
    result = await replay

    assert result.succeeded == 1
    remaining = await queue.items()
    assert [i.payload.submission_id for i in remaining] == ["sub-2"]


@pytest.mark.asyncio
async def test_overlapping_replays_skip_in_flight_items():
    queue = _queue()
    await queue.enqueue("u1", _payload(1))
    calls = []
    release = asyncio.Event()

    async def submit(user_id, payload):
        calls.append(payload.submission_id)
        await release.wait()
        return payload.submission_id

    first = asyncio.create_task(queue.replay_all(submit))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    second = await queue.replay_all(submit)
    release.set()
    first_result = await first

    assert second.succeeded == 0
    assert first_result.succeeded == 1
    assert calls == ["sub-1"]


@pytest.mark.asyncio
async def test_concurrent_enqueues_all_persist():
    queue = _queue()
    await asyncio.gather(*(queue.enqueue("u1", _payload(n)) for n in range(10)))
    assert await queue.length() == 10


@pytest.mark.asyncio
async def test_corrupt_storage_reads_as_empty():
    storage = InMemoryStorage()
    await storage.set(KEY, "{not json")
    queue = _queue(storage)

    assert await queue.length() == 0
    await queue.enqueue("u1", _payload(1))
    assert await queue.length() == 1


@pytest.mark.asyncio
async def test_queue_survives_restart():
    storage = InMemoryStorage()
    await _queue(storage).enqueue("u1", _payload(1))

    reopened = _queue(storage)
    items = await reopened.items()
    assert len(items) == 1
    assert items[0].user_id == "u1"
    assert items[0].enqueued_at == T0
