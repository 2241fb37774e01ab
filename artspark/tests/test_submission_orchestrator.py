from datetime import timedelta

import pytest

from artspark.core.dates import utc_now
from artspark.core.errors import PermanentIOError, SubmissionValidationError, TransientIOError
from artspark.models.preferences import UserPreferences
from artspark.models.submission import SubmissionInput, SubmissionPayload


async def _prompt_id(env, user_id="u1"):
    await env.preferences.save(UserPreferences(user_id, ["ink"], ["animals", "food"]))
    prompt = await env.engine.create_manual(user_id)
    return prompt.id


def _input(prompt_id, images=2):
    return SubmissionInput(
        prompt_id=prompt_id,
        image_refs=[f"/photos/{i}.jpg" for i in range(images)],
        notes="quick study",
        tags=["ink"],
    )


@pytest.mark.asyncio
async def test_connected_submission_is_persisted(env):
    prompt_id = await _prompt_id(env)

    outcome = await env.orchestrator.submit("u1", _input(prompt_id))

    assert outcome.status == "persisted"
    assert outcome.response.id == outcome.submission_id
    assert len(outcome.response.image_urls) == 2
    assert outcome.streak.current_streak == 1
    assert await env.queue.length() == 0


@pytest.mark.asyncio
async def test_disconnected_submission_never_touches_network(env):
    prompt_id = await _prompt_id(env)
    await env.monitor.update(False)

    outcome = await env.orchestrator.submit("u1", _input(prompt_id))

    assert outcome.status == "queued"
    assert outcome.queue_id
    assert outcome.message.startswith("Saved offline")
    assert env.transfer.uploads == {}
    assert await env.queue.length() == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [TransientIOError("flaky"), PermanentIOError("rejected")])
async def test_online_failure_falls_back_to_queue(env, error):
    prompt_id = await _prompt_id(env)
    env.transfer.fail_with = error

    outcome = await env.orchestrator.submit("u1", _input(prompt_id))

    assert outcome.status == "queued"
    items = await env.queue.items()
    assert items[0].payload.submission_id == outcome.submission_id


@pytest.mark.asyncio
async def test_stalled_online_attempt_times_out_into_queue(env):
    prompt_id = await _prompt_id(env)
    env.transfer.delay_seconds = 2.0

    outcome = await env.orchestrator.submit("u1", _input(prompt_id))

    assert outcome.status == "queued"
    assert await env.queue.length() == 1


@pytest.mark.asyncio
async def test_invalid_submission_is_rejected_not_queued(env):
    prompt_id = await _prompt_id(env)
    await env.monitor.update(False)

    with pytest.raises(SubmissionValidationError):
        await env.orchestrator.submit("u1", _input(prompt_id, images=0))

    assert await env.queue.length() == 0


@pytest.mark.asyncio
async def test_reconnect_replays_queue(env):
    prompt_id = await _prompt_id(env)
    await env.orchestrator.start()
    await env.monitor.update(False)
    outcome = await env.orchestrator.submit("u1", _input(prompt_id))
    assert outcome.status == "queued"

    await env.monitor.update(True)

    assert await env.queue.length() == 0
    stored = await env.responses.get("u1", outcome.submission_id)
    assert stored is not None
    assert (await env.streaks.get_streak("u1")).total_days == 1
    await env.orchestrator.stop()


@pytest.mark.asyncio
async def test_replay_does_not_duplicate_already_persisted_response(env):
    prompt_id = await _prompt_id(env)
    payload = SubmissionPayload(**_input(prompt_id).model_dump(), submission_id="5b0c8f9e-2f1d-4d8a-b7e4-1e9f3c6a2d10")
    # Persisted, but the caller never heard back and queued it
    await env.response_service.create_response("u1", payload)
    await env.queue.enqueue("u1", payload)

    result = await env.orchestrator.replay()

    assert result.succeeded == 1
    assert len(await env.responses.list_for_user("u1")) == 1


@pytest.mark.asyncio
async def test_missing_prompt_is_queued_then_dropped(env):
    env.transfer.fail_with = None
    outcome = await env.orchestrator.submit("u1", _input("0f0e0d0c-0b0a-4909-8807-060504030201"))
    assert outcome.status == "queued"

    for _ in range(3):
        await env.orchestrator.replay()

    assert await env.queue.length() == 0
    assert (await env.queue.stats()).dropped == 1


@pytest.mark.asyncio
async def test_start_purges_expired_items(env):
    prompt_id = await _prompt_id(env)
    payload = SubmissionPayload(**_input(prompt_id).model_dump(), submission_id="s-old")
    await env.queue.enqueue("u1", payload, now=utc_now() - timedelta(days=8))

    await env.orchestrator.start()

    assert await env.queue.length() == 0
    await env.orchestrator.stop()
