from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import inspect

from artspark.features.preferences.store_sql import SqlPreferenceStore
from artspark.features.prompts.store_sql import SqlPromptStore
from artspark.features.responses.store_sql import SqlResponseStore
from artspark.models.preferences import UserPreferences
from artspark.models.prompt import PromptFields
from artspark.models.submission import ResponseRecord

NOW = datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)


def _fields(subject="animals", text="Draw animals."):
    return PromptFields(medium="ink", subject=subject, color_rule=None, twist=None, prompt_text=text)


def test_daily_unique_index_exists(sqlite_session_factory):
    engine = sqlite_session_factory.kw["bind"]
    indexes = {ix["name"]: ix for ix in inspect(engine).get_indexes("prompts")}
    assert "uq_prompts_daily_user_date" in indexes
    assert indexes["uq_prompts_daily_user_date"]["unique"]


@pytest.mark.asyncio
async def test_upsert_daily_keeps_first_row(sqlite_session_factory):
    store = SqlPromptStore(sqlite_session_factory)

    first = await store.upsert_daily("u1", "2024-06-01", _fields("animals", "First."), now=NOW)
    second = await store.upsert_daily("u1", "2024-06-01", _fields("food", "Second."), now=NOW)

    assert second.id == first.id
    assert second.prompt_text == "First."
    assert await store.count_for_user("u1") == 1
    assert (await store.get_daily("u1", "2024-06-01")).id == first.id


@pytest.mark.asyncio
async def test_manual_prompts_do_not_collide_with_daily(sqlite_session_factory):
    store = SqlPromptStore(sqlite_session_factory)

    await store.upsert_daily("u1", "2024-06-01", _fields(), now=NOW)
    await store.insert_manual("u1", "2024-06-01", _fields(), now=NOW)
    await store.insert_manual("u1", "2024-06-01", _fields(), now=NOW)

    assert await store.count_for_user("u1") == 3


@pytest.mark.asyncio
async def test_recent_subjects_and_listing(sqlite_session_factory):
    store = SqlPromptStore(sqlite_session_factory)
    old = await store.insert_manual("u1", "2024-05-01", _fields("urban"), now=NOW - timedelta(days=31))
    recent = await store.insert_manual("u1", "2024-05-30", _fields("food"), now=NOW - timedelta(days=2))

    subjects = await store.query_recent_subjects("u1", NOW - timedelta(days=14))
    assert subjects == {"food"}

    listed = await store.list_for_user("u1")
    assert [p.id for p in listed] == [recent.id, old.id]
    assert listed[0].created_at.tzinfo is not None
    assert await store.get("u2", recent.id) is None


@pytest.mark.asyncio
async def test_delete_for_user(sqlite_session_factory):
    store = SqlPromptStore(sqlite_session_factory)
    await store.upsert_daily("u1", "2024-06-01", _fields(), now=NOW)
    await store.insert_manual("u2", "2024-06-01", _fields(), now=NOW)

    assert await store.delete_for_user("u1") == 1
    assert await store.count_for_user("u1") == 0
    assert await store.count_for_user("u2") == 1


@pytest.mark.asyncio
async def test_preferences_round_trip_and_update(sqlite_session_factory):
    store = SqlPreferenceStore(sqlite_session_factory)
    assert await store.get("u1") is None

    await store.save(UserPreferences("u1", ["ink"], ["animals"], difficulty="beginner"))
    await store.save(UserPreferences("u1", ["oil"], ["food"], exclusions=["urban"]))

    stored = await store.get("u1")
    assert stored.art_mediums == ["oil"]
    assert stored.exclusions == ["urban"]
    assert stored.difficulty is None


@pytest.mark.asyncio
async def test_response_insert_is_idempotent(sqlite_session_factory):
    store = SqlResponseStore(sqlite_session_factory)
    record = ResponseRecord(
        id="7d7f9d4c-8a5e-4f0e-9a77-0a4c5c1b2d3e",
        user_id="u1",
        prompt_id="p1",
        image_urls=["https://cdn/1.jpg"],
        notes="first",
        tags=["ink"],
        created_at=NOW,
    )
    duplicate = ResponseRecord(**{**record.__dict__, "notes": "second"})

    stored, created = await store.insert(record)
    again, created_again = await store.insert(duplicate)

    assert created is True
    assert created_again is False
    assert again.notes == "first"
    assert len(await store.list_for_user("u1")) == 1


@pytest.mark.asyncio
async def test_response_counts_and_completion_times(sqlite_session_factory):
    store = SqlResponseStore(sqlite_session_factory)
    for idx, (prompt_id, offset) in enumerate([("p1", 0), ("p1", 1), ("p2", 2)]):
        await store.insert(ResponseRecord(
            id=f"r{idx}", user_id="u1", prompt_id=prompt_id, image_urls=[],
            notes=None, tags=[], created_at=NOW - timedelta(days=offset),
        ))

    counts = await store.count_by_prompt("u1", ["p1", "p2", "p3"])
    assert counts == {"p1": 2, "p2": 1}

    times = await store.completion_times("u1")
    assert times == sorted(times, reverse=True)
    assert times[0] == NOW

    assert await store.delete_for_user("u1") == 3
