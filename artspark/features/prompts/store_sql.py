"""
SQL-backed prompt store (PostgreSQL in production, SQLite in tests).

Maintains the same interface as InMemoryPromptStore. The daily uniqueness rule
is the partial unique index uq_prompts_daily_user_date; concurrent callers
insert-or-ignore against it and then read back whichever row won.
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import List, Optional, Set

from sqlalchemy import delete, func, insert, select, text
from sqlalchemy.exc import IntegrityError

from artspark.core.database import get_session_factory, prompts, session_scope
from artspark.core.dates import ensure_aware
from artspark.features.prompts.store import build_prompt
from artspark.models.prompt import Prompt, PromptFields


def _utc(moment: datetime) -> datetime:
    return ensure_aware(moment).astimezone(timezone.utc)


def _row_to_prompt(row) -> Prompt:
    return Prompt(
        id=row.id,
        user_id=row.user_id,
        date_key=row.date_key,
        kind=row.kind,
        medium=row.medium,
        subject=row.subject,
        color_rule=row.color_rule,
        twist=row.twist,
        prompt_text=row.prompt_text,
        created_at=ensure_aware(row.created_at),
    )


def _values(prompt: Prompt) -> dict:
    return {
        "id": prompt.id,
        "user_id": prompt.user_id,
        "date_key": prompt.date_key,
        "kind": prompt.kind,
        "medium": prompt.medium,
        "subject": prompt.subject,
        "color_rule": prompt.color_rule,
        "twist": prompt.twist,
        "prompt_text": prompt.prompt_text,
        "created_at": _utc(prompt.created_at),
    }


def _insert_ignoring_daily_conflict(dialect_name: str, values: dict):
    """INSERT ... ON CONFLICT DO NOTHING against the partial daily index, or None if unsupported."""
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as dialect_insert
    elif dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as dialect_insert
    else:
        return None
    return dialect_insert(prompts).values(**values).on_conflict_do_nothing(
        index_elements=["user_id", "date_key"],
        index_where=text("kind = 'daily'"),
    )


class SqlPromptStore:
    def __init__(self, session_factory=None):
        self._session_factory = session_factory

    def _scope(self):
        return session_scope(self._session_factory or get_session_factory())

    # Sync bodies run in a worker thread so the event loop is never blocked on the database
    def _get_daily(self, user_id: str, date_key: str) -> Optional[Prompt]:
        with self._scope() as session:
            row = session.execute(
                select(prompts).where(
                    prompts.c.user_id == user_id,
                    prompts.c.date_key == date_key,
                    prompts.c.kind == "daily",
                )
            ).first()
            return _row_to_prompt(row) if row else None

    async def get_daily(self, user_id: str, date_key: str) -> Optional[Prompt]:
        return await asyncio.to_thread(self._get_daily, user_id, date_key)

    def _upsert_daily(self, user_id: str, date_key: str, fields: PromptFields, now: Optional[datetime]) -> Prompt:
        candidate = build_prompt(user_id, date_key, "daily", fields, now)
        values = _values(candidate)
        with self._scope() as session:
            stmt = _insert_ignoring_daily_conflict(session.get_bind().dialect.name, values)
            if stmt is not None:
                session.execute(stmt)
            else:
                try:
                    with session.begin_nested():
                        session.execute(insert(prompts).values(**values))
                except IntegrityError:
                    # Another caller already created today's prompt
                    pass
            row = session.execute(
                select(prompts).where(
                    prompts.c.user_id == user_id,
                    prompts.c.date_key == date_key,
                    prompts.c.kind == "daily",
                )
            ).first()
            return _row_to_prompt(row)

    async def upsert_daily(self, user_id: str, date_key: str, fields: PromptFields, now: Optional[datetime] = None) -> Prompt:
        return await asyncio.to_thread(self._upsert_daily, user_id, date_key, fields, now)

    def _insert_manual(self, user_id: str, date_key: str, fields: PromptFields, now: Optional[datetime]) -> Prompt:
        prompt = build_prompt(user_id, date_key, "manual", fields, now)
        with self._scope() as session:
            session.execute(insert(prompts).values(**_values(prompt)))
        return prompt

    async def insert_manual(self, user_id: str, date_key: str, fields: PromptFields, now: Optional[datetime] = None) -> Prompt:
        return await asyncio.to_thread(self._insert_manual, user_id, date_key, fields, now)

    def _query_recent_subjects(self, user_id: str, since: datetime) -> Set[str]:
        with self._scope() as session:
            rows = session.execute(
                select(prompts.c.subject)
                .where(prompts.c.user_id == user_id, prompts.c.created_at >= _utc(since))
                .distinct()
            ).fetchall()
            return {r.subject for r in rows}

    async def query_recent_subjects(self, user_id: str, since: datetime) -> Set[str]:
        return await asyncio.to_thread(self._query_recent_subjects, user_id, since)

    def _get(self, user_id: str, prompt_id: str) -> Optional[Prompt]:
        with self._scope() as session:
            row = session.execute(
                select(prompts).where(prompts.c.id == prompt_id, prompts.c.user_id == user_id)
            ).first()
            return _row_to_prompt(row) if row else None

    async def get(self, user_id: str, prompt_id: str) -> Optional[Prompt]:
        return await asyncio.to_thread(self._get, user_id, prompt_id)

    def _list_for_user(self, user_id: str, limit: int, offset: int) -> List[Prompt]:
        with self._scope() as session:
            rows = session.execute(
                select(prompts)
                .where(prompts.c.user_id == user_id)
                .order_by(prompts.c.created_at.desc())
                .limit(limit)
                .offset(offset)
            ).fetchall()
            return [_row_to_prompt(r) for r in rows]

    async def list_for_user(self, user_id: str, limit: int = 20, offset: int = 0) -> List[Prompt]:
        return await asyncio.to_thread(self._list_for_user, user_id, limit, offset)

    def _count_for_user(self, user_id: str) -> int:
        with self._scope() as session:
            return int(session.execute(
                select(func.count()).select_from(prompts).where(prompts.c.user_id == user_id)
            ).scalar_one())

    async def count_for_user(self, user_id: str) -> int:
        return await asyncio.to_thread(self._count_for_user, user_id)

    def _delete_for_user(self, user_id: str) -> int:
        with self._scope() as session:
            result = session.execute(delete(prompts).where(prompts.c.user_id == user_id))
            return result.rowcount or 0

    async def delete_for_user(self, user_id: str) -> int:
        return await asyncio.to_thread(self._delete_for_user, user_id)
