"""SQL-backed response store. Duplicate ids resolve to the existing row."""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import IntegrityError

from artspark.core.database import get_session_factory, responses, session_scope
from artspark.core.dates import ensure_aware
from artspark.models.submission import ResponseRecord


def _row_to_record(row) -> ResponseRecord:
    return ResponseRecord(
        id=row.id,
        user_id=row.user_id,
        prompt_id=row.prompt_id,
        image_urls=list(row.image_urls or []),
        notes=row.notes,
        tags=list(row.tags or []),
        created_at=ensure_aware(row.created_at),
    )


def _insert_ignoring_duplicate(dialect_name: str, values: dict):
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as dialect_insert
    elif dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as dialect_insert
    else:
        return None
    return dialect_insert(responses).values(**values).on_conflict_do_nothing(index_elements=["id"])


class SqlResponseStore:
    def __init__(self, session_factory=None):
        self._session_factory = session_factory

    def _scope(self):
        return session_scope(self._session_factory or get_session_factory())

    def _select_by_id(self, session, response_id: str):
        return session.execute(select(responses).where(responses.c.id == response_id)).first()

    def _insert(self, record: ResponseRecord) -> Tuple[ResponseRecord, bool]:
        values = {
            "id": record.id,
            "user_id": record.user_id,
            "prompt_id": record.prompt_id,
            "image_urls": list(record.image_urls),
            "notes": record.notes,
            "tags": list(record.tags),
            "created_at": ensure_aware(record.created_at).astimezone(timezone.utc),
        }
        with self._scope() as session:
            existing = self._select_by_id(session, record.id)
            if existing:
                return _row_to_record(existing), False
            stmt = _insert_ignoring_duplicate(session.get_bind().dialect.name, values)
            if stmt is not None:
                created = (session.execute(stmt).rowcount or 0) > 0
            else:
                try:
                    with session.begin_nested():
                        session.execute(insert(responses).values(**values))
                    created = True
                except IntegrityError:
                    created = False
            if not created:
                # Concurrent insert of the same submission id
                return _row_to_record(self._select_by_id(session, record.id)), False
        return record, True

    async def insert(self, record: ResponseRecord) -> Tuple[ResponseRecord, bool]:
        return await asyncio.to_thread(self._insert, record)

    def _get(self, user_id: str, response_id: str) -> Optional[ResponseRecord]:
        with self._scope() as session:
            row = session.execute(
                select(responses).where(responses.c.id == response_id, responses.c.user_id == user_id)
            ).first()
            return _row_to_record(row) if row else None

    async def get(self, user_id: str, response_id: str) -> Optional[ResponseRecord]:
        return await asyncio.to_thread(self._get, user_id, response_id)

    def _list_for_user(self, user_id: str, limit: int, offset: int) -> List[ResponseRecord]:
        with self._scope() as session:
            rows = session.execute(
                select(responses)
                .where(responses.c.user_id == user_id)
                .order_by(responses.c.created_at.desc())
                .limit(limit)
                .offset(offset)
            ).fetchall()
            return [_row_to_record(r) for r in rows]

    async def list_for_user(self, user_id: str, limit: int = 20, offset: int = 0) -> List[ResponseRecord]:
        return await asyncio.to_thread(self._list_for_user, user_id, limit, offset)

    def _list_for_prompt(self, user_id: str, prompt_id: str) -> List[ResponseRecord]:
        with self._scope() as session:
            rows = session.execute(
                select(responses)
                .where(responses.c.user_id == user_id, responses.c.prompt_id == prompt_id)
                .order_by(responses.c.created_at.desc())
            ).fetchall()
            return [_row_to_record(r) for r in rows]

    async def list_for_prompt(self, user_id: str, prompt_id: str) -> List[ResponseRecord]:
        return await asyncio.to_thread(self._list_for_prompt, user_id, prompt_id)

    def _count_by_prompt(self, user_id: str, prompt_ids: List[str]) -> Dict[str, int]:
        if not prompt_ids:
            return {}
        with self._scope() as session:
            rows = session.execute(
                select(responses.c.prompt_id, func.count().label("n"))
                .where(responses.c.user_id == user_id, responses.c.prompt_id.in_(prompt_ids))
                .group_by(responses.c.prompt_id)
            ).fetchall()
            return {r.prompt_id: int(r.n) for r in rows}

    async def count_by_prompt(self, user_id: str, prompt_ids: List[str]) -> Dict[str, int]:
        return await asyncio.to_thread(self._count_by_prompt, user_id, list(prompt_ids))

    def _completion_times(self, user_id: str) -> List[datetime]:
        with self._scope() as session:
            rows = session.execute(
                select(responses.c.created_at)
                .where(responses.c.user_id == user_id)
                .order_by(responses.c.created_at.desc())
            ).fetchall()
            return [ensure_aware(r.created_at) for r in rows]

    async def completion_times(self, user_id: str) -> List[datetime]:
        return await asyncio.to_thread(self._completion_times, user_id)

    def _delete_for_user(self, user_id: str) -> int:
        with self._scope() as session:
            result = session.execute(delete(responses).where(responses.c.user_id == user_id))
            return result.rowcount or 0

    async def delete_for_user(self, user_id: str) -> int:
        return await asyncio.to_thread(self._delete_for_user, user_id)
