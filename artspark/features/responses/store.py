"""
Response persistence.

insert() is idempotent on the response id: submitting the same submission_id
twice (an online attempt that persisted but timed out, then a replay) keeps
the first row and reports it back.
"""
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Protocol, Tuple

from artspark.models.submission import ResponseRecord


class ResponseStore(Protocol):
    async def insert(self, record: ResponseRecord) -> Tuple[ResponseRecord, bool]:
        """Return (stored record, created)."""
        ...

    async def get(self, user_id: str, response_id: str) -> Optional[ResponseRecord]:
        ...

    async def list_for_user(self, user_id: str, limit: int = 20, offset: int = 0) -> List[ResponseRecord]:
        ...

    async def list_for_prompt(self, user_id: str, prompt_id: str) -> List[ResponseRecord]:
        ...

    async def count_by_prompt(self, user_id: str, prompt_ids: List[str]) -> Dict[str, int]:
        ...

    async def completion_times(self, user_id: str) -> List[datetime]:
        """created_at of every response, newest first."""
        ...

    async def delete_for_user(self, user_id: str) -> int:
        ...


class InMemoryResponseStore:
    def __init__(self):
        self._records: Dict[str, ResponseRecord] = {}

    async def insert(self, record: ResponseRecord) -> Tuple[ResponseRecord, bool]:
        existing = self._records.get(record.id)
        if existing:
            return existing, False
        self._records[record.id] = record
        return record, True

    async def get(self, user_id: str, response_id: str) -> Optional[ResponseRecord]:
        record = self._records.get(response_id)
        return record if record and record.user_id == user_id else None

    def _for_user(self, user_id: str) -> List[ResponseRecord]:
        records = [r for r in self._records.values() if r.user_id == user_id]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    async def list_for_user(self, user_id: str, limit: int = 20, offset: int = 0) -> List[ResponseRecord]:
        return self._for_user(user_id)[offset:offset + limit]

    async def list_for_prompt(self, user_id: str, prompt_id: str) -> List[ResponseRecord]:
        return [r for r in self._for_user(user_id) if r.prompt_id == prompt_id]

    async def count_by_prompt(self, user_id: str, prompt_ids: List[str]) -> Dict[str, int]:
        wanted = set(prompt_ids)
        counts: Dict[str, int] = {}
        for record in self._records.values():
            if record.user_id == user_id and record.prompt_id in wanted:
                counts[record.prompt_id] = counts.get(record.prompt_id, 0) + 1
        return counts

    async def completion_times(self, user_id: str) -> List[datetime]:
        return [r.created_at for r in self._for_user(user_id)]

    async def delete_for_user(self, user_id: str) -> int:
        doomed = [rid for rid, r in self._records.items() if r.user_id == user_id]
        for rid in doomed:
            del self._records[rid]
        return len(doomed)
