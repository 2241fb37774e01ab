"""
Prompt persistence.

PromptStore is the interface the engine depends on. The in-memory store backs
the simulated environment and tests; store_sql.SqlPromptStore backs the live one.
Both enforce at most one daily prompt per (user_id, date_key).
"""
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Protocol, Set, Tuple
from uuid import uuid4

from artspark.core.dates import ensure_aware, utc_now
from artspark.models.prompt import Prompt, PromptFields, PromptKind


class PromptStore(Protocol):
    async def get_daily(self, user_id: str, date_key: str) -> Optional[Prompt]:
        ...

    async def upsert_daily(self, user_id: str, date_key: str, fields: PromptFields, now: Optional[datetime] = None) -> Prompt:
        """
        Insert the daily prompt unless one exists; return the stored row.

        Must be atomic on (user_id, date_key, daily). When another caller won
        the race the existing row is returned untouched.
        """
        ...

    async def insert_manual(self, user_id: str, date_key: str, fields: PromptFields, now: Optional[datetime] = None) -> Prompt:
        ...

    async def query_recent_subjects(self, user_id: str, since: datetime) -> Set[str]:
        ...

    async def get(self, user_id: str, prompt_id: str) -> Optional[Prompt]:
        ...

    async def list_for_user(self, user_id: str, limit: int = 20, offset: int = 0) -> List[Prompt]:
        """Newest first."""
        ...

    async def count_for_user(self, user_id: str) -> int:
        ...

    async def delete_for_user(self, user_id: str) -> int:
        ...


def build_prompt(user_id: str, date_key: str, kind: PromptKind, fields: PromptFields, now: Optional[datetime] = None) -> Prompt:
    return Prompt(
        id=str(uuid4()),
        user_id=user_id,
        date_key=date_key,
        kind=kind,
        medium=fields.medium,
        subject=fields.subject,
        color_rule=fields.color_rule,
        twist=fields.twist,
        prompt_text=fields.prompt_text,
        created_at=ensure_aware(now or utc_now()),
    )


class InMemoryPromptStore:
    """Dict-backed store. Check-and-insert runs without suspending, so it is atomic on one loop."""

    def __init__(self):
        self._prompts: Dict[str, Prompt] = {}
        self._daily: Dict[Tuple[str, str], str] = {}

    async def get_daily(self, user_id: str, date_key: str) -> Optional[Prompt]:
        prompt_id = self._daily.get((user_id, date_key))
        return self._prompts.get(prompt_id) if prompt_id else None

    async def upsert_daily(self, user_id: str, date_key: str, fields: PromptFields, now: Optional[datetime] = None) -> Prompt:
        existing_id = self._daily.get((user_id, date_key))
        if existing_id:
            return self._prompts[existing_id]
        prompt = build_prompt(user_id, date_key, "daily", fields, now)
        self._prompts[prompt.id] = prompt
        self._daily[(user_id, date_key)] = prompt.id
        return prompt

    async def insert_manual(self, user_id: str, date_key: str, fields: PromptFields, now: Optional[datetime] = None) -> Prompt:
        prompt = build_prompt(user_id, date_key, "manual", fields, now)
        self._prompts[prompt.id] = prompt
        return prompt

    async def query_recent_subjects(self, user_id: str, since: datetime) -> Set[str]:
        cutoff = ensure_aware(since)
        return {
            p.subject
            for p in self._prompts.values()
            if p.user_id == user_id and p.created_at >= cutoff
        }

    async def get(self, user_id: str, prompt_id: str) -> Optional[Prompt]:
        prompt = self._prompts.get(prompt_id)
        if prompt and prompt.user_id == user_id:
            return prompt
        return None

    async def list_for_user(self, user_id: str, limit: int = 20, offset: int = 0) -> List[Prompt]:
        owned = sorted(
            (p for p in self._prompts.values() if p.user_id == user_id),
            key=lambda p: p.created_at,
            reverse=True,
        )
        return owned[offset:offset + limit]

    async def count_for_user(self, user_id: str) -> int:
        return sum(1 for p in self._prompts.values() if p.user_id == user_id)

    async def delete_for_user(self, user_id: str) -> int:
        doomed = [pid for pid, p in self._prompts.items() if p.user_id == user_id]
        for pid in doomed:
            del self._prompts[pid]
        self._daily = {k: v for k, v in self._daily.items() if k[0] != user_id}
        return len(doomed)
