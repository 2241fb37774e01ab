"""
Subject rotation.

A subject used in any of the user's prompts during the trailing window is held
back so consecutive prompts vary. Exclusions are absolute: when rotation leaves
nothing, repeats are allowed but excluded subjects never come back.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from artspark.core.dates import days_ago
from artspark.core.errors import NoEligibleSubjectsError
from artspark.features.prompts.store import PromptStore

DEFAULT_WINDOW_DAYS = 14


def _ordered_unique(values: Iterable[str]) -> List[str]:
    seen = set()
    ordered = []
    for v in values:
        if v not in seen:
            seen.add(v)
            ordered.append(v)
    return ordered


def filter_subjects(subjects: Iterable[str], exclusions: Iterable[str], recently_used: Iterable[str]) -> List[str]:
    """Pure selection rule; raises NoEligibleSubjectsError if every subject is excluded."""
    excluded = set(exclusions)
    allowed = [s for s in _ordered_unique(subjects) if s not in excluded]
    if not allowed:
        raise NoEligibleSubjectsError(
            "Every selected subject is also excluded. Update your subject preferences."
        )
    recent = set(recently_used)
    fresh = [s for s in allowed if s not in recent]
    return fresh or allowed


class SubjectEligibilityFilter:
    def __init__(self, prompt_store: PromptStore, window_days: int = DEFAULT_WINDOW_DAYS):
        self._store = prompt_store
        self._window_days = window_days

    async def eligible(
        self,
        user_id: str,
        subjects: Iterable[str],
        exclusions: Iterable[str],
        window_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[str]:
        """Candidate subjects in the user's preference order, without duplicates."""
        since = days_ago(window_days if window_days is not None else self._window_days, now)
        recent = await self._store.query_recent_subjects(user_id, since)
        return filter_subjects(subjects, exclusions, recent)
