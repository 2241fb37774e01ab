"""
Preference persistence.

The prompt engine only calls get(); save() exists for onboarding, settings and
seeding the simulated environment.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Dict, Optional, Protocol

from artspark.models.preferences import UserPreferences


class PreferenceStore(Protocol):
    async def get(self, user_id: str) -> Optional[UserPreferences]:
        """None when the user has not completed onboarding."""
        ...

    async def save(self, preferences: UserPreferences) -> UserPreferences:
        ...


class InMemoryPreferenceStore:
    def __init__(self):
        self._preferences: Dict[str, UserPreferences] = {}

    async def get(self, user_id: str) -> Optional[UserPreferences]:
        stored = self._preferences.get(user_id)
        # Copies keep callers from mutating stored state
        return replace(stored) if stored else None

    async def save(self, preferences: UserPreferences) -> UserPreferences:
        self._preferences[preferences.user_id] = replace(preferences)
        return preferences
