"""SQL-backed preference store."""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import insert, select, update

from artspark.core.database import get_session_factory, session_scope, user_preferences
from artspark.models.preferences import UserPreferences


def _row_to_preferences(row) -> UserPreferences:
    return UserPreferences(
        user_id=row.user_id,
        art_mediums=list(row.art_mediums or []),
        subjects=list(row.subjects or []),
        color_palettes=list(row.color_palettes or []),
        exclusions=list(row.exclusions or []),
        difficulty=row.difficulty,
        onboarding_completed=bool(row.onboarding_completed),
    )


class SqlPreferenceStore:
    def __init__(self, session_factory=None):
        self._session_factory = session_factory

    def _scope(self):
        return session_scope(self._session_factory or get_session_factory())

    def _get(self, user_id: str) -> Optional[UserPreferences]:
        with self._scope() as session:
            row = session.execute(
                select(user_preferences).where(user_preferences.c.user_id == user_id)
            ).first()
            return _row_to_preferences(row) if row else None

    async def get(self, user_id: str) -> Optional[UserPreferences]:
        return await asyncio.to_thread(self._get, user_id)

    def _save(self, preferences: UserPreferences) -> UserPreferences:
        values = {
            "art_mediums": list(preferences.art_mediums),
            "subjects": list(preferences.subjects),
            "color_palettes": list(preferences.color_palettes),
            "exclusions": list(preferences.exclusions),
            "difficulty": preferences.difficulty,
            "onboarding_completed": preferences.onboarding_completed,
            "updated_at": datetime.now(timezone.utc),
        }
        with self._scope() as session:
            exists = session.execute(
                select(user_preferences.c.user_id).where(user_preferences.c.user_id == preferences.user_id)
            ).first()
            if exists:
                session.execute(
                    update(user_preferences)
                    .where(user_preferences.c.user_id == preferences.user_id)
                    .values(**values)
                )
            else:
                session.execute(insert(user_preferences).values(user_id=preferences.user_id, **values))
        return preferences

    async def save(self, preferences: UserPreferences) -> UserPreferences:
        return await asyncio.to_thread(self._save, preferences)
