from __future__ import annotations

import random
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from artspark.core.dates import utc_date_key, utc_now
from artspark.core.errors import NotFoundError, NotOnboardedError
from artspark.core.logging import log_event
from artspark.features.preferences.store import PreferenceStore
from artspark.features.prompts.catalog import (
    ANY_PALETTE,
    CONCRETE_PALETTES,
    TutorialLink,
    tutorial_links,
    twists_for_medium,
)
from artspark.features.prompts.difficulty import DifficultyTier, is_lowest_tier, resolve_tier
from artspark.features.prompts.eligibility import DEFAULT_WINDOW_DAYS, SubjectEligibilityFilter
from artspark.features.prompts.store import PromptStore
from artspark.features.prompts.templates import TemplateAssembler
from artspark.features.responses.store import ResponseStore
from artspark.models.preferences import UserPreferences
from artspark.models.prompt import Prompt, PromptFields, PromptWithStatus


class PromptGenerationEngine:
    """
    Personalized prompt generation with an idempotent daily prompt.

    The daily prompt for (user, UTC day) is created once and returned as-is
    afterwards. Concurrent first calls race on the store's atomic upsert and
    every caller returns the row the store kept, whichever randomness produced it.
    Manual prompts are generated the same way but always inserted.
    """

    def __init__(
        self,
        prompt_store: PromptStore,
        preference_store: PreferenceStore,
        response_store: Optional[ResponseStore] = None,
        *,
        rng: Optional[random.Random] = None,
        window_days: int = DEFAULT_WINDOW_DAYS,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._prompts = prompt_store
        self._preferences = preference_store
        self._responses = response_store
        self._rng = rng or random.Random()
        self._assembler = TemplateAssembler(self._rng)
        self._eligibility = SubjectEligibilityFilter(prompt_store, window_days)
        self._clock = clock

    async def get_or_create_daily(self, user_id: str, now: Optional[datetime] = None) -> Prompt:
        moment = now or self._clock()
        date_key = utc_date_key(moment)

        existing = await self._prompts.get_daily(user_id, date_key)
        if existing:
            return existing

        preferences = await self._load_preferences(user_id)
        fields = await self.generate(user_id, preferences, now=moment)
        prompt = await self._prompts.upsert_daily(user_id, date_key, fields, now=moment)

        if prompt.prompt_text != fields.prompt_text:
            log_event(
                "info",
                "prompt.daily.concurrent_winner",
                user_id=user_id,
                prompt_id=prompt.id,
                event_type="prompt.daily",
            )
        else:
            log_event("info", "prompt.daily.created", user_id=user_id, prompt_id=prompt.id, event_type="prompt.daily")
        return prompt

    async def create_manual(self, user_id: str, now: Optional[datetime] = None) -> Prompt:
        moment = now or self._clock()
        preferences = await self._load_preferences(user_id)
        fields = await self.generate(user_id, preferences, now=moment)
        prompt = await self._prompts.insert_manual(user_id, utc_date_key(moment), fields, now=moment)
        log_event("info", "prompt.manual.created", user_id=user_id, prompt_id=prompt.id, event_type="prompt.manual")
        return prompt

    async def generate(self, user_id: str, preferences: UserPreferences, now: Optional[datetime] = None) -> PromptFields:
        """Draw medium, subject, color rule and twist, then assemble the text. Persists nothing."""
        if not preferences.art_mediums or not preferences.subjects:
            raise NotOnboardedError("Preferences are incomplete. Please complete onboarding.")

        difficulty = resolve_tier(preferences.difficulty)
        medium = self._rng.choice(list(preferences.art_mediums))

        eligible = await self._eligibility.eligible(
            user_id,
            preferences.subjects,
            preferences.exclusions or [],
            now=now,
        )
        subject = self._rng.choice(eligible)

        color_rule = None
        if preferences.color_palettes and self._rng.random() < difficulty.color_rule_chance:
            color_rule = self._rng.choice(list(preferences.color_palettes))
            if color_rule == ANY_PALETTE:
                color_rule = self._rng.choice(CONCRETE_PALETTES)

        twist = None
        compatible = twists_for_medium(medium)
        if compatible and self._rng.random() < difficulty.twist_chance:
            twist = self._rng.choice(compatible).text

        prompt_text = self._assembler.assemble(medium, subject, difficulty, color_rule=color_rule, twist=twist)
        return PromptFields(
            medium=medium,
            subject=subject,
            color_rule=color_rule,
            twist=twist,
            prompt_text=prompt_text,
        )

    async def get_history(self, user_id: str, limit: int = 20, offset: int = 0) -> Tuple[List[PromptWithStatus], int]:
        """Newest first, each with its response count."""
        page = await self._prompts.list_for_user(user_id, limit=limit, offset=offset)
        total = await self._prompts.count_for_user(user_id)
        counts = await self._response_counts(user_id, [p.id for p in page])
        return [PromptWithStatus(p, counts.get(p.id, 0)) for p in page], total

    async def get_prompt(self, user_id: str, prompt_id: str) -> PromptWithStatus:
        prompt = await self._prompts.get(user_id, prompt_id)
        if not prompt:
            raise NotFoundError(f"Prompt {prompt_id} not found")
        counts = await self._response_counts(user_id, [prompt.id])
        return PromptWithStatus(prompt, counts.get(prompt.id, 0))

    async def reset_history(self, user_id: str) -> dict:
        """Delete every response and prompt of the user. Cannot be undone."""
        responses_deleted = 0
        if self._responses is not None:
            # Responses first: they reference prompts
            responses_deleted = await self._responses.delete_for_user(user_id)
        prompts_deleted = await self._prompts.delete_for_user(user_id)
        log_event(
            "warning",
            "prompt.history.reset",
            user_id=user_id,
            event_type="prompt.history",
            extra={"prompts_deleted": prompts_deleted, "responses_deleted": responses_deleted},
        )
        return {"prompts_deleted": prompts_deleted, "responses_deleted": responses_deleted}

    async def difficulty_for(self, user_id: str) -> DifficultyTier:
        preferences = await self._preferences.get(user_id)
        return resolve_tier(preferences.difficulty if preferences else None)

    @staticmethod
    def learning_resources(prompt: Prompt, difficulty: DifficultyTier) -> List[TutorialLink]:
        """Tutorials for the prompt's medium, offered on the lowest tier only."""
        if not is_lowest_tier(difficulty):
            return []
        return tutorial_links(prompt.medium)

    async def _load_preferences(self, user_id: str) -> UserPreferences:
        preferences = await self._preferences.get(user_id)
        if preferences is None:
            raise NotOnboardedError("User preferences not found. Please complete onboarding.")
        return preferences

    async def _response_counts(self, user_id: str, prompt_ids: List[str]) -> dict:
        if self._responses is None or not prompt_ids:
            return {}
        return await self._responses.count_by_prompt(user_id, prompt_ids)
