from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from artspark.core.environment import get_environment
from artspark.core.errors import NotFoundError, ValidationError
from artspark.features.prompts.catalog import MEDIUMS, PALETTES, SUBJECTS
from artspark.features.prompts.difficulty import TIERS, LEGACY_TIER_MAP
from artspark.models.preferences import UserPreferences

router = APIRouter()


class PreferencesRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    art_mediums: List[str] = Field(..., min_length=1)
    subjects: List[str] = Field(..., min_length=1)
    color_palettes: List[str] = Field(default_factory=list)
    exclusions: List[str] = Field(default_factory=list)
    difficulty: Optional[str] = None


def _to_dict(prefs: UserPreferences) -> dict:
    return {
        "user_id": prefs.user_id,
        "art_mediums": list(prefs.art_mediums),
        "subjects": list(prefs.subjects),
        "color_palettes": list(prefs.color_palettes),
        "exclusions": list(prefs.exclusions),
        "difficulty": prefs.difficulty,
        "onboarding_completed": prefs.onboarding_completed,
    }


@router.get("/v1/preferences")
async def get_preferences(user_id: str = Query(..., min_length=1)):
    prefs = await get_environment().preferences.get(user_id)
    if prefs is None:
        raise NotFoundError(f"Preferences for {user_id} not found")
    return _to_dict(prefs)


@router.put("/v1/preferences")
async def save_preferences(req: PreferencesRequest):
    """Store onboarding choices. Unknown catalog ids are rejected."""
    known_difficulties = {t.id for t in TIERS} | set(LEGACY_TIER_MAP)
    errors = []
    unknown_mediums = [m for m in req.art_mediums if m not in MEDIUMS]
    if unknown_mediums:
        errors.append(f"unknown mediums: {', '.join(unknown_mediums)}")
    unknown_subjects = [s for s in req.subjects + req.exclusions if s not in SUBJECTS]
    if unknown_subjects:
        errors.append(f"unknown subjects: {', '.join(unknown_subjects)}")
    unknown_palettes = [p for p in req.color_palettes if p not in PALETTES]
    if unknown_palettes:
        errors.append(f"unknown palettes: {', '.join(unknown_palettes)}")
    if req.difficulty and req.difficulty not in known_difficulties:
        errors.append(f"unknown difficulty: {req.difficulty}")
    if errors:
        raise ValidationError("; ".join(errors))

    prefs = await get_environment().preferences.save(
        UserPreferences(
            user_id=req.user_id,
            art_mediums=req.art_mediums,
            subjects=req.subjects,
            color_palettes=req.color_palettes,
            exclusions=req.exclusions,
            difficulty=req.difficulty,
            onboarding_completed=True,
        )
    )
    return _to_dict(prefs)
