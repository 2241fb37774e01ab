"""
Difficulty tiers.

Each tier bundles the generation probabilities and the template tier the
assembler draws phrasing from. Preferences written before the five-tier scale
carry one of three legacy ids; they are migrated through LEGACY_TIER_MAP.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Literal, Optional

TemplateTier = Literal["guided", "standard", "open"]

logger = logging.getLogger("artspark")


@dataclass(frozen=True)
class DifficultyTier:
    id: str
    label: str
    template_tier: TemplateTier
    twist_chance: float
    color_rule_chance: float


# Ordered lowest -> highest skill
TIERS = (
    DifficultyTier("explorer", "Explorer", "guided", twist_chance=0.0, color_rule_chance=0.15),
    DifficultyTier("developing", "Developing", "standard", twist_chance=0.2, color_rule_chance=0.3),
    DifficultyTier("confident", "Confident", "standard", twist_chance=0.35, color_rule_chance=0.4),
    DifficultyTier("proficient", "Proficient", "open", twist_chance=0.5, color_rule_chance=0.5),
    DifficultyTier("master", "Master", "open", twist_chance=0.65, color_rule_chance=0.6),
)

TIERS_BY_ID: Dict[str, DifficultyTier] = {t.id: t for t in TIERS}

LOWEST_TIER = TIERS[0]
MIDDLE_TIER = TIERS[len(TIERS) // 2]
# Used when a user never picked a difficulty
DEFAULT_TIER = TIERS_BY_ID["developing"]

LEGACY_TIER_MAP: Dict[str, str] = {
    "beginner": "explorer",
    "intermediate": "confident",
    "advanced": "master",
}


def resolve_tier(value: Optional[str]) -> DifficultyTier:
    """Map a stored difficulty value onto the five-tier scale.

    Current ids resolve directly and legacy ids through LEGACY_TIER_MAP.
    A missing value is DEFAULT_TIER; anything unrecognized is MIDDLE_TIER.
    """
    if not value:
        return DEFAULT_TIER
    key = value.strip().lower()
    if key in TIERS_BY_ID:
        return TIERS_BY_ID[key]
    if key in LEGACY_TIER_MAP:
        return TIERS_BY_ID[LEGACY_TIER_MAP[key]]
    logger.warning("difficulty.unknown_tier", extra={"difficulty": value, "resolved": MIDDLE_TIER.id})
    return MIDDLE_TIER


def is_lowest_tier(tier: DifficultyTier) -> bool:
    return tier.id == LOWEST_TIER.id
