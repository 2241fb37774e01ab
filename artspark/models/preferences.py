from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class UserPreferences:
    """
    Per-user generation preferences. Owned by onboarding/settings; the prompt
    engine only reads them.

    difficulty may hold a current tier id, a legacy three-tier id, or None.
    """

    user_id: str
    art_mediums: List[str]
    subjects: List[str]
    color_palettes: List[str] = field(default_factory=list)
    exclusions: List[str] = field(default_factory=list)
    difficulty: Optional[str] = None
    onboarding_completed: bool = True
