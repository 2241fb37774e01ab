from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Optional


@dataclass(frozen=True)
class StreakSnapshot:
    """Derived from response dates; never stored as source of truth."""

    current_streak: int = 0
    longest_streak: int = 0
    last_completion_date: Optional[str] = None  # YYYY-MM-DD, local calendar
    total_days: int = 0

    def to_dict(self) -> dict:
        return asdict(self)
