from __future__ import annotations

from datetime import datetime, timedelta, tzinfo
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from artspark.core.dates import is_consecutive, local_date_key, parse_date_key, utc_now
from artspark.core.logging import log_event
from artspark.features.responses.store import ResponseStore
from artspark.models.streak import StreakSnapshot

CACHE_TTL = timedelta(hours=1)


def calculate_streaks(dates_desc: Sequence[str], today: Optional[str] = None, yesterday: Optional[str] = None) -> StreakSnapshot:
    """
    Streaks over distinct local date keys sorted newest first.

    The current streak is alive only when the newest date is today or
    yesterday; the longest streak is the longest consecutive run anywhere,
    never shorter than the current one.
    """
    if not dates_desc:
        return StreakSnapshot()

    if today is None:
        today = local_date_key(utc_now())
    if yesterday is None:
        yesterday = (parse_date_key(today) - timedelta(days=1)).isoformat()

    most_recent = dates_desc[0]
    current = 0
    if most_recent in (today, yesterday):
        current = 1
        for idx in range(1, len(dates_desc)):
            if not is_consecutive(dates_desc[idx], dates_desc[idx - 1]):
                break
            current += 1

    longest = 1
    run = 1
    for idx in range(1, len(dates_desc)):
        if is_consecutive(dates_desc[idx], dates_desc[idx - 1]):
            run += 1
            longest = max(longest, run)
        else:
            run = 1

    return StreakSnapshot(
        current_streak=current,
        longest_streak=max(longest, current),
        last_completion_date=most_recent,
        total_days=len(dates_desc),
    )


def distinct_local_dates(times: Sequence[datetime], tz: Optional[tzinfo] = None) -> List[str]:
    return sorted({local_date_key(t, tz) for t in times}, reverse=True)


class StreakService:
    """Derives streaks from persisted responses. Never incrementally patched."""

    def __init__(
        self,
        response_store: ResponseStore,
        tz: Optional[tzinfo] = None,
        *,
        clock: Callable[[], datetime] = utc_now,
        cache_ttl: timedelta = CACHE_TTL,
    ):
        self._responses = response_store
        self._tz = tz
        self._clock = clock
        self._cache_ttl = cache_ttl
        self._cache: Dict[str, Tuple[datetime, StreakSnapshot]] = {}

    async def get_streak(self, user_id: str) -> StreakSnapshot:
        now = self._clock()
        cached = self._cache.get(user_id)
        if cached and now - cached[0] < self._cache_ttl:
            return cached[1]
        return await self._compute(user_id, now)

    async def recalculate(self, user_id: str) -> StreakSnapshot:
        self.invalidate(user_id)
        snapshot = await self._compute(user_id, self._clock())
        log_event(
            "info",
            "streak.recalculated",
            user_id=user_id,
            event_type="streak.recalculate",
            extra={"current": snapshot.current_streak, "longest": snapshot.longest_streak},
        )
        return snapshot

    def invalidate(self, user_id: Optional[str] = None) -> None:
        if user_id is None:
            self._cache.clear()
        else:
            self._cache.pop(user_id, None)

    async def _compute(self, user_id: str, now: datetime) -> StreakSnapshot:
        times = await self._responses.completion_times(user_id)
        today = local_date_key(now, self._tz)
        yesterday = local_date_key(now - timedelta(days=1), self._tz)
        snapshot = calculate_streaks(distinct_local_dates(times, self._tz), today=today, yesterday=yesterday)
        self._cache[user_id] = (now, snapshot)
        return snapshot
