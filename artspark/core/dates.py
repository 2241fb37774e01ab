"""Calendar-day helpers shared by prompt generation, the queue and streaks.

Prompts are keyed on the UTC date; streaks count local calendar days.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def utc_date_key(now: Optional[datetime] = None) -> str:
    """YYYY-MM-DD for the UTC calendar day of ``now``."""
    moment = ensure_aware(now or utc_now())
    return moment.astimezone(timezone.utc).date().isoformat()


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """None means the host's local timezone."""
    return ZoneInfo(name) if name else None


def local_date(moment: datetime, tz: Optional[tzinfo] = None) -> date:
    aware = ensure_aware(moment)
    return aware.astimezone(tz).date() if tz else aware.astimezone().date()


def local_date_key(moment: datetime, tz: Optional[tzinfo] = None) -> str:
    return local_date(moment, tz).isoformat()


def parse_date_key(key: str) -> date:
    return date.fromisoformat(key)


def is_consecutive(earlier: str, later: str) -> bool:
    """True when the two date keys are exactly one calendar day apart."""
    return abs((parse_date_key(later) - parse_date_key(earlier)).days) == 1


def days_ago(days: int, now: Optional[datetime] = None) -> datetime:
    return ensure_aware(now or utc_now()) - timedelta(days=days)
