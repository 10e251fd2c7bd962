from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize SDK timestamps to timezone-aware UTC. Naive values are assumed UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def window_bounds(now: datetime, days: int) -> Tuple[datetime, datetime]:
    """
    Return the inclusive [now - days, now] search window.
    """
    return now - timedelta(days=days), now


def days_since(first: Optional[datetime], now: datetime) -> int:
    """
    Whole days elapsed since first (hours / 24, truncated). 0 when first is unknown.
    """
    if first is None:
        return 0
    hours = (now - first).total_seconds() / 3600
    return int(hours / 24)


def format_rfc3339(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return as_utc(value).isoformat(timespec="seconds").replace("+00:00", "Z")  # type: ignore[union-attr]


def format_short(value: Optional[datetime]) -> Optional[str]:
    """
    Compact month/day hour:minute form used in the console summary.
    """
    if value is None:
        return None
    return as_utc(value).strftime("%m/%d %H:%M")  # type: ignore[union-attr]
