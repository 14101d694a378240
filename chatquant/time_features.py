"""
Calendar placement helpers for ChatQuant
Month/day keys, weekday/hour cells, weekend and late-night classification
"""

from datetime import date, datetime, tzinfo
from typing import Iterable, NamedTuple, Optional

from . import config


class CalendarSlot(NamedTuple):
    """Where a timestamp falls on the local calendar."""
    month_key: str   # YYYY-MM
    day_key: str     # YYYY-MM-DD
    weekday: int     # 0 = Sunday
    hour: int


def calendar_slot(timestamp_ms: float, tz: Optional[tzinfo] = None) -> CalendarSlot:
    """Place an epoch-millisecond timestamp on the configured calendar."""
    dt = datetime.fromtimestamp(timestamp_ms / 1000, tz or config.get_timezone())
    return CalendarSlot(
        month_key=f"{dt.year:04d}-{dt.month:02d}",
        day_key=f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}",
        # Python's Monday=0 shifted to Sunday=0
        weekday=(dt.weekday() + 1) % 7,
        hour=dt.hour,
    )


def is_weekend(weekday: int) -> bool:
    """Saturday or Sunday in the Sunday=0 convention."""
    return weekday == 0 or weekday == 6


def is_late_night(hour: int) -> bool:
    return hour >= config.LATE_NIGHT_START_HOUR or hour < config.LATE_NIGHT_END_HOUR


def is_new_session(gap_ms: float, session_gap: int) -> bool:
    """A gap at or beyond the threshold starts a new session."""
    return gap_ms >= session_gap


def longest_daily_streak(day_keys: Iterable[str]) -> int:
    """Longest run of consecutive calendar days among YYYY-MM-DD keys."""
    days = sorted({date.fromisoformat(key) for key in day_keys})
    if not days:
        return 0

    longest = current = 1
    for prev, day in zip(days, days[1:]):
        if (day - prev).days == 1:
            current += 1
            longest = max(longest, current)
        else:
            current = 1
    return longest
