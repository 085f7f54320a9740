"""Weekday and time-of-day window matching for limit definitions.

Time strings are ``HH:MM``. A string that does not parse to two finite
numbers yields ``NaN``, and a window with a ``NaN`` bound is never active,
so a malformed limit never fires.
"""

from __future__ import annotations

import math
from datetime import datetime

from .constants import WEEKDAY_NAMES
from .entities import LimitDefinition


def parse_minute_of_day(text: str) -> float:
    """Convert ``"HH:MM"`` to minutes past midnight, or ``nan`` if malformed.

    Fields after the minutes (``"HH:MM:SS"``) are ignored.
    """
    parts = str(text).split(":")
    if len(parts) < 2:
        return math.nan
    try:
        hours, minutes = (float(part) for part in parts[:2])
    except ValueError:
        return math.nan
    if not (math.isfinite(hours) and math.isfinite(minutes)):
        return math.nan
    return hours * 60 + minutes


def minute_of_day(now: datetime) -> int:
    return now.hour * 60 + now.minute


def weekday_name(now: datetime) -> str:
    """Three-letter English weekday for ``now`` (locale independent)."""
    # datetime.weekday() is Monday=0; WEEKDAY_NAMES starts on Sunday.
    return WEEKDAY_NAMES[(now.weekday() + 1) % 7]


def is_time_active(from_minute: float, to_minute: float, current_minute: float) -> bool:
    """Inclusive window check; ``from > to`` means the window wraps past midnight."""
    if math.isnan(from_minute) or math.isnan(to_minute):
        return False
    if from_minute <= to_minute:
        return from_minute <= current_minute <= to_minute
    return current_minute >= from_minute or current_minute <= to_minute


def is_limit_active(limit: LimitDefinition, now: datetime) -> bool:
    if weekday_name(now) not in limit.weekdays:
        return False
    return is_time_active(
        parse_minute_of_day(limit.timeframe_from),
        parse_minute_of_day(limit.timeframe_to),
        minute_of_day(now),
    )


__all__ = [
    "is_limit_active",
    "is_time_active",
    "minute_of_day",
    "parse_minute_of_day",
    "weekday_name",
]
