"""Time formatting utilities.

Conversions between seconds, ``MM:SS``/``HH:MM:SS`` clock strings and the
``HH:MM`` time-of-day keys used to name clips and timeline segments.

Every function here is total: malformed input degrades to a zero/default
value instead of raising, since clip times arrive from several producers
whose formats drift.
"""

from __future__ import annotations

import math
from typing import Optional

__all__ = [
    "MINUTES_PER_DAY",
    "seconds_to_clock",
    "format_video_time",
    "clock_to_seconds",
    "parse_hhmm",
    "minute_to_key",
    "add_minutes",
    "clip_end_time",
    "to_12_hour",
    "hour_label",
]

MINUTES_PER_DAY = 24 * 60


def _whole_seconds(seconds) -> int:
    try:
        value = float(seconds)
    except (TypeError, ValueError):
        return 0
    if math.isnan(value) or math.isinf(value) or value < 0:
        return 0
    return int(value)


def seconds_to_clock(seconds) -> str:
    """Return ``MM:SS``, or ``HH:MM:SS`` once the value reaches an hour.

    Fractions are truncated. NaN, negative and non-numeric input yield
    ``"00:00"``.
    """
    total = _whole_seconds(seconds)
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def format_video_time(seconds) -> str:
    """Position within a clip as stored on artifacts: ``MM:SS``, minutes unbounded."""
    minutes, secs = divmod(_whole_seconds(seconds), 60)
    return f"{minutes:02d}:{secs:02d}"


def clock_to_seconds(value) -> int:
    """Parse ``MM:SS`` or ``HH:MM:SS`` into whole seconds; anything else is 0."""
    if not isinstance(value, str):
        return 0
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        return 0
    try:
        nums = [int(p) for p in parts]
    except ValueError:
        return 0
    if any(n < 0 for n in nums):
        return 0
    if len(nums) == 3:
        return nums[0] * 3600 + nums[1] * 60 + nums[2]
    return nums[0] * 60 + nums[1]


def parse_hhmm(value) -> Optional[int]:
    """Minute of day for ``HH:MM`` (hour may be unpadded), else ``None``."""
    if not isinstance(value, str):
        return None
    parts = value.strip().split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        return None
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour < 24 and 0 <= minute < 60):
        return None
    return hour * 60 + minute


def minute_to_key(minute: int) -> str:
    minute = int(minute) % MINUTES_PER_DAY
    return f"{minute // 60:02d}:{minute % 60:02d}"


def add_minutes(key: str, minutes: int) -> str:
    """Shift an ``HH:MM`` key, wrapping at midnight. Unparseable keys count as 00:00."""
    base = parse_hhmm(key)
    return minute_to_key((base or 0) + minutes)


def clip_end_time(start_time: str, duration_minutes: int = 5) -> str:
    # "23:55" -> "00:00": hour wraps, the date does not advance
    return add_minutes(start_time, duration_minutes)


def to_12_hour(key: str) -> str:
    """``"14:05"`` -> ``"2:05 PM"``; midnight and noon both read as 12."""
    minute = parse_hhmm(key)
    if minute is None:
        minute = 0
    hour, mins = divmod(minute, 60)
    period = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}:{mins:02d} {period}"


def hour_label(hour: int) -> str:
    hour = int(hour) % 24
    period = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12} {period}"
