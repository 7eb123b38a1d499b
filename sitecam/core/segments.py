"""Day timeline skeleton: 288 five-minute segments plus 24 hour markers.

The full grid is always produced, whether or not footage exists for a slot;
empty slots are rendered as "no footage" rather than omitted.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from ..config import get_config, logger
from ..errors import DuplicateClipError
from ..utils.timefmt import MINUTES_PER_DAY, hour_label, minute_to_key, to_12_hour
from .models import Clip, ClipSegment, HourMarker

__all__ = [
    "is_working_hour",
    "sort_clips",
    "generate_segments",
    "generate_hour_markers",
]


def is_working_hour(hour: int) -> bool:
    cfg = get_config()
    return cfg.working_hours_start <= hour <= cfg.working_hours_end


def sort_clips(clips: Iterable[Clip]) -> List[Clip]:
    # zero-padded HH:MM sorts correctly as a string
    return sorted(clips, key=lambda c: c.start_time)


def _clip_lookup(date: str, clips: Iterable[Clip], strict: bool) -> dict[int, Clip]:
    lookup: dict[int, Clip] = {}
    for clip in clips:
        if clip.date != date:
            logger.warning(
                "ignoring clip {} dated {} while building {}", clip.key, clip.date, date
            )
            continue
        minute = clip.start_minute
        if minute < 0:
            logger.warning("ignoring clip {} with bad start time {!r}", clip.key, clip.start_time)
            continue
        previous = lookup.get(minute)
        if previous is not None:
            if strict:
                raise DuplicateClipError(date, minute_to_key(minute), [previous.key, clip.key])
            logger.warning(
                "duplicate start time {} on {}: {} replaces {}",
                minute_to_key(minute),
                date,
                clip.key,
                previous.key,
            )
        lookup[minute] = clip
    return lookup


def generate_segments(
    date: str, clips: Iterable[Clip] = (), *, strict: Optional[bool] = None
) -> List[ClipSegment]:
    """Build the ordered 288-entry segment list for ``date``.

    A later clip with the same start time replaces an earlier one unless
    ``strict`` (default: ``strict_duplicate_clips`` config) is set, in which
    case ``DuplicateClipError`` is raised.
    """
    cfg = get_config()
    if strict is None:
        strict = cfg.strict_duplicate_clips
    lookup = _clip_lookup(date, clips, strict)
    step = cfg.segment_minutes
    segments: List[ClipSegment] = []
    for minute in range(0, MINUTES_PER_DAY, step):
        key = minute_to_key(minute)
        clip = lookup.get(minute)
        segments.append(
            ClipSegment(
                time_key=key,
                minute=minute,
                display_time=to_12_hour(key),
                has_clip=clip is not None,
                is_working_hour=is_working_hour(minute // 60),
                clip=clip,
            )
        )
    off_grid = [c.key for m, c in lookup.items() if m % step]
    if off_grid:
        logger.warning("clips off the {}-minute grid on {}: {}", step, date, off_grid)
    logger.debug("generated {} segments for {} ({} with footage)", len(segments), date, len(lookup))
    return segments


def generate_hour_markers() -> List[HourMarker]:
    return [
        HourMarker(
            hour=hour,
            label=hour_label(hour),
            position=hour / 24 * 100,
            is_working_hour=is_working_hour(hour),
        )
        for hour in range(24)
    ]
