"""Associate notes, flags, annotations and bookmarks with timeline segments.

Artifacts reference the clip they were authored against through ``clip_time``.
Producers have not always agreed on its format (``"14:55"``, ``"9:05"``,
``"1455"``, ``"14:55:00"``), so every value is first normalized to a minute of
day. Normalization returns either a ``NormalizedKey`` or an ``Unmatched``
carrying the reason and, when one can be derived, the slot the value most
likely meant.

Matching never drops data: an artifact that fits no segment goes to the
``unmatched`` bucket of the ``MatchResult`` under its best-guess key.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Union

from ..config import get_config, logger
from ..utils.timefmt import clock_to_seconds, minute_to_key
from .models import Annotation, Artifact, Bookmark, ClipSegment, NoteFlag

__all__ = [
    "NormalizedKey",
    "Unmatched",
    "KeyResult",
    "UNKNOWN_KEY",
    "normalize_clip_time",
    "best_guess_key",
    "candidate_keys",
    "matches_segment",
    "SegmentMatch",
    "MatchResult",
    "match_segment",
    "bucket_artifacts",
    "nearby_artifacts",
    "clip_storage_key",
]

UNKNOWN_KEY = "??:??"


@dataclass(frozen=True)
class NormalizedKey:
    minute: int
    strategy: str  # direct | padded | compact | seconds

    @property
    def key(self) -> str:
        return minute_to_key(self.minute)


@dataclass(frozen=True)
class Unmatched:
    reason: str  # empty | unparseable | out-of-range | off-grid
    best_guess: Optional[str] = None


KeyResult = Union[NormalizedKey, Unmatched]

# Tried in order; the first pattern that matches decides the strategy.
_STRATEGIES = (
    ("direct", re.compile(r"^(\d{2}):(\d{2})$")),
    ("padded", re.compile(r"^(\d{1,2}):(\d{1,2})$")),
    ("compact", re.compile(r"^(\d{1,2})(\d{2})$")),
    ("seconds", re.compile(r"^(\d{1,2}):(\d{2}):\d{2}$")),
)


def normalize_clip_time(clip_time) -> KeyResult:
    if not isinstance(clip_time, str) or not clip_time.strip():
        return Unmatched("empty")
    text = clip_time.strip()
    for strategy, pattern in _STRATEGIES:
        m = pattern.match(text)
        if m is None:
            continue
        hour, minute = int(m.group(1)), int(m.group(2))
        if hour >= 24 or minute >= 60:
            return Unmatched("out-of-range")
        total = hour * 60 + minute
        step = get_config().segment_minutes
        if total % step:
            return Unmatched("off-grid", minute_to_key(total - total % step))
        return NormalizedKey(total, strategy)
    return Unmatched("unparseable")


def best_guess_key(clip_time) -> str:
    result = normalize_clip_time(clip_time)
    if isinstance(result, NormalizedKey):
        return result.key
    if result.best_guess:
        return result.best_guess
    if isinstance(clip_time, str) and clip_time.strip():
        return clip_time.strip()
    return UNKNOWN_KEY


def candidate_keys(artifact: Artifact) -> List[str]:
    """Keys to try against a segment, most trusted first.

    1. ``clip_time`` verbatim
    2. the zero-padded key rebuilt from the parsed hour/minute
    3. the same key with an unpadded hour
    """
    keys: List[str] = []
    raw = artifact.clip_time.strip() if isinstance(artifact.clip_time, str) else ""
    if raw:
        keys.append(raw)
    result = normalize_clip_time(artifact.clip_time)
    if isinstance(result, NormalizedKey):
        hour, minute = divmod(result.minute, 60)
        for key in (result.key, f"{hour}:{minute:02d}"):
            if key not in keys:
                keys.append(key)
    return keys


def matches_segment(artifact: Artifact, time_key: str) -> bool:
    return any(key == time_key for key in candidate_keys(artifact))


@dataclass
class SegmentMatch:
    time_key: str
    items: List[Artifact] = field(default_factory=list)

    @property
    def notes(self) -> List[Artifact]:
        return [
            a
            for a in self.items
            if isinstance(a, Annotation) or (isinstance(a, NoteFlag) and a.is_note)
        ]

    @property
    def flags(self) -> List[NoteFlag]:
        return [a for a in self.items if isinstance(a, NoteFlag) and a.is_flag]

    @property
    def bookmarks(self) -> List[Bookmark]:
        return [a for a in self.items if isinstance(a, Bookmark)]

    def __len__(self) -> int:
        return len(self.items)


def match_segment(time_key: str, artifacts: Iterable[Artifact]) -> SegmentMatch:
    return SegmentMatch(
        time_key, [a for a in artifacts if matches_segment(a, time_key)]
    )


@dataclass
class MatchResult:
    by_segment: Dict[str, List[Artifact]] = field(default_factory=dict)
    unmatched: Dict[str, List[Artifact]] = field(default_factory=dict)

    def for_segment(self, time_key: str) -> SegmentMatch:
        return SegmentMatch(time_key, list(self.by_segment.get(time_key, [])))

    @property
    def matched_count(self) -> int:
        return sum(len(v) for v in self.by_segment.values())

    @property
    def unmatched_count(self) -> int:
        return sum(len(v) for v in self.unmatched.values())

    @property
    def total(self) -> int:
        return self.matched_count + self.unmatched_count


def bucket_artifacts(
    segments: Sequence[ClipSegment], artifacts: Iterable[Artifact]
) -> MatchResult:
    """Place every artifact under exactly one segment key or the unmatched bucket."""
    segment_keys = {s.time_key for s in segments}
    result = MatchResult()
    for artifact in artifacts:
        hit = next((k for k in candidate_keys(artifact) if k in segment_keys), None)
        if hit is not None:
            result.by_segment.setdefault(hit, []).append(artifact)
            continue
        guess = best_guess_key(artifact.clip_time)
        result.unmatched.setdefault(guess, []).append(artifact)
        logger.warning(
            "{} {} clip_time {!r} matches no segment; kept under {}",
            type(artifact).__name__,
            artifact.id,
            artifact.clip_time,
            guess,
        )
    return result


def nearby_artifacts(
    artifacts: Iterable[Artifact],
    current_video_time: float,
    window: Optional[float] = None,
) -> List[Artifact]:
    """Artifacts whose ``clip_time`` read as ``MM:SS`` is within ``window`` seconds
    of the player position. Drives the sidebar auto-scroll."""
    if window is None:
        window = get_config().nearby_window_seconds
    return [
        a
        for a in artifacts
        if abs(clock_to_seconds(a.clip_time) - current_video_time) < window
    ]


def clip_storage_key(date: str, clip_time) -> Optional[str]:
    """``("2025-04-04", "14:55")`` -> ``"2025-04-04_1455.mp4"``."""
    result = normalize_clip_time(clip_time)
    if isinstance(result, Unmatched):
        return None
    hour, minute = divmod(result.minute, 60)
    return f"{date}_{hour:02d}{minute:02d}.mp4"
