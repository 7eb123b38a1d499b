"""Timeline data model: clips, day segments and user-authored artifacts.

Times cross the package boundary as ``HH:MM`` strings (the wire format shared
with the clip store and the annotation stores). Internally everything that
needs ordering or arithmetic uses the integer minute of day.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Union

from ..utils.timefmt import clip_end_time, parse_hhmm


@dataclass(frozen=True)
class Clip:
    key: str  # storage identifier, e.g. 2025-04-04_1455.mp4
    date: str  # YYYY-MM-DD
    start_time: str  # HH:MM
    end_time: str = ""  # HH:MM, start + 5 min
    url: Optional[str] = None  # resolved lazily

    def __post_init__(self):
        if not self.end_time:
            object.__setattr__(self, "end_time", clip_end_time(self.start_time))

    @property
    def start_minute(self) -> int:
        minute = parse_hhmm(self.start_time)
        return -1 if minute is None else minute

    def with_url(self, url: Optional[str]) -> "Clip":
        return replace(self, url=url)


@dataclass(frozen=True)
class ClipSegment:
    """One 5-minute slot of a calendar day."""

    time_key: str
    minute: int
    display_time: str
    has_clip: bool
    is_working_hour: bool
    clip: Optional[Clip] = None

    @property
    def hour(self) -> int:
        return self.minute // 60


@dataclass(frozen=True)
class HourMarker:
    hour: int
    label: str
    position: float  # percent of the day
    is_working_hour: bool


@dataclass
class Annotation:
    id: int
    date: str
    clip_time: str
    video_time: str
    content: str
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def is_flag(self) -> bool:
        return False


@dataclass
class NoteFlag:
    id: int
    date: str
    clip_time: str
    video_time: str
    content: Optional[str] = None
    is_flag: bool = False
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def is_note(self) -> bool:
        # a flag that also carries text is listed with the notes
        return not self.is_flag or bool(self.content)


@dataclass
class Bookmark:
    id: int
    date: str
    clip_time: str
    video_time: str
    label: str
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def is_flag(self) -> bool:
        return False


Artifact = Union[Annotation, NoteFlag, Bookmark]

__all__ = [
    "Clip",
    "ClipSegment",
    "HourMarker",
    "Annotation",
    "NoteFlag",
    "Bookmark",
    "Artifact",
]
