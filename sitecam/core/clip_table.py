"""Per-clip summary rows for the day's clip table (notes and flags counts)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List

from ..utils.timefmt import to_12_hour
from .matcher import clip_storage_key
from .models import Clip, NoteFlag


@dataclass(frozen=True)
class ClipRow:
    clip: Clip
    start_time: str
    end_time: str
    label: str
    notes_count: int
    flags_count: int


def group_by_storage_key(date: str, notes_flags: Iterable[NoteFlag]) -> Dict[str, List[NoteFlag]]:
    groups: Dict[str, List[NoteFlag]] = {}
    for item in notes_flags:
        key = clip_storage_key(date, item.clip_time)
        if key is not None:
            groups.setdefault(key, []).append(item)
    return groups


def summarize_clips(date: str, clips: Iterable[Clip], notes_flags: Iterable[NoteFlag]) -> List[ClipRow]:
    groups = group_by_storage_key(date, notes_flags)
    rows = []
    for clip in sorted(clips, key=lambda c: c.start_minute):
        items = groups.get(clip.key, [])
        rows.append(
            ClipRow(
                clip=clip,
                start_time=clip.start_time,
                end_time=clip.end_time,
                label=f"{to_12_hour(clip.start_time)} - {to_12_hour(clip.end_time)}",
                notes_count=sum(1 for i in items if not i.is_flag),
                flags_count=sum(1 for i in items if i.is_flag),
            )
        )
    return rows


__all__ = ["ClipRow", "group_by_storage_key", "summarize_clips"]
