"""Clip repositories: list a day's clips and resolve playable URLs.

Clips are named ``YYYY-MM-DD_HHMM.mp4``; everything about a clip except its
URL is recovered from the key. URLs are resolved on demand and cached per
key for the life of the repository. A failed resolution returns ``None``
and is not cached, so a later attempt can succeed.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Protocol

from ..config import get_config, logger
from ..core.models import Clip
from ..core.segments import sort_clips
from ..utils.timefmt import minute_to_key

__all__ = [
    "ClipRepository",
    "parse_clip_key",
    "make_clip_key",
    "CachingClipRepository",
    "MockClipRepository",
    "DirectoryClipRepository",
]

_KEY_RE = re.compile(r"(\d{4}-\d{2}-\d{2})_(\d{2})(\d{2})\.mp4$")


class ClipRepository(Protocol):
    def list_clips(self, date: str) -> List[Clip]: ...

    def resolve_url(self, key: str) -> Optional[str]: ...


def parse_clip_key(key: str) -> Optional[Clip]:
    m = _KEY_RE.search(key or "")
    if m is None:
        return None
    date, hours, minutes = m.groups()
    if int(hours) >= 24 or int(minutes) >= 60:
        return None
    return Clip(key=key, date=date, start_time=f"{hours}:{minutes}")


def make_clip_key(date: str, start_time: str) -> str:
    return f"{date}_{start_time.replace(':', '')}.mp4"


class CachingClipRepository(ABC):
    """Base class: subclasses implement ``list_clips`` and ``_resolve``."""

    def __init__(self):
        self._url_cache: Dict[str, str] = {}

    @abstractmethod
    def list_clips(self, date: str) -> List[Clip]: ...

    @abstractmethod
    def _resolve(self, key: str) -> Optional[str]: ...

    def resolve_url(self, key: str) -> Optional[str]:
        cached = self._url_cache.get(key)
        if cached is not None:
            return cached
        try:
            url = self._resolve(key)
        except Exception as e:
            logger.warning("url resolution failed for {}: {}", key, e)
            return None
        if url:
            self._url_cache[key] = url
        else:
            logger.warning("no url for clip {}", key)
        return url or None

    def clear_cache(self):
        self._url_cache.clear()


class MockClipRepository(CachingClipRepository):
    """In-memory clip source.

    ``clips_by_date`` maps a date to explicit ``HH:MM`` start times. Dates not
    listed get a clip for every slot of the working day, minus ``gaps``.
    Every known clip resolves to the same placeholder stream URL.
    """

    def __init__(
        self,
        clips_by_date: Optional[Mapping[str, Iterable[str]]] = None,
        *,
        gaps: Iterable[str] = (),
        placeholder_url: Optional[str] = None,
    ):
        super().__init__()
        self._explicit = {d: list(times) for d, times in (clips_by_date or {}).items()}
        self._gaps = set(gaps)
        self._placeholder = placeholder_url or get_config().placeholder_clip_url

    def _start_times(self, date: str) -> List[str]:
        if date in self._explicit:
            return self._explicit[date]
        cfg = get_config()
        first = cfg.working_hours_start * 60
        last = (cfg.working_hours_end + 1) * 60
        return [
            key
            for key in (minute_to_key(m) for m in range(first, last, cfg.segment_minutes))
            if key not in self._gaps
        ]

    def list_clips(self, date: str) -> List[Clip]:
        clips = [parse_clip_key(make_clip_key(date, t)) for t in self._start_times(date)]
        return sort_clips(c for c in clips if c is not None)

    def _resolve(self, key: str) -> Optional[str]:
        clip = parse_clip_key(key)
        if clip is None or clip.start_time not in self._start_times(clip.date):
            return None
        return self._placeholder


class DirectoryClipRepository(CachingClipRepository):
    """Clips stored as local files named ``YYYY-MM-DD_HHMM.mp4``; URLs are paths."""

    def __init__(self, root: str | Path | None = None):
        super().__init__()
        root = root if root is not None else get_config().clips_dir
        if root is None:
            raise ValueError("DirectoryClipRepository needs a root directory")
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def list_clips(self, date: str) -> List[Clip]:
        if not self._root.is_dir():
            logger.warning("clip directory {} does not exist", self._root)
            return []
        clips = []
        for path in self._root.glob(f"{date}_*.mp4"):
            clip = parse_clip_key(path.name)
            if clip is None:
                logger.debug("skipping unrecognised clip file {}", path.name)
                continue
            clips.append(clip.with_url(str(path.resolve())))
        return sort_clips(clips)

    def _resolve(self, key: str) -> Optional[str]:
        path = self._root / key
        if not path.is_file():
            return None
        return str(path.resolve())
