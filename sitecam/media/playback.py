"""Timeline playback controller: current/next clip selection and auto-advance.

The controller does not decode or display video. A playback surface reports
progress through ``on_time_update`` and ``on_clip_ended``; the controller
decides what plays next and tells the surface through signals.

States:
    idle     no current clip
    loaded   current clip set, paused
    playing  current clip set, playing

When a clip ends the controller advances to the next clip only if it starts
exactly where the current one ends (5-minute step, hour rollover included).
The 23:55 clip has no successor on its own date: the wrap to 00:00 is not
a continuation.
At a gap in the footage playback stops instead of jumping ahead.

Whenever the next clip changes to a real clip, ``preloadRequested`` is
emitted and the injected preloader (if any) is asked to warm it. Preloading
is fire-and-forget: its failures are logged and never reach the caller.

Signals:
    currentClipChanged(object)   Clip or None
    nextClipChanged(object)      Clip or None
    playingChanged(bool)
    positionChanged(float)       seconds within the current clip
    stateChanged(str)            'idle'|'loaded'|'playing'
    preloadRequested(object)     Clip to warm
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Protocol, Sequence

from PySide6.QtCore import QObject, Signal

from ..config import get_config, logger
from ..core.models import Clip
from ..core.segments import sort_clips
from ..utils.timefmt import clip_end_time, parse_hhmm

__all__ = [
    "PlaybackState",
    "Preloader",
    "find_next_clip",
    "are_consecutive",
    "TimelinePlaybackController",
]


@dataclass
class PlaybackState:
    current_clip: Optional[Clip] = None
    next_clip: Optional[Clip] = None
    current_video_time: float = 0.0
    is_playing: bool = False

    @property
    def status(self) -> str:
        if self.current_clip is None:
            return "idle"
        return "playing" if self.is_playing else "loaded"


class Preloader(Protocol):
    def preload(self, clip: Clip) -> None: ...


def are_consecutive(current: Optional[Clip], following: Optional[Clip]) -> bool:
    if current is None or following is None:
        return False
    # 23:55 -> 00:00 on the same date is a wrap, not a continuation
    if following.date == current.date and following.start_minute <= current.start_minute:
        return False
    start = parse_hhmm(following.start_time)
    end = parse_hhmm(clip_end_time(current.start_time, get_config().segment_minutes))
    return start is not None and start == end


def find_next_clip(clips: Sequence[Clip], current: Optional[Clip]) -> Optional[Clip]:
    """Clip starting right after ``current`` if there is one, else the first later clip."""
    if current is None:
        return None
    later = [c for c in sort_clips(clips) if c.start_minute > current.start_minute]
    for clip in later:
        if are_consecutive(current, clip):
            return clip
    return later[0] if later else None


def _same_clip(a: Optional[Clip], b: Optional[Clip]) -> bool:
    if a is None or b is None:
        return a is b
    return a.key == b.key


class TimelinePlaybackController(QObject):
    currentClipChanged = Signal(object)
    nextClipChanged = Signal(object)
    playingChanged = Signal(bool)
    positionChanged = Signal(float)
    stateChanged = Signal(str)
    preloadRequested = Signal(object)

    def __init__(
        self,
        parent: Optional[QObject] = None,
        *,
        preloader: Optional[Preloader] = None,
        auto_select_first: Optional[bool] = None,
    ):
        super().__init__(parent)
        cfg = get_config()
        self._state = PlaybackState()
        self._clips: List[Clip] = []
        self._date: Optional[str] = None
        self._preloader = preloader if cfg.preload_enabled else None
        self._auto_select_first = (
            cfg.auto_select_first_clip if auto_select_first is None else auto_select_first
        )

    # --- State access ---
    @property
    def state(self) -> PlaybackState:
        return replace(self._state)

    @property
    def status(self) -> str:
        return self._state.status

    @property
    def date(self) -> Optional[str]:
        return self._date

    @property
    def clips(self) -> List[Clip]:
        return list(self._clips)

    @property
    def current_clip(self) -> Optional[Clip]:
        return self._state.current_clip

    @property
    def next_clip(self) -> Optional[Clip]:
        return self._state.next_clip

    @property
    def is_playing(self) -> bool:
        return self._state.is_playing

    @property
    def current_video_time(self) -> float:
        return self._state.current_video_time

    def set_preloader(self, preloader: Optional[Preloader]):
        self._preloader = preloader

    # --- Clip list / selection ---
    def set_clips(self, clips: Iterable[Clip]):
        self._clips = sort_clips(clips)
        current = self._state.current_clip
        if current is not None:
            refreshed = next((c for c in self._clips if c.key == current.key), None)
            if refreshed is None:
                logger.debug("current clip {} no longer listed", current.key)
                self._reset()
            else:
                self._state.current_clip = refreshed
        if self._state.current_clip is None and self._clips and self._auto_select_first:
            self.select_clip(self._clips[0], autoplay=False)
            return
        self._update_next_clip()

    def select_clip(self, clip: Optional[Clip], *, autoplay: bool = True):
        if clip is None:
            self._reset()
            return
        previous_status = self._state.status
        changed = not _same_clip(clip, self._state.current_clip)
        self._state.current_clip = clip
        self._state.current_video_time = 0.0
        if changed:
            logger.debug("selected clip {}", clip.key)
            self.currentClipChanged.emit(clip)
        self.positionChanged.emit(0.0)
        self._update_next_clip()
        if autoplay:
            self._set_playing(True)
        self._emit_status(previous_status)

    # --- Transport ---
    def play(self):
        if self._state.current_clip is None:
            return
        previous_status = self._state.status
        self._set_playing(True)
        self._emit_status(previous_status)

    def pause(self):
        previous_status = self._state.status
        self._set_playing(False)
        self._emit_status(previous_status)

    def toggle(self):
        if self._state.is_playing:
            self.pause()
        else:
            self.play()

    # --- Playback surface callbacks ---
    def on_time_update(self, seconds: float):
        self._state.current_video_time = float(seconds)
        self.positionChanged.emit(self._state.current_video_time)

    def on_clip_ended(self):
        current = self._state.current_clip
        following = self._state.next_clip
        if following is not None and are_consecutive(current, following):
            logger.debug("auto-advance {} -> {}", current.key, following.key)
            self.select_clip(following, autoplay=True)
            return
        if current is not None:
            logger.debug("stopping after {}: no consecutive clip", current.key)
        self.pause()

    def on_date_change(self, date: str):
        logger.debug("date change {} -> {}: playback reset", self._date, date)
        self._date = date
        self._clips = []
        self._reset()

    # --- Internal ---
    def _reset(self):
        previous_status = self._state.status
        old = self._state
        self._state = PlaybackState()
        if old.current_clip is not None:
            self.currentClipChanged.emit(None)
        if old.next_clip is not None:
            self.nextClipChanged.emit(None)
        if old.is_playing:
            self.playingChanged.emit(False)
        if old.current_video_time != 0.0:
            self.positionChanged.emit(0.0)
        self._emit_status(previous_status)

    def _set_playing(self, playing: bool):
        if self._state.is_playing != playing:
            self._state.is_playing = playing
            self.playingChanged.emit(playing)

    def _update_next_clip(self):
        following = find_next_clip(self._clips, self._state.current_clip)
        if _same_clip(following, self._state.next_clip):
            self._state.next_clip = following
            return
        self._state.next_clip = following
        self.nextClipChanged.emit(following)
        if following is not None:
            self._request_preload(following)

    def _request_preload(self, clip: Clip):
        self.preloadRequested.emit(clip)
        if self._preloader is None:
            return
        try:
            self._preloader.preload(clip)
        except Exception as e:
            logger.warning("preload of {} failed: {}", clip.key, e)

    def _emit_status(self, previous: str):
        status = self._state.status
        if status != previous:
            self.stateChanged.emit(status)
