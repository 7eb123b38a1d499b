"""Timeline viewport: zoom level, focus hour and named presets.

Zooming narrows the visible slice of the day to a window centred on the
focus hour, clamped to [0, 24) (no wraparound across midnight). Segment
widths grow linearly with zoom so that the visible track keeps roughly the
same rendered length.

Signals:
    zoomChanged(float)
    focusChanged(int)
    presetChanged(str)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from ..config import get_config, logger
from ..errors import UnknownPresetError
from .models import ClipSegment

__all__ = ["Preset", "PRESETS", "CUSTOM", "FULL_DAY", "visible_range", "ViewportController"]

FULL_DAY = "full-day"
CUSTOM = "custom"


@dataclass(frozen=True)
class Preset:
    id: str
    label: str
    zoom: float
    focus_hour: Optional[int] = None  # None keeps the current focus


PRESETS = {
    p.id: p
    for p in (
        Preset(FULL_DAY, "Full day", 1.0),
        Preset("working-hours", "Working hours", 2.0, 12),
        Preset("morning", "Morning", 3.0, 9),
        Preset("afternoon", "Afternoon", 3.0, 15),
        Preset("detail", "Detail", 4.0),
    )
}


def visible_range(zoom_level: float, focus_hour: int) -> Tuple[float, float]:
    """Return ``(start_hour, end_hour)``, end exclusive."""
    if zoom_level <= 1:
        return 0.0, 24.0
    size = max(float(get_config().min_visible_hours), 24 / zoom_level)
    start = max(0.0, focus_hour - size / 2)
    end = min(24.0, focus_hour + size / 2)
    return start, end


class ViewportController(QObject):
    zoomChanged = Signal(float)
    focusChanged = Signal(int)
    presetChanged = Signal(str)

    def __init__(
        self,
        parent: Optional[QObject] = None,
        *,
        zoom_level: float = 1.0,
        focus_hour: int = 12,
    ):
        super().__init__(parent)
        cfg = get_config()
        self._min_zoom = cfg.min_zoom
        self._max_zoom = cfg.max_zoom
        self._step = cfg.zoom_step
        self._base_width = cfg.base_segment_width
        self._zoom = self._clamp_zoom(zoom_level)
        self._focus = self._clamp_focus(focus_hour)
        self._preset = FULL_DAY if self._zoom <= 1 else CUSTOM

    # --- State ---
    @property
    def zoom_level(self) -> float:
        return self._zoom

    @property
    def focus_hour(self) -> int:
        return self._focus

    @property
    def active_preset(self) -> str:
        return self._preset

    @property
    def segment_width_percent(self) -> float:
        return self._base_width * self._zoom

    def visible_range(self) -> Tuple[float, float]:
        return visible_range(self._zoom, self._focus)

    # --- Manual adjustment ---
    def zoom_in(self):
        self._set_zoom(self._zoom + self._step)
        self._sync_preset_after_manual_change()

    def zoom_out(self):
        self._set_zoom(self._zoom - self._step)
        if self._zoom <= 1.5:
            self._set_preset(FULL_DAY)
        else:
            self._sync_preset_after_manual_change()

    def set_zoom(self, zoom_level: float):
        self._set_zoom(zoom_level)
        self._sync_preset_after_manual_change()

    def set_focus_hour(self, hour: int):
        # Has no visible effect while zoom <= 1, but the value is kept.
        self._set_focus(hour)
        self._sync_preset_after_manual_change()

    def apply_preset(self, preset_id: str):
        preset = PRESETS.get(preset_id)
        if preset is None:
            raise UnknownPresetError(f"unknown viewport preset {preset_id!r}")
        self._set_zoom(preset.zoom)
        if preset.focus_hour is not None:
            self._set_focus(preset.focus_hour)
        self._set_preset(preset.id)

    # --- Segment helpers ---
    def filter_segments(self, segments: Iterable[ClipSegment]) -> List[ClipSegment]:
        segments = list(segments)
        if self._zoom <= 1:
            return segments
        start, end = self.visible_range()
        return [s for s in segments if start <= s.hour < end]

    def track_length_percent(self, segments: Iterable[ClipSegment]) -> float:
        return len(self.filter_segments(segments)) * self.segment_width_percent

    # --- Internal ---
    def _clamp_zoom(self, value: float) -> float:
        return max(self._min_zoom, min(self._max_zoom, float(value)))

    def _clamp_focus(self, value: int) -> int:
        return max(0, min(23, int(value)))

    def _set_zoom(self, value: float):
        value = self._clamp_zoom(value)
        if value != self._zoom:
            self._zoom = value
            logger.debug("viewport zoom -> {}", value)
            self.zoomChanged.emit(value)

    def _set_focus(self, value: int):
        value = self._clamp_focus(value)
        if value != self._focus:
            self._focus = value
            self.focusChanged.emit(value)

    def _set_preset(self, preset_id: str):
        if preset_id != self._preset:
            self._preset = preset_id
            self.presetChanged.emit(preset_id)

    def _sync_preset_after_manual_change(self):
        current = PRESETS.get(self._preset)
        if current is not None and self._matches_preset(current):
            return
        self._set_preset(CUSTOM)

    def _matches_preset(self, preset: Preset) -> bool:
        if self._zoom != preset.zoom:
            return False
        return preset.focus_hour is None or preset.focus_hour == self._focus
