import pytest
from PySide6.QtCore import QCoreApplication

from sitecam.core.segments import generate_segments
from sitecam.core.viewport import ViewportController, visible_range
from sitecam.errors import UnknownPresetError

_app = None


def _ensure_app():
    global _app
    if _app is None:
        _app = QCoreApplication.instance() or QCoreApplication([])


def test_visible_range_bounds():
    assert visible_range(1, 3) == (0, 24)
    assert visible_range(1, 20) == (0, 24)
    assert visible_range(4, 12) == (9, 15)
    assert visible_range(2, 12) == (6, 18)
    assert visible_range(4, 1) == (0, 4)
    assert visible_range(4, 23) == (20, 24)


def test_filter_segments_by_zoom():
    _ensure_app()
    segments = generate_segments("2025-04-04")
    vp = ViewportController()
    assert len(vp.filter_segments(segments)) == 288
    vp.apply_preset("detail")  # zoom 4, keeps focus 12
    visible = vp.filter_segments(segments)
    assert len(visible) == 72
    assert visible[0].time_key == "09:00" and visible[-1].time_key == "14:55"


def test_track_length_stays_constant():
    _ensure_app()
    segments = generate_segments("2025-04-04")
    vp = ViewportController()
    full = vp.track_length_percent(segments)
    vp.apply_preset("working-hours")
    assert vp.segment_width_percent == pytest.approx(1.0)
    assert vp.track_length_percent(segments) == pytest.approx(full)
    vp.apply_preset("detail")
    assert vp.track_length_percent(segments) == pytest.approx(full)


def test_zoom_steps_are_clamped():
    _ensure_app()
    vp = ViewportController()
    vp.zoom_out()
    assert vp.zoom_level == 1.0
    for _ in range(10):
        vp.zoom_in()
    assert vp.zoom_level == 4.0
    vp.set_zoom(0.2)
    assert vp.zoom_level == 1.0


def test_presets_and_custom_switching():
    _ensure_app()
    vp = ViewportController()
    seen = []
    vp.presetChanged.connect(seen.append)
    assert vp.active_preset == "full-day"
    vp.zoom_in()
    assert vp.active_preset == "custom"
    vp.apply_preset("morning")
    assert (vp.zoom_level, vp.focus_hour, vp.active_preset) == (3.0, 9, "morning")
    vp.set_focus_hour(9)
    assert vp.active_preset == "morning"
    vp.set_focus_hour(10)
    assert vp.active_preset == "custom"
    assert seen == ["custom", "morning", "custom"]


def test_zoom_out_to_low_level_returns_to_full_day():
    _ensure_app()
    vp = ViewportController()
    vp.apply_preset("working-hours")
    vp.zoom_out()
    assert vp.zoom_level == 1.5
    assert vp.active_preset == "full-day"


def test_focus_is_clamped_and_inert_at_full_zoom():
    _ensure_app()
    vp = ViewportController()
    vp.set_focus_hour(30)
    assert vp.focus_hour == 23
    vp.set_focus_hour(-3)
    assert vp.focus_hour == 0
    assert vp.visible_range() == (0, 24)
    assert vp.active_preset == "full-day"


def test_unknown_preset():
    _ensure_app()
    with pytest.raises(UnknownPresetError):
        ViewportController().apply_preset("night")
