import pytest

from sitecam.core.models import Clip
from sitecam.core.segments import generate_hour_markers, generate_segments, sort_clips
from sitecam.errors import DuplicateClipError

DATE = "2025-04-04"


def clip_at(start: str, date: str = DATE, key: str | None = None) -> Clip:
    return Clip(key=key or f"{date}_{start.replace(':', '')}.mp4", date=date, start_time=start)


def test_full_day_grid():
    segments = generate_segments(DATE, [])
    keys = [s.time_key for s in segments]
    assert len(segments) == 288
    assert keys == sorted(keys)
    assert len(set(keys)) == 288
    assert keys[0] == "00:00" and keys[-1] == "23:55"
    assert not any(s.has_clip for s in segments)


def test_segments_mark_footage():
    segments = generate_segments(DATE, [clip_at("14:55"), clip_at("14:50")])
    by_key = {s.time_key: s for s in segments}
    assert len(segments) == 288
    assert by_key["14:50"].has_clip and by_key["14:55"].has_clip
    assert by_key["14:55"].clip.key == "2025-04-04_1455.mp4"
    assert by_key["14:55"].display_time == "2:55 PM"
    assert not by_key["15:00"].has_clip


@pytest.mark.parametrize(
    "key,expected",
    [("06:55", False), ("07:00", True), ("17:55", True), ("18:00", False)],
)
def test_working_hour_boundaries(key, expected):
    by_key = {s.time_key: s for s in generate_segments(DATE)}
    assert by_key[key].is_working_hour is expected


def test_duplicate_start_time_last_one_wins():
    first = clip_at("10:00", key="a.mp4")
    second = clip_at("10:00", key="b.mp4")
    by_key = {s.time_key: s for s in generate_segments(DATE, [first, second])}
    assert by_key["10:00"].clip.key == "b.mp4"


def test_duplicate_start_time_strict_raises():
    with pytest.raises(DuplicateClipError) as err:
        generate_segments(DATE, [clip_at("10:00", key="a.mp4"), clip_at("10:00", key="b.mp4")], strict=True)
    assert err.value.time_key == "10:00"
    assert err.value.keys == ["a.mp4", "b.mp4"]


def test_clips_from_other_dates_are_ignored():
    segments = generate_segments(DATE, [clip_at("10:00", date="2025-04-05")])
    assert not any(s.has_clip for s in segments)


def test_sort_clips_by_start_time():
    clips = sort_clips([clip_at("10:05"), clip_at("09:55"), clip_at("10:00")])
    assert [c.start_time for c in clips] == ["09:55", "10:00", "10:05"]


def test_hour_markers():
    markers = generate_hour_markers()
    assert len(markers) == 24
    assert markers[0].label == "12 AM"
    assert markers[12].position == 50.0
    assert markers[7].is_working_hour and not markers[18].is_working_hour
