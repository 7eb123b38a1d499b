from datetime import datetime

from sitecam.core.matcher import (
    NormalizedKey,
    Unmatched,
    bucket_artifacts,
    candidate_keys,
    clip_storage_key,
    match_segment,
    nearby_artifacts,
    normalize_clip_time,
)
from sitecam.core.models import Annotation, Bookmark, Clip, NoteFlag
from sitecam.core.segments import generate_segments

DATE = "2025-04-04"


def note(id, clip_time, content="text", is_flag=False):
    return NoteFlag(id=id, date=DATE, clip_time=clip_time, video_time="00:10", content=content, is_flag=is_flag)


def test_normalize_strategies():
    assert normalize_clip_time("14:55") == NormalizedKey(895, "direct")
    assert normalize_clip_time("9:05") == NormalizedKey(545, "padded")
    assert normalize_clip_time("1455") == NormalizedKey(895, "compact")
    assert normalize_clip_time("955") == NormalizedKey(595, "compact")
    assert normalize_clip_time(" 14:55:30 ") == NormalizedKey(895, "seconds")
    assert normalize_clip_time("9:05").key == "09:05"


def test_normalize_failures():
    assert normalize_clip_time("") == Unmatched("empty")
    assert normalize_clip_time(None) == Unmatched("empty")
    assert normalize_clip_time("ab:cd") == Unmatched("unparseable")
    assert normalize_clip_time("25:00") == Unmatched("out-of-range")
    assert normalize_clip_time("14:57") == Unmatched("off-grid", "14:55")


def test_candidate_keys_order():
    assert candidate_keys(note(1, "9:05")) == ["9:05", "09:05"]
    assert candidate_keys(note(1, "09:05")) == ["09:05", "9:05"]
    assert candidate_keys(note(1, "1455")) == ["1455", "14:55"]
    assert candidate_keys(note(1, "junk")) == ["junk"]


def test_compact_clip_time_matches_segment():
    clips = [
        Clip(key="2025-04-04_1450.mp4", date=DATE, start_time="14:50"),
        Clip(key="2025-04-04_1455.mp4", date=DATE, start_time="14:55"),
    ]
    segments = generate_segments(DATE, clips)
    item = note(1, "1455")
    result = bucket_artifacts(segments, [item])
    assert result.by_segment["14:55"] == [item]
    assert not result.unmatched
    assert len(match_segment("14:55", [item])) == 1
    assert len(match_segment("14:50", [item])) == 0


def test_bucketing_retains_every_artifact():
    segments = generate_segments(DATE)
    items = [
        note(1, "14:55"),
        note(2, "7:05"),
        note(3, "14:57"),
        note(4, "garbage"),
        note(5, ""),
        Bookmark(id=6, date=DATE, clip_time="10:00", video_time="00:01", label="crane"),
        Annotation(id=7, date=DATE, clip_time="1000", video_time="00:02", content="legacy"),
    ]
    result = bucket_artifacts(segments, items)
    assert result.total == len(items)
    assert result.matched_count == 4
    assert [a.id for a in result.unmatched["14:55"]] == [3]
    assert [a.id for a in result.unmatched["garbage"]] == [4]
    assert [a.id for a in result.unmatched["??:??"]] == [5]
    assert [a.id for a in result.by_segment["07:05"]] == [2]
    assert [a.id for a in result.by_segment["10:00"]] == [6, 7]


def test_partition_flag_with_content_counts_in_both():
    items = [
        note(1, "10:00", content="crane swing", is_flag=True),
        note(2, "10:00", content=None, is_flag=True),
        note(3, "10:00", content="delivery"),
        Bookmark(id=4, date=DATE, clip_time="10:00", video_time="00:01", label="gate"),
    ]
    match = match_segment("10:00", items)
    assert len(match) == 4
    assert [a.id for a in match.notes] == [1, 3]
    assert [a.id for a in match.flags] == [1, 2]
    assert [a.id for a in match.bookmarks] == [4]


def test_nearby_artifacts_within_window():
    items = [note(1, "00:30"), note(2, "01:00"), note(3, "00:16")]
    nearby = nearby_artifacts(items, 25.0)
    assert [a.id for a in nearby] == [1, 3]
    assert nearby_artifacts(items, 25.0, window=2) == []


def test_clip_storage_key():
    assert clip_storage_key(DATE, "9:05") == "2025-04-04_0905.mp4"
    assert clip_storage_key(DATE, "1455") == "2025-04-04_1455.mp4"
    assert clip_storage_key(DATE, "nope") is None


def test_created_at_defaults():
    assert isinstance(note(1, "10:00").created_at, datetime)
