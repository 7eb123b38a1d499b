import pytest

from sitecam.services.repository import (
    CachingClipRepository,
    DirectoryClipRepository,
    MockClipRepository,
    make_clip_key,
    parse_clip_key,
)


def test_parse_clip_key():
    clip = parse_clip_key("2023-07-05_1015.mp4")
    assert (clip.date, clip.start_time, clip.end_time) == ("2023-07-05", "10:15", "10:20")
    assert parse_clip_key("2023-07-05_2355.mp4").end_time == "00:00"
    assert parse_clip_key("clips/2023-07-05_0800.mp4").start_time == "08:00"
    assert parse_clip_key("notes.mp4") is None
    assert parse_clip_key("2023-07-05_2460.mp4") is None
    assert make_clip_key("2023-07-05", "08:05") == "2023-07-05_0805.mp4"


def test_mock_repository_working_day():
    repo = MockClipRepository(gaps=["12:00", "12:05"])
    clips = repo.list_clips("2025-04-04")
    starts = [c.start_time for c in clips]
    assert starts[0] == "07:00" and starts[-1] == "17:55"
    assert len(clips) == 11 * 12 - 2
    assert "12:00" not in starts
    assert starts == sorted(starts)


def test_mock_repository_explicit_clips_and_urls():
    repo = MockClipRepository({"2025-04-04": ["14:55", "14:50"]}, placeholder_url="https://cdn.test/x.m3u8")
    clips = repo.list_clips("2025-04-04")
    assert [c.start_time for c in clips] == ["14:50", "14:55"]
    assert repo.resolve_url("2025-04-04_1455.mp4") == "https://cdn.test/x.m3u8"
    assert repo.resolve_url("2025-04-04_1500.mp4") is None


class _CountingRepository(CachingClipRepository):
    def __init__(self, fail=False):
        super().__init__()
        self.calls = 0
        self.fail = fail

    def list_clips(self, date):
        return []

    def _resolve(self, key):
        self.calls += 1
        if self.fail:
            raise ConnectionError("store offline")
        return f"https://cdn.test/{key}"


def test_urls_cached_per_key():
    repo = _CountingRepository()
    assert repo.resolve_url("a.mp4") == "https://cdn.test/a.mp4"
    assert repo.resolve_url("a.mp4") == "https://cdn.test/a.mp4"
    assert repo.calls == 1


def test_clear_cache_forces_fresh_resolution():
    repo = _CountingRepository()
    repo.resolve_url("a.mp4")
    repo.clear_cache()
    assert repo.resolve_url("a.mp4") == "https://cdn.test/a.mp4"
    assert repo.calls == 2


def test_repository_without_resolver_cannot_be_built():
    class _ListingOnly(CachingClipRepository):
        def list_clips(self, date):
            return []

    with pytest.raises(TypeError):
        _ListingOnly()


def test_failed_resolution_returns_none_and_is_retried():
    repo = _CountingRepository(fail=True)
    assert repo.resolve_url("a.mp4") is None
    assert repo.resolve_url("a.mp4") is None
    assert repo.calls == 2


def test_directory_repository(tmp_path):
    for name in ["2025-04-04_1000.mp4", "2025-04-04_0955.mp4", "2025-04-05_1000.mp4", "readme.txt"]:
        (tmp_path / name).write_bytes(b"")
    repo = DirectoryClipRepository(tmp_path)
    clips = repo.list_clips("2025-04-04")
    assert [c.start_time for c in clips] == ["09:55", "10:00"]
    assert clips[1].url == str((tmp_path / "2025-04-04_1000.mp4").resolve())
    assert repo.resolve_url("2025-04-04_1000.mp4") == str((tmp_path / "2025-04-04_1000.mp4").resolve())
    assert repo.resolve_url("2025-04-04_1100.mp4") is None


def test_directory_repository_missing_root(tmp_path):
    assert DirectoryClipRepository(tmp_path / "nope").list_clips("2025-04-04") == []
