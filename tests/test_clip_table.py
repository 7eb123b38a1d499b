from sitecam.core.clip_table import group_by_storage_key, summarize_clips
from sitecam.core.models import NoteFlag
from sitecam.services.repository import MockClipRepository

DATE = "2025-04-04"


def nf(id, clip_time, is_flag=False, content="x"):
    return NoteFlag(id=id, date=DATE, clip_time=clip_time, video_time="00:00", content=content, is_flag=is_flag)


def test_group_by_storage_key_reconstructs_keys():
    groups = group_by_storage_key(DATE, [nf(1, "9:05"), nf(2, "0905"), nf(3, "bad")])
    assert list(groups) == ["2025-04-04_0905.mp4"]
    assert [i.id for i in groups["2025-04-04_0905.mp4"]] == [1, 2]


def test_summarize_clips_counts_notes_and_flags():
    clips = MockClipRepository({DATE: ["14:55", "14:50"]}).list_clips(DATE)
    items = [
        nf(1, "14:55"),
        nf(2, "14:55", is_flag=True, content=None),
        nf(3, "1455", is_flag=True, content="crane"),
        nf(4, "14:50"),
    ]
    rows = summarize_clips(DATE, clips, items)
    assert [r.start_time for r in rows] == ["14:50", "14:55"]
    assert (rows[0].notes_count, rows[0].flags_count) == (1, 0)
    assert (rows[1].notes_count, rows[1].flags_count) == (1, 2)
    assert rows[1].label == "2:55 PM - 3:00 PM"
