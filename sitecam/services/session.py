"""Timeline session: one viewer's date, segments, artifacts and players.

The session wires the pieces together for a single date:

    date -> clip list -> segments -> matched artifacts -> viewport / playback

State is held on the session instance and passed explicitly to the
controllers it owns; nothing here is process-global.

URL resolution for the current clip may run on a worker thread. Results are
applied only if they are still wanted: a resolution whose generation or clip
key no longer matches the current selection (the user picked another clip or
changed date meanwhile) is dropped.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from PySide6.QtCore import QObject, QThread, Signal

from ..config import logger
from ..core.clip_table import ClipRow, summarize_clips
from ..core.matcher import MatchResult, SegmentMatch, bucket_artifacts, nearby_artifacts
from ..core.models import Artifact, Clip, ClipSegment
from ..core.segments import generate_segments
from ..core.viewport import ViewportController
from ..errors import ArtifactValidationError, NoClipSelectedError
from ..media.playback import TimelinePlaybackController
from ..media.preload import ClipPreloader
from ..utils.timefmt import format_video_time
from .repository import ClipRepository
from .stores import AnnotationStore, ArtifactStore, BookmarkStore, NoteFlagStore

__all__ = ["UrlResolveWorker", "TimelineSession"]


class UrlResolveWorker(QObject):
    finished = Signal(int, str, object)  # generation_id, clip key, url or None

    def __init__(self, repository: ClipRepository, generation_id: int, key: str):
        super().__init__()
        self._repository = repository
        self._gen = generation_id
        self._key = key

    def run(self):  # executed in thread
        try:
            url = self._repository.resolve_url(self._key)
        except Exception as e:
            logger.warning("url resolution for {} raised: {}", self._key, e)
            url = None
        self.finished.emit(self._gen, self._key, url)


class TimelineSession(QObject):
    dateChanged = Signal(str)
    segmentsChanged = Signal(object)  # list[ClipSegment]
    artifactsChanged = Signal(object)  # MatchResult
    urlResolved = Signal(str, str)  # clip key, url
    urlUnavailable = Signal(str)  # clip key

    def __init__(
        self,
        repository: ClipRepository,
        parent: Optional[QObject] = None,
        *,
        annotations: Optional[AnnotationStore] = None,
        notes_flags: Optional[NoteFlagStore] = None,
        bookmarks: Optional[BookmarkStore] = None,
        viewport: Optional[ViewportController] = None,
        playback: Optional[TimelinePlaybackController] = None,
        preloader: Optional[ClipPreloader] = None,
        threaded: bool = False,
    ):
        super().__init__(parent)
        self._repository = repository
        self.annotations = annotations if annotations is not None else AnnotationStore()
        self.notes_flags = notes_flags if notes_flags is not None else NoteFlagStore()
        self.bookmarks = bookmarks if bookmarks is not None else BookmarkStore()
        self.viewport = viewport if viewport is not None else ViewportController(self)
        self.playback = (
            playback if playback is not None else TimelinePlaybackController(self)
        )
        self.preloader = preloader
        if preloader is not None:
            self.playback.set_preloader(preloader)
        self._threaded = threaded
        self._date: Optional[str] = None
        self._clips: List[Clip] = []
        self._segments: List[ClipSegment] = []
        self._matches = MatchResult()
        self._current_url: Optional[str] = None
        self._url_gen = 0
        self._url_jobs: Dict[int, tuple[QThread, UrlResolveWorker]] = {}
        self.playback.currentClipChanged.connect(self._on_current_clip_changed)

    # --- Read access ---
    @property
    def date(self) -> Optional[str]:
        return self._date

    @property
    def clips(self) -> List[Clip]:
        return list(self._clips)

    @property
    def segments(self) -> List[ClipSegment]:
        return list(self._segments)

    @property
    def matches(self) -> MatchResult:
        return self._matches

    @property
    def current_url(self) -> Optional[str]:
        return self._current_url

    def visible_segments(self) -> List[ClipSegment]:
        return self.viewport.filter_segments(self._segments)

    def segment_artifacts(self, time_key: str) -> SegmentMatch:
        return self._matches.for_segment(time_key)

    def unmatched(self) -> Dict[str, List[Artifact]]:
        return self._matches.unmatched

    def artifacts(self) -> List[Artifact]:
        if self._date is None:
            return []
        return [
            *self.annotations.list(self._date),
            *self.notes_flags.list(self._date),
            *self.bookmarks.list(self._date),
        ]

    def nearby_notes(self) -> List[Artifact]:
        if self._date is None or self.playback.current_clip is None:
            return []
        return nearby_artifacts(
            self.notes_flags.notes(self._date), self.playback.current_video_time
        )

    def clip_table(self) -> List[ClipRow]:
        if self._date is None:
            return []
        return summarize_clips(self._date, self._clips, self.notes_flags.list(self._date))

    # --- Date / data loading ---
    def set_date(self, date: str):
        """Switch to ``date``: hard-reset playback, then load clips and artifacts."""
        self._date = date
        self._url_gen += 1
        self._current_url = None
        if self.preloader is not None:
            self.preloader.clear()
        self.playback.on_date_change(date)
        self.dateChanged.emit(date)
        self._load_clips()
        self.refresh_artifacts()
        self.playback.set_clips(self._clips)

    def refresh_clips(self):
        if self._date is None:
            return
        self._load_clips()
        self.refresh_artifacts()
        self.playback.set_clips(self._clips)

    def refresh_artifacts(self):
        self._matches = bucket_artifacts(self._segments, self.artifacts())
        if self._matches.unmatched:
            logger.info(
                "{} artifact(s) on {} not matched to a segment",
                self._matches.unmatched_count,
                self._date,
            )
        self.artifactsChanged.emit(self._matches)

    def _load_clips(self):
        try:
            clips = self._repository.list_clips(self._date)
        except Exception as e:
            logger.error("failed to load clips for {}: {}", self._date, e)
            clips = []
        self._segments = generate_segments(self._date, clips)
        # keep only clips that made it onto the grid
        self._clips = [s.clip for s in self._segments if s.clip is not None]
        self.segmentsChanged.emit(list(self._segments))

    # --- Selection ---
    def select_segment(self, time_key: str, *, autoplay: bool = True) -> bool:
        segment = next((s for s in self._segments if s.time_key == time_key), None)
        if segment is None or segment.clip is None:
            return False
        self.playback.select_clip(segment.clip, autoplay=autoplay)
        return True

    def _on_current_clip_changed(self, clip: Optional[Clip]):
        self._url_gen += 1
        self._current_url = None
        if clip is None:
            return
        gen = self._url_gen
        if clip.url:
            self.apply_resolved_url(gen, clip.key, clip.url)
            return
        worker = UrlResolveWorker(self._repository, gen, clip.key)
        worker.finished.connect(self.apply_resolved_url)
        if not self._threaded:
            worker.run()
            return
        thread = QThread()
        self._url_jobs[gen] = (thread, worker)
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        worker.finished.connect(lambda *_: thread.quit())
        thread.finished.connect(worker.deleteLater)
        thread.finished.connect(lambda: self._url_jobs.pop(gen, None))
        thread.start()

    def apply_resolved_url(self, gen: int, key: str, url: Optional[str]):
        current = self.playback.current_clip
        if gen != self._url_gen or current is None or current.key != key:
            logger.debug("dropping stale url for {}", key)
            return
        if not url:
            self._current_url = None
            self.urlUnavailable.emit(key)
            return
        self._current_url = url
        self.urlResolved.emit(key, url)

    def shutdown(self):
        for thread, _ in list(self._url_jobs.values()):
            thread.quit()
            thread.wait(200)
        self._url_jobs.clear()
        if self.preloader is not None:
            self.preloader.shutdown()

    # --- Authoring ---
    def _authoring_context(self) -> dict:
        clip = self.playback.current_clip
        if clip is None or self._date is None:
            raise NoClipSelectedError("select a clip before adding notes, flags or bookmarks")
        return {
            "date": self._date,
            "clip_time": clip.start_time,
            "video_time": format_video_time(self.playback.current_video_time),
        }

    def add_note(self, content: str):
        text = (content or "").strip()
        if not text:
            raise ArtifactValidationError("note text is empty")
        item = self.notes_flags.create(
            {**self._authoring_context(), "content": text, "is_flag": False}
        )
        self.refresh_artifacts()
        return item

    def add_flag(self, content: Optional[str] = None):
        text = (content or "").strip()
        item = self.notes_flags.create(
            {**self._authoring_context(), "content": text or None, "is_flag": True}
        )
        self.refresh_artifacts()
        return item

    def add_annotation(self, content: str):
        item = self.annotations.create({**self._authoring_context(), "content": content})
        self.refresh_artifacts()
        return item

    def add_bookmark(self, label: str):
        item = self.bookmarks.create({**self._authoring_context(), "label": label})
        self.refresh_artifacts()
        return item

    def _store(self, kind: str) -> ArtifactStore:
        stores = {
            "annotation": self.annotations,
            "note_flag": self.notes_flags,
            "bookmark": self.bookmarks,
        }
        if kind not in stores:
            raise ValueError(f"unknown artifact kind {kind!r}")
        return stores[kind]

    def update_artifact(self, kind: str, artifact_id: int, patch: dict):
        item = self._store(kind).update(artifact_id, patch)
        self.refresh_artifacts()
        return item

    def delete_artifact(self, kind: str, artifact_id: int) -> bool:
        removed = self._store(kind).delete(artifact_id)
        if removed:
            self.refresh_artifacts()
        return removed
