"""Next-clip preloading.

``ClipPreloader`` resolves a clip's URL through the repository and warms a
single secondary buffer with it so the playback surface can switch without a
visible stall. Local files are opened with MoviePy and their first frame is
decoded on a worker thread; remote stream URLs are only resolved.

Each request carries a generation id. A result that arrives after a newer
request was issued is stale and dropped. Failures are reported through the
``failed`` signal and logged; nothing is raised to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlparse

from moviepy import VideoFileClip
from PySide6.QtCore import QObject, QThread, Signal

from ..config import logger
from ..core.models import Clip
from ..services.repository import ClipRepository

__all__ = ["PreloadedClip", "PreloadWorker", "ClipPreloader", "is_remote_url"]


def is_remote_url(url: str) -> bool:
    return urlparse(url).scheme in ("http", "https")


def _local_path(url: str) -> str:
    if url.startswith("file://"):
        return urlparse(url).path
    return url


@dataclass
class PreloadedClip:
    clip: Clip
    url: str
    duration: Optional[float] = None
    first_frame: Any = None  # numpy array for decoded local files


class PreloadWorker(QObject):
    finished = Signal(int, object)  # generation_id, PreloadedClip
    failed = Signal(int, str, str)  # generation_id, clip key, reason

    def __init__(self, generation_id: int, clip: Clip, url: str):
        super().__init__()
        self._gen = generation_id
        self._clip = clip
        self._url = url

    def run(self):  # executed in thread
        if is_remote_url(self._url):
            self.finished.emit(self._gen, PreloadedClip(self._clip, self._url))
            return
        try:
            video = VideoFileClip(_local_path(self._url))
            try:
                duration = float(video.duration or 0.0)
                frame = video.get_frame(0)
            finally:
                video.close()
        except Exception as e:
            self.failed.emit(self._gen, self._clip.key, f"decode error: {e}")
            return
        if QThread.currentThread().isInterruptionRequested():
            return
        self.finished.emit(
            self._gen, PreloadedClip(self._clip, self._url, duration, frame)
        )


class ClipPreloader(QObject):
    preloaded = Signal(object)  # PreloadedClip
    failed = Signal(str, str)  # clip key, reason

    def __init__(
        self,
        repository: ClipRepository,
        parent: Optional[QObject] = None,
        *,
        threaded: bool = True,
    ):
        super().__init__(parent)
        self._repository = repository
        self._threaded = threaded
        self._gen = 0
        self._buffer: Optional[PreloadedClip] = None
        self._thread: Optional[QThread] = None
        self._worker: Optional[PreloadWorker] = None
        # threads still winding down after being superseded
        self._retired: list[tuple[QThread, Optional[PreloadWorker]]] = []

    @property
    def buffered(self) -> Optional[PreloadedClip]:
        return self._buffer

    def is_buffered(self, clip: Clip) -> bool:
        return self._buffer is not None and self._buffer.clip.key == clip.key

    def preload(self, clip: Clip):
        if self.is_buffered(clip):
            return
        self._gen += 1
        gen = self._gen
        try:
            url = clip.url or self._repository.resolve_url(clip.key)
        except Exception as e:
            url = None
            logger.warning("preload url lookup failed for {}: {}", clip.key, e)
        if not url:
            self._on_failed(gen, clip.key, "no url")
            return
        worker = PreloadWorker(gen, clip, url)
        worker.finished.connect(self._on_ready)
        worker.failed.connect(self._on_failed)
        if not self._threaded:
            worker.run()
            return
        self._stop_thread(50)
        thread = QThread()
        self._thread = thread
        self._worker = worker
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        worker.finished.connect(lambda *_: thread.quit())
        worker.failed.connect(lambda *_: thread.quit())
        thread.finished.connect(worker.deleteLater)
        thread.finished.connect(lambda: self._clear_thread(thread))
        thread.start()

    def clear(self):
        """Drop the buffer and invalidate any request in flight."""
        self._gen += 1
        self._buffer = None

    def shutdown(self):
        self.clear()
        self._stop_thread(200)

    # --- Internal ---
    def _on_ready(self, gen: int, preloaded: PreloadedClip):
        if gen != self._gen:
            logger.debug("dropping stale preload of {}", preloaded.clip.key)
            return
        self._buffer = preloaded
        logger.debug("preloaded {} from {}", preloaded.clip.key, preloaded.url)
        self.preloaded.emit(preloaded)

    def _on_failed(self, gen: int, key: str, reason: str):
        if gen != self._gen:
            return
        logger.warning("preload of {} failed: {}", key, reason)
        self.failed.emit(key, reason)

    def _stop_thread(self, wait_ms: int):
        if self._thread is not None and self._thread.isRunning():
            self._thread.requestInterruption()
            self._thread.quit()
            self._thread.wait(wait_ms)
            if self._thread.isRunning():
                self._retired.append((self._thread, self._worker))

    def _clear_thread(self, thread: QThread):
        self._retired = [r for r in self._retired if r[0] is not thread]
        if self._thread is thread:
            self._thread = None
            self._worker = None
