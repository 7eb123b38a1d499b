"""Top-level package exports.

Public API surface (keep minimal):
 - TimelineSession (wires a date's clips, artifacts, viewport and playback)
 - TimelinePlaybackController, ViewportController (Qt controllers)
 - generate_segments, bucket_artifacts (pure timeline logic)

Submodules hold the rest: ``sitecam.utils.timefmt`` for time strings,
``sitecam.services`` for repositories and stores.
"""

from .core.matcher import bucket_artifacts  # noqa: F401
from .core.segments import generate_segments  # noqa: F401
from .core.viewport import ViewportController  # noqa: F401
from .media.playback import TimelinePlaybackController  # noqa: F401
from .services.session import TimelineSession  # noqa: F401

__all__ = [
    "TimelineSession",
    "TimelinePlaybackController",
    "ViewportController",
    "generate_segments",
    "bucket_artifacts",
]
