"""Exception types raised by sitecam.

Time parsing and URL resolution never raise; they degrade to defaults. The
types below cover caller mistakes and invalid store input.
"""

from __future__ import annotations


class SitecamError(Exception):
    """Base class for all sitecam errors."""


class DuplicateClipError(SitecamError):
    def __init__(self, date: str, time_key: str, keys: list[str]):
        self.date = date
        self.time_key = time_key
        self.keys = keys
        super().__init__(
            f"{len(keys)} clips share start time {time_key} on {date}: {', '.join(keys)}"
        )


class UnknownPresetError(SitecamError, ValueError):
    pass


class ArtifactValidationError(SitecamError, ValueError):
    pass


class ArtifactNotFoundError(SitecamError, KeyError):
    def __init__(self, kind: str, artifact_id: int):
        self.kind = kind
        self.artifact_id = artifact_id
        super().__init__(f"{kind} {artifact_id} not found")

    def __str__(self) -> str:  # KeyError quotes its message otherwise
        return self.args[0]


class NoClipSelectedError(SitecamError):
    pass


__all__ = [
    "SitecamError",
    "DuplicateClipError",
    "UnknownPresetError",
    "ArtifactValidationError",
    "ArtifactNotFoundError",
    "NoClipSelectedError",
]
