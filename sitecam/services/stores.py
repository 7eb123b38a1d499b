"""In-memory stores for annotations, notes/flags and bookmarks.

Each store hands out integer ids from its own counter; ids are never reused,
even after a delete. Insert payloads are validated with pydantic and accept
either snake_case names or the camelCase keys of the JSON wire format
(``clipTime``, ``videoTime``, ``isFlag``).
"""

from __future__ import annotations

import itertools
from dataclasses import fields
from datetime import datetime
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..config import logger
from ..core.models import Annotation, Bookmark, NoteFlag
from ..errors import ArtifactNotFoundError, ArtifactValidationError

__all__ = [
    "InsertAnnotation",
    "InsertNoteFlag",
    "InsertBookmark",
    "ArtifactStore",
    "AnnotationStore",
    "NoteFlagStore",
    "BookmarkStore",
]

T = TypeVar("T")


class _InsertBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    clip_time: str = Field(alias="clipTime", min_length=1)
    video_time: str = Field(alias="videoTime", min_length=1)


class InsertAnnotation(_InsertBase):
    content: str = Field(min_length=1)


class InsertNoteFlag(_InsertBase):
    content: Optional[str] = None
    is_flag: bool = Field(default=False, alias="isFlag")


class InsertBookmark(_InsertBase):
    label: str = Field(min_length=1)


Payload = Union[Mapping[str, Any], BaseModel]


class ArtifactStore(Generic[T]):
    def __init__(self, kind: str, schema: Type[_InsertBase], factory: Callable[..., T]):
        self.kind = kind
        self._schema = schema
        self._factory = factory
        self._items: Dict[int, T] = {}
        self._ids = itertools.count(1)
        self._aliases = {
            f.alias: name for name, f in schema.model_fields.items() if f.alias
        }

    def list(self, date: str) -> List[T]:
        items = [a for a in self._items.values() if a.date == date]
        return sorted(items, key=lambda a: (a.clip_time, a.id))

    def get(self, artifact_id: int) -> Optional[T]:
        return self._items.get(artifact_id)

    def create(self, data: Payload) -> T:
        payload = self._validate(data)
        artifact = self._factory(
            id=next(self._ids), created_at=datetime.now(), **payload.model_dump()
        )
        self._items[artifact.id] = artifact
        logger.debug("created {} {} at {} {}", self.kind, artifact.id, artifact.date, artifact.clip_time)
        return artifact

    def update(self, artifact_id: int, patch: Payload) -> T:
        existing = self._items.get(artifact_id)
        if existing is None:
            raise ArtifactNotFoundError(self.kind, artifact_id)
        if isinstance(patch, BaseModel):
            patch = patch.model_dump(exclude_unset=True)
        changes = {self._aliases.get(k, k): v for k, v in patch.items()}
        unknown = set(changes) - set(self._schema.model_fields)
        if unknown:
            raise ArtifactValidationError(
                f"unknown {self.kind} field(s): {', '.join(sorted(unknown))}"
            )
        current = {
            f.name: getattr(existing, f.name)
            for f in fields(existing)
            if f.name in self._schema.model_fields
        }
        payload = self._validate({**current, **changes})
        for name, value in payload.model_dump().items():
            setattr(existing, name, value)
        return existing

    def delete(self, artifact_id: int) -> bool:
        removed = self._items.pop(artifact_id, None)
        if removed is None:
            return False
        logger.debug("deleted {} {}", self.kind, artifact_id)
        return True

    def __len__(self) -> int:
        return len(self._items)

    def _validate(self, data: Payload) -> _InsertBase:
        if isinstance(data, self._schema):
            return data
        if isinstance(data, BaseModel):
            data = data.model_dump()
        try:
            return self._schema.model_validate(dict(data))
        except ValidationError as e:
            raise ArtifactValidationError(f"invalid {self.kind}: {e}") from e


class AnnotationStore(ArtifactStore[Annotation]):
    def __init__(self):
        super().__init__("annotation", InsertAnnotation, Annotation)


class NoteFlagStore(ArtifactStore[NoteFlag]):
    def __init__(self):
        super().__init__("note/flag", InsertNoteFlag, NoteFlag)

    def flags(self, date: str) -> List[NoteFlag]:
        return [i for i in self.list(date) if i.is_flag]

    def notes(self, date: str) -> List[NoteFlag]:
        return [i for i in self.list(date) if i.is_note]


class BookmarkStore(ArtifactStore[Bookmark]):
    def __init__(self):
        super().__init__("bookmark", InsertBookmark, Bookmark)
