"""Snippet data model definitions.

Updates: v0.4.0 - 2026-10-18 - Normalise partial updates like new snippet requests.
Updates: v0.3.0 - 2026-10-16 - Add ImportResult diagnostics and StoreStats aggregates.
Updates: v0.2.0 - 2026-10-14 - Model partial updates with an explicit UNSET sentinel.
Updates: v0.1.0 - 2026-10-12 - Initial Snippet schema with serialization helpers.
"""
from __future__ import annotations

import re
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Final


def _utc_now() -> datetime:
    """Return an aware UTC timestamp."""
    return datetime.now(UTC)


def new_snippet_id() -> str:
    """Return a fresh opaque snippet identifier."""
    return str(uuid.uuid4())


def _ensure_datetime(value: Any) -> datetime:
    """Parse incoming datetime values (isoformat strings or datetime)."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if value is None:
        return _utc_now()
    text = str(value).strip()
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    parsed = datetime.fromisoformat(text)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _serialize_list(items: Iterable[Any] | None) -> list[str]:
    """Normalize iterable inputs into lists of strings."""
    if items is None:
        return []
    if isinstance(items, str):
        return [items]
    return [str(item) for item in items]


def _dedupe(items: Iterable[str]) -> list[str]:
    """Return *items* without duplicates, preserving first-seen order."""
    seen: set[str] = set()
    ordered: list[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        ordered.append(item)
    return ordered


def derive_prefix(name: str) -> str:
    """Return a shortcut prefix derived from a display name."""
    return re.sub(r"\s+", "-", name.strip().lower())


class SnippetScope(str, Enum):
    """Advisory visibility scope for a snippet."""

    GLOBAL = "global"
    WORKSPACE = "workspace"
    PROJECT = "project"

    @classmethod
    def parse(cls, value: Any, *, default: SnippetScope | None = None) -> SnippetScope:
        """Return the scope matching *value*, or *default* when it is unknown."""
        if isinstance(value, SnippetScope):
            return value
        text = str(value or "").strip().lower()
        try:
            return cls(text)
        except ValueError:
            if default is not None:
                return default
            raise


WILDCARD_FILE_TYPE: Final[str] = "*"


@dataclass(slots=True)
class Snippet:
    """Dataclass representation of a stored snippet."""

    id: str
    name: str
    prefix: str
    body: str
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    file_types: list[str] = field(default_factory=list)
    scope: SnippetScope = SnippetScope.GLOBAL
    folder_id: str | None = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)
    usage_count: int = 0
    is_favorite: bool = False

    def matches_file_type(self, file_type: str) -> bool:
        """Return True when the snippet applies to *file_type*."""
        return file_type in self.file_types or WILDCARD_FILE_TYPE in self.file_types

    def matches_term(self, term: str) -> bool:
        """Case-insensitive substring match over name, prefix, description and tags."""
        needle = term.lower()
        if needle in self.name.lower() or needle in self.prefix.lower():
            return True
        if self.description and needle in self.description.lower():
            return True
        return any(needle in tag.lower() for tag in self.tags)

    def to_record(self) -> dict[str, Any]:
        """Return the persisted JSON mapping using the snapshot field names."""
        return {
            "id": self.id,
            "name": self.name,
            "prefix": self.prefix,
            "description": self.description,
            "body": self.body,
            "tags": list(self.tags),
            "fileTypes": list(self.file_types),
            "scope": self.scope.value,
            "folderId": self.folder_id,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "usageCount": self.usage_count,
            "isFavorite": self.is_favorite,
        }

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> Snippet:
        """Hydrate a Snippet from a snapshot mapping."""

        def _pick(camel: str, snake: str, default: Any = None) -> Any:
            if camel in data:
                return data[camel]
            return data.get(snake, default)

        description = data.get("description")
        folder_id = _pick("folderId", "folder_id")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            prefix=str(data["prefix"]),
            body=str(data["body"]),
            description=str(description) if description is not None else None,
            tags=_serialize_list(data.get("tags")),
            file_types=_serialize_list(_pick("fileTypes", "file_types")),
            scope=SnippetScope.parse(data.get("scope"), default=SnippetScope.GLOBAL),
            folder_id=str(folder_id) if folder_id not in (None, "") else None,
            created_at=_ensure_datetime(_pick("createdAt", "created_at")),
            updated_at=_ensure_datetime(_pick("updatedAt", "updated_at")),
            usage_count=max(0, int(_pick("usageCount", "usage_count", 0) or 0)),
            is_favorite=bool(_pick("isFavorite", "is_favorite", False)),
        )


@dataclass(slots=True)
class SnippetRequest:
    """Caller-supplied fields for creating a snippet."""

    name: str
    body: str
    prefix: str | None = None
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    file_types: list[str] = field(default_factory=list)
    scope: SnippetScope = SnippetScope.GLOBAL
    folder_id: str | None = None

    def normalised(self) -> SnippetRequest:
        """Return a trimmed copy with derived prefix and default file types."""
        name = self.name.strip()
        prefix = (self.prefix or "").strip() or derive_prefix(name)
        description = self.description.strip() if self.description else None
        tags = _dedupe(tag.strip() for tag in self.tags if tag.strip())
        file_types = _dedupe(ft.strip() for ft in self.file_types if ft.strip())
        return replace(
            self,
            name=name,
            prefix=prefix,
            description=description or None,
            tags=tags,
            file_types=file_types or [WILDCARD_FILE_TYPE],
        )


class _Unset(Enum):
    """Marker for fields omitted from a partial update."""

    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Final = _Unset.UNSET


@dataclass(slots=True, frozen=True)
class SnippetUpdate:
    """Partial update; fields left as ``UNSET`` keep their stored value.

    ``description`` and ``folder_id`` accept ``None`` to clear the value.
    Identity, creation time and usage counters are not updatable here.
    """

    name: str | _Unset = UNSET
    prefix: str | _Unset = UNSET
    description: str | None | _Unset = UNSET
    body: str | _Unset = UNSET
    tags: list[str] | _Unset = UNSET
    file_types: list[str] | _Unset = UNSET
    scope: SnippetScope | _Unset = UNSET
    folder_id: str | None | _Unset = UNSET
    is_favorite: bool | _Unset = UNSET

    def changes(self) -> dict[str, Any]:
        """Return the explicitly supplied fields."""
        return {
            item.name: getattr(self, item.name)
            for item in fields(self)
            if getattr(self, item.name) is not UNSET
        }

    def is_empty(self) -> bool:
        """Return True when no field was supplied."""
        return not self.changes()

    def normalised(self) -> SnippetUpdate:
        """Return a copy trimmed the same way as :meth:`SnippetRequest.normalised`."""
        values: dict[str, Any] = {}
        if isinstance(self.name, str):
            values["name"] = self.name.strip()
        if isinstance(self.prefix, str):
            values["prefix"] = self.prefix.strip()
        if isinstance(self.description, str):
            values["description"] = self.description.strip() or None
        if isinstance(self.tags, list):
            values["tags"] = _dedupe(tag.strip() for tag in self.tags if tag.strip())
        if isinstance(self.file_types, list):
            file_types = _dedupe(ft.strip() for ft in self.file_types if ft.strip())
            values["file_types"] = file_types or [WILDCARD_FILE_TYPE]
        return replace(self, **values)

    def apply_to(self, snippet: Snippet, *, now: datetime | None = None) -> Snippet:
        """Return *snippet* merged with the supplied fields and a refreshed timestamp."""
        changes = self.changes()
        for key in ("tags", "file_types"):
            if key in changes:
                changes[key] = list(changes[key])
        timestamp = now or _utc_now()
        if timestamp < snippet.created_at:
            timestamp = snippet.created_at
        return replace(snippet, **changes, updated_at=timestamp)


@dataclass(slots=True, frozen=True)
class SnippetFilters:
    """Optional filters intersected with a search term."""

    tags: tuple[str, ...] = ()
    file_types: tuple[str, ...] = ()
    favorites_only: bool = False
    folder_id: str | None = None

    def accepts(self, snippet: Snippet) -> bool:
        """Return True when *snippet* satisfies every supplied filter."""
        if self.tags and not any(tag in snippet.tags for tag in self.tags):
            return False
        if self.file_types and not any(ft in snippet.file_types for ft in self.file_types):
            return False
        if self.favorites_only and not snippet.is_favorite:
            return False
        if self.folder_id is not None and snippet.folder_id != self.folder_id:
            return False
        return True


@dataclass(slots=True, frozen=True)
class StoreStats:
    """Aggregate store metrics."""

    total_snippets: int
    total_usage: int
    storage_size: int


@dataclass(slots=True)
class ImportResult:
    """Outcome of a bulk import."""

    imported: list[Snippet] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)
    cleared_existing: bool = False

    @property
    def imported_count(self) -> int:
        """Number of entries admitted to the store."""
        return len(self.imported)

    @property
    def skipped_count(self) -> int:
        """Number of entries rejected during validation."""
        return len(self.diagnostics)

    def summary(self) -> dict[str, int]:
        """Return aggregate counts for reporting."""
        return {"imported": self.imported_count, "skipped": self.skipped_count}


__all__ = [
    "ImportResult",
    "Snippet",
    "SnippetFilters",
    "SnippetRequest",
    "SnippetScope",
    "SnippetUpdate",
    "StoreStats",
    "UNSET",
    "WILDCARD_FILE_TYPE",
    "derive_prefix",
    "new_snippet_id",
]
