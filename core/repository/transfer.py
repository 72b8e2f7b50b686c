"""Export and bulk import for the snapshot repository.

Updates:
  v0.2.0 - 2026-10-16 - Defer clearing until at least one entry validates.
  v0.1.0 - 2026-10-13 - Add export/import with size, cardinality and marker guards.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, cast

from models.snippet_model import ImportResult, Snippet, SnippetScope, new_snippet_id

from ..exceptions import ImportRejectedError, NoValidRecordsError, SnippetStorageError
from ..sanitizer import IMPORT_LIMITS, validate_import_entry
from .base import encode_snapshot, logger
from .snapshots import SnapshotStoreMixin

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from datetime import datetime

DEFAULT_IMPORT_MAX_BYTES: Final[int] = 10 * 1024 * 1024
DEFAULT_IMPORT_MAX_ENTRIES: Final[int] = 10_000
POLLUTION_MARKERS: Final[tuple[str, ...]] = ("__proto__", "constructor", "prototype")

__all__ = [
    "DEFAULT_IMPORT_MAX_BYTES",
    "DEFAULT_IMPORT_MAX_ENTRIES",
    "POLLUTION_MARKERS",
    "SnippetTransferMixin",
]


def _read_import_source(path: Path, max_bytes: int) -> str:
    try:
        size = path.stat().st_size
    except OSError as exc:
        raise ImportRejectedError(f"Cannot read import file: {path}") from exc
    if size > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise ImportRejectedError(f"File size too large. Maximum size is {limit_mb}MB.")
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ImportRejectedError(f"Cannot read import file: {path}") from exc


def _write_export(path: Path, payload: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(payload, encoding="utf-8")


def _usage_count(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return max(0, value)


def _entry_to_snippet(entry: Mapping[str, Any], snippet_id: str, now: datetime) -> Snippet:
    description = entry.get("description")
    file_types = entry.get("fileTypes", entry.get("file_types"))
    favorite = entry.get("isFavorite", entry.get("is_favorite"))
    return Snippet(
        id=snippet_id,
        name=str(entry["name"]).strip(),
        prefix=str(entry["prefix"]).strip(),
        body=str(entry["body"]),
        description=description.strip() or None if isinstance(description, str) else None,
        tags=[tag.strip() for tag in entry["tags"] if tag.strip()],
        file_types=[ft.strip() for ft in file_types if ft.strip()],
        scope=SnippetScope.parse(entry.get("scope"), default=SnippetScope.GLOBAL),
        created_at=now,
        updated_at=now,
        usage_count=_usage_count(entry.get("usageCount", entry.get("usage_count"))),
        is_favorite=favorite if isinstance(favorite, bool) else False,
    )


class SnippetTransferMixin(SnapshotStoreMixin):
    """Whole-store export and validated bulk import."""

    _import_max_bytes: int
    _import_max_entries: int

    async def export_all(self, destination: Path | str) -> Path:
        """Write every snippet, as stored, to *destination* as a JSON array."""
        self._guard("export")
        path = Path(destination).expanduser()
        payload = encode_snapshot(self._snippets.values())
        try:
            await asyncio.to_thread(_write_export, path, payload)
        except OSError as exc:
            raise SnippetStorageError(f"Unable to export snippets to {path}") from exc
        logger.info("Exported %d snippets to %s", len(self._snippets), path)
        return path

    def _parse_import(self, text: str) -> list[object]:
        for marker in POLLUTION_MARKERS:
            if marker in text:
                raise ImportRejectedError(
                    f"Invalid JSON: contains potentially dangerous pattern '{marker}'"
                )
        try:
            parsed: object = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ImportRejectedError(f"Invalid JSON file: {exc.msg}") from exc
        if not isinstance(parsed, list):
            raise ImportRejectedError("Invalid file format. Expected array of snippets.")
        entries = cast("list[object]", parsed)
        if len(entries) > self._import_max_entries:
            raise ImportRejectedError(
                f"Too many snippets in file. Maximum allowed is {self._import_max_entries:,}."
            )
        return entries

    def _admit_entries(self, entries: Sequence[object], now: datetime) -> ImportResult:
        result = ImportResult()
        taken = set(self._snippets)
        for index, entry in enumerate(entries):
            reason = validate_import_entry(entry, IMPORT_LIMITS)
            if reason is not None:
                logger.debug("Skipping imported snippet at index %d: %s", index, reason)
                result.diagnostics.append(f"Snippet at index {index}: {reason}")
                continue
            snippet_id = new_snippet_id()
            while snippet_id in taken:
                snippet_id = new_snippet_id()
            taken.add(snippet_id)
            result.imported.append(
                _entry_to_snippet(cast("Mapping[str, Any]", entry), snippet_id, now)
            )
        return result

    async def import_all(self, source: Path | str, clear_existing: bool = False) -> ImportResult:
        """Validate and admit snippets from *source* in a single snapshot write.

        Entries failing validation are skipped and reported in
        ``ImportResult.diagnostics``. Every admitted entry receives a new id and
        fresh timestamps. Existing snippets are cleared only when at least one
        entry is admitted.

        Raises:
          ImportRejectedError: The file is oversized, unreadable, malformed or
            contains prototype-pollution markers.
          NoValidRecordsError: No entry survived validation; the store is unchanged.
        """
        self._guard("import")
        path = Path(source).expanduser()
        text = await asyncio.to_thread(_read_import_source, path, self._import_max_bytes)
        entries = self._parse_import(text)
        result = self._admit_entries(entries, self._now())
        if result.diagnostics:
            logger.warning(
                "Skipped %d invalid snippet(s) while importing %s",
                result.skipped_count,
                path,
            )
        if not result.imported:
            raise NoValidRecordsError(result.diagnostics)

        def _apply(snippets: dict[str, Snippet]) -> None:
            if clear_existing:
                snippets.clear()
            for snippet in result.imported:
                snippets[snippet.id] = snippet

        await self._commit(_apply)
        result.cleared_existing = clear_existing
        logger.info(
            "Imported %d snippets from %s; store now holds %d",
            result.imported_count,
            path,
            len(self._snippets),
        )
        return result
