"""Shared repository helpers for snapshot files.

Updates:
  v0.2.0 - 2026-10-15 - Write snapshots through a temporary file and atomic replace.
  v0.1.0 - 2026-10-12 - Extract logger, path guard and JSON helpers.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, cast

from models.snippet_model import Snippet

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = logging.getLogger("snippet_store.repository")

SNAPSHOT_FILENAME = "snippets.json"
BACKUP_FILENAME = "snippets.backup.json"
MAX_STORAGE_PATH_LENGTH = 500


def utc_now() -> datetime:
    """Return an aware UTC timestamp."""
    return datetime.now(UTC)


def validate_storage_path(path: Path | str) -> Path:
    """Reject traversal segments and overlong storage locations."""
    raw = str(path)
    if ".." in Path(raw).parts:
        raise ValueError("Invalid storage path: parent directory traversal is not allowed")
    if len(raw) > MAX_STORAGE_PATH_LENGTH:
        raise ValueError("Invalid storage path: path too long")
    return Path(raw).expanduser()


def ensure_directory(path: Path) -> None:
    """Create the storage directory and any missing parents."""
    path.mkdir(parents=True, exist_ok=True)


def detach(snippet: Snippet) -> Snippet:
    """Return a copy whose list fields are not shared with the stored record."""
    return replace(snippet, tags=list(snippet.tags), file_types=list(snippet.file_types))


def encode_snapshot(snippets: Iterable[Snippet]) -> str:
    """Serialise snippets as an indented JSON array."""
    return json.dumps([item.to_record() for item in snippets], ensure_ascii=False, indent=2)


def decode_snapshot(text: str) -> dict[str, Snippet]:
    """Parse a snapshot array into an id-keyed mapping.

    Raises:
      ValueError: The payload is not a JSON array of snippet records.
    """
    payload: object = json.loads(text)
    if not isinstance(payload, list):
        raise ValueError("Snapshot must contain a JSON array")
    snippets: dict[str, Snippet] = {}
    for raw in cast("Sequence[object]", payload):
        if not isinstance(raw, dict):
            raise ValueError("Snapshot entries must be JSON objects")
        try:
            snippet = Snippet.from_record(cast("dict[str, Any]", raw))
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Malformed snapshot entry: {exc}") from exc
        snippets[snippet.id] = snippet
    return snippets


def read_snapshot(path: Path) -> dict[str, Snippet]:
    """Read and decode the snapshot stored at *path*."""
    return decode_snapshot(path.read_text(encoding="utf-8"))


def write_snapshot(snapshot_path: Path, backup_path: Path, payload: str) -> None:
    """Rotate the current snapshot into the backup slot, then replace it with *payload*."""
    if snapshot_path.exists():
        shutil.copyfile(snapshot_path, backup_path)
    temp_path = snapshot_path.with_name(f"{snapshot_path.name}.tmp")
    temp_path.write_text(payload, encoding="utf-8")
    os.replace(temp_path, snapshot_path)


__all__ = [
    "BACKUP_FILENAME",
    "MAX_STORAGE_PATH_LENGTH",
    "SNAPSHOT_FILENAME",
    "decode_snapshot",
    "detach",
    "encode_snapshot",
    "ensure_directory",
    "logger",
    "read_snapshot",
    "utc_now",
    "validate_storage_path",
    "write_snapshot",
]
