"""Snapshot loading, backup rotation and the serialised mutation path.

Updates:
  v0.2.0 - 2026-10-15 - Serialise mutations behind an asyncio lock; swap state only after a write.
  v0.1.0 - 2026-10-12 - Load primary snapshot with backup fallback.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, TypeVar

from ..exceptions import SnippetStorageError
from .base import (
    encode_snapshot,
    ensure_directory,
    logger,
    read_snapshot,
    write_snapshot,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime
    from pathlib import Path

    from models.snippet_model import Snippet

    from ..rate_limiter import RateLimiter

T = TypeVar("T")

__all__ = ["SnapshotStoreMixin"]


class SnapshotStoreMixin:
    """Own the in-memory map and its primary/backup snapshot pair."""

    _storage_dir: Path
    _snapshot_path: Path
    _backup_path: Path
    _snippets: dict[str, Snippet]
    _write_lock: asyncio.Lock
    _rate_limiter: RateLimiter
    _clock: Callable[[], datetime]

    @property
    def storage_dir(self) -> Path:
        """Directory holding the snapshot files."""
        return self._storage_dir

    @property
    def snapshot_path(self) -> Path:
        """Primary snapshot file."""
        return self._snapshot_path

    @property
    def backup_path(self) -> Path:
        """Backup snapshot file."""
        return self._backup_path

    async def initialize(self) -> None:
        """Create the storage directory and load the most recent readable snapshot."""
        try:
            await asyncio.to_thread(ensure_directory, self._storage_dir)
        except OSError as exc:
            raise SnippetStorageError(
                f"Unable to create storage directory {self._storage_dir}"
            ) from exc
        self._snippets = await self._load_snapshots()
        logger.info("Snippet storage initialised with %d snippets", len(self._snippets))

    async def _load_snapshots(self) -> dict[str, Snippet]:
        primary_exists = await asyncio.to_thread(self._snapshot_path.exists)
        if primary_exists:
            try:
                return await asyncio.to_thread(read_snapshot, self._snapshot_path)
            except (OSError, ValueError):
                logger.warning(
                    "Failed to load snapshot %s; trying backup",
                    self._snapshot_path,
                    exc_info=True,
                )
        backup_exists = await asyncio.to_thread(self._backup_path.exists)
        if not backup_exists:
            return {}
        try:
            snippets = await asyncio.to_thread(read_snapshot, self._backup_path)
        except (OSError, ValueError):
            logger.error(
                "Failed to load backup %s; starting with an empty store",
                self._backup_path,
                exc_info=True,
            )
            return {}
        logger.warning("Loaded snippets from backup file %s", self._backup_path)
        return snippets

    async def _persist(self, snippets: dict[str, Snippet]) -> None:
        payload = encode_snapshot(snippets.values())
        try:
            await asyncio.to_thread(
                write_snapshot, self._snapshot_path, self._backup_path, payload
            )
        except OSError as exc:
            logger.error("Failed to save snippets to %s: %s", self._snapshot_path, exc)
            raise SnippetStorageError(f"Unable to write snapshot {self._snapshot_path}") from exc

    async def _commit(self, mutate: Callable[[dict[str, Snippet]], T]) -> T:
        """Apply *mutate* to a working copy, persist it, then publish it.

        Mutations run one at a time. Readers keep seeing the previous map until
        the snapshot write has succeeded; a failed write leaves it untouched.
        """
        async with self._write_lock:
            working = dict(self._snippets)
            result = mutate(working)
            await self._persist(working)
            self._snippets = working
            return result

    def _guard(self, operation: str) -> None:
        self._rate_limiter.check(operation)

    def _now(self) -> datetime:
        return self._clock()
