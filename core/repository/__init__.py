"""JSON snapshot repository for persistent snippet storage.

Updates:
  v0.3.0 - 2026-10-16 - Add export/import mixin and per-store rate limiter.
  v0.2.0 - 2026-10-15 - Serialise mutations and rotate a backup snapshot on every write.
  v0.1.0 - 2026-10-12 - Compose snapshot and snippet mixins into SnippetRepository.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from ..rate_limiter import RateLimiter
from .base import (
    BACKUP_FILENAME,
    SNAPSHOT_FILENAME,
    utc_now,
    validate_storage_path,
)
from .snippets import SnippetStoreMixin
from .transfer import (
    DEFAULT_IMPORT_MAX_BYTES,
    DEFAULT_IMPORT_MAX_ENTRIES,
    POLLUTION_MARKERS,
    SnippetTransferMixin,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime
    from pathlib import Path


class SnippetRepository(SnippetTransferMixin, SnippetStoreMixin):
    """Compose repository mixins for snapshot-backed snippet storage."""

    def __init__(
        self,
        storage_dir: Path | str,
        *,
        rate_limiter: RateLimiter | None = None,
        clock: Callable[[], datetime] | None = None,
        import_max_bytes: int = DEFAULT_IMPORT_MAX_BYTES,
        import_max_entries: int = DEFAULT_IMPORT_MAX_ENTRIES,
    ) -> None:
        """Validate the storage location; call :meth:`initialize` before use.

        Raises:
          ValueError: *storage_dir* contains ``..`` segments or is too long.
        """
        self._storage_dir = validate_storage_path(storage_dir)
        self._snapshot_path = self._storage_dir / SNAPSHOT_FILENAME
        self._backup_path = self._storage_dir / BACKUP_FILENAME
        self._snippets = {}
        self._write_lock = asyncio.Lock()
        self._rate_limiter = rate_limiter or RateLimiter()
        self._clock = clock or utc_now
        self._import_max_bytes = import_max_bytes
        self._import_max_entries = import_max_entries

    @property
    def rate_limiter(self) -> RateLimiter:
        """Limiter consulted by every public operation."""
        return self._rate_limiter


__all__ = [
    "BACKUP_FILENAME",
    "POLLUTION_MARKERS",
    "SNAPSHOT_FILENAME",
    "SnippetRepository",
]
