"""Snippet CRUD, search and statistics for the snapshot repository.

Updates:
  v0.3.0 - 2026-10-18 - Add unmetered folder membership counts.
  v0.2.0 - 2026-10-15 - Route every mutation through the serialised commit path.
  v0.1.0 - 2026-10-12 - Extract snippet operations into a mixin.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import replace
from typing import TYPE_CHECKING

from models.snippet_model import SnippetFilters, StoreStats, new_snippet_id

from ..exceptions import SnippetNotFoundError, SnippetValidationError
from .base import detach, logger
from .snapshots import SnapshotStoreMixin

if TYPE_CHECKING:
    from collections.abc import Iterable

    from models.snippet_model import Snippet, SnippetUpdate

__all__ = ["SnippetStoreMixin"]


class SnippetStoreMixin(SnapshotStoreMixin):
    """CRUD helpers for snippets held in the snapshot repository."""

    def new_id(self) -> str:
        """Return an identifier not used by any stored snippet."""
        while True:
            candidate = new_snippet_id()
            if candidate not in self._snippets:
                return candidate

    async def get_all(self) -> list[Snippet]:
        """Return every stored snippet."""
        self._guard("get_all")
        return [detach(snippet) for snippet in self._snippets.values()]

    async def get_by_id(self, snippet_id: str) -> Snippet | None:
        """Return the snippet stored under *snippet_id*, or None."""
        self._guard("get_by_id")
        snippet = self._snippets.get(snippet_id)
        return detach(snippet) if snippet is not None else None

    async def create(self, snippet: Snippet) -> Snippet:
        """Insert *snippet* under its id (assigning one when blank) and persist."""
        self._guard("create")
        stored = detach(snippet)

        def _insert(snippets: dict[str, Snippet]) -> Snippet:
            nonlocal stored
            if not stored.id:
                stored = replace(stored, id=self.new_id())
            if stored.id in snippets:
                raise SnippetValidationError("id", f"Snippet id {stored.id} already exists")
            snippets[stored.id] = stored
            return detach(stored)

        created = await self._commit(_insert)
        logger.debug("Created snippet %s", created.id)
        return created

    async def update(self, snippet_id: str, changes: SnippetUpdate) -> Snippet:
        """Merge *changes* into an existing snippet and persist."""
        self._guard("update")
        now = self._now()

        def _merge(snippets: dict[str, Snippet]) -> Snippet:
            current = snippets.get(snippet_id)
            if current is None:
                raise SnippetNotFoundError(snippet_id)
            merged = changes.apply_to(current, now=now)
            snippets[snippet_id] = merged
            return detach(merged)

        return await self._commit(_merge)

    async def delete(self, snippet_id: str) -> None:
        """Remove a snippet and persist."""
        self._guard("delete")

        def _remove(snippets: dict[str, Snippet]) -> None:
            if snippet_id not in snippets:
                raise SnippetNotFoundError(snippet_id)
            del snippets[snippet_id]

        await self._commit(_remove)
        logger.debug("Deleted snippet %s", snippet_id)

    async def increment_usage(self, snippet_id: str) -> None:
        """Bump the usage counter; unknown ids are ignored."""
        self._guard("increment_usage")
        if snippet_id not in self._snippets:
            return
        now = self._now()

        def _bump(snippets: dict[str, Snippet]) -> None:
            current = snippets.get(snippet_id)
            if current is None:
                return
            snippets[snippet_id] = replace(
                current,
                usage_count=current.usage_count + 1,
                updated_at=max(now, current.created_at),
            )

        await self._commit(_bump)

    async def search(
        self,
        term: str | None,
        filters: SnippetFilters | None = None,
    ) -> list[Snippet]:
        """Return snippets matching *term* and every supplied filter."""
        self._guard("search")
        active_filters = filters or SnippetFilters()
        needle = (term or "").strip()
        return [
            detach(snippet)
            for snippet in self._snippets.values()
            if (not needle or snippet.matches_term(needle)) and active_filters.accepts(snippet)
        ]

    def count_by_folder(self, folder_ids: Iterable[str]) -> dict[str, int]:
        """Return how many snippets sit in each of *folder_ids*.

        Not metered: callers use it for bookkeeping after a mutation has
        already been persisted.
        """
        counts = dict.fromkeys(folder_ids, 0)
        for snippet in self._snippets.values():
            if snippet.folder_id is not None and snippet.folder_id in counts:
                counts[snippet.folder_id] += 1
        return counts

    async def stats(self) -> StoreStats:
        """Return record count, summed usage and on-disk snapshot size."""
        self._guard("stats")
        snippets = list(self._snippets.values())
        try:
            size = (await asyncio.to_thread(os.stat, self._snapshot_path)).st_size
        except FileNotFoundError:
            size = 0
        return StoreStats(
            total_snippets=len(snippets),
            total_usage=sum(snippet.usage_count for snippet in snippets),
            storage_size=size,
        )
