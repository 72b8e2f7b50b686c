"""Folder membership helpers for Snippet Manager.

Folders are owned elsewhere; the manager only filters by ``folder_id`` and
reports fresh membership counts to the folder counter after changes.

Updates:
  v0.2.0 - 2026-10-18 - Count folder members without consuming the read budget.
  v0.1.0 - 2026-10-15 - Add folder queries, moves and count refresh.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from models.snippet_model import SnippetFilters, SnippetUpdate

from ..exceptions import SnippetNotFoundError
from .session import PinSessionMixin

if TYPE_CHECKING:  # pragma: no cover - typing only
    from collections.abc import Iterable

    from models.snippet_model import Snippet

    from ..collaborators import FolderCounter
    from ..repository import SnippetRepository

logger = logging.getLogger("snippet_store.manager")

__all__ = ["FolderSupportMixin"]


class FolderSupportMixin(PinSessionMixin):
    """Mixin for folder lookups and count bookkeeping."""

    _repository: SnippetRepository
    _folder_counter: FolderCounter

    async def get_snippets_by_folder(self, folder_id: str | None) -> list[Snippet]:
        """Return snippets in *folder_id*, or those without a folder when None."""
        await self._require_access()
        if folder_id is not None:
            return await self._repository.search(None, SnippetFilters(folder_id=folder_id))
        return [item for item in await self._repository.get_all() if item.folder_id is None]

    async def move_snippet_to_folder(self, snippet_id: str, folder_id: str | None) -> Snippet:
        """Reassign a snippet to *folder_id* (None removes it from any folder)."""
        await self._require_access()
        current = await self._repository.get_by_id(snippet_id)
        if current is None:
            raise SnippetNotFoundError(snippet_id)
        if current.folder_id == folder_id:
            return current
        moved = await self._repository.update(snippet_id, SnippetUpdate(folder_id=folder_id))
        logger.debug(
            "Snippet moved between folders",
            extra={"snippet_id": snippet_id, "folder_id": folder_id},
        )
        await self._refresh_folder_counts((current.folder_id, folder_id))
        return moved

    async def _refresh_folder_counts(self, folder_ids: Iterable[str | None]) -> None:
        targets = {folder_id for folder_id in folder_ids if folder_id}
        if not targets:
            return
        counts = self._repository.count_by_folder(targets)
        for folder_id, count in counts.items():
            try:
                self._folder_counter.set_count(folder_id, count)
            except Exception:
                logger.warning(
                    "Unable to update folder snippet count",
                    extra={"folder_id": folder_id},
                    exc_info=True,
                )
