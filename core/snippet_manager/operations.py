"""Gated snippet workflows for Snippet Manager.

Every public call first passes the PIN gate, then runs the sanitizer on any
incoming fields, then delegates to the repository (which applies the rate
limiter and persists).

Updates:
  v0.4.0 - 2026-10-18 - Trim and dedupe update fields before validation.
  v0.3.0 - 2026-10-16 - Add export/import wrappers that refresh folder counts.
  v0.2.0 - 2026-10-15 - Add interactive creation with per-field prompt validators.
  v0.1.0 - 2026-10-14 - Extract snippet CRUD and search APIs into mixin.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from models.snippet_model import (
    WILDCARD_FILE_TYPE,
    Snippet,
    SnippetFilters,
    SnippetRequest,
    SnippetUpdate,
    derive_prefix,
)

from ..exceptions import SnippetNotFoundError
from ..sanitizer import (
    parse_list_input,
    prompt_validator,
    validate_request,
    validate_update,
)
from .folders import FolderSupportMixin

if TYPE_CHECKING:  # pragma: no cover - typing only
    from collections.abc import Callable, Sequence
    from datetime import datetime
    from pathlib import Path

    from models.snippet_model import ImportResult, StoreStats

logger = logging.getLogger("snippet_store.manager")

__all__ = ["SnippetOperationsMixin"]


def _optional(validator: Callable[[str], str | None]) -> Callable[[str], str | None]:
    """Accept blank input, otherwise defer to *validator*."""

    def _check(value: str) -> str | None:
        if not value.strip():
            return None
        return validator(value)

    return _check


class SnippetOperationsMixin(FolderSupportMixin):
    """Mixin exposing snippet CRUD, search and transfer behind the PIN gate."""

    _clock: Callable[[], datetime]

    async def create_snippet(self, request: SnippetRequest) -> Snippet:
        """Validate *request* and persist it as a new snippet."""
        await self._require_access()
        normalised = request.normalised()
        validate_request(normalised)
        now = self._clock()
        snippet = Snippet(
            id=self._repository.new_id(),
            name=normalised.name,
            prefix=normalised.prefix or derive_prefix(normalised.name),
            body=normalised.body,
            description=normalised.description,
            tags=list(normalised.tags),
            file_types=list(normalised.file_types),
            scope=normalised.scope,
            folder_id=normalised.folder_id,
            created_at=now,
            updated_at=now,
        )
        created = await self._repository.create(snippet)
        logger.info("Snippet created", extra={"snippet_id": created.id})
        await self._refresh_folder_counts((created.folder_id,))
        return created

    async def create_snippet_interactive(
        self,
        body: str,
        file_type: str | None = None,
    ) -> Snippet | None:
        """Prompt for the remaining fields of a snippet wrapping *body*.

        Returns None when the user cancels any prompt.
        """
        await self._require_access()
        name = await self._interaction.prompt_text(
            "Snippet name", validate=prompt_validator("name")
        )
        if name is None:
            return None
        suggested = derive_prefix(name)
        prefix = await self._interaction.prompt_text(
            f"Snippet prefix (blank for '{suggested}')",
            validate=_optional(prompt_validator("prefix")),
        )
        if prefix is None:
            return None
        description = await self._interaction.prompt_text(
            "Description (optional)", validate=prompt_validator("description")
        )
        if description is None:
            return None
        tags = await self._interaction.prompt_text(
            "Tags, comma separated (optional)", validate=prompt_validator("tags")
        )
        if tags is None:
            return None
        default_types = file_type or WILDCARD_FILE_TYPE
        file_types = await self._interaction.prompt_text(
            f"File types, comma separated (blank for '{default_types}')",
            validate=_optional(prompt_validator("file_types")),
        )
        if file_types is None:
            return None
        request = SnippetRequest(
            name=name,
            body=body,
            prefix=prefix or None,
            description=description or None,
            tags=parse_list_input(tags),
            file_types=parse_list_input(file_types) or [default_types],
        )
        return await self.create_snippet(request)

    async def get_snippet(self, snippet_id: str) -> Snippet:
        """Return a snippet or raise :class:`SnippetNotFoundError`."""
        await self._require_access()
        snippet = await self._repository.get_by_id(snippet_id)
        if snippet is None:
            raise SnippetNotFoundError(snippet_id)
        return snippet

    async def get_all_snippets(self) -> list[Snippet]:
        """Return every stored snippet."""
        await self._require_access()
        return await self._repository.get_all()

    async def update_snippet(self, snippet_id: str, update: SnippetUpdate) -> Snippet:
        """Validate and merge *update* into an existing snippet."""
        await self._require_access()
        update = update.normalised()
        validate_update(update)
        current = await self._repository.get_by_id(snippet_id)
        if current is None:
            raise SnippetNotFoundError(snippet_id)
        if update.is_empty():
            return current
        updated = await self._repository.update(snippet_id, update)
        logger.debug("Snippet updated", extra={"snippet_id": snippet_id})
        if updated.folder_id != current.folder_id:
            await self._refresh_folder_counts((current.folder_id, updated.folder_id))
        return updated

    async def delete_snippet(self, snippet_id: str) -> None:
        """Remove a snippet."""
        await self._require_access()
        current = await self._repository.get_by_id(snippet_id)
        if current is None:
            raise SnippetNotFoundError(snippet_id)
        await self._repository.delete(snippet_id)
        logger.info("Snippet deleted", extra={"snippet_id": snippet_id})
        await self._refresh_folder_counts((current.folder_id,))

    async def record_usage(self, snippet_id: str) -> None:
        """Count one insertion of a snippet; unknown ids are ignored."""
        await self._require_access()
        await self._repository.increment_usage(snippet_id)

    async def toggle_favorite(self, snippet_id: str) -> Snippet:
        """Flip the favourite flag of a snippet."""
        await self._require_access()
        current = await self._repository.get_by_id(snippet_id)
        if current is None:
            raise SnippetNotFoundError(snippet_id)
        return await self._repository.update(
            snippet_id, SnippetUpdate(is_favorite=not current.is_favorite)
        )

    async def search_snippets(
        self,
        term: str | None = None,
        *,
        tags: Sequence[str] = (),
        file_types: Sequence[str] = (),
        favorites_only: bool = False,
        folder_id: str | None = None,
    ) -> list[Snippet]:
        """Case-insensitive search intersected with the supplied filters."""
        await self._require_access()
        filters = SnippetFilters(
            tags=tuple(tags),
            file_types=tuple(file_types),
            favorites_only=favorites_only,
            folder_id=folder_id,
        )
        return await self._repository.search(term, filters)

    async def get_snippets_for_file_type(self, file_type: str) -> list[Snippet]:
        """Return snippets applicable to *file_type*, wildcard entries included."""
        await self._require_access()
        return [
            snippet
            for snippet in await self._repository.get_all()
            if snippet.matches_file_type(file_type)
        ]

    async def get_stats(self) -> StoreStats:
        """Return store-wide counts and the snapshot size."""
        await self._require_access()
        return await self._repository.stats()

    async def export_snippets(self, destination: Path | str) -> Path:
        """Write all snippets to *destination*."""
        await self._require_access()
        return await self._repository.export_all(destination)

    async def import_snippets(
        self,
        source: Path | str,
        *,
        clear_existing: bool = False,
    ) -> ImportResult:
        """Import snippets from *source*, optionally replacing the current set."""
        await self._require_access()
        previous = await self._repository.get_all() if clear_existing else []
        result = await self._repository.import_all(source, clear_existing=clear_existing)
        affected = {snippet.folder_id for snippet in previous}
        affected.update(snippet.folder_id for snippet in result.imported)
        await self._refresh_folder_counts(affected)
        return result
