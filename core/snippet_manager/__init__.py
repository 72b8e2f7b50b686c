"""Snippet Manager façade and orchestration layer.

The manager owns one repository and one access gate per storage location. It
sequences the PIN check before each repository call and owns the lifecycle of
the gate's background expiry sweep.

Updates:
  v0.2.0 - 2026-10-16 - Add async context manager support and idempotent close.
  v0.1.0 - 2026-10-14 - Compose session, folder and operation mixins.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..collaborators import NullFolderCounter
from ..repository.base import utc_now
from .operations import SnippetOperationsMixin

if TYPE_CHECKING:  # pragma: no cover - typing only
    from collections.abc import Callable
    from datetime import datetime
    from types import TracebackType

    from ..access_gate import AccessGate
    from ..collaborators import FolderCounter, UserInteraction
    from ..repository import SnippetRepository

logger = logging.getLogger("snippet_store.manager")

__all__ = ["SnippetManager"]


class SnippetManager(SnippetOperationsMixin):
    """Gate, validate and persist snippets for a single local user."""

    def __init__(
        self,
        repository: SnippetRepository,
        gate: AccessGate,
        interaction: UserInteraction,
        *,
        folder_counter: FolderCounter | None = None,
        clock: Callable[[], datetime] | None = None,
        monitor_sessions: bool = True,
    ) -> None:
        """Wire collaborators; call :meth:`initialize` before use.

        Args:
            repository: Snapshot repository holding the snippets.
            gate: PIN gate consulted before every snippet operation.
            interaction: Prompt and notification surface for the user.
            folder_counter: Receiver for folder membership counts.
            clock: Timestamp source for new snippets.
            monitor_sessions: Start the PIN expiry sweep during initialisation.
        """
        self._repository = repository
        self._gate = gate
        self._interaction = interaction
        self._folder_counter = folder_counter or NullFolderCounter()
        self._clock = clock or utc_now
        self._monitor_sessions = monitor_sessions
        self._initialised = False
        self._closed = False

    @property
    def repository(self) -> SnippetRepository:
        """Underlying snapshot repository."""
        return self._repository

    @property
    def gate(self) -> AccessGate:
        """PIN gate guarding this manager."""
        return self._gate

    @property
    def interaction(self) -> UserInteraction:
        """Prompt and notification surface."""
        return self._interaction

    async def initialize(self) -> None:
        """Load snippets, restore PIN state and start the expiry sweep."""
        if self._initialised:
            return
        await self._repository.initialize()
        await self._gate.initialize()
        if self._monitor_sessions:
            self._gate.start_expiry_monitor()
        self._initialised = True
        self._closed = False
        logger.debug("Snippet manager initialised at %s", self._repository.storage_dir)

    async def close(self) -> None:
        """Stop background work; safe to call more than once."""
        if self._closed:
            return
        await self._gate.close()
        self._closed = True
        self._initialised = False
        logger.debug("Snippet manager closed")

    async def __aenter__(self) -> SnippetManager:
        await self.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.close()
