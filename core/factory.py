"""Factories for constructing SnippetManager instances from validated settings.

Updates:
  v0.2.0 - 2026-10-16 - Wire rate limiter and import ceilings from settings.
  v0.1.0 - 2026-10-14 - Build repository, vault, access gate and manager from settings.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .access_gate import AccessGate
from .collaborators import ConsoleInteraction, FileSecretVault
from .rate_limiter import RateLimiter
from .repository import SnippetRepository
from .snippet_manager import SnippetManager

if TYPE_CHECKING:  # pragma: no cover - typing only
    from collections.abc import Callable
    from datetime import datetime

    from config import SnippetStoreSettings

    from .collaborators import FolderCounter, SecretVault, UserInteraction

factory_logger = logging.getLogger("snippet_store.factory")


def build_rate_limiter(settings: SnippetStoreSettings) -> RateLimiter:
    """Return a limiter sized from *settings*."""
    return RateLimiter(
        window_seconds=settings.rate_limit_window_seconds,
        max_calls=settings.rate_limit_max_calls,
    )


def build_snippet_manager(
    settings: SnippetStoreSettings,
    *,
    vault: SecretVault | None = None,
    interaction: UserInteraction | None = None,
    folder_counter: FolderCounter | None = None,
    rate_limiter: RateLimiter | None = None,
    clock: Callable[[], datetime] | None = None,
    monitor_sessions: bool = True,
) -> SnippetManager:
    """Return a SnippetManager wired according to *settings*.

    Collaborators default to the file-backed vault at ``settings.secrets_path``
    and console interaction. The returned manager still needs
    :meth:`SnippetManager.initialize`.

    Raises:
      ValueError: The configured storage directory fails the path guard.
    """
    resolved_interaction = interaction or ConsoleInteraction()
    repository = SnippetRepository(
        settings.storage_dir,
        rate_limiter=rate_limiter or build_rate_limiter(settings),
        clock=clock,
        import_max_bytes=settings.import_max_bytes,
        import_max_entries=settings.import_max_entries,
    )
    gate = AccessGate(
        vault or FileSecretVault(settings.secrets_path),
        resolved_interaction,
        clock=clock,
        session_minutes=settings.pin_session_minutes,
        max_attempts=settings.pin_max_attempts,
        lockout_minutes=settings.pin_lockout_minutes,
        check_interval_seconds=settings.session_check_interval_seconds,
    )
    factory_logger.debug(
        "Building snippet manager for %s (vault: %s)",
        settings.storage_dir,
        "custom" if vault is not None else settings.secrets_path,
    )
    return SnippetManager(
        repository,
        gate,
        resolved_interaction,
        folder_counter=folder_counter,
        clock=clock,
        monitor_sessions=monitor_sessions,
    )


__all__ = ["build_rate_limiter", "build_snippet_manager"]
