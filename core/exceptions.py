"""Common exception classes for core package.

All exceptions ultimately inherit from :class:`SnippetStoreError`, allowing
callers to catch a single base class for any store-related failure while
still distinguishing individual error categories when needed.

Updates:
  v0.3.0 - 2026-10-16 - Add NoValidRecordsError carrying per-entry diagnostics.
  v0.2.0 - 2026-10-14 - Add access gate hierarchy with lockout remaining time.
  v0.1.0 - 2026-10-12 - Created module.
"""

from __future__ import annotations

from collections.abc import Sequence


class SnippetStoreError(Exception):
    """Base exception for snippet store failures."""


class SnippetValidationError(SnippetStoreError):
    """Raised when a field fails sanitizer rules."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(reason)
        self.field = field
        self.reason = reason


class SnippetNotFoundError(SnippetStoreError):
    """Raised when a snippet cannot be located in the backing store."""

    def __init__(self, snippet_id: str) -> None:
        super().__init__(f"Snippet with id {snippet_id} not found")
        self.snippet_id = snippet_id


class RateLimitExceededError(SnippetStoreError):
    """Raised when an operation exceeds its calls-per-window allowance."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"Rate limit exceeded for '{operation}'. Please try again later.")
        self.operation = operation


class SnippetStorageError(SnippetStoreError):
    """Raised when reading or writing the snapshot files fails."""


class AccessDeniedError(SnippetStoreError):
    """Raised when the PIN gate refuses access."""


class LockedOutError(AccessDeniedError):
    """Raised while PIN entry is locked after repeated failures."""

    def __init__(self, remaining_minutes: int) -> None:
        super().__init__(f"Access is locked. Try again in {remaining_minutes} minutes.")
        self.remaining_minutes = remaining_minutes


class ImportRejectedError(SnippetStoreError):
    """Raised when a bulk import is rejected as a whole."""


class NoValidRecordsError(ImportRejectedError):
    """Raised when no entry of an import survives validation."""

    def __init__(self, diagnostics: Sequence[str]) -> None:
        super().__init__("No valid snippets found in file.")
        self.diagnostics = list(diagnostics)
