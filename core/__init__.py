"""Core service layer for Snippet Store.

Updates:
  v0.2.0 - 2026-10-16 - Export access gate, collaborators and factory helpers.
  v0.1.0 - 2026-10-12 - Surface SnippetRepository, sanitizer and rate limiter.
"""

from models.snippet_model import Snippet, SnippetRequest, SnippetUpdate

from .access_gate import AccessGate, AccessSession, SessionState
from .collaborators import (
    ConsoleInteraction,
    FileSecretVault,
    FolderCounter,
    InMemorySecretVault,
    InteractionLevel,
    NullFolderCounter,
    SecretVault,
    UserInteraction,
)
from .exceptions import (
    AccessDeniedError,
    ImportRejectedError,
    LockedOutError,
    NoValidRecordsError,
    RateLimitExceededError,
    SnippetNotFoundError,
    SnippetStorageError,
    SnippetStoreError,
    SnippetValidationError,
)
from .factory import build_rate_limiter, build_snippet_manager
from .rate_limiter import RateLimiter, RateLimitEntry
from .repository import SnippetRepository
from .snippet_manager import SnippetManager

__all__ = [
    "AccessDeniedError",
    "AccessGate",
    "AccessSession",
    "ConsoleInteraction",
    "FileSecretVault",
    "FolderCounter",
    "ImportRejectedError",
    "InMemorySecretVault",
    "InteractionLevel",
    "LockedOutError",
    "NoValidRecordsError",
    "NullFolderCounter",
    "RateLimitEntry",
    "RateLimitExceededError",
    "RateLimiter",
    "SecretVault",
    "SessionState",
    "Snippet",
    "SnippetManager",
    "SnippetNotFoundError",
    "SnippetRepository",
    "SnippetRequest",
    "SnippetStorageError",
    "SnippetStoreError",
    "SnippetUpdate",
    "SnippetValidationError",
    "UserInteraction",
    "build_rate_limiter",
    "build_snippet_manager",
]
