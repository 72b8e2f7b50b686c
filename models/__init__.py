"""Data models for the snippet store.

Updates: v0.2.0 - 2026-10-16 - Export ImportResult and StoreStats.
Updates: v0.1.0 - 2026-10-12 - Export Snippet dataclass.
"""

from .snippet_model import (
    UNSET,
    WILDCARD_FILE_TYPE,
    ImportResult,
    Snippet,
    SnippetFilters,
    SnippetRequest,
    SnippetScope,
    SnippetUpdate,
    StoreStats,
    derive_prefix,
    new_snippet_id,
)

__all__ = [
    "ImportResult",
    "Snippet",
    "SnippetFilters",
    "SnippetRequest",
    "SnippetScope",
    "SnippetUpdate",
    "StoreStats",
    "UNSET",
    "WILDCARD_FILE_TYPE",
    "derive_prefix",
    "new_snippet_id",
]
