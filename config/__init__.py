"""Configuration helpers for Snippet Store.

Updates: v0.1.1 - 2026-10-16 - Expose default storage and import ceiling constants.
Updates: v0.1.0 - 2026-10-13 - Expose settings loader and configuration error types.
"""

from .settings import (
    DEFAULT_IMPORT_MAX_BYTES,
    DEFAULT_IMPORT_MAX_ENTRIES,
    DEFAULT_SECRETS_PATH,
    DEFAULT_STORAGE_DIR,
    SettingsError,
    SnippetStoreSettings,
    load_settings,
)

__all__ = [
    "DEFAULT_IMPORT_MAX_BYTES",
    "DEFAULT_IMPORT_MAX_ENTRIES",
    "DEFAULT_SECRETS_PATH",
    "DEFAULT_STORAGE_DIR",
    "SettingsError",
    "SnippetStoreSettings",
    "load_settings",
]
