"""Printable summaries for Snippet Store configuration.

Updates:
  v0.1.0 - 2026-10-14 - Render storage, vault and PIN session settings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .utils import describe_path

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from config import SnippetStoreSettings


def print_settings_summary(settings: SnippetStoreSettings) -> None:
    """Emit a readable summary of core configuration and path checks."""
    lines = [
        "Snippet Store configuration",
        "---------------------------",
        "Storage directory: "
        + describe_path(settings.storage_dir, expect_directory=True),
        "Secret vault: "
        + describe_path(settings.secrets_path, expect_directory=False, allow_missing_file=True),
        f"PIN session: {settings.pin_session_minutes:g} min",
        (
            f"PIN lockout: {settings.pin_max_attempts} attempts, "
            f"{settings.pin_lockout_minutes:g} min"
        ),
        f"Session check interval: {settings.session_check_interval_seconds:g} s",
        (
            f"Rate limit: {settings.rate_limit_max_calls} calls per "
            f"{settings.rate_limit_window_seconds:g} s per operation"
        ),
        (
            f"Import ceilings: {settings.import_max_bytes} bytes, "
            f"{settings.import_max_entries} entries"
        ),
    ]
    print("\n".join(lines))
