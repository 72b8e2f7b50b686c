"""Shared CLI utility functions for Snippet Store commands.

Updates:
  v0.1.0 - 2026-10-14 - Output, path description and snippet formatting helpers.
"""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from logging import Logger

    from models.snippet_model import Snippet
else:  # pragma: no cover - runtime placeholders for type-only imports
    Logger = Snippet = Any


def print_and_log(logger: Logger, level: int, message: str) -> None:
    """Log *message* at *level* and mirror it to stdout."""
    logger.log(level, message)
    print(message)


def describe_path(
    path_value: object,
    *,
    expect_directory: bool,
    allow_missing_file: bool = False,
) -> str:
    """Return a human-friendly description of *path_value* suitability."""
    try:
        path = Path(path_value) if path_value is not None else None
    except TypeError:
        path = None
    if path is None:
        return "not set"

    resolved = path.expanduser()
    if resolved.exists():
        if expect_directory and not resolved.is_dir():
            return f"{resolved} (exists but is not a directory)"
        if not expect_directory and resolved.is_dir():
            return f"{resolved} (exists but is a directory)"
        return f"{resolved} (exists)"

    message = f"{resolved} (missing)"
    if not expect_directory and allow_missing_file:
        message = f"{resolved} (missing - created on demand)"
    parent = resolved.parent
    if not parent.exists():
        message += f", parent missing: {parent}"
    return message


def format_size(num_bytes: int) -> str:
    """Return *num_bytes* as a short human-readable size."""
    size = float(num_bytes)
    for unit in ("B", "KB", "MB"):
        if size < 1024 or unit == "MB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} MB"


def format_snippet_line(snippet: Snippet) -> str:
    """Return a one-line listing entry for *snippet*."""
    star = "*" if snippet.is_favorite else " "
    tags = f" [{', '.join(snippet.tags)}]" if snippet.tags else ""
    return f"{star} {snippet.prefix:<20} {snippet.name} ({snippet.id}){tags}"


def format_snippet_detail(snippet: Snippet) -> str:
    """Return a multi-line description of *snippet* including its body."""
    lines = [
        f"Name: {snippet.name}",
        f"Id: {snippet.id}",
        f"Prefix: {snippet.prefix}",
        f"Scope: {snippet.scope.value}",
        f"File types: {', '.join(snippet.file_types) or '-'}",
        f"Tags: {', '.join(snippet.tags) or '-'}",
        f"Favourite: {'yes' if snippet.is_favorite else 'no'}",
        f"Usage: {snippet.usage_count}",
        f"Updated: {snippet.updated_at.isoformat()}",
    ]
    if snippet.description:
        lines.append(f"Description: {snippet.description}")
    if snippet.folder_id:
        lines.append(f"Folder: {snippet.folder_id}")
    lines.append("")
    lines.append(textwrap.indent(snippet.body, "    "))
    return "\n".join(lines)
