"""Argument parser for Snippet Store CLI.

Updates:
  v0.2.0 - 2026-10-16 - Add import/export and PIN administration commands.
  v0.1.0 - 2026-10-14 - Initial snippet CRUD and search subcommands.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from collections.abc import Sequence


def build_parser() -> argparse.ArgumentParser:
    """Return the configured argument parser."""
    parser = argparse.ArgumentParser(
        prog="snippet-store",
        description="Local, PIN-protected snippet store",
    )
    parser.add_argument(
        "--logging-config",
        type=Path,
        default=None,
        help="Path to logging configuration file (INI format)",
    )
    parser.add_argument(
        "--print-settings",
        action="store_true",
        help="Print resolved settings and exit",
    )

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("list", help="List every stored snippet.")

    show_parser = subparsers.add_parser("show", help="Display one snippet in full.")
    show_parser.add_argument("snippet_id", type=str, help="Snippet identifier.")

    add_parser = subparsers.add_parser("add", help="Create a snippet.")
    add_parser.add_argument("--name", required=True, help="Display name.")
    add_parser.add_argument(
        "--prefix",
        default=None,
        help="Shortcut prefix (derived from the name when omitted).",
    )
    body_group = add_parser.add_mutually_exclusive_group(required=True)
    body_group.add_argument("--body", default=None, help="Snippet body text.")
    body_group.add_argument(
        "--body-file",
        type=Path,
        default=None,
        help="UTF-8 text file whose contents become the body.",
    )
    add_parser.add_argument("--description", default=None, help="Optional description.")
    add_parser.add_argument(
        "--tag",
        dest="tags",
        action="append",
        default=[],
        help="Tag to attach (repeatable).",
    )
    add_parser.add_argument(
        "--file-type",
        dest="file_types",
        action="append",
        default=[],
        help="File type the snippet applies to (repeatable; defaults to '*').",
    )
    add_parser.add_argument(
        "--scope",
        choices=("global", "workspace", "project"),
        default="global",
        help="Advisory scope (default: global).",
    )
    add_parser.add_argument("--folder", dest="folder_id", default=None, help="Folder id.")

    search_parser = subparsers.add_parser("search", help="Search snippets.")
    search_parser.add_argument("term", nargs="?", default="", help="Case-insensitive term.")
    search_parser.add_argument(
        "--tag",
        dest="tags",
        action="append",
        default=[],
        help="Require any of these tags (repeatable).",
    )
    search_parser.add_argument(
        "--file-type",
        dest="file_types",
        action="append",
        default=[],
        help="Require any of these file types (repeatable).",
    )
    search_parser.add_argument(
        "--favorites",
        action="store_true",
        help="Only return favourite snippets.",
    )
    search_parser.add_argument("--folder", dest="folder_id", default=None, help="Folder id.")

    delete_parser = subparsers.add_parser("delete", help="Delete a snippet.")
    delete_parser.add_argument("snippet_id", type=str, help="Snippet identifier.")

    favorite_parser = subparsers.add_parser("favorite", help="Toggle a snippet's favourite flag.")
    favorite_parser.add_argument("snippet_id", type=str, help="Snippet identifier.")

    subparsers.add_parser("stats", help="Show store statistics.")

    export_parser = subparsers.add_parser("export", help="Export all snippets to JSON.")
    export_parser.add_argument("path", type=Path, help="Destination file path.")

    import_parser = subparsers.add_parser("import", help="Import snippets from JSON.")
    import_parser.add_argument("path", type=Path, help="Source file path.")
    import_parser.add_argument(
        "--clear",
        action="store_true",
        help="Replace existing snippets once at least one entry validates.",
    )

    subparsers.add_parser("pin-enable", help="Enable PIN protection.")
    subparsers.add_parser("pin-disable", help="Disable PIN protection.")

    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Return parsed CLI arguments for the Snippet Store launcher."""
    return build_parser().parse_args(argv)
