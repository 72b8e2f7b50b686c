"""Application entry point for Snippet Store.

Updates:
  v0.2.0 - 2026-10-16 - Run commands inside a single event loop and close the manager.
  v0.1.0 - 2026-10-14 - Wire settings, logging and CLI commands.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from cli.commands import dispatch
from cli.parser import build_parser
from cli.runtime import setup_logging
from cli.settings_summary import print_settings_summary
from config import SettingsError, load_settings
from core.exceptions import SnippetStoreError
from core.factory import build_snippet_manager

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    import argparse
    from collections.abc import Sequence

    from config import SnippetStoreSettings

EXIT_SETTINGS_ERROR = 2
EXIT_INIT_ERROR = 3


async def _run_command(
    settings: SnippetStoreSettings,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    try:
        manager = build_snippet_manager(settings)
        await manager.initialize()
    except (SnippetStoreError, ValueError) as exc:
        logger.error("Failed to initialise snippet store: %s", exc)
        return EXIT_INIT_ERROR
    try:
        return await dispatch(manager, args, logger)
    finally:
        await manager.close()


def main(argv: Sequence[str] | None = None) -> int:
    """Entrypoint that wires settings, services, and CLI commands."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.logging_config)

    logger = logging.getLogger("snippet_store.main")
    try:
        settings = load_settings()
    except SettingsError as exc:
        logger.error("Failed to load settings: %s", exc)
        return EXIT_SETTINGS_ERROR

    if args.print_settings:
        print_settings_summary(settings)
        return 0

    if args.command is None:
        parser.print_help()
        return 0

    return asyncio.run(_run_command(settings, args, logger))


if __name__ == "__main__":
    raise SystemExit(main())
