"""Runtime boot helpers for Snippet Store CLI.

Updates:
  v0.1.0 - 2026-10-14 - Logging configuration helper with basicConfig fallback.
"""

from __future__ import annotations

import logging
import logging.config
from configparser import Error as ConfigParserError
from pathlib import Path


def setup_logging(logging_conf_path: Path | None) -> None:
    """Configure logging using *logging_conf_path* when available."""
    path = logging_conf_path or Path("config/logging.conf")
    failure: Exception | None = None
    if path.exists():
        try:
            logging.config.fileConfig(path, disable_existing_loggers=False)
            return
        except (ConfigParserError, KeyError, ValueError, OSError) as exc:
            failure = exc
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if failure is not None:
        logging.getLogger("snippet_store.cli").warning(
            "Ignoring invalid logging configuration %s: %s", path, failure
        )
