"""CLI command handlers for Snippet Store.

Handlers are coroutines receiving an initialised manager; they print results
to stdout and return a process exit code.

Updates:
  v0.2.0 - 2026-10-16 - Add import/export and PIN administration handlers.
  v0.1.0 - 2026-10-14 - Initial list/show/add/search/delete/favorite/stats handlers.
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from core.access_gate import pin_problem
from core.exceptions import NoValidRecordsError, SnippetStoreError
from models.snippet_model import SnippetRequest, SnippetScope

from .utils import format_size, format_snippet_detail, format_snippet_line, print_and_log

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from core.snippet_manager import SnippetManager
else:  # pragma: no cover - runtime placeholders for type-only imports
    SnippetManager = Any

CommandHandler = Callable[[SnippetManager, argparse.Namespace, logging.Logger], Awaitable[int]]

EXIT_OK = 0
EXIT_OPERATION_ERROR = 1


@dataclass(frozen=True)
class CommandSpec:
    """Metadata for dispatching CLI command handlers."""

    handler: CommandHandler
    description: str = ""


async def run_list(
    manager: SnippetManager,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    snippets = await manager.get_all_snippets()
    if not snippets:
        print("No snippets stored.")
        return EXIT_OK
    for snippet in sorted(snippets, key=lambda item: item.name.lower()):
        print(format_snippet_line(snippet))
    return EXIT_OK


async def run_show(
    manager: SnippetManager,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    snippet = await manager.get_snippet(str(args.snippet_id))
    print(format_snippet_detail(snippet))
    return EXIT_OK


async def run_add(
    manager: SnippetManager,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    if args.body_file is not None:
        try:
            body = args.body_file.expanduser().read_text(encoding="utf-8")
        except OSError as exc:
            logger.error("Unable to read %s: %s", args.body_file, exc)
            return EXIT_OPERATION_ERROR
    else:
        body = str(args.body)
    request = SnippetRequest(
        name=str(args.name),
        body=body,
        prefix=args.prefix,
        description=args.description,
        tags=list(args.tags),
        file_types=list(args.file_types),
        scope=SnippetScope.parse(args.scope),
        folder_id=args.folder_id,
    )
    created = await manager.create_snippet(request)
    print_and_log(logger, logging.INFO, f"Created snippet '{created.name}' ({created.id})")
    return EXIT_OK


async def run_search(
    manager: SnippetManager,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    results = await manager.search_snippets(
        args.term or None,
        tags=args.tags,
        file_types=args.file_types,
        favorites_only=bool(args.favorites),
        folder_id=args.folder_id,
    )
    if not results:
        print("No matching snippets.")
        return EXIT_OK
    for snippet in results:
        print(format_snippet_line(snippet))
    return EXIT_OK


async def run_delete(
    manager: SnippetManager,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    await manager.delete_snippet(str(args.snippet_id))
    print_and_log(logger, logging.INFO, f"Deleted snippet {args.snippet_id}")
    return EXIT_OK


async def run_favorite(
    manager: SnippetManager,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    snippet = await manager.toggle_favorite(str(args.snippet_id))
    state = "added to" if snippet.is_favorite else "removed from"
    print(f"'{snippet.name}' {state} favourites.")
    return EXIT_OK


async def run_stats(
    manager: SnippetManager,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    stats = await manager.get_stats()
    print(f"Snippets: {stats.total_snippets}")
    print(f"Total usage: {stats.total_usage}")
    print(f"Storage size: {format_size(stats.storage_size)}")
    return EXIT_OK


async def run_export(
    manager: SnippetManager,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    destination = await manager.export_snippets(args.path)
    print_and_log(logger, logging.INFO, f"Exported snippets to {destination}")
    return EXIT_OK


async def run_import(
    manager: SnippetManager,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    try:
        result = await manager.import_snippets(args.path, clear_existing=bool(args.clear))
    except NoValidRecordsError as exc:
        logger.error("%s", exc)
        for line in exc.diagnostics:
            print(f"  {line}")
        return EXIT_OPERATION_ERROR
    print(f"Imported {result.imported_count} snippet(s); skipped {result.skipped_count}.")
    for line in result.diagnostics:
        print(f"  {line}")
    return EXIT_OK


async def _prompt_pin(manager: SnippetManager, message: str) -> str | None:
    interaction = manager.interaction
    return await interaction.prompt_text(message, password=True, validate=pin_problem)


async def run_pin_enable(
    manager: SnippetManager,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    if manager.gate.enabled:
        await manager.authorize()
    pin = await _prompt_pin(manager, "Enter new PIN (4-8 digits)")
    if pin is None:
        print("Cancelled.")
        return EXIT_OPERATION_ERROR
    confirmation = await _prompt_pin(manager, "Confirm PIN")
    if confirmation != pin:
        logger.error("PIN entries do not match")
        return EXIT_OPERATION_ERROR
    await manager.enable_pin_protection(pin)
    return EXIT_OK


async def run_pin_disable(
    manager: SnippetManager,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    if not manager.gate.enabled:
        print("PIN protection is not enabled.")
        return EXIT_OK
    pin = await _prompt_pin(manager, "Enter current PIN")
    if pin is None:
        print("Cancelled.")
        return EXIT_OPERATION_ERROR
    await manager.disable_pin_protection(pin)
    return EXIT_OK


COMMAND_SPECS: dict[str, CommandSpec] = {
    "list": CommandSpec(run_list, "List snippets"),
    "show": CommandSpec(run_show, "Show a snippet"),
    "add": CommandSpec(run_add, "Create a snippet"),
    "search": CommandSpec(run_search, "Search snippets"),
    "delete": CommandSpec(run_delete, "Delete a snippet"),
    "favorite": CommandSpec(run_favorite, "Toggle favourite"),
    "stats": CommandSpec(run_stats, "Store statistics"),
    "export": CommandSpec(run_export, "Export snippets"),
    "import": CommandSpec(run_import, "Import snippets"),
    "pin-enable": CommandSpec(run_pin_enable, "Enable PIN protection"),
    "pin-disable": CommandSpec(run_pin_disable, "Disable PIN protection"),
}


async def dispatch(
    manager: SnippetManager,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    """Run the handler registered for ``args.command``."""
    spec = COMMAND_SPECS.get(str(args.command))
    if spec is None:
        logger.error("Unknown command: %s", args.command)
        return EXIT_OPERATION_ERROR
    try:
        return await spec.handler(manager, args, logger)
    except SnippetStoreError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return EXIT_OPERATION_ERROR


__all__ = ["COMMAND_SPECS", "CommandSpec", "dispatch"]
