"""Lightweight integration checks for the main module and CLI handlers.

Updates:
  v0.2.0 - 2026-10-17 - Cover PIN administration handlers through dispatch.
  v0.1.0 - 2026-10-14 - Cover snippet commands, settings errors and help output.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from pytest import CaptureFixture, LogCaptureFixture, MonkeyPatch

import main
from cli.commands import COMMAND_SPECS, dispatch
from cli.parser import parse_args
from cli.runtime import setup_logging
from cli.utils import format_size

if TYPE_CHECKING:
    from conftest import ScriptedInteraction

    from core.snippet_manager import SnippetManager

_LOGGER = logging.getLogger("snippet_store.cli")


@pytest.fixture()
def cli_env(monkeypatch: MonkeyPatch, tmp_path: Path) -> Path:
    """Point the CLI at a throwaway store and vault."""
    monkeypatch.chdir(tmp_path)
    for name in ("CONFIG_JSON", "ENV_FILE"):
        monkeypatch.delenv(f"SNIPPET_STORE_{name}", raising=False)
    monkeypatch.setenv("SNIPPET_STORE_STORAGE_DIR", str(tmp_path / "store"))
    monkeypatch.setenv("SNIPPET_STORE_SECRETS_PATH", str(tmp_path / "vault.json"))
    monkeypatch.setenv("SNIPPET_STORE_SESSION_CHECK_INTERVAL_SECONDS", "3600")
    return tmp_path


def _created_id(output: str) -> str:
    line = next(item for item in output.splitlines() if item.startswith("Created snippet"))
    return line.rsplit("(", 1)[1].rstrip(")")


def test_no_command_prints_help(cli_env: Path, capsys: CaptureFixture[str]) -> None:
    """Running without a subcommand prints usage and exits cleanly."""
    assert main.main([]) == 0
    assert "usage: snippet-store" in capsys.readouterr().out


def test_print_settings_summary(cli_env: Path, capsys: CaptureFixture[str]) -> None:
    """--print-settings renders the resolved configuration."""
    assert main.main(["--print-settings"]) == 0

    output = capsys.readouterr().out
    assert "Snippet Store configuration" in output
    assert "Rate limit: 100 calls per 60 s per operation" in output
    assert "(missing - created on demand)" in output


def test_invalid_settings_exit_code(cli_env: Path, monkeypatch: MonkeyPatch) -> None:
    """Settings validation failures exit with code 2."""
    monkeypatch.setenv("SNIPPET_STORE_PIN_MAX_ATTEMPTS", "0")

    assert main.main(["list"]) == main.EXIT_SETTINGS_ERROR


def test_invalid_storage_path_exit_code(cli_env: Path, monkeypatch: MonkeyPatch) -> None:
    """A storage path failing the guard exits with code 3."""
    monkeypatch.setenv("SNIPPET_STORE_STORAGE_DIR", str(cli_env / ("a/" * 260)))

    assert main.main(["list"]) == main.EXIT_INIT_ERROR


def test_snippet_commands_round_trip(cli_env: Path, capsys: CaptureFixture[str]) -> None:
    """Add, list, show, search, favourite, stats and delete work end to end."""
    assert main.main(["list"]) == 0
    assert "No snippets stored." in capsys.readouterr().out

    assert (
        main.main(
            [
                "add",
                "--name",
                "React hook",
                "--body",
                "const [v, setV] = useState()",
                "--tag",
                "react",
                "--file-type",
                "tsx",
            ]
        )
        == 0
    )
    snippet_id = _created_id(capsys.readouterr().out)

    assert main.main(["show", snippet_id]) == 0
    detail = capsys.readouterr().out
    assert "Prefix: react-hook" in detail
    assert "    const [v, setV] = useState()" in detail

    assert main.main(["favorite", snippet_id]) == 0
    assert "added to favourites" in capsys.readouterr().out

    assert main.main(["search", "REACT", "--favorites"]) == 0
    assert snippet_id in capsys.readouterr().out

    assert main.main(["stats"]) == 0
    assert "Snippets: 1" in capsys.readouterr().out

    assert main.main(["delete", snippet_id]) == 0
    assert main.main(["show", snippet_id]) == 1


def test_add_rejects_dangerous_body(cli_env: Path) -> None:
    """Sanitizer failures map to exit code 1."""
    assert main.main(["add", "--name", "x", "--body", "javascript:alert(1)"]) == 1


def test_add_reads_body_file(cli_env: Path, capsys: CaptureFixture[str]) -> None:
    """--body-file loads the body from disk."""
    body_file = cli_env / "body.txt"
    body_file.write_text("print('hi')\n", encoding="utf-8")

    assert main.main(["add", "--name", "Hello", "--body-file", str(body_file)]) == 0
    assert main.main(["add", "--name", "Gone", "--body-file", str(cli_env / "nope.txt")]) == 1


def test_export_and_import_commands(cli_env: Path, capsys: CaptureFixture[str]) -> None:
    """Exported files can be imported with diagnostics for skipped entries."""
    main.main(["add", "--name", "Keep", "--body", "x"])
    export_path = cli_env / "export.json"
    assert main.main(["export", str(export_path)]) == 0

    records = json.loads(export_path.read_text(encoding="utf-8"))
    records.append({"name": 1})
    export_path.write_text(json.dumps(records), encoding="utf-8")
    capsys.readouterr()

    assert main.main(["import", str(export_path), "--clear"]) == 0
    output = capsys.readouterr().out
    assert "Imported 1 snippet(s); skipped 1." in output
    assert "Snippet at index 1: name is not a string" in output

    empty = cli_env / "empty.json"
    empty.write_text(json.dumps([{"name": 1}]), encoding="utf-8")
    assert main.main(["import", str(empty)]) == 1


def test_every_parser_command_has_a_handler() -> None:
    """Each subcommand maps to a registered handler."""
    for command in ("list", "stats", "pin-enable", "pin-disable"):
        assert parse_args([command]).command in COMMAND_SPECS


@pytest.mark.asyncio()
async def test_pin_enable_and_disable_handlers(
    manager: SnippetManager,
    interaction: ScriptedInteraction,
) -> None:
    """PIN handlers prompt, confirm and toggle protection."""
    await manager.initialize()
    interaction.texts.extend(["1234", "1234"])

    assert await dispatch(manager, parse_args(["pin-enable"]), _LOGGER) == 0
    assert manager.gate.enabled

    interaction.texts.append("0000")
    assert await dispatch(manager, parse_args(["pin-disable"]), _LOGGER) == 1
    interaction.texts.append("1234")
    assert await dispatch(manager, parse_args(["pin-disable"]), _LOGGER) == 0
    assert not manager.gate.enabled


@pytest.mark.asyncio()
async def test_pin_enable_rejects_mismatched_confirmation(
    manager: SnippetManager,
    interaction: ScriptedInteraction,
) -> None:
    """Different confirmation input leaves protection off."""
    await manager.initialize()
    interaction.texts.extend(["1234", "4321"])

    assert await dispatch(manager, parse_args(["pin-enable"]), _LOGGER) == 1
    assert not manager.gate.enabled


def test_setup_logging_falls_back_on_invalid_config(
    tmp_path: Path,
    caplog: LogCaptureFixture,
) -> None:
    """A broken logging config is reported and basic logging is used instead."""
    broken = tmp_path / "logging.conf"
    broken.write_text("[loggers]\nkeys=root\n", encoding="utf-8")

    with caplog.at_level("WARNING", logger="snippet_store.cli"):
        setup_logging(broken)

    assert "Ignoring invalid logging configuration" in caplog.text


@pytest.mark.parametrize(
    ("size", "expected"),
    [(0, "0 B"), (1536, "1.5 KB"), (5 * 1024 * 1024, "5.0 MB")],
)
def test_format_size(size: int, expected: str) -> None:
    """Sizes render with a short unit."""
    assert format_size(size) == expected
