"""Tests for SnippetManager orchestration: gating, validation, folders and lifecycle.

Updates:
  v0.3.0 - 2026-10-18 - Cover PIN re-keying, update trimming and spent read budgets.
  v0.2.0 - 2026-10-16 - Cover import/export wrappers and interactive creation.
  v0.1.0 - 2026-10-15 - Cover gated CRUD, search filters and folder count refresh.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from pytest import LogCaptureFixture

from core.access_gate import AccessGate, SessionState
from core.collaborators import InteractionLevel
from core.exceptions import (
    AccessDeniedError,
    LockedOutError,
    RateLimitExceededError,
    SnippetNotFoundError,
    SnippetValidationError,
)
from core.rate_limiter import RateLimiter
from core.repository import SnippetRepository
from core.snippet_manager import SnippetManager
from models.snippet_model import SnippetRequest, SnippetUpdate

if TYPE_CHECKING:
    from conftest import FakeClock, RecordingFolderCounter, ScriptedInteraction

PIN = "2468"


def _request(name: str = "Console log", **overrides: object) -> SnippetRequest:
    values: dict[str, object] = {"name": name, "body": "console.log($1)"}
    values.update(overrides)
    return SnippetRequest(**values)  # type: ignore[arg-type]


@pytest.mark.asyncio()
async def test_create_snippet_normalises_and_stamps(
    manager: SnippetManager,
    clock: FakeClock,
) -> None:
    """New snippets get a fresh id, derived prefix, wildcard file type and clock timestamps."""
    await manager.initialize()

    created = await manager.create_snippet(_request("  Console Log  "))

    assert created.id
    assert created.name == "Console Log"
    assert created.prefix == "console-log"
    assert created.file_types == ["*"]
    assert created.created_at == clock()
    assert created.usage_count == 0
    assert await manager.get_snippet(created.id) == created


@pytest.mark.asyncio()
async def test_create_snippet_rejects_dangerous_body(manager: SnippetManager) -> None:
    """Sanitizer failures surface before anything is persisted."""
    await manager.initialize()

    with pytest.raises(SnippetValidationError) as excinfo:
        await manager.create_snippet(_request(body="javascript:alert(document.cookie)"))

    assert excinfo.value.field == "body"
    assert await manager.get_all_snippets() == []


@pytest.mark.asyncio()
async def test_search_matches_term_and_favourites(manager: SnippetManager) -> None:
    """Searching 'react' among favourites returns only the favourite React hook."""
    await manager.initialize()
    hook = await manager.create_snippet(_request("React hook", tags=["react"]))
    await manager.create_snippet(_request("React class", tags=["react"]))
    vue = await manager.create_snippet(_request("Vue setup", tags=["vue"]))
    await manager.toggle_favorite(hook.id)
    await manager.toggle_favorite(vue.id)

    results = await manager.search_snippets("react", favorites_only=True)

    assert [item.id for item in results] == [hook.id]
    assert len(await manager.search_snippets(tags=["react"])) == 2


@pytest.mark.asyncio()
async def test_file_type_lookup_includes_wildcards(manager: SnippetManager) -> None:
    """Wildcard snippets apply to every file type."""
    await manager.initialize()
    await manager.create_snippet(_request("Any"))
    await manager.create_snippet(_request("Python only", file_types=["py"]))
    await manager.create_snippet(_request("Go only", file_types=["go"]))

    names = sorted(item.name for item in await manager.get_snippets_for_file_type("py"))

    assert names == ["Any", "Python only"]


@pytest.mark.asyncio()
async def test_update_validates_and_handles_missing(manager: SnippetManager) -> None:
    """Updates are validated, and unknown ids raise SnippetNotFoundError."""
    await manager.initialize()
    created = await manager.create_snippet(_request())

    with pytest.raises(SnippetValidationError):
        await manager.update_snippet(created.id, SnippetUpdate(name="<b>bold</b>"))
    with pytest.raises(SnippetNotFoundError):
        await manager.update_snippet("missing", SnippetUpdate(name="x"))

    unchanged = await manager.update_snippet(created.id, SnippetUpdate())
    renamed = await manager.update_snippet(created.id, SnippetUpdate(description="Prints"))

    assert unchanged == created
    assert renamed.description == "Prints"


@pytest.mark.asyncio()
async def test_record_usage_and_stats(manager: SnippetManager) -> None:
    """Usage counts feed store statistics."""
    await manager.initialize()
    created = await manager.create_snippet(_request())
    await manager.record_usage(created.id)
    await manager.record_usage(created.id)
    await manager.record_usage("missing")

    stats = await manager.get_stats()

    assert stats.total_snippets == 1
    assert stats.total_usage == 2
    assert stats.storage_size > 0


@pytest.mark.asyncio()
async def test_delete_snippet_refreshes_folder_count(
    manager: SnippetManager,
    folder_counter: RecordingFolderCounter,
) -> None:
    """Deleting a foldered snippet reports the new folder size."""
    await manager.initialize()
    created = await manager.create_snippet(_request(folder_id="work"))
    assert folder_counter.counts == {"work": 1}

    await manager.delete_snippet(created.id)

    assert folder_counter.counts == {"work": 0}
    with pytest.raises(SnippetNotFoundError):
        await manager.delete_snippet(created.id)


@pytest.mark.asyncio()
async def test_move_between_folders_updates_both_counts(
    manager: SnippetManager,
    folder_counter: RecordingFolderCounter,
) -> None:
    """Moving a snippet refreshes the source and target folder counts."""
    await manager.initialize()
    first = await manager.create_snippet(_request("One", folder_id="a"))
    await manager.create_snippet(_request("Two", folder_id="a"))
    await manager.create_snippet(_request("Loose"))

    moved = await manager.move_snippet_to_folder(first.id, "b")

    assert moved.folder_id == "b"
    assert folder_counter.counts == {"a": 1, "b": 1}
    assert [item.name for item in await manager.get_snippets_by_folder("a")] == ["Two"]
    assert [item.name for item in await manager.get_snippets_by_folder(None)] == ["Loose"]

    calls_before = len(folder_counter.calls)
    await manager.move_snippet_to_folder(first.id, "b")
    assert len(folder_counter.calls) == calls_before


@pytest.mark.asyncio()
async def test_folder_counter_failure_is_logged_not_raised(
    manager: SnippetManager,
    folder_counter: RecordingFolderCounter,
    monkeypatch: pytest.MonkeyPatch,
    caplog: LogCaptureFixture,
) -> None:
    """A failing folder counter does not undo or fail the operation."""
    await manager.initialize()

    def _explode(folder_id: str, count: int) -> None:
        raise RuntimeError("sidebar gone")

    monkeypatch.setattr(folder_counter, "set_count", _explode)
    with caplog.at_level("WARNING", logger="snippet_store.manager"):
        created = await manager.create_snippet(_request(folder_id="work"))

    assert created.folder_id == "work"
    assert "Unable to update folder snippet count" in caplog.text


@pytest.mark.asyncio()
async def test_operations_require_pin_when_enabled(
    manager: SnippetManager,
    interaction: ScriptedInteraction,
) -> None:
    """With protection on and the session reset, a cancelled prompt blocks every call."""
    await manager.initialize()
    await manager.create_snippet(_request())
    code = await manager.enable_pin_protection(PIN)
    manager.reset_pin_session()

    assert manager.pin_state is SessionState.NEEDS_VERIFICATION
    message, level = interaction.notices[-1]
    assert code in message
    assert level is InteractionLevel.WARNING
    with pytest.raises(AccessDeniedError):
        await manager.get_all_snippets()
    assert await manager.check_access() is False

    interaction.texts.append(PIN)
    assert len(await manager.get_all_snippets()) == 1
    assert manager.pin_state is SessionState.UNLOCKED


@pytest.mark.asyncio()
async def test_pin_administration_round_trip(
    manager: SnippetManager,
    interaction: ScriptedInteraction,
) -> None:
    """Emergency reset installs a new PIN and disabling removes protection."""
    await manager.initialize()
    code = await manager.enable_pin_protection(PIN)

    next_code = await manager.reset_pin_with_emergency_code(code, "1357")
    await manager.disable_pin_protection("1357")

    assert next_code != code
    assert manager.pin_state is SessionState.DISABLED
    assert not manager.pin_status().enabled
    assert interaction.notices[-1] == ("PIN protection disabled.", InteractionLevel.INFO)


@pytest.mark.asyncio()
async def test_create_snippet_interactive_uses_prompts(
    manager: SnippetManager,
    interaction: ScriptedInteraction,
) -> None:
    """Interactive creation collects each field and falls back to the editor file type."""
    await manager.initialize()
    interaction.texts.extend(["Fetch JSON", "", "GET and parse", "http, json", ""])

    created = await manager.create_snippet_interactive("await fetch(url)", file_type="ts")

    assert created is not None
    assert created.prefix == "fetch-json"
    assert created.tags == ["http", "json"]
    assert created.file_types == ["ts"]
    assert created.description == "GET and parse"
    assert len(interaction.prompts) == 5


@pytest.mark.asyncio()
async def test_create_snippet_interactive_cancel_returns_none(
    manager: SnippetManager,
    interaction: ScriptedInteraction,
) -> None:
    """Cancelling any prompt abandons creation."""
    await manager.initialize()
    interaction.texts.extend(["Half done", "half"])

    assert await manager.create_snippet_interactive("body") is None
    assert await manager.get_all_snippets() == []


@pytest.mark.asyncio()
async def test_export_and_import_refresh_folder_counts(
    manager: SnippetManager,
    folder_counter: RecordingFolderCounter,
    tmp_path: Path,
) -> None:
    """Replacing the store through import recounts folders that lost members."""
    await manager.initialize()
    await manager.create_snippet(_request("Filed", folder_id="docs"))
    exported = await manager.export_snippets(tmp_path / "export.json")
    assert len(json.loads(exported.read_text(encoding="utf-8"))) == 1

    source = tmp_path / "in.json"
    source.write_text(
        json.dumps(
            [{"name": "New", "prefix": "new", "body": "x", "tags": [], "fileTypes": ["*"]}]
        ),
        encoding="utf-8",
    )
    result = await manager.import_snippets(source, clear_existing=True)

    assert result.imported_count == 1
    assert folder_counter.counts == {"docs": 0}
    assert [item.name for item in await manager.get_all_snippets()] == ["New"]


@pytest.mark.asyncio()
async def test_lifecycle_is_idempotent(
    manager: SnippetManager,
    storage_dir: Path,
) -> None:
    """Initialise and close may be called repeatedly and via async with."""
    async with manager as active:
        await active.initialize()
        assert storage_dir.is_dir()
    await manager.close()

    assert not manager.gate.monitoring


@pytest.mark.asyncio()
async def test_update_trims_fields_like_create(manager: SnippetManager) -> None:
    """Updates are trimmed and deduplicated before they are stored."""
    await manager.initialize()
    created = await manager.create_snippet(_request())

    updated = await manager.update_snippet(
        created.id,
        SnippetUpdate(
            name="  Renamed  ",
            description="   ",
            tags=[" js ", "js", ""],
            file_types=[" "],
        ),
    )

    assert updated.name == "Renamed"
    assert updated.description is None
    assert updated.tags == ["js"]
    assert updated.file_types == ["*"]
    assert await manager.get_snippet(created.id) == updated


@pytest.mark.asyncio()
async def test_folder_refresh_does_not_spend_read_budget(
    storage_dir: Path,
    gate: AccessGate,
    interaction: ScriptedInteraction,
    folder_counter: RecordingFolderCounter,
    clock: FakeClock,
) -> None:
    """A create succeeds and counts its folder even when get_all is exhausted."""
    repository = SnippetRepository(
        storage_dir,
        rate_limiter=RateLimiter(max_calls=1, clock=clock.timestamp),
        clock=clock,
    )
    manager = SnippetManager(
        repository,
        gate,
        interaction,
        folder_counter=folder_counter,
        clock=clock,
        monitor_sessions=False,
    )
    await manager.initialize()
    await repository.get_all()

    created = await manager.create_snippet(_request(folder_id="f1"))

    assert folder_counter.counts == {"f1": 1}
    stored = json.loads(repository.snapshot_path.read_text(encoding="utf-8"))
    assert [record["id"] for record in stored] == [created.id]
    with pytest.raises(RateLimitExceededError):
        await repository.get_all()


@pytest.mark.asyncio()
async def test_replacing_pin_requires_access(
    manager: SnippetManager,
    clock: FakeClock,
) -> None:
    """A locked-out caller cannot re-key; an unlocked one can."""
    await manager.initialize()
    await manager.enable_pin_protection(PIN)
    for _ in range(5):
        assert await manager.gate.verify_pin("0000") is False
    assert manager.pin_state is SessionState.LOCKED_OUT

    with pytest.raises(LockedOutError):
        await manager.enable_pin_protection("9999")

    clock.advance(minutes=15)
    assert await manager.gate.verify_pin("9999") is False
    assert await manager.gate.verify_pin(PIN) is True

    await manager.enable_pin_protection("9999")
    manager.reset_pin_session()
    assert await manager.gate.verify_pin("9999") is True
