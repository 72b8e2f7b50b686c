"""Pytest configuration for shared test fixtures and stub collaborators.

Updates:
  v0.2.0 - 2026-10-16 - Add scripted interaction and recording folder counter stubs.
  v0.1.0 - 2026-10-13 - Add controllable clock and repository fixtures.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from core.access_gate import AccessGate
from core.collaborators import InMemorySecretVault, InteractionLevel
from core.rate_limiter import RateLimiter
from core.repository import SnippetRepository
from core.snippet_manager import SnippetManager

TEST_HASH_ITERATIONS = 1_000


class FakeClock:
    """Manually advanced clock usable as a datetime or epoch-seconds source."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 5, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def timestamp(self) -> float:
        return self.now.timestamp()

    def advance(self, **delta: float) -> None:
        self.now = self.now + timedelta(**delta)


class ScriptedInteraction:
    """User interaction stub replaying queued answers; an empty queue means cancel."""

    def __init__(
        self,
        texts: Iterable[str | None] = (),
        choices: Iterable[str | None] = (),
    ) -> None:
        self.texts: deque[str | None] = deque(texts)
        self.choices: deque[str | None] = deque(choices)
        self.prompts: list[str] = []
        self.choice_prompts: list[tuple[str, list[str]]] = []
        self.notices: list[tuple[str, InteractionLevel]] = []
        self.validators: list[Callable[[str], str | None] | None] = []

    async def prompt_text(
        self,
        message: str,
        *,
        password: bool = False,
        validate: Callable[[str], str | None] | None = None,
    ) -> str | None:
        self.prompts.append(message)
        self.validators.append(validate)
        return self.texts.popleft() if self.texts else None

    async def choose(self, message: str, options: Sequence[str]) -> str | None:
        self.choice_prompts.append((message, list(options)))
        return self.choices.popleft() if self.choices else None

    async def notify(self, message: str, level: InteractionLevel = InteractionLevel.INFO) -> None:
        self.notices.append((message, level))


class RecordingFolderCounter:
    """Folder counter stub remembering the last count per folder."""

    def __init__(self) -> None:
        self.counts: dict[str, int] = {}
        self.calls: list[tuple[str, int]] = []

    def set_count(self, folder_id: str, count: int) -> None:
        self.counts[folder_id] = count
        self.calls.append((folder_id, count))


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def interaction() -> ScriptedInteraction:
    return ScriptedInteraction()


@pytest.fixture()
def vault() -> InMemorySecretVault:
    return InMemorySecretVault()


@pytest.fixture()
def folder_counter() -> RecordingFolderCounter:
    return RecordingFolderCounter()


@pytest.fixture()
def storage_dir(tmp_path: Path) -> Path:
    return tmp_path / "snippets"


@pytest.fixture()
def repository(storage_dir: Path, clock: FakeClock) -> SnippetRepository:
    limiter = RateLimiter(max_calls=10_000, clock=clock.timestamp)
    return SnippetRepository(storage_dir, rate_limiter=limiter, clock=clock)


@pytest.fixture()
def make_gate(
    vault: InMemorySecretVault,
    interaction: ScriptedInteraction,
    clock: FakeClock,
) -> Callable[..., AccessGate]:
    """Return a builder for gates sharing the test vault, interaction and clock."""

    def _build(**kwargs: Any) -> AccessGate:
        return AccessGate(
            vault,
            interaction,
            clock=clock,
            hash_iterations=TEST_HASH_ITERATIONS,
            **kwargs,
        )

    return _build


@pytest.fixture()
def gate(make_gate: Callable[..., AccessGate]) -> AccessGate:
    return make_gate()


@pytest.fixture()
def manager(
    repository: SnippetRepository,
    gate: AccessGate,
    interaction: ScriptedInteraction,
    folder_counter: RecordingFolderCounter,
    clock: FakeClock,
) -> SnippetManager:
    return SnippetManager(
        repository,
        gate,
        interaction,
        folder_counter=folder_counter,
        clock=clock,
        monitor_sessions=False,
    )
