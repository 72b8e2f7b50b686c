"""Interfaces for services the snippet store consumes but does not own.

Three collaborators are injected into the manager and access gate: a secret
vault for PIN material, a user-interaction surface for prompts and choices,
and a folder counter refreshed after folder membership changes.

Updates:
  v0.2.0 - 2026-10-15 - Add FileSecretVault with owner-only permissions.
  v0.1.0 - 2026-10-13 - Introduce collaborator protocols and console interaction.
"""

from __future__ import annotations

import asyncio
import getpass
import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, cast

from .exceptions import SnippetStorageError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

logger = logging.getLogger("snippet_store.collaborators")


class InteractionLevel(str, Enum):
    """Severity of a message surfaced to the user."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class SecretVault(Protocol):
    """Opaque key/value storage for credentials; values never sit next to snippet data."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class UserInteraction(Protocol):
    """Blocking prompts and notices presented to the user.

    ``prompt_text`` and ``choose`` return ``None`` when the user cancels.
    """

    async def prompt_text(
        self,
        message: str,
        *,
        password: bool = False,
        validate: Callable[[str], str | None] | None = None,
    ) -> str | None: ...

    async def choose(self, message: str, options: Sequence[str]) -> str | None: ...

    async def notify(
        self, message: str, level: InteractionLevel = InteractionLevel.INFO
    ) -> None: ...


class FolderCounter(Protocol):
    """External folder bookkeeping that only needs membership counts."""

    def set_count(self, folder_id: str, count: int) -> None: ...


class InMemorySecretVault:
    """Process-local vault, mostly useful for tests and throwaway sessions."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        """Return a copy of the stored values."""
        return dict(self._values)


class FileSecretVault:
    """JSON-file vault written with owner-only permissions.

    The file is rewritten on every change; keep it outside the snippet
    storage directory so exports and backups never pick it up.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path).expanduser()
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        """Location of the vault file."""
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            payload: object = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise SnippetStorageError(f"Unable to read secret vault {self._path}") from exc
        if not isinstance(payload, dict):
            raise SnippetStorageError(f"Secret vault {self._path} is not a JSON object")
        data = cast("dict[str, object]", payload)
        return {str(key): str(value) for key, value in data.items()}

    def _write(self, values: Mapping[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._path.with_name(f"{self._path.name}.tmp")
        fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(dict(values), handle, indent=2, sort_keys=True)
        os.replace(temp_path, self._path)

    async def get(self, key: str) -> str | None:
        values = await asyncio.to_thread(self._read)
        return values.get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            values = await asyncio.to_thread(self._read)
            values[key] = value
            await self._write_async(values)

    async def delete(self, key: str) -> None:
        async with self._lock:
            values = await asyncio.to_thread(self._read)
            if values.pop(key, None) is None:
                return
            await self._write_async(values)

    async def _write_async(self, values: Mapping[str, str]) -> None:
        try:
            await asyncio.to_thread(self._write, values)
        except OSError as exc:
            raise SnippetStorageError(f"Unable to write secret vault {self._path}") from exc


class NullFolderCounter:
    """Folder counter used when no folder bookkeeping is attached."""

    def set_count(self, folder_id: str, count: int) -> None:
        logger.debug("Folder %s now holds %d snippets", folder_id, count)


class ConsoleInteraction:
    """Terminal implementation of :class:`UserInteraction`.

    Blocking reads run in a worker thread so the event loop (and the session
    sweep) keeps running while the user types.
    """

    def __init__(
        self,
        *,
        reader: Callable[[str], str] = input,
        secret_reader: Callable[[str], str] = getpass.getpass,
        writer: Callable[[str], None] = print,
    ) -> None:
        self._reader = reader
        self._secret_reader = secret_reader
        self._writer = writer

    async def _read(self, prompt: str, *, password: bool) -> str | None:
        read = self._secret_reader if password else self._reader
        try:
            return await asyncio.to_thread(read, prompt)
        except (EOFError, KeyboardInterrupt):
            return None

    async def prompt_text(
        self,
        message: str,
        *,
        password: bool = False,
        validate: Callable[[str], str | None] | None = None,
    ) -> str | None:
        while True:
            value = await self._read(f"{message}: ", password=password)
            if value is None:
                return None
            problem = validate(value) if validate is not None else None
            if problem is None:
                return value
            self._writer(f"  {problem}")

    async def choose(self, message: str, options: Sequence[str]) -> str | None:
        if not options:
            return None
        self._writer(message)
        for index, option in enumerate(options, start=1):
            self._writer(f"  {index}) {option}")
        answer = await self._read("Select an option (blank to cancel): ", password=False)
        if not answer or not answer.strip():
            return None
        text = answer.strip()
        if text.isdigit() and 1 <= int(text) <= len(options):
            return options[int(text) - 1]
        for option in options:
            if option.lower() == text.lower():
                return option
        return None

    async def notify(self, message: str, level: InteractionLevel = InteractionLevel.INFO) -> None:
        prefix = "" if level is InteractionLevel.INFO else f"[{level.value}] "
        self._writer(f"{prefix}{message}")


__all__ = [
    "ConsoleInteraction",
    "FileSecretVault",
    "FolderCounter",
    "InMemorySecretVault",
    "InteractionLevel",
    "NullFolderCounter",
    "SecretVault",
    "UserInteraction",
]
