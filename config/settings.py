"""Settings management utilities for Snippet Store configuration.

Updates:
  v0.2.1 - 2026-10-17 - Keep the secret vault path apart from the snapshot files.
  v0.2.0 - 2026-10-16 - Add import ceilings and PIN session tuning knobs.
  v0.1.0 - 2026-10-13 - Initial pydantic-settings model with JSON and .env sources.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, cast

from dotenv import dotenv_values
from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

_DOTENV_FALLBACK_PATH = ".env"
_ENV_PREFIX = "SNIPPET_STORE_"

DEFAULT_STORAGE_DIR = Path("data") / "snippets"
DEFAULT_SECRETS_PATH = Path("data") / "secrets.json"
DEFAULT_IMPORT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_IMPORT_MAX_ENTRIES = 10_000

_SNAPSHOT_NAMES = {"snippets.json", "snippets.backup.json"}

# Settings keys accepted from the environment, the .env file and the JSON config.
_SETTING_KEYS: tuple[str, ...] = (
    "storage_dir",
    "secrets_path",
    "pin_session_minutes",
    "pin_max_attempts",
    "pin_lockout_minutes",
    "session_check_interval_seconds",
    "rate_limit_window_seconds",
    "rate_limit_max_calls",
    "import_max_bytes",
    "import_max_entries",
)

logger = logging.getLogger("snippet_store.settings")


def _read_dotenv_values() -> dict[str, str]:
    """Load ``.env`` entries into a mapping without mutating ``os.environ``."""
    env_file_override = os.getenv(f"{_ENV_PREFIX}ENV_FILE")
    if env_file_override is not None:
        candidate = env_file_override.strip()
        if not candidate:
            return {}
        path = Path(candidate).expanduser()
    else:
        path = Path(_DOTENV_FALLBACK_PATH).expanduser()
    if not path.is_file():
        return {}
    raw_values = dotenv_values(str(path))
    return {str(key): str(value) for key, value in raw_values.items() if value is not None}


class SettingsError(Exception):
    """Raised when Snippet Store configuration cannot be loaded or validated."""


class SnippetStoreSettings(BaseSettings):
    """Application configuration sourced from environment variables or JSON files."""

    storage_dir: Path = Field(
        default=DEFAULT_STORAGE_DIR,
        description="Directory holding the primary and backup snapshot files.",
    )
    secrets_path: Path = Field(
        default=DEFAULT_SECRETS_PATH,
        description="JSON file used as the secret vault for PIN material.",
    )
    pin_session_minutes: float = Field(
        default=30,
        description="Minutes a verified PIN session stays unlocked.",
    )
    pin_max_attempts: int = Field(
        default=5,
        description="Consecutive wrong PIN entries allowed before lockout.",
    )
    pin_lockout_minutes: float = Field(
        default=15,
        description="Minutes PIN entry stays locked after too many failures.",
    )
    session_check_interval_seconds: float = Field(
        default=60,
        description="Period of the background PIN session expiry sweep.",
    )
    rate_limit_window_seconds: float = Field(
        default=60,
        description="Length of one fixed rate-limit window.",
    )
    rate_limit_max_calls: int = Field(
        default=100,
        description="Calls allowed per operation per rate-limit window.",
    )
    import_max_bytes: int = Field(
        default=DEFAULT_IMPORT_MAX_BYTES,
        description="Largest accepted import file in bytes.",
    )
    import_max_entries: int = Field(
        default=DEFAULT_IMPORT_MAX_ENTRIES,
        description="Largest accepted number of entries in an import file.",
    )

    model_config = cast(
        "SettingsConfigDict",
        {
            "env_prefix": _ENV_PREFIX,
            "case_sensitive": False,
            "populate_by_name": True,
        },
    )

    @field_validator("storage_dir", "secrets_path", mode="before")
    def _normalise_path(cls, value: Any) -> Path:
        """Expand user-relative paths and coerce values to Path instances."""
        if value is None or not str(value).strip():
            raise ValueError("a filesystem path is required")
        path = Path(str(value).strip()).expanduser()
        return path.resolve()

    @field_validator(
        "pin_session_minutes",
        "pin_max_attempts",
        "pin_lockout_minutes",
        "session_check_interval_seconds",
        "rate_limit_window_seconds",
        "rate_limit_max_calls",
        "import_max_bytes",
        "import_max_entries",
    )
    def _validate_positive(cls, value: float) -> float:
        """Ensure numeric tuning values are strictly positive."""
        if value <= 0:
            raise ValueError("value must be greater than zero")
        return value

    @model_validator(mode="after")
    def _validate_secrets_location(self) -> SnippetStoreSettings:
        """Refuse a vault path that would overwrite a snapshot file."""
        in_storage = self.secrets_path.parent == self.storage_dir
        if in_storage and self.secrets_path.name in _SNAPSHOT_NAMES:
            raise ValueError("secrets_path must not point at a snapshot file")
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
    ]:
        """Define configuration source precedence.

        Order (highest → lowest):
            1. Explicit keyword arguments (e.g. load_settings(storage_dir="...")).
            2. JSON configuration file.
            3. Environment variables, then ``.env`` entries.
            4. File secrets.
        """

        def env_with_dotenv(_: BaseSettings | None = None) -> dict[str, Any]:
            data: dict[str, Any] = {}
            dotenv_entries = _read_dotenv_values()
            for field in _SETTING_KEYS:
                for candidate in (f"{_ENV_PREFIX}{field.upper()}", f"{_ENV_PREFIX}{field}"):
                    value = os.getenv(candidate)
                    if value is None:
                        value = dotenv_entries.get(candidate)
                    if value is None or not value.strip():
                        continue
                    data[field] = value.strip()
                    break
            return data

        return (
            init_settings,
            cls._json_config_settings_source(settings_cls),
            cast("PydanticBaseSettingsSource", env_with_dotenv),
            file_secret_settings,
        )

    @classmethod
    def _json_config_settings_source(
        cls,
        _: type[BaseSettings],
    ) -> PydanticBaseSettingsSource:
        """Return settings extracted from an optional JSON config file."""

        def _loader(_: BaseSettings | None = None) -> dict[str, Any]:
            explicit_path = os.getenv(f"{_ENV_PREFIX}CONFIG_JSON")
            candidates: list[Path] = []
            if explicit_path:
                candidates.append(Path(explicit_path).expanduser())
            candidates.append((Path("config") / "config.json").expanduser())

            for index, path in enumerate(candidates):
                if not path.exists():
                    if explicit_path and index == 0:
                        raise SettingsError(f"Configuration file not found: {path}")
                    continue
                try:
                    raw_contents = path.read_text(encoding="utf-8")
                except OSError as exc:  # pragma: no cover - env-specific
                    raise SettingsError(f"Unable to read configuration file: {path}") from exc
                try:
                    data = json.loads(raw_contents)
                except json.JSONDecodeError as exc:
                    raise SettingsError(f"Invalid JSON in configuration file: {path}") from exc
                if not isinstance(data, dict):
                    message = f"Configuration file {path} must contain a JSON object"
                    raise SettingsError(message)
                mapping_data = cast("Mapping[object, Any]", data)
                data_dict: dict[str, Any] = {str(key): value for key, value in mapping_data.items()}
                unknown = sorted(set(data_dict) - set(_SETTING_KEYS))
                if unknown:
                    logger.warning(
                        "Ignoring unknown key(s) %s in configuration file %s",
                        ", ".join(unknown),
                        path,
                    )
                return {key: data_dict[key] for key in _SETTING_KEYS if key in data_dict}
            return {}

        return cast("PydanticBaseSettingsSource", _loader)


def load_settings(**overrides: Any) -> SnippetStoreSettings:
    """Return validated settings, raising SettingsError on failure."""
    try:
        return SnippetStoreSettings(**overrides)
    except SettingsError:
        raise
    except ValidationError as exc:
        raise SettingsError("Invalid Snippet Store configuration") from exc
