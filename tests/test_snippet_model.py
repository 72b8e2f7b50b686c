"""Tests for snippet dataclasses, request normalisation and partial updates.

Updates:
  v0.1.0 - 2026-10-16 - Cover record mapping, filters and UNSET semantics.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from models.snippet_model import (
    UNSET,
    ImportResult,
    Snippet,
    SnippetFilters,
    SnippetRequest,
    SnippetScope,
    SnippetUpdate,
    derive_prefix,
)

_CREATED = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def _snippet(**overrides: object) -> Snippet:
    values: dict[str, object] = {
        "id": "abc",
        "name": "React hook",
        "prefix": "rhook",
        "body": "const [x, setX] = useState()",
        "description": "State hook",
        "tags": ["react", "hooks"],
        "file_types": ["tsx"],
        "created_at": _CREATED,
        "updated_at": _CREATED,
    }
    values.update(overrides)
    return Snippet(**values)  # type: ignore[arg-type]


def test_to_record_uses_camel_case_keys() -> None:
    """Persisted records use the snapshot field names."""
    record = _snippet(folder_id="f1", usage_count=3, is_favorite=True).to_record()

    assert record["fileTypes"] == ["tsx"]
    assert record["folderId"] == "f1"
    assert record["usageCount"] == 3
    assert record["isFavorite"] is True
    assert record["createdAt"] == _CREATED.isoformat()
    assert "file_types" not in record


def test_from_record_accepts_snake_case_and_zulu_timestamps() -> None:
    """Hydration tolerates snake_case keys and trailing Z timestamps."""
    snippet = Snippet.from_record(
        {
            "id": "1",
            "name": "n",
            "prefix": "p",
            "body": "b",
            "file_types": ["py"],
            "created_at": "2026-01-01T12:00:00Z",
            "updatedAt": "2026-01-02T12:00:00",
            "scope": "unknown-scope",
            "folderId": "",
            "usageCount": -4,
        }
    )

    assert snippet.file_types == ["py"]
    assert snippet.created_at == _CREATED
    assert snippet.updated_at.tzinfo is not None
    assert snippet.scope is SnippetScope.GLOBAL
    assert snippet.folder_id is None
    assert snippet.usage_count == 0


def test_matches_term_is_case_insensitive_across_fields() -> None:
    """Search terms match name, prefix, description and tags."""
    snippet = _snippet()

    assert snippet.matches_term("REACT")
    assert snippet.matches_term("rho")
    assert snippet.matches_term("state")
    assert snippet.matches_term("HOOKS")
    assert not snippet.matches_term("useState")


def test_matches_file_type_honours_wildcard() -> None:
    """A wildcard entry applies the snippet to every file type."""
    assert _snippet(file_types=["*"]).matches_file_type("go")
    assert _snippet().matches_file_type("tsx")
    assert not _snippet().matches_file_type("py")


def test_request_normalised_derives_prefix_and_defaults() -> None:
    """Blank prefixes derive from the name and empty file types become a wildcard."""
    request = SnippetRequest(
        name="  Fetch  Wrapper ",
        body="fetch()",
        prefix="  ",
        description="   ",
        tags=["net", " net ", ""],
    ).normalised()

    assert request.name == "Fetch  Wrapper"
    assert request.prefix == "fetch-wrapper"
    assert request.description is None
    assert request.tags == ["net"]
    assert request.file_types == ["*"]


def test_derive_prefix_collapses_whitespace() -> None:
    """Whitespace runs collapse to single hyphens."""
    assert derive_prefix(" My \t Snippet ") == "my-snippet"


def test_update_changes_only_include_supplied_fields() -> None:
    """UNSET fields are excluded while explicit None clears a value."""
    update = SnippetUpdate(name="New", description=None)

    assert update.changes() == {"name": "New", "description": None}
    assert update.folder_id is UNSET
    assert not update.is_empty()
    assert SnippetUpdate().is_empty()


def test_update_apply_keeps_identity_and_refreshes_timestamp() -> None:
    """Applying an update preserves id and creation time."""
    original = _snippet(usage_count=7)
    later = _CREATED + timedelta(hours=1)

    merged = SnippetUpdate(name="Renamed", tags=["x"]).apply_to(original, now=later)

    assert merged.id == original.id
    assert merged.created_at == original.created_at
    assert merged.usage_count == 7
    assert merged.name == "Renamed"
    assert merged.tags == ["x"]
    assert merged.updated_at == later


def test_update_apply_never_moves_updated_before_created() -> None:
    """A skewed clock cannot produce updated_at earlier than created_at."""
    merged = SnippetUpdate(name="x").apply_to(_snippet(), now=_CREATED - timedelta(days=1))

    assert merged.updated_at == _CREATED


def test_filters_intersect_every_criterion() -> None:
    """All supplied filters must accept the snippet."""
    favourite = _snippet(is_favorite=True, folder_id="f1")

    assert SnippetFilters(tags=("react",), favorites_only=True).accepts(favourite)
    assert not SnippetFilters(tags=("vue",)).accepts(favourite)
    assert not SnippetFilters(file_types=("py",)).accepts(favourite)
    assert not SnippetFilters(folder_id="other").accepts(favourite)
    assert not SnippetFilters(favorites_only=True).accepts(_snippet())


def test_import_result_summary_counts() -> None:
    """Import summaries report admitted and skipped entries."""
    result = ImportResult(imported=[_snippet()], diagnostics=["a", "b"])

    assert result.summary() == {"imported": 1, "skipped": 2}


def test_scope_parse_rejects_unknown_without_default() -> None:
    """Unknown scopes raise unless a default is supplied."""
    assert SnippetScope.parse("Workspace") is SnippetScope.WORKSPACE
    with pytest.raises(ValueError):
        SnippetScope.parse("galaxy")
