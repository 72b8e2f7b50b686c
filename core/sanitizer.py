"""Input sanitization rules shared by snippet creation, updates and bulk import.

The same predicates back three entry points: interactive prompt validators
(one field at a time), request validation before a snippet is admitted, and
per-entry validation during import.

Updates:
  v0.3.0 - 2026-10-16 - Add structural validation for imported entries.
  v0.2.0 - 2026-10-14 - Add prompt validator factory and comma-list parsing.
  v0.1.0 - 2026-10-12 - Initial denylist, markup, length and charset rules.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Final, cast

from models.snippet_model import UNSET, WILDCARD_FILE_TYPE

from .exceptions import SnippetValidationError

if TYPE_CHECKING:
    from models.snippet_model import SnippetRequest, SnippetUpdate

logger = logging.getLogger("snippet_store.sanitizer")

FIELD_DENYLIST: Final[tuple[str, ...]] = (
    "<script",
    "<iframe",
    "<object",
    "<embed",
    "<form",
    "javascript:",
    "data:",
    "vbscript:",
    "onload",
    "onerror",
    "alert(",
    "confirm(",
    "prompt(",
    "eval(",
    "Function(",
    "msgbox(",
    "../../../",
    "../.././",
    "../",
    "..\\",
    "%3Cscript%3E",
    "%3C/script%3E",
    "etc/passwd",
    "etc/shadow",
    "windows/system32",
    "c:\\windows",
)

BODY_DENYLIST: Final[tuple[str, ...]] = (
    "javascript:alert(",
    "data:text/html,<script>",
    "vbscript:msgbox(",
    "onload=alert(",
    "onerror=alert(",
    "msgbox(",
    "../../../",
    "../.././",
    "../",
    "..\\",
    "%3Cscript%3E",
    "%3C/script%3E",
    "etc/passwd",
    "etc/shadow",
    "windows/system32",
    "c:\\windows",
)

_MARKUP_PATTERN = re.compile(r"<[^>]*>")
_PREFIX_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
_FILE_TYPE_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")


@dataclass(slots=True, frozen=True)
class FieldLimits:
    """Length and cardinality ceilings applied to snippet fields."""

    name: int = 200
    prefix: int = 50
    description: int = 1000
    body: int = 10_000
    tag: int = 50
    tags: int = 20
    file_type: int = 20
    file_types: int = 10


CREATE_LIMITS: Final[FieldLimits] = FieldLimits()
IMPORT_LIMITS: Final[FieldLimits] = replace(CREATE_LIMITS, body=100_000, file_types=20)


def find_denied_pattern(value: str, patterns: Sequence[str] = FIELD_DENYLIST) -> str | None:
    """Return the first denylisted pattern contained in *value* (case-insensitive)."""
    lowered = value.lower()
    for pattern in patterns:
        if pattern.lower() in lowered:
            return pattern
    return None


def _text_problem(label: str, value: str, limit: int) -> str | None:
    pattern = find_denied_pattern(value)
    if pattern is not None:
        return f"{label} contains dangerous pattern: {pattern}"
    if _MARKUP_PATTERN.search(value):
        return f"{label} contains HTML/XML tags which are not allowed"
    if len(value) > limit:
        return f"{label} is too long. Maximum {limit:,} characters allowed."
    return None


def check_name(value: str | None, limits: FieldLimits = CREATE_LIMITS) -> str | None:
    """Return a problem description for *value* as a snippet name, or None."""
    text = (value or "").strip()
    if not text:
        return "Name is required"
    return _text_problem("Name", text, limits.name)


def check_prefix(value: str | None, limits: FieldLimits = CREATE_LIMITS) -> str | None:
    """Return a problem description for *value* as a prefix, or None."""
    text = (value or "").strip()
    if not text:
        return "Prefix is required"
    problem = _text_problem("Prefix", text, limits.prefix)
    if problem:
        return problem
    if not _PREFIX_PATTERN.fullmatch(text):
        return "Prefix can only contain letters, numbers, hyphens and underscores"
    return None


def check_description(value: str | None, limits: FieldLimits = CREATE_LIMITS) -> str | None:
    """Return a problem description for an optional description, or None."""
    if not value:
        return None
    text = value.strip()
    if not text:
        return None
    return _text_problem("Description", text, limits.description)


def check_tags(values: Sequence[str], limits: FieldLimits = CREATE_LIMITS) -> str | None:
    """Return a problem description for a tag collection, or None."""
    for tag in values:
        text = tag.strip()
        pattern = find_denied_pattern(text)
        if pattern is not None:
            return f"Tag contains dangerous pattern: {pattern}"
        if _MARKUP_PATTERN.search(text):
            return "Tags cannot contain HTML/XML tags"
        if len(text) > limits.tag:
            return f"Tag is too long. Maximum {limits.tag} characters allowed."
    if len(values) > limits.tags:
        return f"Too many tags. Maximum {limits.tags} tags allowed."
    return None


def check_file_types(values: Sequence[str], limits: FieldLimits = CREATE_LIMITS) -> str | None:
    """Return a problem description for a file type collection, or None."""
    for file_type in values:
        text = file_type.strip()
        if text == WILDCARD_FILE_TYPE:
            continue
        pattern = find_denied_pattern(text)
        if pattern is not None:
            return f"File type contains dangerous pattern: {pattern}"
        if _MARKUP_PATTERN.search(text):
            return "File types cannot contain HTML/XML tags"
        if len(text) > limits.file_type:
            return f"File type is too long. Maximum {limits.file_type} characters allowed."
        if not _FILE_TYPE_PATTERN.fullmatch(text):
            return (
                "File type can only contain letters, numbers, dots, hyphens and underscores"
            )
    if len(values) > limits.file_types:
        return f"Too many file types. Maximum {limits.file_types} file types allowed."
    return None


def check_body(value: str | None, limits: FieldLimits = CREATE_LIMITS) -> str | None:
    """Return a problem description for snippet body text, or None."""
    if not value or not value.strip():
        return "Body is required"
    if len(value) > limits.body:
        return f"Body is too long. Maximum {limits.body:,} characters allowed."
    pattern = find_denied_pattern(value, BODY_DENYLIST)
    if pattern is not None:
        return f"Body contains dangerous pattern: {pattern}"
    return None


def _raise_if(field: str, problem: str | None) -> None:
    if problem is not None:
        logger.debug("Validation failed for %s: %s", field, problem)
        raise SnippetValidationError(field, problem)


def validate_request(request: SnippetRequest, limits: FieldLimits = CREATE_LIMITS) -> None:
    """Raise :class:`SnippetValidationError` for the first invalid field of *request*."""
    _raise_if("name", check_name(request.name, limits))
    _raise_if("prefix", check_prefix(request.prefix, limits))
    _raise_if("description", check_description(request.description, limits))
    _raise_if("body", check_body(request.body, limits))
    _raise_if("tags", check_tags(request.tags, limits))
    _raise_if("file_types", check_file_types(request.file_types, limits))


def validate_update(update: SnippetUpdate, limits: FieldLimits = CREATE_LIMITS) -> None:
    """Validate only the fields supplied in a partial update."""
    if update.name is not UNSET:
        _raise_if("name", check_name(update.name, limits))
    if update.prefix is not UNSET:
        _raise_if("prefix", check_prefix(update.prefix, limits))
    if update.description is not UNSET:
        _raise_if("description", check_description(update.description, limits))
    if update.body is not UNSET:
        _raise_if("body", check_body(update.body, limits))
    if update.tags is not UNSET:
        _raise_if("tags", check_tags(update.tags, limits))
    if update.file_types is not UNSET:
        _raise_if("file_types", check_file_types(update.file_types, limits))


def parse_list_input(value: str | None) -> list[str]:
    """Split comma-separated prompt input into trimmed, non-empty entries."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def prompt_validator(
    field: str,
    limits: FieldLimits = CREATE_LIMITS,
) -> Callable[[str], str | None]:
    """Return a per-keystroke validator for an interactive prompt on *field*."""
    if field == "name":
        return lambda value: check_name(value, limits)
    if field == "prefix":
        return lambda value: check_prefix(value, limits)
    if field == "description":
        return lambda value: check_description(value, limits)
    if field == "tags":
        return lambda value: check_tags(parse_list_input(value), limits)
    if field == "file_types":

        def _file_types(value: str) -> str | None:
            entries = parse_list_input(value)
            if not entries:
                return "File types are required"
            return check_file_types(entries, limits)

        return _file_types
    raise ValueError(f"No prompt validator for field '{field}'")


def _string_list(value: object) -> list[str] | None:
    if not isinstance(value, list):
        return None
    items = cast("list[object]", value)
    if not all(isinstance(item, str) for item in items):
        return None
    return cast("list[str]", items)


def validate_import_entry(entry: object, limits: FieldLimits = IMPORT_LIMITS) -> str | None:
    """Return the reason an imported element must be skipped, or None when acceptable."""
    if not isinstance(entry, Mapping):
        return "not an object"
    data = cast("Mapping[str, Any]", entry)
    for key in ("name", "prefix", "body"):
        if not isinstance(data.get(key), str):
            return f"{key} is not a string"
    description = data.get("description")
    if description is not None and not isinstance(description, str):
        return "description is not a string"
    tags = _string_list(data.get("tags"))
    if tags is None:
        return "tags must be an array of strings"
    file_types = _string_list(data.get("fileTypes", data.get("file_types")))
    if file_types is None:
        return "fileTypes must be an array of strings"
    return (
        check_name(data["name"], limits)
        or check_prefix(data["prefix"], limits)
        or check_description(description, limits)
        or check_body(data["body"], limits)
        or check_tags(tags, limits)
        or check_file_types(file_types, limits)
    )


__all__ = [
    "BODY_DENYLIST",
    "CREATE_LIMITS",
    "FIELD_DENYLIST",
    "FieldLimits",
    "IMPORT_LIMITS",
    "check_body",
    "check_description",
    "check_file_types",
    "check_name",
    "check_prefix",
    "check_tags",
    "find_denied_pattern",
    "parse_list_input",
    "prompt_validator",
    "validate_import_entry",
    "validate_request",
    "validate_update",
]
