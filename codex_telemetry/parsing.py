"""Shared parsing helpers for config values and CLI feedback options."""

from __future__ import annotations

import json
from typing import Any, Iterable


_TRUE_BOOLEAN_TOKENS = frozenset({"1", "true", "yes", "on"})
_FALSE_BOOLEAN_TOKENS = frozenset({"0", "false", "no", "off"})


def normalize_optional_string(value: object) -> str | None:
    """Normalize an optional value to a stripped non-empty string.

    Args:
        value: Arbitrary input value.

    Returns:
        Stripped string value, or `None` when the value is empty after trimming.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def parse_permissive_boolean(value: object) -> bool | None:
    """Parse a boolean token, returning `None` when it is not recognized."""

    if isinstance(value, bool):
        return value

    normalized = normalize_optional_string(value)
    if normalized is None:
        return None

    token = normalized.lower()
    if token in _TRUE_BOOLEAN_TOKENS:
        return True
    if token in _FALSE_BOOLEAN_TOKENS:
        return False
    return None


def parse_required_boolean(value: object, field_name: str) -> bool:
    """Parse a boolean value or raise an actionable `ValueError`."""

    parsed = parse_permissive_boolean(value)
    if parsed is not None:
        return parsed

    raise ValueError(
        f"`{field_name}` must be a boolean value (`true`/`false`, `1`/`0`, `yes`/`no`)."
    )


def parse_metadata_pairs(pairs: Iterable[str]) -> dict[str, str]:
    """Parse repeated `key=value` options into a metadata mapping.

    Later pairs override earlier ones for the same key.

    Raises:
        ValueError: If a pair has no `=` or an empty key.
    """

    metadata: dict[str, str] = {}
    for pair in pairs:
        key, separator, value = pair.partition("=")
        normalized_key = key.strip()
        if not separator or not normalized_key:
            raise ValueError(f"Metadata entry `{pair}` must use the `key=value` form.")
        metadata[normalized_key] = value.strip()
    return metadata


def parse_expected_value(value: str | None) -> Any:
    """Decode an `--expected` option as JSON, falling back to the raw string."""

    if value is None:
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value
