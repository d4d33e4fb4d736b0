# SPDX-License-Identifier: Apache-2.0
"""Field key sanitizing and generation."""

from __future__ import annotations

import re
from typing import Iterable

_VALID_KEY = re.compile(r"[a-zA-Z_][a-zA-Z0-9_-]*")
_WHITESPACE = re.compile(r"\s+")
_INVALID_CHARS = re.compile(r"[^a-zA-Z0-9_-]")
_LEADING_SEPARATORS = re.compile(r"^[-_]+")


def sanitize_field_key(text: str) -> str:
    """Turn free text into a usable field key.

    Whitespace becomes underscores, other invalid characters are dropped,
    leading hyphens/underscores are stripped, and the result is lowercased.

    >>> sanitize_field_key("  First Name! ")
    'first_name'
    """
    key = _WHITESPACE.sub("_", text.strip())
    key = _INVALID_CHARS.sub("", key)
    key = _LEADING_SEPARATORS.sub("", key)
    return key.lower()


def is_valid_field_key(key: str) -> bool:
    """Keys start with a letter or underscore, then letters, digits, ``_`` or ``-``."""
    return bool(_VALID_KEY.fullmatch(key))


def generate_field_key(field_type: str, existing_keys: Iterable[str]) -> str:
    """Next free ``<type>_<n>`` key.

    Args:
        field_type: Prefix, usually the field type (``"text"``, ``"checkbox"``).
        existing_keys: Keys already in use.

    Returns:
        ``<field_type>_<n>`` where n is one more than the highest number used.
    """
    pattern = re.compile(rf"^{re.escape(field_type)}_(\d+)$")
    numbers = [
        int(match.group(1))
        for match in (pattern.match(key) for key in existing_keys)
        if match
    ]
    return f"{field_type}_{max(numbers, default=0) + 1}"
