# SPDX-License-Identifier: Apache-2.0
"""Runtime value helpers shared by the template and conditional engines.

Values in a value map are JSON-compatible: ``str``, ``int``/``float``,
``bool``, ``list`` and ``dict`` (nested objects), or ``None``. This module
gives them one display form and one equality rule, independent of Python's
own ``==`` and ``str()``.

Loose equality (``loose_equals``) follows this table, checked top to bottom:

====================  ===========================================================
Operands              Rule
====================  ===========================================================
None, None            equal
None, anything        not equal
bool, bool            equal when identical
bool, str             str trimmed/lowercased is ``"true"``/``"false"`` and matches
bool, number          bool compared as 1/0
bool, anything else   not equal (lists and objects never equal a bool)
number, number        numeric equality
number, str           str trimmed is a finite number and numerically equal
number, list          list's display form compared as a string
number, anything else not equal
str, str              exact match
anything else         display forms compared as strings
====================  ===========================================================
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping, Sequence
from typing import Any, Optional


def is_empty(value: Any) -> bool:
    """Return True for ``None`` and the empty string."""
    return value is None or (isinstance(value, str) and value == "")


def to_display_string(value: Any) -> str:
    """Convert a runtime value to its display text.

    Args:
        value: Value from a value map.

    Returns:
        ``""`` for None, ``"true"``/``"false"`` for booleans, integral floats
        without a fractional part, lists joined with commas, and objects as
        compact JSON.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (int, str)):
        return str(value)
    if isinstance(value, Mapping):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return ",".join(to_display_string(item) for item in value)
    return str(value)


def _to_number(text: str) -> Optional[float]:
    stripped = text.strip()
    if not stripped:
        return None
    try:
        number = float(stripped)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_list(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def loose_equals(left: Any, right: Any) -> bool:
    """Compare two runtime values using the coercion table of this module."""
    if left is None or right is None:
        return left is None and right is None

    if isinstance(left, bool) or isinstance(right, bool):
        if isinstance(left, bool) and isinstance(right, bool):
            return left is right
        flag, other = (left, right) if isinstance(left, bool) else (right, left)
        if isinstance(other, str):
            return other.strip().lower() == ("true" if flag else "false")
        if _is_number(other):
            return float(other) == (1.0 if flag else 0.0)
        return False

    if _is_number(left) and _is_number(right):
        return float(left) == float(right)

    if _is_number(left) or _is_number(right):
        number, other = (left, right) if _is_number(left) else (right, left)
        if isinstance(other, str):
            parsed = _to_number(other)
            return parsed is not None and parsed == float(number)
        if _is_list(other):
            return to_display_string(other) == to_display_string(number)
        return False

    if isinstance(left, str) and isinstance(right, str):
        return left == right

    return to_display_string(left) == to_display_string(right)


def resolve_path(data: Any, path: str) -> Any:
    """Look up a dot-separated path in nested data.

    Mapping segments are looked up by key and list segments by integer
    index. A missing key, an out-of-range index, or a non-container
    intermediate yields None instead of an error.

    Args:
        data: Root value map.
        path: Dot-separated path such as ``"user.address.city"``.

    Returns:
        The value at ``path``, or None.
    """
    value: Any = data
    for segment in path.split("."):
        if isinstance(value, Mapping):
            value = value.get(segment)
        elif _is_list(value) and segment.isdigit():
            index = int(segment)
            value = value[index] if index < len(value) else None
        else:
            return None
    return value
