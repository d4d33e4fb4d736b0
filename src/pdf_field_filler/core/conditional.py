# SPDX-License-Identifier: Apache-2.0
"""Conditional field evaluation.

A conditional field holds an ordered list of branches. The first branch whose
condition holds supplies the render value; otherwise the field's default is
used. The render value is then resolved:

- ``{key}`` alone is a raw field reference and keeps the referenced value's
  type (so booleans reach checkbox mode untouched)
- any other value is a template, substituted with the guarded TemplateEngine
- in checkbox mode the final text is coerced to a boolean
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional, Union

from .diagnostics import EvaluationWarning, WarningKind, WarningSink
from .models import Field, Operator, RenderAs
from .template_engine import ESCAPE_CHAR, TemplateEngine
from .values import is_empty, loose_equals, resolve_path, to_display_string

logger = logging.getLogger(__name__)

# Whole-string raw field reference, e.g. "{is_active}"
FIELD_REFERENCE = re.compile(r"^\{([^{}]+)\}$")

CHECKBOX_TRUE_VALUES: frozenset[str] = frozenset({"true", "checked", "yes", "1"})
CHECKBOX_FALSE_VALUES: frozenset[str] = frozenset({"false", "unchecked", "no", "0", ""})

ConditionalResult = Union[str, bool]


def evaluate_condition(operator: Operator, field_value: Any, compare_value: Any) -> bool:
    """Evaluate one branch condition.

    Args:
        operator: Comparison operator.
        field_value: Current value of the tested field.
        compare_value: Operand from the branch; ignored by EXISTS/NOT_EXISTS.

    Returns:
        Whether the condition holds.
    """
    if operator == Operator.EQUALS:
        return loose_equals(field_value, compare_value)
    if operator == Operator.NOT_EQUALS:
        return not loose_equals(field_value, compare_value)
    if operator == Operator.CONTAINS:
        haystack = to_display_string(field_value).lower()
        needle = to_display_string(compare_value).lower()
        return needle in haystack
    if operator == Operator.EXISTS:
        return not is_empty(field_value)
    if operator == Operator.NOT_EXISTS:
        return is_empty(field_value)
    raise ValueError(f"Unknown operator: {operator!r}")


def is_checked_value(value: Any) -> bool:
    """Whether a raw value reads as a checked checkbox.

    True for boolean True and for text that lowercases to one of
    ``true``, ``checked``, ``yes`` or ``1``.
    """
    if isinstance(value, bool):
        return value
    return to_display_string(value).strip().lower() in CHECKBOX_TRUE_VALUES


def field_reference(text: str) -> Optional[str]:
    """Return the referenced key if ``text`` is exactly ``{key}``."""
    match = FIELD_REFERENCE.match(text)
    return match.group(1) if match else None


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else to_display_string(value)


class ConditionalEvaluator:
    """Resolve the value of conditional fields."""

    def __init__(self, template_engine: Optional[TemplateEngine] = None) -> None:
        """Initialize ConditionalEvaluator.

        Args:
            template_engine: Engine used for render values that are templates.
        """
        self._templates = template_engine or TemplateEngine()

    def evaluate_conditional_field(
        self,
        field: Field,
        value_map: Any,
        warnings: WarningSink = None,
    ) -> ConditionalResult:
        """Resolve a conditional field against a value map.

        Args:
            field: Conditional field descriptor.
            value_map: Runtime values; not modified.
            warnings: Optional list receiving diagnostics for ambiguous
                checkbox values and template sentinels.

        Returns:
            Text in text mode, a boolean in checkbox mode. Never raises for
            any branch content.
        """
        default = _as_text(field.conditional_default_value)
        checkbox_mode = field.conditional_render_as == RenderAs.CHECKBOX

        candidate = self._select_candidate(field, value_map)
        used_default = candidate is None
        if candidate is None:
            candidate = default or ""

        reference = field_reference(candidate)
        if reference is not None:
            raw = resolve_path(value_map, reference)
            if checkbox_mode:
                return is_checked_value(raw)
            return to_display_string(raw)

        result = self._substitute(candidate, value_map, warnings, field.key)

        if not result and default and not used_default:
            result = self._substitute(default, value_map, warnings, field.key)

        if checkbox_mode:
            return self._coerce_checkbox(result, field.key, warnings)
        return result

    def _select_candidate(self, field: Field, value_map: Any) -> Optional[str]:
        """Render value of the first matching branch, or None if none match."""
        for branch in field.conditional_branches:
            condition = branch.condition
            field_value = resolve_path(value_map, condition.field)
            if evaluate_condition(condition.operator, field_value, condition.value):
                return _as_text(branch.render_value)
        return None

    def _substitute(
        self,
        text: str,
        value_map: Any,
        warnings: WarningSink,
        field_key: str,
    ) -> str:
        if "{" not in text or "}" not in text:
            return text
        collected: list[EvaluationWarning] = []
        result = self._templates.evaluate_with_context(text, value_map, warnings=collected)
        if warnings is not None:
            warnings.extend(
                EvaluationWarning(w.kind, w.message, field_key=field_key, detail=w.detail)
                for w in collected
            )
        return result

    @staticmethod
    def _coerce_checkbox(text: str, field_key: str, warnings: WarningSink) -> bool:
        if text.startswith(ESCAPE_CHAR):
            # Escaped literal text never checks the box
            return False

        normalized = text.strip().lower()
        if normalized in CHECKBOX_TRUE_VALUES:
            return True
        if normalized in CHECKBOX_FALSE_VALUES:
            return False

        logger.warning(
            "Ambiguous checkbox value %r for field '%s'; rendering unchecked",
            text,
            field_key,
        )
        if warnings is not None:
            warnings.append(
                EvaluationWarning(
                    kind=WarningKind.AMBIGUOUS_CHECKBOX_VALUE,
                    message=(
                        f"Checkbox value {text!r} is not one of "
                        "true/checked/yes/1 or false/unchecked/no/0; rendering unchecked"
                    ),
                    field_key=field_key,
                    detail=text,
                )
            )
        return False
