# SPDX-License-Identifier: Apache-2.0
"""Static validation of a field set before rendering.

Rendering never fails on user content; this module reports what would
silently degrade (unknown references, ambiguous checkbox values, and so on)
so that editors and the CLI can surface it up front.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from .conditional import CHECKBOX_FALSE_VALUES, CHECKBOX_TRUE_VALUES, field_reference
from .keys import is_valid_field_key
from .models import Field, FieldType, Operator, RenderAs
from .template_engine import ESCAPE_CHAR, TemplateEngine
from .values import to_display_string


class Severity(str, Enum):
    """Severity of a validation issue."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class FieldIssue:
    """One problem found in a field set.

    Attributes:
        field_key: Key of the affected field
        severity: ERROR for problems that break rendering semantics,
            WARNING for content that renders with a fallback
        message: Human-readable description
    """

    field_key: str
    severity: Severity
    message: str

    def __str__(self) -> str:
        return f"{self.severity.value}: [{self.field_key}] {self.message}"


def validate_field_set(
    fields: Iterable[Field],
    page_count: Optional[int] = None,
    data_keys: Iterable[str] = (),
) -> list[FieldIssue]:
    """Validate fields against each other and, optionally, the template PDF.

    Args:
        fields: Field descriptors.
        page_count: Number of pages in the template PDF, if known.
        data_keys: Extra value-map keys that are valid template references.

    Returns:
        Issues in field order. Never raises.
    """
    field_list = list(fields)
    issues: list[FieldIssue] = []
    known_keys = {f.key for f in field_list} | set(data_keys)
    engine = TemplateEngine()

    counts = Counter(f.key for f in field_list)
    for key, count in counts.items():
        if count > 1:
            issues.append(
                FieldIssue(key, Severity.ERROR, f"Key is used by {count} fields")
            )

    for f in field_list:
        if not is_valid_field_key(f.key):
            issues.append(
                FieldIssue(
                    f.key,
                    Severity.ERROR,
                    "Key must start with a letter or underscore and contain only "
                    "letters, digits, '_' or '-'",
                )
            )
        if f.page < 1 or (page_count is not None and f.page > page_count):
            issues.append(FieldIssue(f.key, Severity.ERROR, f"Page {f.page} is out of range"))

        if f.type == FieldType.COMPOSITE_TEXT:
            issues.extend(_check_template(engine, f, f.template or "", known_keys))
        elif f.type == FieldType.CONDITIONAL:
            issues.extend(_check_conditional(engine, f, known_keys))

        if f.is_options and not f.option_mappings:
            issues.append(FieldIssue(f.key, Severity.WARNING, "Options field has no option mappings"))

    return issues


def _check_template(
    engine: TemplateEngine,
    f: Field,
    template: str,
    known_keys: set[str],
) -> list[FieldIssue]:
    if not template:
        return [FieldIssue(f.key, Severity.WARNING, "Template is empty")]
    result = engine.validate(template, known_keys)
    return [FieldIssue(f.key, Severity.ERROR, error.message) for error in result.errors]


def _check_conditional(
    engine: TemplateEngine,
    f: Field,
    known_keys: set[str],
) -> list[FieldIssue]:
    issues: list[FieldIssue] = []
    if not f.conditional_branches:
        issues.append(
            FieldIssue(f.key, Severity.WARNING, "Conditional field has no branches; default is always used")
        )

    values = [
        (f"Branch {i + 1}", to_display_string(b.render_value))
        for i, b in enumerate(f.conditional_branches)
    ]
    if f.conditional_default_value:
        values.append(("Default value", to_display_string(f.conditional_default_value)))

    for index, branch in enumerate(f.conditional_branches, start=1):
        condition = branch.condition
        if not condition.field:
            issues.append(FieldIssue(f.key, Severity.ERROR, f"Branch {index}: no field to check"))
        elif condition.field.split(".")[0] not in known_keys:
            issues.append(
                FieldIssue(
                    f.key,
                    Severity.WARNING,
                    f"Branch {index}: field '{condition.field}' is not defined",
                )
            )
        if condition.operator not in (Operator.EXISTS, Operator.NOT_EXISTS) and (
            condition.value is None or condition.value == ""
        ):
            issues.append(FieldIssue(f.key, Severity.ERROR, f"Branch {index}: no value to compare"))

    for label, value in values:
        if value and field_reference(value) is None:
            issues.extend(
                FieldIssue(f.key, Severity.WARNING, f"{label}: {error.message}")
                for error in engine.validate(value, known_keys).errors
            )
        if f.conditional_render_as == RenderAs.CHECKBOX and _is_ambiguous_checkbox_value(value):
            issues.append(
                FieldIssue(
                    f.key,
                    Severity.WARNING,
                    f"{label}: {value!r} is not a checkbox value "
                    "(checked, unchecked, true, false, yes, no, 1, 0) "
                    "or a {field} reference and will render unchecked",
                )
            )

    return issues


def _is_ambiguous_checkbox_value(value: str) -> bool:
    if value.startswith(ESCAPE_CHAR) or field_reference(value) is not None:
        return False
    if "{" in value:
        # Template output is only known at render time
        return False
    normalized = value.strip().lower()
    return normalized not in CHECKBOX_TRUE_VALUES and normalized not in CHECKBOX_FALSE_VALUES
