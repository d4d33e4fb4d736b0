# SPDX-License-Identifier: Apache-2.0
"""Core field model and evaluation modules."""

from .conditional import ConditionalEvaluator
from .coordinates import from_drawing_space, to_drawing_space
from .diagnostics import EvaluationWarning, WarningKind
from .models import (
    BBox,
    Color,
    Field,
    FieldModelError,
    FieldProperties,
    FieldSet,
    FieldType,
    FieldVariant,
    Point,
    PositionVersion,
    Size,
)
from .template_engine import EvaluationContext, TemplateEngine
from .text_layout import LayoutLine, LayoutResult, TextLayoutEngine
from .validation import FieldIssue, Severity, validate_field_set

__all__ = [
    "BBox",
    "Color",
    "ConditionalEvaluator",
    "EvaluationContext",
    "EvaluationWarning",
    "Field",
    "FieldIssue",
    "FieldModelError",
    "FieldProperties",
    "FieldSet",
    "FieldType",
    "FieldVariant",
    "LayoutLine",
    "LayoutResult",
    "Point",
    "PositionVersion",
    "Severity",
    "Size",
    "TemplateEngine",
    "TextLayoutEngine",
    "WarningKind",
    "from_drawing_space",
    "to_drawing_space",
    "validate_field_set",
]
