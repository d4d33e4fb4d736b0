# SPDX-License-Identifier: Apache-2.0
"""Template engine for ``{path}`` placeholder substitution.

Templates reference value-map entries with ``{key}`` or nested paths such as
``{user.firstName}``. A resolved value that is itself a template is expanded
again, guarded by a visited-path set and a depth limit so that
self-referential data always terminates:

- a path already being expanded renders as ``[Circular Reference]``
- an expansion deeper than ``max_depth`` renders as ``[Max Depth Exceeded]``

Nested expansion runs on an explicit stack of frames, so the depth limit is
the only bound on work and Python's recursion limit is never involved.

Literal braces are written ``\\{`` and ``\\}``. A ``{`` that is not closed
before the next ``{`` (or the end of the template) is kept as literal text,
as is an empty ``{}``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Union

from .diagnostics import EvaluationWarning, WarningKind, WarningSink
from .models import (
    CompositeFormatting,
    EmptyValueBehavior,
    SeparatorHandling,
    WhitespaceHandling,
)
from .values import is_empty, resolve_path, to_display_string

logger = logging.getLogger(__name__)

CIRCULAR_REFERENCE = "[Circular Reference]"
MAX_DEPTH_EXCEEDED = "[Max Depth Exceeded]"
DEFAULT_MAX_DEPTH = 10

ESCAPE_CHAR = "\\"

# Smart separator cleanup, applied in order
_SMART_SEPARATOR_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r",\s*,"), ","),  # Repeated commas
    (re.compile(r"^\s*,\s*"), ""),  # Leading comma
    (re.compile(r"\s*,\s*$"), ""),  # Trailing comma
    (re.compile(r"\s*\.\s*\."), "."),  # Repeated periods
    (re.compile(r"\s+"), " "),  # Whitespace runs
)
_WHITESPACE_RUN = re.compile(r"\s+")


@dataclass(frozen=True)
class Placeholder:
    """A ``{path}`` span found in a template."""

    path: str


Token = Union[str, Placeholder]


@dataclass(frozen=True)
class EvaluationContext:
    """Recursion state of a template evaluation.

    Attributes:
        visited: Paths currently being expanded
        depth: Current nesting depth (0 for the outermost template)
        max_depth: Depth at which expansion stops; must be positive
    """

    visited: frozenset[str] = frozenset()
    depth: int = 0
    max_depth: int = DEFAULT_MAX_DEPTH

    def __post_init__(self) -> None:
        if self.max_depth <= 0:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")

    def descend(self, path: str) -> EvaluationContext:
        """Context for expanding the value found at ``path``."""
        return EvaluationContext(
            visited=self.visited | {path},
            depth=self.depth + 1,
            max_depth=self.max_depth,
        )


@dataclass(frozen=True)
class TemplateError:
    """A problem found by :meth:`TemplateEngine.validate`.

    Attributes:
        type: ``"invalid-syntax"`` or ``"missing-field"``
        message: Human-readable description
        field: Offending path for ``"missing-field"`` errors
    """

    type: str
    message: str
    field: Optional[str] = None


@dataclass(frozen=True)
class TemplateValidation:
    """Result of template validation."""

    is_valid: bool
    dependencies: list[str]
    errors: list[TemplateError]


@dataclass(frozen=True)
class TemplateSuggestion:
    """A ready-made template offered for a set of available fields."""

    name: str
    template: str


@dataclass
class _Frame:
    """One template being expanded on the work stack."""

    tokens: list[Token]
    context: EvaluationContext
    parts: list[str] = field(default_factory=list)
    index: int = 0


def scan_template(template: str) -> list[Token]:
    """Split a template into literal text and placeholders in one pass.

    Args:
        template: Template text.

    Returns:
        Tokens in order; adjacent literal text is merged.
    """
    tokens: list[Token] = []
    literal: list[str] = []
    length = len(template)
    i = 0

    while i < length:
        char = template[i]

        if char == ESCAPE_CHAR and i + 1 < length and template[i + 1] in "{}":
            literal.append(template[i + 1])
            i += 2
            continue

        if char == "{":
            end = i + 1
            while end < length and template[end] not in "{}":
                end += 1
            if end < length and template[end] == "}" and end > i + 1:
                if literal:
                    tokens.append("".join(literal))
                    literal = []
                tokens.append(Placeholder(template[i + 1 : end]))
                i = end + 1
                continue

        literal.append(char)
        i += 1

    if literal:
        tokens.append("".join(literal))
    return tokens


def has_placeholders(text: str) -> bool:
    """Whether ``text`` contains at least one ``{path}`` span."""
    if "{" not in text or "}" not in text:
        return False
    return any(isinstance(token, Placeholder) for token in scan_template(text))


def apply_formatting(text: str, formatting: Optional[CompositeFormatting]) -> str:
    """Apply separator and whitespace cleanup to substituted text."""
    if formatting is None:
        return text

    if formatting.separator_handling == SeparatorHandling.SMART:
        for pattern, replacement in _SMART_SEPARATOR_RULES:
            text = pattern.sub(replacement, text)
        text = text.strip()

    if formatting.whitespace_handling == WhitespaceHandling.NORMALIZE:
        text = _WHITESPACE_RUN.sub(" ", text).strip()

    return text


class TemplateEngine:
    """Evaluate, inspect and validate ``{path}`` templates."""

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        """Initialize TemplateEngine.

        Args:
            max_depth: Default nesting limit for evaluate_with_context.

        Raises:
            ValueError: If max_depth is not positive.
        """
        if max_depth <= 0:
            raise ValueError(f"max_depth must be positive, got {max_depth}")
        self._max_depth = max_depth

    @property
    def max_depth(self) -> int:
        """Default nesting limit."""
        return self._max_depth

    def evaluate(
        self,
        template: str,
        data: Any,
        formatting: Optional[CompositeFormatting] = None,
    ) -> str:
        """Substitute placeholders once, without expanding resolved values.

        Resolved values are inserted as text even if they contain
        placeholders themselves. Use :meth:`evaluate_with_context` for data
        that may hold nested templates.

        Args:
            template: Template text.
            data: Value map.
            formatting: Optional post-processing.

        Returns:
            Substituted text.
        """
        parts: list[str] = []
        for token in scan_template(template):
            if isinstance(token, Placeholder):
                value = resolve_path(data, token.path)
                parts.append(self._render_value(token.path, value, formatting))
            else:
                parts.append(token)
        return apply_formatting("".join(parts), formatting)

    def evaluate_with_context(
        self,
        template: str,
        data: Any,
        formatting: Optional[CompositeFormatting] = None,
        context: Optional[EvaluationContext] = None,
        warnings: WarningSink = None,
    ) -> str:
        """Substitute placeholders, expanding nested templates safely.

        Args:
            template: Template text.
            data: Value map.
            formatting: Optional post-processing, applied to every expanded
                template.
            context: Starting recursion state; defaults to an empty context
                with this engine's max_depth.
            warnings: Optional list that receives an EvaluationWarning for
                every sentinel emitted.

        Returns:
            Substituted text. Never raises for any template or data.
        """
        ctx = context or EvaluationContext(max_depth=self._max_depth)
        if ctx.depth >= ctx.max_depth:
            self._warn_max_depth(ctx.max_depth, None, warnings)
            return MAX_DEPTH_EXCEEDED

        stack: list[_Frame] = [_Frame(tokens=scan_template(template), context=ctx)]

        while True:
            frame = stack[-1]

            if frame.index >= len(frame.tokens):
                stack.pop()
                text = apply_formatting("".join(frame.parts), formatting)
                if not stack:
                    return text
                stack[-1].parts.append(text)
                continue

            token = frame.tokens[frame.index]
            frame.index += 1

            if not isinstance(token, Placeholder):
                frame.parts.append(token)
                continue

            path = token.path
            if path in frame.context.visited:
                logger.warning("Circular reference detected: %s", path)
                if warnings is not None:
                    warnings.append(
                        EvaluationWarning(
                            kind=WarningKind.CIRCULAR_REFERENCE,
                            message=f"Circular reference detected: {path}",
                            detail=path,
                        )
                    )
                frame.parts.append(CIRCULAR_REFERENCE)
                continue

            value = resolve_path(data, path)
            if isinstance(value, str) and has_placeholders(value):
                child = frame.context.descend(path)
                if child.depth >= child.max_depth:
                    self._warn_max_depth(child.max_depth, path, warnings)
                    frame.parts.append(MAX_DEPTH_EXCEEDED)
                    continue
                stack.append(_Frame(tokens=scan_template(value), context=child))
                continue

            frame.parts.append(self._render_value(path, value, formatting))

    @staticmethod
    def extract_dependencies(template: str) -> list[str]:
        """Return the unique placeholder paths of a template in order of use."""
        seen: dict[str, None] = {}
        for token in scan_template(template):
            if isinstance(token, Placeholder):
                seen.setdefault(token.path, None)
        return list(seen)

    def validate(self, template: str, available_fields: Iterable[str]) -> TemplateValidation:
        """Check brace balance and that every placeholder refers to a known field.

        Nested paths are accepted when either the full path or its root
        segment is available.

        Args:
            template: Template text.
            available_fields: Keys (or full paths) that exist.

        Returns:
            TemplateValidation with dependencies and any errors found.
        """
        available = set(available_fields)
        errors: list[TemplateError] = []

        open_count, close_count = self._count_braces(template)
        if open_count != close_count:
            errors.append(
                TemplateError(
                    type="invalid-syntax",
                    message="Unbalanced braces in template",
                )
            )

        dependencies = self.extract_dependencies(template)
        for dep in dependencies:
            root = dep.split(".")[0]
            if root not in available and dep not in available:
                errors.append(
                    TemplateError(
                        type="missing-field",
                        field=dep,
                        message=f"Field '{dep}' not found in available data",
                    )
                )

        return TemplateValidation(
            is_valid=not errors,
            dependencies=dependencies,
            errors=errors,
        )

    @staticmethod
    def suggest_templates(fields: Iterable[str]) -> list[TemplateSuggestion]:
        """Suggest common templates based on available field keys.

        Args:
            fields: Available field keys or nested paths.

        Returns:
            Suggestions, possibly empty.
        """
        available = set(fields)
        suggestions: list[TemplateSuggestion] = []

        if {"firstName", "lastName"} <= available:
            suggestions.append(TemplateSuggestion("Full Name", "{firstName} {lastName}"))

        if "addressLine1" in available:
            template = "{addressLine1}"
            for key, separator in (
                ("addressLine2", ", "),
                ("city", ", "),
                ("state", ", "),
                ("zipCode", " "),
                ("country", ", "),
            ):
                if key in available:
                    template += f"{separator}{{{key}}}"
            suggestions.append(TemplateSuggestion("Full Address", template))

        nested_patterns = (
            (
                {"personal_data.firstName", "personal_data.lastName"},
                "Full Name",
                "{personal_data.firstName} {personal_data.lastName}",
            ),
            (
                {"kyb_kyc_1_data.addressLine1", "kyb_kyc_1_data.city", "kyb_kyc_1_data.state"},
                "KYC Address",
                "{kyb_kyc_1_data.addressLine1}, {kyb_kyc_1_data.city}, "
                "{kyb_kyc_1_data.state} {kyb_kyc_1_data.zipCode}",
            ),
        )
        for required, name, template in nested_patterns:
            if required <= available:
                suggestions.append(TemplateSuggestion(name, template))

        return suggestions

    @staticmethod
    def _render_value(
        path: str,
        value: Any,
        formatting: Optional[CompositeFormatting],
    ) -> str:
        if is_empty(value):
            if (
                formatting is not None
                and formatting.empty_value_behavior == EmptyValueBehavior.PLACEHOLDER
            ):
                return f"[{path}]"
            return ""
        return to_display_string(value).strip()

    @staticmethod
    def _count_braces(template: str) -> tuple[int, int]:
        open_count = close_count = 0
        i = 0
        while i < len(template):
            char = template[i]
            if char == ESCAPE_CHAR and template[i + 1 : i + 2] in ("{", "}"):
                i += 2
                continue
            if char == "{":
                open_count += 1
            elif char == "}":
                close_count += 1
            i += 1
        return open_count, close_count

    @staticmethod
    def _warn_max_depth(max_depth: int, path: Optional[str], warnings: WarningSink) -> None:
        logger.warning("Template evaluation max depth (%d) exceeded", max_depth)
        if warnings is not None:
            warnings.append(
                EvaluationWarning(
                    kind=WarningKind.MAX_DEPTH_EXCEEDED,
                    message=f"Template evaluation max depth ({max_depth}) exceeded",
                    detail=path,
                )
            )
