# SPDX-License-Identifier: Apache-2.0
"""Tests for ConditionalEvaluator."""

from __future__ import annotations

from typing import Any

import pytest

from pdf_field_filler.core.conditional import (
    ConditionalEvaluator,
    evaluate_condition,
    field_reference,
    is_checked_value,
)
from pdf_field_filler.core.diagnostics import EvaluationWarning, WarningKind
from pdf_field_filler.core.models import (
    Condition,
    ConditionalBranch,
    Field,
    FieldType,
    Operator,
    Point,
    PositionVersion,
    RenderAs,
)
from pdf_field_filler.core.template_engine import CIRCULAR_REFERENCE


def conditional_field(
    branches: list[tuple[str, Operator, Any, str]],
    default: str | None = None,
    render_as: RenderAs = RenderAs.TEXT,
) -> Field:
    """Build a conditional field from (field, operator, value, render) tuples."""
    return Field(
        key="status_text",
        type=FieldType.CONDITIONAL,
        page=1,
        position_version=PositionVersion.TOP_EDGE,
        position=Point(10, 10),
        conditional_branches=tuple(
            ConditionalBranch(Condition(f, op, value), render)
            for f, op, value, render in branches
        ),
        conditional_default_value=default,
        conditional_render_as=render_as,
    )


@pytest.fixture
def evaluator() -> ConditionalEvaluator:
    """Create a ConditionalEvaluator."""
    return ConditionalEvaluator()


class TestEvaluateCondition:
    """Tests for single condition evaluation."""

    def test_equals_loose(self) -> None:
        """Equality coerces numbers, booleans and strings."""
        assert evaluate_condition(Operator.EQUALS, 5, "5")
        assert evaluate_condition(Operator.EQUALS, True, "true")
        assert evaluate_condition(Operator.EQUALS, "1", 1.0)
        assert not evaluate_condition(Operator.EQUALS, "abc", "ABC")

    def test_not_equals(self) -> None:
        """not-equals is the negation of equals."""
        assert evaluate_condition(Operator.NOT_EQUALS, "a", "b")
        assert not evaluate_condition(Operator.NOT_EQUALS, 2, "2")

    def test_contains_case_insensitive(self) -> None:
        """contains compares lowercased display text."""
        assert evaluate_condition(Operator.CONTAINS, "Hello World", "world")
        assert evaluate_condition(Operator.CONTAINS, ["red", "Blue"], "blue")
        assert not evaluate_condition(Operator.CONTAINS, None, "x")

    def test_exists(self) -> None:
        """exists is false only for missing and empty-string values."""
        assert evaluate_condition(Operator.EXISTS, 0, None)
        assert evaluate_condition(Operator.EXISTS, False, None)
        assert not evaluate_condition(Operator.EXISTS, "", None)
        assert not evaluate_condition(Operator.EXISTS, None, None)
        assert evaluate_condition(Operator.NOT_EXISTS, None, None)


class TestHelpers:
    """Tests for checkbox and reference helpers."""

    def test_is_checked_value(self) -> None:
        """Recognized truthy values check a box."""
        for value in (True, "true", "Checked", " YES ", "1", 1):
            assert is_checked_value(value)
        for value in (False, "false", "no", "0", "", None, "maybe"):
            assert not is_checked_value(value)

    def test_field_reference(self) -> None:
        """Only a whole-string {key} is a reference."""
        assert field_reference("{is_active}") == "is_active"
        assert field_reference("{a.b}") == "a.b"
        assert field_reference("x {a}") is None
        assert field_reference("{a} {b}") is None


class TestConditionalEvaluator:
    """Tests for conditional field resolution."""

    def test_first_matching_branch_wins(self, evaluator: ConditionalEvaluator) -> None:
        """Branches are tried in order and the first match is used."""
        field = conditional_field(
            [
                ("age", Operator.EQUALS, "30", "first"),
                ("age", Operator.EXISTS, None, "second"),
            ]
        )
        assert evaluator.evaluate_conditional_field(field, {"age": 30}) == "first"

    def test_later_branch(self, evaluator: ConditionalEvaluator) -> None:
        """A later branch matches when earlier ones do not."""
        field = conditional_field(
            [
                ("age", Operator.EQUALS, "18", "first"),
                ("age", Operator.EXISTS, None, "second"),
            ]
        )
        assert evaluator.evaluate_conditional_field(field, {"age": 30}) == "second"

    def test_default_when_nothing_matches(self, evaluator: ConditionalEvaluator) -> None:
        """The default value is used when no branch matches."""
        field = conditional_field([("a", Operator.EQUALS, "x", "hit")], default="fallback")
        assert evaluator.evaluate_conditional_field(field, {"a": "y"}) == "fallback"

    def test_no_default_is_empty(self, evaluator: ConditionalEvaluator) -> None:
        """Without a default, a miss renders the empty string."""
        field = conditional_field([("a", Operator.EQUALS, "x", "hit")])
        assert evaluator.evaluate_conditional_field(field, {}) == ""

    def test_render_value_template(self, evaluator: ConditionalEvaluator) -> None:
        """Render values are evaluated as templates."""
        field = conditional_field([("name", Operator.EXISTS, None, "Dear {name},")])
        assert evaluator.evaluate_conditional_field(field, {"name": "Ada"}) == "Dear Ada,"

    def test_empty_template_result_falls_back(self, evaluator: ConditionalEvaluator) -> None:
        """An empty template result uses the default value."""
        field = conditional_field(
            [("flag", Operator.EXISTS, None, "{missing}")], default="none given"
        )
        assert evaluator.evaluate_conditional_field(field, {"flag": "y"}) == "none given"

    def test_reference_passes_through(self, evaluator: ConditionalEvaluator) -> None:
        """A whole-string reference keeps the referenced value."""
        field = conditional_field([("x", Operator.EXISTS, None, "{count}")])
        assert evaluator.evaluate_conditional_field(field, {"x": 1, "count": 7}) == "7"

    def test_circular_template(self, evaluator: ConditionalEvaluator) -> None:
        """Cyclic data renders the sentinel and reports the field."""
        warnings: list[EvaluationWarning] = []
        field = conditional_field([("a", Operator.EXISTS, None, "v: {a}")])
        result = evaluator.evaluate_conditional_field(field, {"a": "{a}"}, warnings)
        assert result == f"v: {CIRCULAR_REFERENCE}"
        assert warnings[0].kind == WarningKind.CIRCULAR_REFERENCE
        assert warnings[0].field_key == "status_text"

    def test_value_map_not_modified(self, evaluator: ConditionalEvaluator) -> None:
        """Evaluation never writes to the value map."""
        values = {"a": "x"}
        field = conditional_field([("a", Operator.EQUALS, "x", "{a}!")])
        evaluator.evaluate_conditional_field(field, values)
        assert values == {"a": "x"}

    @pytest.mark.parametrize(
        ("render_value", "render_as", "expected"),
        [(5, "text", "5"), (2.5, "text", "2.5"), (True, "checkbox", True), (0, "checkbox", False)],
    )
    def test_non_string_branch_content(
        self,
        evaluator: ConditionalEvaluator,
        render_value: Any,
        render_as: str,
        expected: Any,
    ) -> None:
        """Numbers and booleans in branch content from JSON evaluate like their text."""
        field = Field.from_dict(
            {
                "key": "c",
                "type": "conditional",
                "page": 1,
                "conditionalBranches": [
                    {"condition": {"field": "a", "operator": "exists"}, "renderValue": render_value}
                ],
                "conditionalDefaultValue": 7,
                "conditionalRenderAs": render_as,
            }
        )
        assert evaluator.evaluate_conditional_field(field, {"a": "x"}) == expected
        assert evaluator.evaluate_conditional_field(field, {}) == ("7" if render_as == "text" else False)


class TestCheckboxMode:
    """Tests for conditional fields rendered as checkboxes."""

    def test_true_checks(self, evaluator: ConditionalEvaluator) -> None:
        """'true' checks the box."""
        field = conditional_field(
            [("a", Operator.EXISTS, None, "true")], render_as=RenderAs.CHECKBOX
        )
        assert evaluator.evaluate_conditional_field(field, {"a": 1}) is True

    def test_false_value(self, evaluator: ConditionalEvaluator) -> None:
        """'unchecked' leaves the box empty without warnings."""
        warnings: list[EvaluationWarning] = []
        field = conditional_field(
            [("a", Operator.EXISTS, None, "unchecked")], render_as=RenderAs.CHECKBOX
        )
        assert evaluator.evaluate_conditional_field(field, {"a": 1}, warnings) is False
        assert warnings == []

    def test_ambiguous_value(self, evaluator: ConditionalEvaluator) -> None:
        """Text that merely contains 'true' does not check and warns."""
        warnings: list[EvaluationWarning] = []
        field = conditional_field(
            [("a", Operator.EXISTS, None, "Answer: true")], render_as=RenderAs.CHECKBOX
        )
        assert evaluator.evaluate_conditional_field(field, {"a": 1}, warnings) is False
        assert [w.kind for w in warnings] == [WarningKind.AMBIGUOUS_CHECKBOX_VALUE]

    def test_escaped_value(self, evaluator: ConditionalEvaluator) -> None:
        """A leading backslash is literal text and never checks."""
        field = conditional_field(
            [("a", Operator.EXISTS, None, "\\true")], render_as=RenderAs.CHECKBOX
        )
        assert evaluator.evaluate_conditional_field(field, {"a": 1}) is False

    def test_reference_to_boolean(self, evaluator: ConditionalEvaluator) -> None:
        """A reference to a boolean value is used as-is."""
        field = conditional_field(
            [("a", Operator.EXISTS, None, "{agreed}")], render_as=RenderAs.CHECKBOX
        )
        assert evaluator.evaluate_conditional_field(field, {"a": 1, "agreed": True}) is True
        assert evaluator.evaluate_conditional_field(field, {"a": 1, "agreed": False}) is False

    def test_template_result_coerced(self, evaluator: ConditionalEvaluator) -> None:
        """A template producing 'yes' checks the box."""
        field = conditional_field(
            [("a", Operator.EXISTS, None, "{answer}es")], render_as=RenderAs.CHECKBOX
        )
        assert evaluator.evaluate_conditional_field(field, {"a": 1, "answer": "y"}) is True
