# SPDX-License-Identifier: Apache-2.0
"""Tests for TemplateEngine."""

from __future__ import annotations

import pytest

from pdf_field_filler.core.diagnostics import EvaluationWarning, WarningKind
from pdf_field_filler.core.models import (
    CompositeFormatting,
    EmptyValueBehavior,
    SeparatorHandling,
    WhitespaceHandling,
)
from pdf_field_filler.core.template_engine import (
    CIRCULAR_REFERENCE,
    MAX_DEPTH_EXCEEDED,
    EvaluationContext,
    Placeholder,
    TemplateEngine,
    apply_formatting,
    has_placeholders,
    scan_template,
)


def chain_data(length: int) -> dict[str, str]:
    """Value map where k0 -> {k1} -> ... -> k<length> = "end"."""
    data = {f"k{i}": f"{{k{i + 1}}}" for i in range(length)}
    data[f"k{length}"] = "end"
    return data


@pytest.fixture
def engine() -> TemplateEngine:
    """Create a TemplateEngine with the default depth limit."""
    return TemplateEngine()


class TestScanTemplate:
    """Tests for the single-pass template scanner."""

    def test_plain_text(self) -> None:
        """Text without braces is a single literal token."""
        assert scan_template("hello") == ["hello"]

    def test_placeholders_and_literals(self) -> None:
        """Placeholders are split out of the surrounding text."""
        assert scan_template("Hi {user.name}!") == ["Hi ", Placeholder("user.name"), "!"]

    def test_escaped_braces_are_literal(self) -> None:
        """Escaped braces are kept as literal braces."""
        assert scan_template(r"\{name\}") == ["{name}"]

    def test_unclosed_brace_is_literal(self) -> None:
        """An unclosed span stays in the text."""
        assert scan_template("a {b") == ["a {b"]

    def test_empty_braces_are_literal(self) -> None:
        """Empty braces are not a placeholder."""
        assert scan_template("{}") == ["{}"]

    def test_inner_open_brace_restarts_span(self) -> None:
        """A second '{' before '}' makes the first one literal."""
        assert scan_template("{a{b}") == ["{a", Placeholder("b")]

    def test_has_placeholders(self) -> None:
        """Only real spans count as placeholders."""
        assert has_placeholders("{x}")
        assert not has_placeholders("no braces")
        assert not has_placeholders(r"\{x\}")


class TestEvaluate:
    """Tests for single-pass evaluation."""

    def test_no_placeholders_is_identity(self, engine: TemplateEngine) -> None:
        """A template without spans evaluates to itself."""
        assert engine.evaluate("Nothing to see here", {"a": 1}) == "Nothing to see here"

    def test_nested_lookup(self, engine: TemplateEngine) -> None:
        """Dot paths walk nested objects."""
        data = {"user": {"address": {"city": "Tokyo"}}}
        assert engine.evaluate("City: {user.address.city}", data) == "City: Tokyo"

    def test_list_index_lookup(self, engine: TemplateEngine) -> None:
        """Numeric path segments index lists."""
        data = {"items": ["first", "second"]}
        assert engine.evaluate("{items.1}", data) == "second"

    def test_missing_value_renders_empty(self, engine: TemplateEngine) -> None:
        """Unknown paths substitute the empty string."""
        assert engine.evaluate("[{missing}]", {}) == "[]"

    def test_values_are_converted_to_text(self, engine: TemplateEngine) -> None:
        """Numbers and booleans use their display form."""
        data = {"n": 3.0, "flag": True, "tags": ["a", "b"]}
        assert engine.evaluate("{n} {flag} {tags}", data) == "3 true a,b"

    def test_resolved_templates_are_not_expanded(self, engine: TemplateEngine) -> None:
        """evaluate inserts nested templates verbatim."""
        assert engine.evaluate("{a}", {"a": "{b}", "b": "x"}) == "{b}"

    def test_placeholder_behavior(self, engine: TemplateEngine) -> None:
        """PLACEHOLDER renders empty values as [path]."""
        formatting = CompositeFormatting(empty_value_behavior=EmptyValueBehavior.PLACEHOLDER)
        assert engine.evaluate("{name}", {}, formatting) == "[name]"


class TestEvaluateWithContext:
    """Tests for guarded nested evaluation."""

    def test_nested_templates_are_expanded(self, engine: TemplateEngine) -> None:
        """Values that are templates are evaluated recursively."""
        data = {"full": "{first} {last}", "first": "Ada", "last": "Lovelace"}
        assert engine.evaluate_with_context("Name: {full}", data) == "Name: Ada Lovelace"

    def test_self_reference(self, engine: TemplateEngine) -> None:
        """A value referring to itself renders the circular sentinel."""
        assert engine.evaluate_with_context("{a}", {"a": "{a}"}) == CIRCULAR_REFERENCE

    def test_mutual_reference(self, engine: TemplateEngine) -> None:
        """A cycle through two values terminates."""
        data = {"a": "x{b}", "b": "y{a}"}
        assert engine.evaluate_with_context("{a}", data) == f"xy{CIRCULAR_REFERENCE}"

    def test_shared_reference_is_not_circular(self, engine: TemplateEngine) -> None:
        """The same path used twice side by side is not a cycle."""
        data = {"a": "{b}-{b}", "b": "{c}", "c": "z"}
        assert engine.evaluate_with_context("{a}", data) == "z-z"

    def test_long_chain_hits_depth_limit(self, engine: TemplateEngine) -> None:
        """A chain of 11 nested templates exceeds the default depth of 10."""
        assert engine.evaluate_with_context("{k0}", chain_data(11)) == MAX_DEPTH_EXCEEDED

    def test_short_chain_resolves(self, engine: TemplateEngine) -> None:
        """A chain of 9 nested templates resolves completely."""
        assert engine.evaluate_with_context("{k0}", chain_data(9)) == "end"

    def test_very_deep_chain_terminates(self) -> None:
        """Large depth limits do not run into the recursion limit."""
        engine = TemplateEngine(max_depth=5000)
        assert engine.evaluate_with_context("{k0}", chain_data(3000)) == "end"

    def test_initial_context_visited(self, engine: TemplateEngine) -> None:
        """Paths in the starting context are treated as already expanding."""
        context = EvaluationContext(visited=frozenset({"self"}))
        result = engine.evaluate_with_context("{self}", {"self": "x"}, context=context)
        assert result == CIRCULAR_REFERENCE

    def test_context_at_limit(self, engine: TemplateEngine) -> None:
        """A context already at max depth evaluates nothing."""
        context = EvaluationContext(depth=3, max_depth=3)
        assert engine.evaluate_with_context("{a}", {"a": "1"}, context=context) == MAX_DEPTH_EXCEEDED

    def test_warnings_are_collected(self, engine: TemplateEngine) -> None:
        """Sentinels are reported to the warning sink."""
        warnings: list[EvaluationWarning] = []
        engine.evaluate_with_context("{a} {k0}", {"a": "{a}", **chain_data(11)}, warnings=warnings)
        kinds = [w.kind for w in warnings]
        assert kinds == [WarningKind.CIRCULAR_REFERENCE, WarningKind.MAX_DEPTH_EXCEEDED]
        assert warnings[0].detail == "a"

    def test_data_is_not_modified(self, engine: TemplateEngine) -> None:
        """Evaluation never writes to the value map."""
        data = {"a": "{b}", "b": "{a}"}
        snapshot = dict(data)
        engine.evaluate_with_context("{a}", data)
        assert data == snapshot

    def test_non_positive_max_depth_rejected(self) -> None:
        """max_depth must be positive."""
        with pytest.raises(ValueError):
            TemplateEngine(max_depth=0)
        with pytest.raises(ValueError):
            EvaluationContext(max_depth=-1)


class TestFormatting:
    """Tests for separator and whitespace post-processing."""

    def test_smart_separators(self) -> None:
        """Dangling and doubled commas are removed."""
        formatting = CompositeFormatting(separator_handling=SeparatorHandling.SMART)
        assert apply_formatting(", Main St, , Springfield,", formatting) == "Main St, Springfield"

    def test_normalize_whitespace(self) -> None:
        """Whitespace runs collapse to one space."""
        formatting = CompositeFormatting(whitespace_handling=WhitespaceHandling.NORMALIZE)
        assert apply_formatting("  a   b \n c ", formatting) == "a b c"

    def test_literal_keeps_text(self) -> None:
        """Default formatting leaves text untouched."""
        assert apply_formatting(" a ,, b ", CompositeFormatting()) == " a ,, b "

    def test_smart_formatting_after_empty_values(self, engine: TemplateEngine) -> None:
        """Skipped empty values do not leave separators behind."""
        formatting = CompositeFormatting(
            separator_handling=SeparatorHandling.SMART,
            whitespace_handling=WhitespaceHandling.NORMALIZE,
        )
        data = {"line1": "1 Main St", "city": "Springfield"}
        result = engine.evaluate_with_context("{line1}, {line2}, {city}", data, formatting)
        assert result == "1 Main St, Springfield"


class TestInspection:
    """Tests for dependency extraction, validation and suggestions."""

    def test_extract_dependencies_unique_in_order(self) -> None:
        """Dependencies are unique and keep first-use order."""
        deps = TemplateEngine.extract_dependencies("{b} {a} {b} {c.d}")
        assert deps == ["b", "a", "c.d"]

    def test_validate_ok(self, engine: TemplateEngine) -> None:
        """Known fields and nested paths of known roots are valid."""
        result = engine.validate("{name} {user.city}", ["name", "user"])
        assert result.is_valid
        assert result.dependencies == ["name", "user.city"]

    def test_validate_missing_field(self, engine: TemplateEngine) -> None:
        """Unknown fields are reported."""
        result = engine.validate("{name} {age}", ["name"])
        assert not result.is_valid
        assert [e.field for e in result.errors] == ["age"]
        assert result.errors[0].type == "missing-field"

    def test_validate_unbalanced(self, engine: TemplateEngine) -> None:
        """Unbalanced braces are a syntax error."""
        result = engine.validate("{name", ["name"])
        assert any(e.type == "invalid-syntax" for e in result.errors)

    def test_validate_escaped_braces_balanced(self, engine: TemplateEngine) -> None:
        """Escaped braces do not count toward brace balance."""
        assert engine.validate(r"\{ {name}", ["name"]).is_valid

    def test_suggest_full_name(self) -> None:
        """firstName and lastName suggest a full name template."""
        suggestions = TemplateEngine.suggest_templates(["firstName", "lastName"])
        assert [(s.name, s.template) for s in suggestions] == [
            ("Full Name", "{firstName} {lastName}")
        ]

    def test_suggest_address(self) -> None:
        """Address parts are joined in order."""
        suggestions = TemplateEngine.suggest_templates(["addressLine1", "city", "zipCode"])
        assert suggestions[0].template == "{addressLine1}, {city} {zipCode}"

    def test_suggest_nothing(self) -> None:
        """Unrelated fields yield no suggestions."""
        assert TemplateEngine.suggest_templates(["foo"]) == []
