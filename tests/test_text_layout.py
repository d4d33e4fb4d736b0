# SPDX-License-Identifier: Apache-2.0
"""Tests for TextLayoutEngine."""

from __future__ import annotations

import pytest

from pdf_field_filler.core.models import BBox, Padding, TextAlign
from pdf_field_filler.core.text_layout import TextLayoutEngine


def fixed_width(text: str, font_size: float) -> float:
    """Every character is half an em wide."""
    return len(text) * font_size * 0.5


@pytest.fixture
def layout_engine() -> TextLayoutEngine:
    """Create a TextLayoutEngine instance."""
    return TextLayoutEngine(min_font_size=6.0, font_size_step=1.0, line_height_factor=1.2)


@pytest.fixture
def bbox() -> BBox:
    """A 100x30pt box at the page origin."""
    return BBox(0, 0, 100, 30)


class TestWrapText:
    """Tests for greedy word wrapping."""

    def test_fits_on_one_line(self, layout_engine: TextLayoutEngine) -> None:
        """Short text is not wrapped."""
        assert layout_engine.wrap_text("hello world", 96, fixed_width, 10) == ["hello world"]

    def test_wraps_at_word_boundary(self, layout_engine: TextLayoutEngine) -> None:
        """Words move to the next line when the line is full."""
        lines = layout_engine.wrap_text("aaaa bbbb cccc", 45, fixed_width, 10)
        assert lines == ["aaaa bbbb", "cccc"]

    def test_overlong_word_gets_own_line(self, layout_engine: TextLayoutEngine) -> None:
        """A single word wider than the line is not split."""
        lines = layout_engine.wrap_text("a abcdefghijkl b", 30, fixed_width, 10)
        assert lines == ["a", "abcdefghijkl", "b"]

    def test_newlines_are_hard_breaks(self, layout_engine: TextLayoutEngine) -> None:
        """Explicit newlines break lines and blank lines are kept."""
        assert layout_engine.wrap_text("a\n\nb", 96, fixed_width, 10) == ["a", "", "b"]

    def test_cjk_breaks_between_characters(self, layout_engine: TextLayoutEngine) -> None:
        """Runs of CJK characters wrap per character."""
        lines = layout_engine.wrap_text("あいうえおかきくけこ", 20, fixed_width, 10)
        assert lines == ["あいうえ", "おかきく", "けこ"]

    def test_cjk_kinsoku(self, layout_engine: TextLayoutEngine) -> None:
        """Closing punctuation stays on the line it follows."""
        lines = layout_engine.wrap_text("あいう。えお", 15, fixed_width, 10)
        assert lines == ["あいう。", "えお"]


class TestLayout:
    """Tests for positioned layout."""

    def test_empty_text(self, layout_engine: TextLayoutEngine, bbox: BBox) -> None:
        """Empty text has no lines."""
        result = layout_engine.layout("", bbox, 10, fixed_width)
        assert result.lines == []
        assert result.fits_in_bbox

    def test_single_line_centred_vertically(
        self, layout_engine: TextLayoutEngine, bbox: BBox
    ) -> None:
        """A single line sits in the vertical middle of the box."""
        result = layout_engine.layout("hello world", bbox, 10, fixed_width)
        assert len(result.lines) == 1
        line = result.lines[0]
        assert line.x == pytest.approx(2.0)
        assert line.y == pytest.approx(10.0)
        assert line.width == pytest.approx(55.0)
        assert result.fits_in_bbox

    @pytest.mark.parametrize(
        ("align", "expected_x"),
        [(TextAlign.LEFT, 2.0), (TextAlign.CENTER, 22.5), (TextAlign.RIGHT, 43.0)],
    )
    def test_alignment(
        self,
        layout_engine: TextLayoutEngine,
        bbox: BBox,
        align: TextAlign,
        expected_x: float,
    ) -> None:
        """Alignment sets the left edge of each line."""
        result = layout_engine.layout("hello world", bbox, 10, fixed_width, align=align)
        assert result.lines[0].x == pytest.approx(expected_x)

    def test_multiple_lines_stack_downward(self, layout_engine: TextLayoutEngine) -> None:
        """Wrapped lines are one line height apart, top line first."""
        bbox = BBox(0, 0, 49, 60)
        result = layout_engine.layout("aaaa bbbb cccc", bbox, 10, fixed_width)
        assert [line.text for line in result.lines] == ["aaaa bbbb", "cccc"]
        first, second = result.lines
        assert first.y - second.y == pytest.approx(12.0)
        # 24pt block centred in 60pt: top at 42, baselines at 31 and 19
        assert first.y == pytest.approx(31.0)
        assert result.total_height == pytest.approx(24.0)

    def test_custom_padding(self, layout_engine: TextLayoutEngine, bbox: BBox) -> None:
        """Left padding shifts left-aligned text."""
        result = layout_engine.layout("x", bbox, 10, fixed_width, padding=Padding(left=8))
        assert result.lines[0].x == pytest.approx(8.0)

    def test_overflow_reported(self, layout_engine: TextLayoutEngine, bbox: BBox) -> None:
        """Text taller than the box does not fit."""
        result = layout_engine.layout("a b c d e", BBox(0, 0, 10, 20), 10, fixed_width)
        assert not result.fits_in_bbox


class TestAutoSize:
    """Tests for single-line auto-sizing."""

    def test_shrinks_until_it_fits(self, layout_engine: TextLayoutEngine, bbox: BBox) -> None:
        """Font size decreases in 1pt steps until the text fits."""
        result = layout_engine.layout("x" * 30, bbox, 10, fixed_width, auto_size=True)
        assert result.font_size == 6.0
        assert len(result.lines) == 1
        assert result.lines[0].y == pytest.approx(12.0)
        assert result.fits_in_bbox

    def test_keeps_size_when_fitting(self, layout_engine: TextLayoutEngine, bbox: BBox) -> None:
        """Text that fits keeps the requested size."""
        result = layout_engine.layout("short", bbox, 10, fixed_width, auto_size=True)
        assert result.font_size == 10

    def test_stops_at_minimum(self, layout_engine: TextLayoutEngine, bbox: BBox) -> None:
        """The size never drops below the minimum."""
        result = layout_engine.layout("x" * 100, bbox, 10, fixed_width, auto_size=True)
        assert result.font_size == 6.0
        assert not result.fits_in_bbox

    def test_fit_font_size(self, layout_engine: TextLayoutEngine) -> None:
        """fit_font_size returns the first size that fits."""
        assert layout_engine.fit_font_size("x" * 20, 80, 12, fixed_width) == 8
