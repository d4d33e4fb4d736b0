# SPDX-License-Identifier: Apache-2.0
"""Text layout engine for placing field text inside its box.

This module provides:
- Greedy word wrapping with per-line alignment
- Auto-sizing single-line text down to a minimum font size
- Character-level breaking of overlong CJK runs with basic kinsoku rules

Glyph measurement is supplied by the caller as ``width_of(text, font_size)``;
font metrics belong to the PDF backend.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from .models import BBox, Padding, TextAlign

WidthFunction = Callable[[str, float], float]

# Characters that should not appear at the start of a line (Japanese kinsoku)
KINSOKU_NOT_AT_LINE_START: set[str] = {
    # Punctuation
    "。", "、", "．", "，", "：", "；", "！", "？",
    # Closing brackets
    "）", "」", "』", "】", "〉", "》", "〕", "］", "｝", ")",
    # Small kana
    "ぁ", "ぃ", "ぅ", "ぇ", "ぉ", "っ", "ゃ", "ゅ", "ょ", "ゎ",
    "ァ", "ィ", "ゥ", "ェ", "ォ", "ッ", "ャ", "ュ", "ョ", "ヮ",
    # Long vowel mark
    "ー",
}

# Characters that should not appear at the end of a line (Japanese kinsoku)
KINSOKU_NOT_AT_LINE_END: set[str] = {
    # Opening brackets
    "（", "「", "『", "【", "〈", "《", "〔", "［", "｛", "(",
}


@dataclass
class LayoutLine:
    """A single positioned line of text.

    Attributes:
        text: Line content
        width: Measured width in points
        x: Left edge of the line in PDF coordinates
        y: Baseline in PDF coordinates
    """

    text: str
    width: float
    x: float
    y: float


@dataclass
class LayoutResult:
    """Result of text layout calculation."""

    lines: list[LayoutLine]
    font_size: float
    total_height: float
    fits_in_bbox: bool


class TextLayoutEngine:
    """Lay out field text within a bounding box."""

    def __init__(
        self,
        min_font_size: float = 6.0,
        font_size_step: float = 1.0,
        line_height_factor: float = 1.2,
    ) -> None:
        """Initialize TextLayoutEngine.

        Args:
            min_font_size: Smallest size auto-sizing may reach, in points.
            font_size_step: Decrement used by auto-sizing.
            line_height_factor: Default line height as a multiple of font size.
        """
        self._min_font_size = min_font_size
        self._font_size_step = font_size_step
        self._line_height_factor = line_height_factor

    def layout(
        self,
        text: str,
        bbox: BBox,
        font_size: float,
        width_of: WidthFunction,
        padding: Optional[Padding] = None,
        align: TextAlign = TextAlign.LEFT,
        auto_size: bool = False,
        line_height: Optional[float] = None,
    ) -> LayoutResult:
        """Lay out text in a box.

        Args:
            text: Text to place.
            bbox: Field box in PDF coordinates.
            font_size: Requested font size in points.
            width_of: Glyph measurement function.
            padding: Inner spacing; defaults to 2pt on every side.
            align: Horizontal alignment, recomputed per line.
            auto_size: Shrink to a single line instead of wrapping.
            line_height: Line height factor overriding the engine default.

        Returns:
            LayoutResult with positioned lines.
        """
        pad = padding or Padding()
        if not text:
            return LayoutResult(lines=[], font_size=font_size, total_height=0.0, fits_in_bbox=True)

        if auto_size:
            return self._layout_single_line(text, bbox, font_size, width_of, pad, align)

        available = bbox.width - pad.left - pad.right
        wrapped = self.wrap_text(text, available, width_of, font_size)
        factor = line_height if line_height is not None else self._line_height_factor
        step = font_size * factor
        total_height = step * len(wrapped)

        # Block is centred vertically; each line sits in a slot of `step`
        block_top = bbox.y0 + (bbox.height + total_height) / 2
        lines: list[LayoutLine] = []
        for index, line_text in enumerate(wrapped):
            width = width_of(line_text, font_size) if line_text else 0.0
            lines.append(
                LayoutLine(
                    text=line_text,
                    width=width,
                    x=self._line_x(bbox, width, align, pad),
                    y=block_top - (index + 1) * step + (step - font_size) / 2,
                )
            )

        return LayoutResult(
            lines=lines,
            font_size=font_size,
            total_height=total_height,
            fits_in_bbox=total_height <= bbox.height
            and all(line.width <= available for line in lines),
        )

    def fit_font_size(
        self,
        text: str,
        max_width: float,
        font_size: float,
        width_of: WidthFunction,
    ) -> float:
        """Shrink ``font_size`` until ``text`` fits ``max_width`` or the minimum is hit."""
        size = font_size
        while width_of(text, size) > max_width and size > self._min_font_size:
            size = max(size - self._font_size_step, self._min_font_size)
        return size

    def wrap_text(
        self,
        text: str,
        max_width: float,
        width_of: WidthFunction,
        font_size: float,
    ) -> list[str]:
        """Wrap text greedily at word boundaries.

        Newlines force a break. A word wider than ``max_width`` gets a line
        of its own, except runs of CJK characters, which are broken between
        characters.

        Args:
            text: Text to wrap.
            max_width: Maximum line width in points.
            width_of: Glyph measurement function.
            font_size: Font size in points.

        Returns:
            List of lines; blank lines are kept as empty strings.
        """
        lines: list[str] = []
        for paragraph in text.strip().split("\n"):
            words = paragraph.split()
            if not words:
                lines.append("")
                continue

            current = ""
            for word in words:
                candidate = f"{current} {word}" if current else word
                if current and width_of(candidate, font_size) > max_width:
                    lines.append(current)
                    candidate = word
                if width_of(candidate, font_size) > max_width and self._contains_cjk(candidate):
                    pieces = self._break_characters(candidate, max_width, width_of, font_size)
                    lines.extend(pieces[:-1])
                    candidate = pieces[-1]
                current = candidate
            lines.append(current)

        return lines

    def _layout_single_line(
        self,
        text: str,
        bbox: BBox,
        font_size: float,
        width_of: WidthFunction,
        pad: Padding,
        align: TextAlign,
    ) -> LayoutResult:
        line_text = " ".join(text.split())
        available = bbox.width - pad.left - pad.right
        size = self.fit_font_size(line_text, available, font_size, width_of)
        width = width_of(line_text, size)
        line = LayoutLine(
            text=line_text,
            width=width,
            x=self._line_x(bbox, width, align, pad),
            y=bbox.y0 + (bbox.height - size) / 2,
        )
        return LayoutResult(
            lines=[line],
            font_size=size,
            total_height=size,
            fits_in_bbox=width <= available,
        )

    @staticmethod
    def _line_x(bbox: BBox, width: float, align: TextAlign, pad: Padding) -> float:
        if align == TextAlign.CENTER:
            return bbox.x0 + (bbox.width - width) / 2
        if align == TextAlign.RIGHT:
            return bbox.x0 + bbox.width - width - pad.right
        return bbox.x0 + pad.left

    @staticmethod
    def _is_cjk_char(char: str) -> bool:
        """Check if a character is CJK (Chinese, Japanese, Korean)."""
        code = ord(char)
        return (
            0x4E00 <= code <= 0x9FFF  # CJK Unified Ideographs
            or 0x3040 <= code <= 0x309F  # Hiragana
            or 0x30A0 <= code <= 0x30FF  # Katakana
            or 0x3400 <= code <= 0x4DBF  # CJK Extension A
            or 0xAC00 <= code <= 0xD7AF  # Hangul Syllables
            or 0x3000 <= code <= 0x303F  # CJK Punctuation
            or 0xFF00 <= code <= 0xFFEF  # Fullwidth Forms
        )

    def _contains_cjk(self, text: str) -> bool:
        return any(self._is_cjk_char(char) for char in text)

    def _break_characters(
        self,
        text: str,
        max_width: float,
        width_of: WidthFunction,
        font_size: float,
    ) -> list[str]:
        pieces: list[str] = []
        remaining = text
        while remaining:
            break_point = self._find_break_point(remaining, max_width, width_of, font_size)
            pieces.append(remaining[:break_point])
            remaining = remaining[break_point:]
        return pieces

    def _find_break_point(
        self,
        text: str,
        max_width: float,
        width_of: WidthFunction,
        font_size: float,
    ) -> int:
        """Number of leading characters of ``text`` that fit on one line."""
        current_width = 0.0
        break_point = len(text)
        for i, char in enumerate(text):
            char_width = width_of(char, font_size)
            if current_width + char_width > max_width:
                break_point = i
                break
            current_width += char_width

        if break_point == 0:
            # Even a single character doesn't fit
            return 1
        if break_point >= len(text):
            return break_point
        return self._apply_kinsoku(text, break_point)

    @staticmethod
    def _apply_kinsoku(text: str, break_point: int) -> int:
        """Adjust a break point so lines follow Japanese line-break rules."""
        if text[break_point] in KINSOKU_NOT_AT_LINE_START:
            return break_point + 1
        if text[break_point - 1] in KINSOKU_NOT_AT_LINE_END and break_point > 1:
            return break_point - 1
        return break_point
