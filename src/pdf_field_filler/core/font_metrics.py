# SPDX-License-Identifier: Apache-2.0
"""Font selection and text measurement interfaces."""

from __future__ import annotations

# PDF standard 14 fonts usable without embedding, by (family, bold, italic)
STANDARD_FONTS: dict[tuple[str, bool, bool], str] = {
    ("Helvetica", False, False): "Helvetica",
    ("Helvetica", True, False): "Helvetica-Bold",
    ("Helvetica", False, True): "Helvetica-Oblique",
    ("Helvetica", True, True): "Helvetica-BoldOblique",
    ("Times", False, False): "Times-Roman",
    ("Times", True, False): "Times-Bold",
    ("Times", False, True): "Times-Italic",
    ("Times", True, True): "Times-BoldItalic",
    ("Courier", False, False): "Courier",
    ("Courier", True, False): "Courier-Bold",
    ("Courier", False, True): "Courier-Oblique",
    ("Courier", True, True): "Courier-BoldOblique",
}

DEFAULT_FONT_FAMILY = "Helvetica"


def resolve_font_name(family: str, bold: bool = False, italic: bool = False) -> str:
    """Map a font family and style to a standard PDF font name.

    Unknown families fall back to Helvetica with the same style.

    Args:
        family: ``"Helvetica"``, ``"Times"`` or ``"Courier"``.
        bold: Bold style.
        italic: Italic style.

    Returns:
        Standard font name, e.g. ``"Times-BoldItalic"``.
    """
    key = (family, bool(bold), bool(italic))
    if key in STANDARD_FONTS:
        return STANDARD_FONTS[key]
    return STANDARD_FONTS[(DEFAULT_FONT_FAMILY, bool(bold), bool(italic))]


def _is_wide_char(char: str) -> bool:
    code = ord(char)
    return (
        0x3000 <= code <= 0x9FFF  # CJK punctuation, kana, ideographs
        or 0xAC00 <= code <= 0xD7AF  # Hangul Syllables
        or 0xFF00 <= code <= 0xFFEF  # Fullwidth Forms
    )


def estimate_text_width(text: str, font_name: str, font_size: float) -> float:
    """Approximate text width without font metrics.

    Used when no real font is available, e.g. when rendering to a recording
    surface. Latin glyphs average 0.55em and CJK glyphs 0.9em; Courier is
    monospaced at 0.6em.

    Args:
        text: Text to measure.
        font_name: Standard font name.
        font_size: Font size in points.

    Returns:
        Estimated width in points.
    """
    if font_name.startswith("Courier"):
        narrow = 0.6
    else:
        narrow = 0.55
    total = 0.0
    for char in text:
        total += font_size * (0.9 if _is_wide_char(char) else narrow)
    return total
