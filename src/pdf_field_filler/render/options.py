# SPDX-License-Identifier: Apache-2.0
"""Rendering of options-variant fields (radio/checkbox style placements)."""

from __future__ import annotations

import logging
from typing import Any

from pdf_field_filler.core.coordinates import to_drawing_space
from pdf_field_filler.core.models import Color, Field, OptionRenderType, Point
from pdf_field_filler.core.values import to_display_string

from .surface import PageSurface

logger = logging.getLogger(__name__)

DEFAULT_OPTION_SIZE = 20.0
CHECKMARK_INSET = 0.2
OPTION_CHECKMARK_THICKNESS = 1.5


def normalize_selection(value: Any) -> set[str]:
    """Selected option keys of an options field value.

    A scalar selects one option and a list selects each of its items; items
    are compared by display text so ``1`` selects option ``"1"``.
    """
    if value is None:
        return set()
    items = value if isinstance(value, (list, tuple, set, frozenset)) else [value]
    return {to_display_string(item) for item in items if item is not None}


def draw_cross(
    surface: PageSurface,
    x: float,
    y: float,
    side: float,
    thickness: float,
    color: Color,
) -> None:
    """Draw an X inside the square ``(x, y, side, side)`` with a 20% inset."""
    inset = side * CHECKMARK_INSET
    # Top-left to bottom-right
    surface.draw_line(
        Point(x + inset, y + side - inset),
        Point(x + side - inset, y + inset),
        thickness,
        color,
    )
    # Top-right to bottom-left
    surface.draw_line(
        Point(x + side - inset, y + side - inset),
        Point(x + inset, y + inset),
        thickness,
        color,
    )


class OptionsFieldRenderer:
    """Draw the selected options of an options-variant field."""

    def render(
        self,
        surface: PageSurface,
        field: Field,
        value: Any,
        page_height: float,
        font: str,
    ) -> int:
        """Draw every option mapping whose key is selected by ``value``.

        Args:
            surface: Target page.
            field: Options field.
            value: Selected key or list of keys.
            page_height: Height of the page in points.
            font: Standard font name for text and custom renders.

        Returns:
            Number of options drawn.
        """
        selected = normalize_selection(value)
        props = field.properties
        color = props.text_color
        drawn = 0

        for mapping in field.option_mappings:
            if mapping.key not in selected:
                continue

            side = mapping.size.height if mapping.size else DEFAULT_OPTION_SIZE
            origin = to_drawing_space(mapping.position, side, page_height, field.position_version)

            if field.render_type == OptionRenderType.CHECKMARK:
                # The template already prints the box; only the mark is drawn
                draw_cross(surface, origin.x, origin.y, side, OPTION_CHECKMARK_THICKNESS, color)
            else:
                if field.render_type == OptionRenderType.CUSTOM:
                    text = mapping.custom_text
                else:
                    text = mapping.key
                if not text:
                    logger.debug("Option '%s' of '%s' has no custom text", mapping.key, field.key)
                    continue
                y = origin.y + (side - props.font_size) / 2
                surface.draw_text(text, origin.x, y, props.font_size, font, color)
            drawn += 1

        return drawn
