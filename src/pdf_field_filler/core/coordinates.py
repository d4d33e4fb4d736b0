# SPDX-License-Identifier: Apache-2.0
"""Conversion between stored field positions and PDF drawing space.

PDF drawing space has its origin at the bottom-left corner of the page with
Y growing upward. Field records store positions in one of two encodings, see
:class:`~pdf_field_filler.core.models.PositionVersion`.
"""

from __future__ import annotations

from typing import Optional

from .models import Point, PositionVersion


def to_drawing_space(
    position: Point,
    field_height: Optional[float],
    page_height: float,
    position_version: PositionVersion,
) -> Point:
    """Convert a stored position to the bottom-left corner in drawing space.

    Args:
        position: Stored field position.
        field_height: Height of the field box; None is treated as 0.
        page_height: Height of the target page in points.
        position_version: Encoding of ``position``.

    Returns:
        Bottom-left corner of the field box in PDF coordinates.
    """
    if position_version == PositionVersion.TOP_EDGE:
        height = field_height or 0.0
        return Point(x=position.x, y=page_height - position.y - height)
    # Legacy positions are already bottom-origin to the bottom edge
    return position


def from_drawing_space(
    point: Point,
    field_height: Optional[float],
    page_height: float,
    position_version: PositionVersion,
) -> Point:
    """Inverse of :func:`to_drawing_space`.

    Args:
        point: Bottom-left corner of the field box in PDF coordinates.
        field_height: Height of the field box; None is treated as 0.
        page_height: Height of the target page in points.
        position_version: Encoding to convert into.

    Returns:
        Position in the requested stored encoding.
    """
    if position_version == PositionVersion.TOP_EDGE:
        height = field_height or 0.0
        return Point(x=point.x, y=page_height - point.y - height)
    return point
