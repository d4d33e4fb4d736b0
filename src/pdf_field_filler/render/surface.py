# SPDX-License-Identifier: Apache-2.0
"""Abstract page surface that rendered fields are drawn on.

All coordinates are PDF points with the origin at the bottom-left of the
page. Fonts are referenced by standard font name and images by
:class:`ImageRef`; resolving and embedding them is up to the surface.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, Union, runtime_checkable

from pdf_field_filler.core.font_metrics import estimate_text_width
from pdf_field_filler.core.models import Color, Point


@dataclass(frozen=True)
class ImageRef:
    """Decoded image handed to a surface for embedding.

    Attributes:
        data: Encoded image bytes
        format: ``"png"`` or ``"jpeg"``
        width: Pixel width of the encoded image
        height: Pixel height of the encoded image
        crop: Optional ``(left, top, right, bottom)`` pixel box to keep
    """

    data: bytes = field(repr=False)
    format: str
    width: int
    height: int
    crop: Optional[tuple[int, int, int, int]] = None


@runtime_checkable
class PageSurface(Protocol):
    """Drawing primitives of one PDF page."""

    def draw_text(
        self,
        text: str,
        x: float,
        y: float,
        size: float,
        font: str,
        color: Color,
    ) -> None: ...

    def draw_line(
        self,
        start: Point,
        end: Point,
        thickness: float,
        color: Color,
    ) -> None: ...

    def draw_rectangle(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        border_color: Color,
        border_width: float,
    ) -> None: ...

    def draw_image(
        self,
        image: ImageRef,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> None: ...

    def text_width(self, text: str, font: str, size: float) -> float: ...


@dataclass(frozen=True)
class DrawText:
    """Recorded draw_text call."""

    text: str
    x: float
    y: float
    size: float
    font: str
    color: Color


@dataclass(frozen=True)
class DrawLine:
    """Recorded draw_line call."""

    start: Point
    end: Point
    thickness: float
    color: Color


@dataclass(frozen=True)
class DrawRectangle:
    """Recorded draw_rectangle call."""

    x: float
    y: float
    width: float
    height: float
    border_color: Color
    border_width: float


@dataclass(frozen=True)
class DrawImage:
    """Recorded draw_image call."""

    image: ImageRef
    x: float
    y: float
    width: float
    height: float


DrawCommand = Union[DrawText, DrawLine, DrawRectangle, DrawImage]


class RecordingSurface:
    """Surface that records drawing calls instead of producing a PDF.

    Text is measured with :func:`estimate_text_width`, so layouts are
    deterministic without any font files.
    """

    def __init__(self, width: float = 612.0, height: float = 792.0) -> None:
        self.width = width
        self.height = height
        self.commands: list[DrawCommand] = []

    def draw_text(
        self,
        text: str,
        x: float,
        y: float,
        size: float,
        font: str,
        color: Color,
    ) -> None:
        self.commands.append(DrawText(text, x, y, size, font, color))

    def draw_line(self, start: Point, end: Point, thickness: float, color: Color) -> None:
        self.commands.append(DrawLine(start, end, thickness, color))

    def draw_rectangle(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        border_color: Color,
        border_width: float,
    ) -> None:
        self.commands.append(DrawRectangle(x, y, width, height, border_color, border_width))

    def draw_image(self, image: ImageRef, x: float, y: float, width: float, height: float) -> None:
        self.commands.append(DrawImage(image, x, y, width, height))

    def text_width(self, text: str, font: str, size: float) -> float:
        return estimate_text_width(text, font, size)

    def of_type(self, command_type: type) -> list[DrawCommand]:
        """Recorded commands of one type, in drawing order."""
        return [c for c in self.commands if isinstance(c, command_type)]
