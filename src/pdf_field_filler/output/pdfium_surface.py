# SPDX-License-Identifier: Apache-2.0
"""PageSurface implementation that writes page objects with pypdfium2.

Text uses the PDF standard 14 fonts (no embedding), lines and rectangles are
path objects, and images are decoded with Pillow and inserted as image
objects. Call :meth:`PdfiumPageSurface.finalize` once drawing is done so the
page content stream is regenerated.
"""

from __future__ import annotations

import ctypes
import io
import logging
from typing import Any

import pypdfium2 as pdfium  # type: ignore[import-untyped]
from PIL import Image

from pdf_field_filler.core.models import Color, Point
from pdf_field_filler.render.surface import ImageRef

logger = logging.getLogger(__name__)

# FPDF_FILLMODE_NONE; paths are stroked only
FILLMODE_NONE = 0


def to_widestring(text: str) -> ctypes.Array:
    """Convert text to FPDF_WIDESTRING (UTF-16LE, null terminated)."""
    encoded = text.encode("utf-16-le") + b"\x00\x00"
    return (ctypes.c_ushort * (len(encoded) // 2)).from_buffer_copy(encoded)


class StandardFontCache:
    """Standard font handles of one document, loaded on first use."""

    def __init__(self, document: pdfium.PdfDocument) -> None:
        self._document = document
        self._handles: dict[str, Any] = {}

    def get(self, font_name: str) -> Any:
        """Return the font handle for a standard font name.

        Raises:
            ValueError: If PDFium does not know the font.
        """
        handle = self._handles.get(font_name)
        if handle is None:
            handle = pdfium.raw.FPDFText_LoadStandardFont(
                self._document.raw, font_name.encode("utf-8")
            )
            if not handle:
                raise ValueError(f"Unknown standard font: {font_name}")
            self._handles[font_name] = handle
        return handle

    def text_width(self, text: str, font_name: str, font_size: float) -> float:
        """Advance width of ``text`` in points, from PDFium glyph metrics."""
        if not text:
            return 0.0
        handle = self.get(font_name)
        total = 0.0
        width_out = ctypes.c_float()
        for char in text:
            ok = pdfium.raw.FPDFFont_GetGlyphWidth(
                handle,
                ord(char),
                ctypes.c_float(font_size),
                ctypes.byref(width_out),
            )
            if ok:
                total += width_out.value
        return total


class PdfiumPageSurface:
    """Draw on one page of a pypdfium2 document."""

    def __init__(
        self,
        document: pdfium.PdfDocument,
        page: pdfium.PdfPage,
        fonts: StandardFontCache | None = None,
    ) -> None:
        """Initialize PdfiumPageSurface.

        Args:
            document: Owning document.
            page: Page to draw on.
            fonts: Font cache shared by all pages of ``document``.
        """
        self._document = document
        self._page = page
        self._fonts = fonts or StandardFontCache(document)
        self._object_count = 0

    @property
    def width(self) -> float:
        """Page width in points."""
        return float(self._page.get_width())

    @property
    def height(self) -> float:
        """Page height in points."""
        return float(self._page.get_height())

    @property
    def object_count(self) -> int:
        """Number of page objects inserted so far."""
        return self._object_count

    def draw_text(
        self,
        text: str,
        x: float,
        y: float,
        size: float,
        font: str,
        color: Color,
    ) -> None:
        font_handle = self._fonts.get(font)
        text_obj = pdfium.raw.FPDFPageObj_CreateTextObj(
            self._document.raw, font_handle, ctypes.c_float(size)
        )
        if not text_obj:
            logger.warning("PDFium could not create a text object for %r", text)
            return

        if not pdfium.raw.FPDFText_SetText(text_obj, to_widestring(text)):
            logger.warning("PDFium rejected text %r", text)
            pdfium.raw.FPDFPageObj_Destroy(text_obj)
            return

        pdfium.raw.FPDFPageObj_SetFillColor(text_obj, color.r, color.g, color.b, 255)
        pdfium.raw.FPDFPageObj_Transform(
            text_obj,
            ctypes.c_double(1.0),
            ctypes.c_double(0.0),
            ctypes.c_double(0.0),
            ctypes.c_double(1.0),
            ctypes.c_double(x),
            ctypes.c_double(y),
        )
        self._insert(text_obj)

    def draw_line(self, start: Point, end: Point, thickness: float, color: Color) -> None:
        path = pdfium.raw.FPDFPageObj_CreateNewPath(
            ctypes.c_float(start.x), ctypes.c_float(start.y)
        )
        pdfium.raw.FPDFPath_LineTo(path, ctypes.c_float(end.x), ctypes.c_float(end.y))
        self._stroke(path, color, thickness)

    def draw_rectangle(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        border_color: Color,
        border_width: float,
    ) -> None:
        rect = pdfium.raw.FPDFPageObj_CreateNewRect(
            ctypes.c_float(x),
            ctypes.c_float(y),
            ctypes.c_float(width),
            ctypes.c_float(height),
        )
        self._stroke(rect, border_color, border_width)

    def draw_image(self, image: ImageRef, x: float, y: float, width: float, height: float) -> None:
        with Image.open(io.BytesIO(image.data)) as source:
            pil_image = source.crop(image.crop) if image.crop else source.copy()

        if pil_image.mode in ("RGBA", "LA", "P"):
            # Flatten transparency onto white; image objects carry no soft mask here
            rgba = pil_image.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[-1])
            pil_image = background
        elif pil_image.mode != "RGB":
            pil_image = pil_image.convert("RGB")

        bitmap = pdfium.PdfBitmap.from_pil(pil_image)
        pdf_image = pdfium.PdfImage.new(self._document)
        pdf_image.set_bitmap(bitmap)
        pdf_image.set_matrix(pdfium.PdfMatrix().scale(width, height).translate(x, y))
        self._page.insert_obj(pdf_image)
        self._object_count += 1

    def text_width(self, text: str, font: str, size: float) -> float:
        return self._fonts.text_width(text, font, size)

    def finalize(self) -> None:
        """Regenerate the page content stream after drawing."""
        self._page.gen_content()

    def _stroke(self, path: Any, color: Color, width: float) -> None:
        pdfium.raw.FPDFPageObj_SetStrokeColor(path, color.r, color.g, color.b, 255)
        pdfium.raw.FPDFPageObj_SetStrokeWidth(path, ctypes.c_float(width))
        pdfium.raw.FPDFPath_SetDrawMode(path, FILLMODE_NONE, ctypes.c_int(1))
        self._insert(path)

    def _insert(self, page_object: Any) -> None:
        pdfium.raw.FPDFPage_InsertObject(self._page.raw, page_object)
        self._object_count += 1
