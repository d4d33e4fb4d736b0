# SPDX-License-Identifier: Apache-2.0
"""PDF output backends."""

from pdf_field_filler.output.pdfium_surface import PdfiumPageSurface, StandardFontCache

__all__ = [
    "PdfiumPageSurface",
    "StandardFontCache",
]
