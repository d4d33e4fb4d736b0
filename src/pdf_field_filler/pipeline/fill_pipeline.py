# SPDX-License-Identifier: Apache-2.0
"""Fill pipeline: template PDF + field descriptors + values -> filled PDF."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any

import pypdfium2 as pdfium  # type: ignore[import-untyped]

from pdf_field_filler.core.diagnostics import EvaluationWarning
from pdf_field_filler.core.models import Field
from pdf_field_filler.core.template_engine import DEFAULT_MAX_DEPTH, TemplateEngine
from pdf_field_filler.core.text_layout import TextLayoutEngine
from pdf_field_filler.output.pdfium_surface import PdfiumPageSurface, StandardFontCache
from pdf_field_filler.pipeline.errors import RenderError, TemplateLoadError
from pdf_field_filler.pipeline.progress import ProgressCallback
from pdf_field_filler.render.pipeline import FieldRenderPipeline, RenderStats

logger = logging.getLogger(__name__)


@dataclass
class FillConfig:
    """Fill pipeline configuration."""

    # Nesting limit for composite and conditional templates
    max_template_depth: int = DEFAULT_MAX_DEPTH

    # Auto-sized text never shrinks below this size
    min_font_size: float = 6.0
    # Used when a field has no line height of its own
    line_height_factor: float = 1.2

    # Render fields with enabled=False as if they were enabled
    skip_disabled: bool = True

    # Debug options
    debug_draw_bbox: bool = False


@dataclass
class FillResult:
    """Fill pipeline result."""

    pdf_bytes: bytes
    stats: RenderStats
    page_count: int = 0
    warnings: list[EvaluationWarning] = field(default_factory=list)


class FillPipeline:
    """Draw field values onto a template PDF."""

    def __init__(
        self,
        config: FillConfig | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        """Initialize FillPipeline."""
        self._config = config or FillConfig()
        self._progress_callback = progress_callback
        self._renderer = FieldRenderPipeline(
            template_engine=TemplateEngine(max_depth=self._config.max_template_depth),
            layout_engine=TextLayoutEngine(
                min_font_size=self._config.min_font_size,
                line_height_factor=self._config.line_height_factor,
            ),
            debug_draw_bbox=self._config.debug_draw_bbox,
        )

    def fill(
        self,
        pdf_source: Path | str | bytes,
        fields: Iterable[Field],
        values: Mapping[str, Any] | None = None,
        output_path: Path | None = None,
    ) -> FillResult:
        """Fill a PDF from path or bytes.

        Args:
            pdf_source: Template PDF.
            fields: Field descriptors, e.g. a FieldSet.
            values: Runtime values keyed by field key.
            output_path: If given, the filled PDF is also written here.

        Returns:
            FillResult with the filled PDF bytes.

        Raises:
            FileNotFoundError: If ``pdf_source`` is a path that does not exist.
            TemplateLoadError: If the template cannot be opened.
            RenderError: If drawing or saving fails.
        """
        pdf = self._stage_load(pdf_source)
        try:
            field_list = self._prepare_fields(fields)
            warnings: list[EvaluationWarning] = []
            stats = self._stage_render(pdf, field_list, values or {}, warnings)
            pdf_bytes = self._stage_save(pdf)
            page_count = len(pdf)
        finally:
            pdf.close()

        if output_path is not None:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_bytes(pdf_bytes)

        logger.info(
            "Filled %d field(s), skipped %d, %d warning(s)",
            stats.rendered,
            stats.skipped,
            len(warnings),
        )
        return FillResult(
            pdf_bytes=pdf_bytes,
            stats=stats,
            page_count=page_count,
            warnings=warnings,
        )

    def _stage_load(self, pdf_source: Path | str | bytes) -> pdfium.PdfDocument:
        if isinstance(pdf_source, (str, Path)):
            path = Path(pdf_source)
            if not path.exists():
                raise FileNotFoundError(f"PDF file not found: {path}")
            source: Any = str(path)
        elif isinstance(pdf_source, bytes):
            source = pdf_source
        else:
            raise TypeError(
                f"pdf_source must be Path, str, or bytes, got {type(pdf_source).__name__}"
            )

        try:
            pdf = pdfium.PdfDocument(source)
        except pdfium.PdfiumError as exc:
            raise TemplateLoadError("Failed to open template PDF", stage="load", cause=exc) from exc

        self._notify("load", 1, 1)
        return pdf

    def _prepare_fields(self, fields: Iterable[Field]) -> list[Field]:
        field_list = list(fields)
        if self._config.skip_disabled:
            return field_list
        return [f if f.enabled else dataclasses.replace(f, enabled=True) for f in field_list]

    def _stage_render(
        self,
        pdf: pdfium.PdfDocument,
        fields: list[Field],
        values: Mapping[str, Any],
        warnings: list[EvaluationWarning],
    ) -> RenderStats:
        page_count = len(pdf)
        for f in fields:
            if f.page > page_count:
                logger.warning(
                    "Field '%s' is on page %d but the document has %d page(s)",
                    f.key,
                    f.page,
                    page_count,
                )

        fonts = StandardFontCache(pdf)
        total = RenderStats()
        for index in range(page_count):
            page = pdf[index]
            try:
                surface = PdfiumPageSurface(pdf, page, fonts)
                total += self._renderer.render_page(
                    surface,
                    fields,
                    values,
                    page_number=index + 1,
                    page_height=surface.height,
                    warnings=warnings,
                )
                surface.finalize()
            except Exception as exc:
                raise RenderError(
                    f"Rendering page {index + 1} failed", stage="render", cause=exc
                ) from exc
            finally:
                page.close()
            self._notify("render", index + 1, page_count)

        return total

    def _stage_save(self, pdf: pdfium.PdfDocument) -> bytes:
        buffer = BytesIO()
        try:
            pdf.save(buffer)
        except Exception as exc:
            raise RenderError("Saving the filled PDF failed", stage="save", cause=exc) from exc
        self._notify("save", 1, 1)
        return buffer.getvalue()

    def _notify(self, stage: str, current: int, total: int, message: str = "") -> None:
        if self._progress_callback is None:
            return
        self._progress_callback(stage, current, total, message)
