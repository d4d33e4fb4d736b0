# SPDX-License-Identifier: Apache-2.0
"""Per-field rendering: resolve a value, place it, emit drawing calls.

The pipeline is a pure function of (fields, value map) to drawing calls on a
:class:`~pdf_field_filler.render.surface.PageSurface`. Fields are rendered
independently in declaration order and inputs are never modified.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from pdf_field_filler.core.conditional import ConditionalEvaluator, is_checked_value
from pdf_field_filler.core.coordinates import to_drawing_space
from pdf_field_filler.core.diagnostics import EvaluationWarning, WarningKind, WarningSink
from pdf_field_filler.core.font_metrics import resolve_font_name
from pdf_field_filler.core.models import BBox, Color, Field, FieldType, Size
from pdf_field_filler.core.template_engine import EvaluationContext, TemplateEngine
from pdf_field_filler.core.text_layout import TextLayoutEngine
from pdf_field_filler.core.values import is_empty, resolve_path, to_display_string

from .images import ImageDecodeError, compute_placement, decode_image_value
from .options import OptionsFieldRenderer, draw_cross
from .surface import PageSurface

logger = logging.getLogger(__name__)

DEFAULT_TEXT_SIZE = Size(width=100.0, height=30.0)
DEFAULT_IMAGE_SIZE = Size(width=100.0, height=100.0)
DEFAULT_CHECKBOX_SIZE = 20.0
CHECKBOX_BORDER_WIDTH = 1.0
CHECKBOX_MARK_THICKNESS = 2.0

DEBUG_BBOX_COLOR = Color(255, 0, 0)
DEBUG_BBOX_WIDTH = 0.5


@dataclass
class RenderStats:
    """Counts of fields handled by one render pass."""

    rendered: int = 0
    skipped: int = 0

    def __iadd__(self, other: RenderStats) -> RenderStats:
        self.rendered += other.rendered
        self.skipped += other.skipped
        return self


class FieldRenderPipeline:
    """Render fields of every type onto a page surface."""

    def __init__(
        self,
        template_engine: Optional[TemplateEngine] = None,
        layout_engine: Optional[TextLayoutEngine] = None,
        debug_draw_bbox: bool = False,
    ) -> None:
        """Initialize FieldRenderPipeline.

        Args:
            template_engine: Engine for composite and conditional templates.
            layout_engine: Engine for text wrapping and sizing.
            debug_draw_bbox: Outline every field box in red.
        """
        self._templates = template_engine or TemplateEngine()
        self._conditionals = ConditionalEvaluator(self._templates)
        self._layout = layout_engine or TextLayoutEngine()
        self._options = OptionsFieldRenderer()
        self._debug_draw_bbox = debug_draw_bbox

    @staticmethod
    def build_evaluation_data(fields: Iterable[Field], value_map: Any) -> dict[str, Any]:
        """Value map as seen by templates.

        Composite fields without an explicit value contribute their template,
        so templates can reference other composite fields; cycles among them
        are caught by the template engine. The input map is copied, not
        modified.
        """
        data: dict[str, Any] = dict(value_map) if isinstance(value_map, Mapping) else {}
        for f in fields:
            if f.type == FieldType.COMPOSITE_TEXT and f.template and f.key not in data:
                data[f.key] = f.template
        return data

    def build_condition_data(self, fields: Iterable[Field], value_map: Any) -> dict[str, Any]:
        """Value map as seen by conditional fields.

        Composite fields without an explicit value contribute their evaluated
        text instead of their template, so raw ``{key}`` references and branch
        conditions see what the composite field renders.
        """
        field_list = list(fields)
        data = self.build_evaluation_data(field_list, value_map)
        explicit = value_map if isinstance(value_map, Mapping) else {}
        resolved = dict(data)
        for f in field_list:
            if f.type == FieldType.COMPOSITE_TEXT and f.template and f.key not in explicit:
                resolved[f.key] = self.resolve_value(f, data)
        return resolved

    def resolve_value(self, field: Field, data: Any, warnings: WarningSink = None) -> Any:
        """Concrete value of one field.

        Args:
            field: Field descriptor.
            data: Evaluation data; :meth:`build_condition_data` for conditional
                fields, :meth:`build_evaluation_data` for the others.
            warnings: Optional diagnostics sink.

        Returns:
            ``str`` or ``bool`` for conditional fields, ``str`` for composite
            fields, otherwise the raw value, default value or sample value.
        """
        if field.type == FieldType.CONDITIONAL:
            return self._conditionals.evaluate_conditional_field(field, data, warnings)

        if field.type == FieldType.COMPOSITE_TEXT:
            collected: list[EvaluationWarning] = []
            context = EvaluationContext(
                visited=frozenset({field.key}),
                max_depth=self._templates.max_depth,
            )
            text = self._templates.evaluate_with_context(
                field.template or "",
                data,
                field.composite_formatting,
                context=context,
                warnings=collected,
            )
            _forward_warnings(collected, field.key, warnings)
            return text

        value = data.get(field.key) if isinstance(data, Mapping) else None
        if value is None and "." in field.key:
            value = resolve_path(data, field.key)
        if is_empty(value):
            value = field.properties.default_value
        if is_empty(value):
            value = field.sample_value
        return value

    def render_page(
        self,
        surface: PageSurface,
        fields: Iterable[Field],
        value_map: Any,
        page_number: int,
        page_height: float,
        warnings: WarningSink = None,
    ) -> RenderStats:
        """Render the fields of one page.

        Args:
            surface: Target page.
            fields: All fields of the document; other pages are ignored.
            value_map: Runtime values.
            page_number: 1-based page number.
            page_height: Height of the page in points.
            warnings: Optional diagnostics sink.

        Returns:
            RenderStats for this page.
        """
        field_list = list(fields)
        page_fields = [f for f in field_list if f.page == page_number]
        data = self.build_evaluation_data(field_list, value_map)
        condition_data = data
        if any(f.type == FieldType.CONDITIONAL for f in page_fields):
            condition_data = self.build_condition_data(field_list, value_map)
        stats = RenderStats()

        for f in page_fields:
            field_data = condition_data if f.type == FieldType.CONDITIONAL else data
            if self.render_field(surface, f, field_data, page_height, warnings):
                stats.rendered += 1
            else:
                stats.skipped += 1

        return stats

    def render_field(
        self,
        surface: PageSurface,
        field: Field,
        data: Any,
        page_height: float,
        warnings: WarningSink = None,
    ) -> bool:
        """Render one field.

        Args:
            surface: Target page.
            field: Field descriptor.
            data: Evaluation data from :meth:`build_evaluation_data`.
            page_height: Height of the page in points.
            warnings: Optional diagnostics sink.

        Returns:
            True if anything was drawn.
        """
        if not field.enabled:
            logger.debug("Skipping disabled field '%s'", field.key)
            return False
        if field.is_data_only:
            logger.debug("Skipping data-only field '%s'", field.key)
            return False

        value = self.resolve_value(field, data, warnings)
        if value is None or value == "":
            logger.debug("Skipping field '%s' without a value", field.key)
            return False

        font = resolve_font_name(
            field.properties.font_family,
            field.properties.bold,
            field.properties.italic,
        )

        if field.is_options:
            return self._options.render(surface, field, value, page_height, font) > 0

        if field.type == FieldType.CONDITIONAL and isinstance(value, bool):
            return self._render_checkbox(surface, field, value, page_height)
        if field.type == FieldType.CHECKBOX:
            return self._render_checkbox(surface, field, is_checked_value(value), page_height)
        if field.type in (FieldType.IMAGE, FieldType.SIGNATURE):
            return self._render_image(surface, field, value, page_height, warnings)
        return self._render_text(surface, field, to_display_string(value), page_height, font)

    def _field_bbox(self, field: Field, size: Size, page_height: float) -> BBox:
        if field.position is None:
            # render_field skips data-only fields before any box is computed
            raise ValueError(f"Field '{field.key}' has no position")
        origin = to_drawing_space(field.position, size.height, page_height, field.position_version)
        return BBox.from_origin(origin, size.width, size.height)

    def _draw_debug_bbox(self, surface: PageSurface, bbox: BBox) -> None:
        # Drawn before the content so the content stays on top
        if self._debug_draw_bbox:
            surface.draw_rectangle(
                bbox.x0,
                bbox.y0,
                bbox.width,
                bbox.height,
                DEBUG_BBOX_COLOR,
                DEBUG_BBOX_WIDTH,
            )

    def _render_text(
        self,
        surface: PageSurface,
        field: Field,
        text: str,
        page_height: float,
        font: str,
    ) -> bool:
        if not text.strip():
            return False

        props = field.properties
        bbox = self._field_bbox(field, field.size or DEFAULT_TEXT_SIZE, page_height)
        self._draw_debug_bbox(surface, bbox)

        result = self._layout.layout(
            text,
            bbox,
            props.font_size,
            lambda t, s: surface.text_width(t, font, s),
            padding=props.padding,
            align=props.text_align,
            auto_size=props.auto_size,
            line_height=props.line_height,
        )
        if not result.fits_in_bbox:
            logger.debug("Text of field '%s' overflows its box", field.key)

        for line in result.lines:
            if line.text:
                surface.draw_text(line.text, line.x, line.y, result.font_size, font, props.text_color)
        return bool(result.lines)

    def _render_checkbox(
        self,
        surface: PageSurface,
        field: Field,
        checked: bool,
        page_height: float,
    ) -> bool:
        if not checked:
            return False

        props = field.properties
        side = props.checkbox_size or (field.size.width if field.size else None) or DEFAULT_CHECKBOX_SIZE
        bbox = self._field_bbox(field, Size(side, side), page_height)
        self._draw_debug_bbox(surface, bbox)

        surface.draw_rectangle(
            bbox.x0,
            bbox.y0,
            side,
            side,
            Color(0, 0, 0),
            CHECKBOX_BORDER_WIDTH,
        )
        draw_cross(surface, bbox.x0, bbox.y0, side, CHECKBOX_MARK_THICKNESS, props.text_color)
        return True

    def _render_image(
        self,
        surface: PageSurface,
        field: Field,
        value: Any,
        page_height: float,
        warnings: WarningSink,
    ) -> bool:
        try:
            image = decode_image_value(value)
        except ImageDecodeError as exc:
            logger.warning("Failed to embed image for field '%s': %s", field.key, exc)
            if warnings is not None:
                warnings.append(
                    EvaluationWarning(
                        kind=WarningKind.IMAGE_DECODE_FAILED,
                        message=str(exc),
                        field_key=field.key,
                    )
                )
            return False
        if image is None:
            logger.debug("Value of image field '%s' is not image data", field.key)
            return False

        bbox = self._field_bbox(field, field.size or DEFAULT_IMAGE_SIZE, page_height)
        self._draw_debug_bbox(surface, bbox)

        placement = compute_placement(image.width, image.height, bbox, field.properties.fit_mode)
        if placement.crop is not None:
            image = dataclasses.replace(image, crop=placement.crop)
        surface.draw_image(image, placement.x, placement.y, placement.width, placement.height)
        return True


def _forward_warnings(
    collected: list[EvaluationWarning],
    field_key: str,
    warnings: WarningSink,
) -> None:
    if warnings is None:
        return
    warnings.extend(dataclasses.replace(w, field_key=field_key) for w in collected)
