# SPDX-License-Identifier: Apache-2.0
"""Data models for the field evaluation and rendering engine.

This module defines the declarative field model that the editor persists and
that the rendering core consumes. Every model round-trips through the camelCase
JSON wire format via ``from_dict``/``to_dict``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional

from .values import to_display_string

SCHEMA_VERSION = "2.0.0"


class FieldModelError(ValueError):
    """Raised when a field descriptor is structurally malformed."""


class FieldType(str, Enum):
    """Kind of value a field renders."""

    TEXT = "text"
    CHECKBOX = "checkbox"
    IMAGE = "image"
    SIGNATURE = "signature"
    CONDITIONAL = "conditional"
    COMPOSITE_TEXT = "composite-text"


class FieldVariant(str, Enum):
    """How a field is placed on the page."""

    SINGLE = "single"  # One box
    OPTIONS = "options"  # One box per selectable option


class PositionVersion(str, Enum):
    """Encoding of ``Field.position``.

    TOP_EDGE positions are screen-space (origin at the page top, Y grows
    downward, point is the field's top-left corner). LEGACY positions are
    already in PDF space (origin at the page bottom, point is the field's
    bottom-left corner).
    """

    TOP_EDGE = "top-edge"
    LEGACY = "legacy"


class Operator(str, Enum):
    """Comparison operator of a conditional branch."""

    EQUALS = "equals"
    NOT_EQUALS = "not-equals"
    CONTAINS = "contains"
    EXISTS = "exists"
    NOT_EXISTS = "not-exists"


class RenderAs(str, Enum):
    """Output mode of a conditional field."""

    TEXT = "text"
    CHECKBOX = "checkbox"


class OptionRenderType(str, Enum):
    """What an options field draws for a selected option."""

    TEXT = "text"
    CHECKMARK = "checkmark"
    CUSTOM = "custom"


class TextAlign(str, Enum):
    """Horizontal text alignment inside a field box."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class FitMode(str, Enum):
    """Image scaling mode inside a field box."""

    FIT = "fit"  # Uniform scale-to-contain
    FILL = "fill"  # Uniform scale-to-cover, cropped to the box
    STRETCH = "stretch"  # Non-uniform, exactly the box


class EmptyValueBehavior(str, Enum):
    """How an empty placeholder value is rendered in a template."""

    SKIP = "skip"
    SHOW_EMPTY = "show-empty"
    PLACEHOLDER = "placeholder"


class SeparatorHandling(str, Enum):
    """Punctuation cleanup after template substitution."""

    SMART = "smart"
    LITERAL = "literal"


class WhitespaceHandling(str, Enum):
    """Whitespace cleanup after template substitution."""

    NORMALIZE = "normalize"
    PRESERVE = "preserve"


def _optional_text(value: Any) -> Optional[str]:
    """Branch content from JSON may be a number or boolean; keep it as text."""
    if value is None or isinstance(value, str):
        return value
    return to_display_string(value)


@dataclass(frozen=True)
class Point:
    """A position on a page.

    Attributes:
        x: Horizontal coordinate in points
        y: Vertical coordinate in points (origin depends on PositionVersion)
    """

    x: float
    y: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Point:
        """Create from dictionary."""
        return cls(x=float(data["x"]), y=float(data["y"]))


@dataclass(frozen=True)
class Size:
    """Width and height of a field box in points."""

    width: float
    height: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Size:
        """Create from dictionary."""
        return cls(width=float(data["width"]), height=float(data["height"]))


@dataclass(frozen=True)
class BBox:
    """Bounding box in PDF coordinate system (origin at bottom-left).

    Attributes:
        x0: Left X coordinate
        y0: Bottom Y coordinate
        x1: Right X coordinate
        y1: Top Y coordinate
    """

    x0: float
    y0: float
    x1: float
    y1: float

    @property
    def width(self) -> float:
        """Width of the bounding box."""
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        """Height of the bounding box."""
        return self.y1 - self.y0

    @classmethod
    def from_origin(cls, origin: Point, width: float, height: float) -> BBox:
        """Create from a bottom-left corner and a size."""
        return cls(origin.x, origin.y, origin.x + width, origin.y + height)


@dataclass(frozen=True)
class Color:
    """RGB color value.

    Attributes:
        r: Red component (0-255)
        g: Green component (0-255)
        b: Blue component (0-255)
    """

    r: int = 0
    g: int = 0
    b: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"r": self.r, "g": self.g, "b": self.b}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Color:
        """Create from dictionary."""
        return cls(
            r=int(data.get("r", 0)),
            g=int(data.get("g", 0)),
            b=int(data.get("b", 0)),
        )


BLACK = Color(0, 0, 0)


@dataclass(frozen=True)
class Padding:
    """Inner spacing of a text field in points."""

    top: float = 2.0
    right: float = 2.0
    bottom: float = 2.0
    left: float = 2.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "top": self.top,
            "right": self.right,
            "bottom": self.bottom,
            "left": self.left,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Padding:
        """Create from dictionary. Missing sides keep the 2pt default."""
        return cls(
            top=float(data.get("top", 2.0)),
            right=float(data.get("right", 2.0)),
            bottom=float(data.get("bottom", 2.0)),
            left=float(data.get("left", 2.0)),
        )


@dataclass(frozen=True)
class FieldProperties:
    """Styling properties of a field.

    Every attribute is optional on the wire; the defaults below are the
    documented rendering defaults.
    """

    font_size: float = 10.0
    font_family: str = "Helvetica"
    bold: bool = False
    italic: bool = False
    text_color: Color = BLACK
    text_align: TextAlign = TextAlign.LEFT
    padding: Padding = field(default_factory=Padding)
    line_height: Optional[float] = None  # None: the layout engine's factor
    auto_size: bool = False
    checkbox_size: Optional[float] = None
    fit_mode: FitMode = FitMode.FIT
    default_value: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {
            "fontSize": self.font_size,
            "fontFamily": self.font_family,
            "bold": self.bold,
            "italic": self.italic,
            "textColor": self.text_color.to_dict(),
            "textAlign": self.text_align.value,
            "padding": self.padding.to_dict(),
            "autoSize": self.auto_size,
            "fitMode": self.fit_mode.value,
        }
        if self.line_height is not None:
            result["lineHeight"] = self.line_height
        if self.checkbox_size is not None:
            result["checkboxSize"] = self.checkbox_size
        if self.default_value is not None:
            result["defaultValue"] = self.default_value
        return result

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> FieldProperties:
        """Create from dictionary, tolerating any subset of keys."""
        if not data:
            return cls()
        checkbox_size = data.get("checkboxSize")
        line_height = data.get("lineHeight")
        return cls(
            font_size=float(data.get("fontSize") or 10.0),
            font_family=data.get("fontFamily") or "Helvetica",
            bold=bool(data.get("bold", False)),
            italic=bool(data.get("italic", False)),
            text_color=Color.from_dict(data["textColor"]) if data.get("textColor") else BLACK,
            text_align=TextAlign(data.get("textAlign") or "left"),
            padding=Padding.from_dict(data["padding"]) if data.get("padding") else Padding(),
            line_height=float(line_height) if line_height else None,
            auto_size=bool(data.get("autoSize", False)),
            checkbox_size=float(checkbox_size) if checkbox_size else None,
            fit_mode=FitMode(data.get("fitMode") or "fit"),
            default_value=data.get("defaultValue"),
        )


@dataclass(frozen=True)
class CompositeFormatting:
    """Post-processing options for composite-text templates."""

    empty_value_behavior: EmptyValueBehavior = EmptyValueBehavior.SKIP
    separator_handling: SeparatorHandling = SeparatorHandling.LITERAL
    whitespace_handling: WhitespaceHandling = WhitespaceHandling.PRESERVE

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "emptyValueBehavior": self.empty_value_behavior.value,
            "separatorHandling": self.separator_handling.value,
            "whitespaceHandling": self.whitespace_handling.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CompositeFormatting:
        """Create from dictionary."""
        return cls(
            empty_value_behavior=EmptyValueBehavior(data.get("emptyValueBehavior", "skip")),
            separator_handling=SeparatorHandling(data.get("separatorHandling", "literal")),
            whitespace_handling=WhitespaceHandling(data.get("whitespaceHandling", "preserve")),
        )


@dataclass(frozen=True)
class Condition:
    """Test applied to one value-map entry.

    Attributes:
        field: Key (or dot path) of the value to test
        operator: Comparison operator
        value: Comparison operand; ignored by EXISTS and NOT_EXISTS
    """

    field: str
    operator: Operator
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"field": self.field, "operator": self.operator.value, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Condition:
        """Create from dictionary."""
        return cls(
            field=data.get("field", ""),
            operator=Operator(data.get("operator", "equals")),
            value=data.get("value"),
        )


@dataclass(frozen=True)
class ConditionalBranch:
    """One ``(condition, render_value)`` pair of a conditional field."""

    condition: Condition
    render_value: Optional[str] = None
    id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {
            "condition": self.condition.to_dict(),
            "renderValue": self.render_value,
        }
        if self.id is not None:
            result["id"] = self.id
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConditionalBranch:
        """Create from dictionary."""
        return cls(
            condition=Condition.from_dict(data.get("condition") or {}),
            render_value=_optional_text(data.get("renderValue")),
            id=data.get("id"),
        )


@dataclass(frozen=True)
class OptionMapping:
    """Placement of one selectable option of an options field."""

    key: str
    position: Point
    size: Optional[Size] = None
    custom_text: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {"key": self.key, "position": self.position.to_dict()}
        if self.size is not None:
            result["size"] = self.size.to_dict()
        if self.custom_text is not None:
            result["customText"] = self.custom_text
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OptionMapping:
        """Create from dictionary."""
        return cls(
            key=str(data["key"]),
            position=Point.from_dict(data["position"]),
            size=Size.from_dict(data["size"]) if data.get("size") else None,
            custom_text=data.get("customText"),
        )


@dataclass(frozen=True)
class Field:
    """Declarative description of one placeable or data-only item.

    Fields are immutable snapshots: the rendering core reads them and never
    writes back. ``position_version`` has no default so that the encoding of
    ``position`` is always stated by whoever builds the record.

    Attributes:
        key: Data binding key, unique within a field set
        type: Field type
        page: PDF page number (1-based)
        position_version: Encoding of ``position``
        position: Placement on the page, or None for data-only fields
        size: Box size, or None to use per-type defaults
        variant: Single placement or per-option placements
        properties: Styling properties
        template: Template for composite-text fields
        composite_formatting: Post-processing for composite-text templates
        conditional_branches: Ordered branches for conditional fields
        conditional_default_value: Value when no branch matches
        conditional_render_as: Text or checkbox output for conditional fields
        option_mappings: Option placements for the options variant
        multi_select: Whether several options may be selected (editor hint)
        render_type: What the options variant draws per selected option
        enabled: Disabled fields are never rendered
        sample_value: Fallback value when neither data nor default exist
        id: Editor identifier, not used for rendering
    """

    key: str
    type: FieldType
    page: int
    position_version: PositionVersion
    position: Optional[Point] = None
    size: Optional[Size] = None
    variant: FieldVariant = FieldVariant.SINGLE
    properties: FieldProperties = field(default_factory=FieldProperties)
    template: Optional[str] = None
    composite_formatting: Optional[CompositeFormatting] = None
    conditional_branches: tuple[ConditionalBranch, ...] = ()
    conditional_default_value: Optional[str] = None
    conditional_render_as: RenderAs = RenderAs.TEXT
    option_mappings: tuple[OptionMapping, ...] = ()
    multi_select: bool = False
    render_type: OptionRenderType = OptionRenderType.CHECKMARK
    enabled: bool = True
    sample_value: Any = None
    id: Optional[str] = None

    @property
    def is_options(self) -> bool:
        """Whether this field uses per-option placements."""
        return self.variant == FieldVariant.OPTIONS

    @property
    def is_data_only(self) -> bool:
        """Whether this field carries data but is never drawn."""
        return self.position is None and not self.is_options

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase wire format."""
        result: dict[str, Any] = {
            "key": self.key,
            "type": self.type.value,
            "variant": self.variant.value,
            "page": self.page,
            "position": self.position.to_dict() if self.position else None,
            "positionVersion": self.position_version.value,
            "enabled": self.enabled,
            "properties": self.properties.to_dict(),
        }
        if self.id is not None:
            result["id"] = self.id
        if self.size is not None:
            result["size"] = self.size.to_dict()
        if self.template is not None:
            result["template"] = self.template
        if self.composite_formatting is not None:
            result["compositeFormatting"] = self.composite_formatting.to_dict()
        if self.type == FieldType.CONDITIONAL:
            result["conditionalBranches"] = [b.to_dict() for b in self.conditional_branches]
            result["conditionalDefaultValue"] = self.conditional_default_value
            result["conditionalRenderAs"] = self.conditional_render_as.value
        if self.is_options:
            result["optionMappings"] = [m.to_dict() for m in self.option_mappings]
            result["multiSelect"] = self.multi_select
            result["renderType"] = self.render_type.value
        if self.sample_value is not None:
            result["sampleValue"] = self.sample_value
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Field:
        """Create from the camelCase wire format.

        A record without ``positionVersion`` is a legacy (bottom-origin)
        record; that is how the editor wrote fields before top-edge
        positions existed.

        Raises:
            FieldModelError: If a required key is missing or an enum value
                is unknown.
        """
        for required in ("key", "type", "page"):
            if required not in data:
                raise FieldModelError(f"Field descriptor is missing '{required}': {data!r}")

        try:
            position = data.get("position")
            size = data.get("size")
            formatting = data.get("compositeFormatting")
            return cls(
                key=str(data["key"]),
                type=FieldType(data["type"]),
                page=int(data["page"]),
                position_version=PositionVersion(data.get("positionVersion") or "legacy"),
                position=Point.from_dict(position) if position else None,
                size=Size.from_dict(size) if size else None,
                variant=FieldVariant(data.get("variant") or "single"),
                properties=FieldProperties.from_dict(data.get("properties")),
                template=data.get("template"),
                composite_formatting=(
                    CompositeFormatting.from_dict(formatting) if formatting else None
                ),
                conditional_branches=tuple(
                    ConditionalBranch.from_dict(b) for b in data.get("conditionalBranches") or []
                ),
                conditional_default_value=_optional_text(data.get("conditionalDefaultValue")),
                conditional_render_as=RenderAs(data.get("conditionalRenderAs") or "text"),
                option_mappings=tuple(
                    OptionMapping.from_dict(m) for m in data.get("optionMappings") or []
                ),
                multi_select=bool(data.get("multiSelect", False)),
                render_type=OptionRenderType(data.get("renderType") or "checkmark"),
                enabled=bool(data.get("enabled", True)),
                sample_value=data.get("sampleValue"),
                id=data.get("id"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise FieldModelError(
                f"Invalid field descriptor '{data.get('key')}': {exc}"
            ) from exc


@dataclass(frozen=True)
class FieldSet:
    """An ordered, immutable collection of fields."""

    fields: tuple[Field, ...] = ()
    version: str = SCHEMA_VERSION

    def __iter__(self) -> Iterator[Field]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    @property
    def keys(self) -> list[str]:
        """Field keys in declaration order."""
        return [f.key for f in self.fields]

    def get(self, key: str) -> Optional[Field]:
        """Return the first field with ``key``, or None."""
        for f in self.fields:
            if f.key == key:
                return f
        return None

    def for_page(self, page_number: int) -> list[Field]:
        """Fields placed on ``page_number`` (1-based), in declaration order."""
        return [f for f in self.fields if f.page == page_number]

    def to_dict(self) -> dict[str, Any]:
        """Convert to an export document."""
        return {
            "version": self.version,
            "fields": [f.to_dict() for f in self.fields],
        }

    @classmethod
    def from_dict(cls, data: Any) -> FieldSet:
        """Create from a bare field array or a wrapping document.

        Accepts ``[...]``, ``{"fields": [...]}`` (export document) and
        ``{"unifiedFields": [...]}`` (stored editor snapshot).
        """
        if isinstance(data, list):
            return cls(fields=tuple(Field.from_dict(f) for f in data))
        if isinstance(data, dict):
            items = data.get("fields")
            if items is None:
                items = data.get("unifiedFields")
            if isinstance(items, list):
                return cls(
                    fields=tuple(Field.from_dict(f) for f in items),
                    version=str(data.get("version", SCHEMA_VERSION)),
                )
        raise FieldModelError("Expected a field array or a document with a 'fields' array")

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_json(cls, json_str: str) -> FieldSet:
        """Deserialize from JSON string."""
        return cls.from_dict(json.loads(json_str))
