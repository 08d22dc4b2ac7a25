"""Core input models shared across the analyzers.

Everything here is immutable once built by :mod:`contextintel.normalize`, so the
analyzers can share one component list while running concurrently.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .colors import RGB, parse_color


@dataclass(frozen=True)
class Geometry:
    """Axis-aligned bounding box of a component."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    @property
    def area(self) -> float:
        return max(self.width, 0.0) * max(self.height, 0.0)

    @property
    def aspect_ratio(self) -> float:
        if self.height <= 0:
            return 0.0
        return self.width / self.height

    @property
    def has_size(self) -> bool:
        return self.width > 0 and self.height > 0

    def contains(self, other: "Geometry", tolerance: float = 0.0) -> bool:
        """Return True when ``other`` lies fully inside this box."""
        return (
            other.x >= self.x - tolerance
            and other.y >= self.y - tolerance
            and other.right <= self.right + tolerance
            and other.bottom <= self.bottom + tolerance
        )

    def overlaps(self, other: "Geometry") -> bool:
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )


_BACKGROUND_KEYS = ("backgroundColor", "background", "fill", "fillColor")
_FOREGROUND_KEYS = ("color", "textColor", "foreground", "fontColor")
_STROKE_KEYS = ("borderColor", "stroke", "strokeColor")
_RADIUS_KEYS = ("borderRadius", "cornerRadius", "radius")
_ACCESSIBLE_TEXT_KEYS = (
    "alt",
    "altText",
    "accessibleName",
    "ariaLabel",
    "aria-label",
    "label",
    "description",
    "title",
)
_SPACING_KEYS = (
    "padding",
    "paddingTop",
    "paddingRight",
    "paddingBottom",
    "paddingLeft",
    "margin",
    "gap",
    "itemSpacing",
)
_FONT_WEIGHT_NAMES = {
    "thin": 100,
    "light": 300,
    "regular": 400,
    "normal": 400,
    "medium": 500,
    "semibold": 600,
    "bold": 700,
    "extrabold": 800,
    "black": 900,
}


@dataclass(frozen=True)
class StyleBag:
    """Read-only view over a component's merged properties and style values."""

    values: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def merge(
        cls, properties: Optional[Mapping[str, Any]], style: Optional[Mapping[str, Any]]
    ) -> "StyleBag":
        merged: Dict[str, Any] = {}
        if properties:
            merged.update(properties)
        if style:
            merged.update(style)
        return cls(values=merged)

    def __bool__(self) -> bool:
        return bool(self.values)

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def first(self, keys: Tuple[str, ...]) -> Any:
        for key in keys:
            value = self.values.get(key)
            if value is not None and value != "":
                return value
        return None

    def text(self, key: str) -> Optional[str]:
        value = self.values.get(key)
        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        return None

    def number(self, key: str) -> Optional[float]:
        return _to_number(self.values.get(key))

    def color(self, key: str) -> Optional[RGB]:
        return parse_color(self.values.get(key))

    @property
    def fills(self) -> List[Any]:
        fills = self.values.get("fills")
        if isinstance(fills, list):
            return [item for item in fills if item is not None]
        return []

    @property
    def background_color(self) -> Optional[RGB]:
        color = parse_color(self.first(_BACKGROUND_KEYS))
        if color is not None:
            return color
        for fill in self.fills:
            if isinstance(fill, Mapping):
                if fill.get("visible") is False:
                    continue
                parsed = parse_color(fill.get("color", fill))
            else:
                parsed = parse_color(fill)
            if parsed is not None:
                return parsed
        return None

    @property
    def foreground_color(self) -> Optional[RGB]:
        return parse_color(self.first(_FOREGROUND_KEYS))

    @property
    def stroke_color(self) -> Optional[RGB]:
        color = parse_color(self.first(_STROKE_KEYS))
        if color is not None:
            return color
        strokes = self.values.get("strokes")
        if isinstance(strokes, list):
            for stroke in strokes:
                candidate = stroke.get("color", stroke) if isinstance(stroke, Mapping) else stroke
                parsed = parse_color(candidate)
                if parsed is not None:
                    return parsed
        return None

    @property
    def font_size(self) -> Optional[float]:
        return _to_number(self.values.get("fontSize"))

    @property
    def font_weight(self) -> Optional[float]:
        raw = self.values.get("fontWeight")
        if isinstance(raw, str) and raw.strip().lower().replace("-", "") in _FONT_WEIGHT_NAMES:
            return float(_FONT_WEIGHT_NAMES[raw.strip().lower().replace("-", "")])
        return _to_number(raw)

    @property
    def font_family(self) -> Optional[str]:
        return self.text("fontFamily")

    @property
    def corner_radius(self) -> float:
        value = _to_number(self.first(_RADIUS_KEYS))
        return value if value is not None else 0.0

    @property
    def spacing_values(self) -> List[float]:
        values: List[float] = []
        for key in _SPACING_KEYS:
            number = _to_number(self.values.get(key))
            if number is not None and number > 0:
                values.append(number)
        return values

    @property
    def accessible_text(self) -> Optional[str]:
        value = self.first(_ACCESSIBLE_TEXT_KEYS)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    @property
    def has_effects(self) -> bool:
        effects = self.values.get("effects")
        if isinstance(effects, list) and effects:
            return True
        return bool(self.values.get("boxShadow") or self.values.get("shadow"))

    @property
    def has_stroke(self) -> bool:
        if self.stroke_color is not None:
            return True
        width = _to_number(self.values.get("strokeWeight") or self.values.get("borderWidth"))
        return bool(width and width > 0)

    @property
    def text_align(self) -> Optional[str]:
        value = self.first(("textAlign", "textAlignHorizontal"))
        return str(value).lower() if isinstance(value, str) else None

    @property
    def layout_mode(self) -> Optional[str]:
        value = self.first(("layoutMode", "display", "flexDirection"))
        return str(value).upper() if isinstance(value, str) else None


@dataclass(frozen=True)
class SemanticInfo:
    """Intent attached to a component after semantic analysis."""

    intent: str
    confidence: float
    patterns: Tuple[str, ...] = ()
    reasoning: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Component:
    """A single UI element from the design tree."""

    id: str
    name: str = ""
    type: str = ""
    category: str = ""
    geometry: Optional[Geometry] = None
    style: StyleBag = field(default_factory=StyleBag)
    text: Optional[str] = None
    children: Tuple[str, ...] = ()
    semantic: Optional[SemanticInfo] = None

    @property
    def intent(self) -> Optional[str]:
        return self.semantic.intent if self.semantic else None

    @property
    def label(self) -> str:
        return self.name or self.id

    def with_semantic(self, semantic: SemanticInfo) -> "Component":
        return replace(self, semantic=semantic)


@dataclass(frozen=True)
class DesignToken:
    """Named design decision such as a colour, type style or spacing unit."""

    name: str
    value: Any = None
    type: str = ""
    attributes: Mapping[str, Any] = field(default_factory=dict)

    @property
    def numeric_value(self) -> Optional[float]:
        number = _to_number(self.value)
        if number is not None:
            return number
        return _to_number(self.attributes.get("fontSize"))


@dataclass(frozen=True)
class DesignTokenSet:
    colors: Tuple[DesignToken, ...] = ()
    typography: Tuple[DesignToken, ...] = ()
    spacing: Tuple[DesignToken, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.colors or self.typography or self.spacing)

    @property
    def count(self) -> int:
        return len(self.colors) + len(self.typography) + len(self.spacing)


@dataclass(frozen=True)
class InteractionEdge:
    """Prototype wiring from one component to another."""

    id: str
    trigger: str
    source_id: str
    target_id: Optional[str] = None
    transition_type: Optional[str] = None


@dataclass(frozen=True)
class Prototype:
    id: str
    name: str = ""
    starting_frame: Optional[str] = None


@dataclass(frozen=True)
class Flow:
    id: str
    name: str = ""
    starting_node: Optional[str] = None


@dataclass(frozen=True)
class PrototypeData:
    interactions: Tuple[InteractionEdge, ...] = ()
    prototypes: Tuple[Prototype, ...] = ()
    transitions: Tuple[Mapping[str, Any], ...] = ()
    flows: Tuple[Flow, ...] = ()

    @property
    def starting_nodes(self) -> List[str]:
        nodes: List[str] = []
        for prototype in self.prototypes:
            if prototype.starting_frame and prototype.starting_frame not in nodes:
                nodes.append(prototype.starting_frame)
        for flow in self.flows:
            if flow.starting_node and flow.starting_node not in nodes:
                nodes.append(flow.starting_node)
        return nodes


@dataclass(frozen=True)
class DesignContext:
    """Optional hints about what the design is for."""

    purpose: Optional[str] = None
    target_audience: Optional[str] = None
    business_domain: Optional[str] = None
    platform: Optional[str] = None
    design_system: Optional[str] = None

    @property
    def hint_text(self) -> str:
        parts = [self.purpose, self.business_domain, self.target_audience]
        return " ".join(part for part in parts if part).lower()


@dataclass(frozen=True)
class DesignSpec:
    components: Tuple[Component, ...] = ()
    design_tokens: DesignTokenSet = field(default_factory=DesignTokenSet)
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AnalysisOptions:
    """Per-call switches; ``None`` defers to the loaded configuration."""

    enable_caching: Optional[bool] = None
    parallel_analysis: Optional[bool] = None
    include_performance_metrics: Optional[bool] = None


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _finite(value)
    if isinstance(value, str):
        cleaned = value.strip().lower()
        for suffix in ("px", "pt", "dp", "rem", "em"):
            if cleaned.endswith(suffix):
                cleaned = cleaned[: -len(suffix)].strip()
                break
        return _finite(cleaned)
    return None


def _finite(value: Any) -> Optional[float]:
    try:
        number = float(value)
    except (OverflowError, ValueError):
        return None
    return number if math.isfinite(number) else None


__all__ = [
    "AnalysisOptions",
    "Component",
    "DesignContext",
    "DesignSpec",
    "DesignToken",
    "DesignTokenSet",
    "Flow",
    "Geometry",
    "InteractionEdge",
    "Prototype",
    "PrototypeData",
    "SemanticInfo",
    "StyleBag",
]
