"""Tolerant conversion of raw design payloads into the input models.

Callers hand the engine JSON-ish mappings (camelCase or snake_case keys), model
instances, ``None`` or outright garbage. None of the parsers here raise: every
field falls back on its own so that one malformed component never hides the
rest of the design.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .models import (
    AnalysisOptions,
    Component,
    DesignContext,
    DesignSpec,
    DesignToken,
    DesignTokenSet,
    Flow,
    Geometry,
    InteractionEdge,
    Prototype,
    PrototypeData,
    SemanticInfo,
    StyleBag,
)


def as_dict(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return str(value).lower()
    if not isinstance(value, (str, int, float)):
        return None
    try:
        return str(value)
    except ValueError:  # integers past the interpreter's digit limit
        return None


def as_float(value: Any) -> Optional[float]:
    """Finite float or ``None``; huge integers and NaN count as missing."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, str)):
        try:
            number = float(value)
        except (OverflowError, ValueError):
            return None
        return number if math.isfinite(number) else None
    return None


def as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "on", "1"}:
            return True
        if lowered in {"false", "no", "off", "0"}:
            return False
    return None


def as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float)) and not isinstance(item, bool)]
    return []


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


# ----------------------------------------------------------------------
# Components


def parse_component(raw: Any, index: int) -> Component:
    """Build a :class:`Component`; non-mapping entries become placeholders."""
    if isinstance(raw, Component):
        return raw
    if not isinstance(raw, Mapping):
        return Component(id=f"component-{index}")

    component_id = as_str(raw.get("id")) or f"component-{index}"
    properties = _pick(raw, "properties", "props")
    style = raw.get("style") if isinstance(raw.get("style"), Mapping) else None
    style_bag = StyleBag.merge(
        properties if isinstance(properties, Mapping) else None, style
    )

    text = as_str(_pick(raw, "text", "characters", "content"))
    if text is None:
        text = style_bag.text("characters") or style_bag.text("text")

    return Component(
        id=component_id,
        name=as_str(raw.get("name")) or "",
        type=(as_str(raw.get("type")) or "").upper(),
        category=as_str(_pick(raw, "category", "componentType")) or "",
        geometry=parse_geometry(_pick(raw, "geometry", "absoluteBoundingBox", "bounds") or raw),
        style=style_bag,
        text=text,
        children=_child_ids(raw.get("children")),
        semantic=_parse_semantic(raw.get("semantic")),
    )


def parse_geometry(raw: Any) -> Optional[Geometry]:
    if isinstance(raw, Geometry):
        return raw
    if not isinstance(raw, Mapping):
        return None
    width = as_float(raw.get("width"))
    height = as_float(raw.get("height"))
    if width is None or height is None:
        return None
    return Geometry(
        x=as_float(raw.get("x")) or 0.0,
        y=as_float(raw.get("y")) or 0.0,
        width=width,
        height=height,
    )


def _child_ids(raw: Any) -> Tuple[str, ...]:
    if not isinstance(raw, Sequence) or isinstance(raw, str):
        return ()
    ids: List[str] = []
    for child in raw:
        if isinstance(child, Mapping):
            child_id = as_str(child.get("id"))
        else:
            child_id = as_str(child)
        if child_id:
            ids.append(child_id)
    return tuple(ids)


def _parse_semantic(raw: Any) -> Optional[SemanticInfo]:
    if isinstance(raw, SemanticInfo):
        return raw
    if not isinstance(raw, Mapping):
        return None
    intent = as_str(raw.get("intent"))
    if not intent:
        return None
    confidence = as_float(raw.get("confidence")) or 0.0
    return SemanticInfo(
        intent=intent,
        confidence=min(max(confidence, 0.0), 1.0),
        patterns=tuple(as_str_list(raw.get("patterns"))),
        reasoning=tuple(as_str_list(raw.get("reasoning"))),
    )


# ----------------------------------------------------------------------
# Tokens


def parse_token_set(raw: Any) -> DesignTokenSet:
    if isinstance(raw, DesignTokenSet):
        return raw
    data = as_dict(raw)
    return DesignTokenSet(
        colors=_parse_token_group(_pick(data, "colors", "color"), "color"),
        typography=_parse_token_group(_pick(data, "typography", "fonts", "text"), "typography"),
        spacing=_parse_token_group(_pick(data, "spacing", "space"), "spacing"),
    )


def _parse_token_group(raw: Any, default_type: str) -> Tuple[DesignToken, ...]:
    tokens: List[DesignToken] = []
    if isinstance(raw, Mapping):
        for name, value in raw.items():
            token = _parse_token({"name": name, "value": value}, default_type)
            if token is not None:
                tokens.append(token)
    elif isinstance(raw, Sequence) and not isinstance(raw, str):
        for index, entry in enumerate(raw):
            token = _parse_token(entry, default_type, index)
            if token is not None:
                tokens.append(token)
    return tuple(tokens)


def _parse_token(raw: Any, default_type: str, index: int = 0) -> Optional[DesignToken]:
    if isinstance(raw, DesignToken):
        return raw
    if not isinstance(raw, Mapping):
        return None
    name = as_str(raw.get("name")) or f"{default_type}-{index}"
    value = raw.get("value")
    attributes = {
        key: item for key, item in raw.items() if key not in {"name", "value", "type"}
    }
    # A mapping value carries the attributes itself: {"fontSize": 14, ...}
    if isinstance(value, Mapping):
        attributes = {**dict(value), **attributes}
        value = _pick(value, "value", "fontSize", "size")
    if value is None:
        value = _pick(attributes, "fontSize", "size")
    return DesignToken(
        name=name,
        value=value,
        type=as_str(raw.get("type")) or default_type,
        attributes=attributes,
    )


# ----------------------------------------------------------------------
# Public entry points


def parse_design_spec(raw: Any) -> DesignSpec:
    if isinstance(raw, DesignSpec):
        return raw
    data = as_dict(raw)
    components_raw = data.get("components")
    components: List[Component] = []
    if isinstance(components_raw, Sequence) and not isinstance(components_raw, str):
        components = [parse_component(item, index) for index, item in enumerate(components_raw)]
    return DesignSpec(
        components=tuple(components),
        design_tokens=parse_token_set(_pick(data, "designTokens", "design_tokens", "tokens")),
        metadata=as_dict(data.get("metadata")),
    )


def parse_prototype_data(raw: Any) -> PrototypeData:
    if isinstance(raw, PrototypeData):
        return raw
    data = as_dict(raw)
    interactions: List[InteractionEdge] = []
    for index, entry in enumerate(_sequence(data.get("interactions"))):
        edge = _parse_edge(entry, index)
        if edge is not None:
            interactions.append(edge)

    prototypes: List[Prototype] = []
    for index, entry in enumerate(_sequence(data.get("prototypes"))):
        if isinstance(entry, Prototype):
            prototypes.append(entry)
        elif isinstance(entry, Mapping):
            prototypes.append(
                Prototype(
                    id=as_str(entry.get("id")) or f"prototype-{index}",
                    name=as_str(entry.get("name")) or "",
                    starting_frame=as_str(_pick(entry, "startingFrame", "starting_frame", "startNode")),
                )
            )

    flows: List[Flow] = []
    for index, entry in enumerate(_sequence(data.get("flows"))):
        if isinstance(entry, Flow):
            flows.append(entry)
        elif isinstance(entry, Mapping):
            flows.append(
                Flow(
                    id=as_str(entry.get("id")) or f"flow-{index}",
                    name=as_str(entry.get("name")) or "",
                    starting_node=as_str(
                        _pick(entry, "startingNode", "starting_node", "startingPoint", "startingFrame")
                    ),
                )
            )

    transitions = tuple(
        dict(entry) for entry in _sequence(data.get("transitions")) if isinstance(entry, Mapping)
    )
    return PrototypeData(
        interactions=tuple(interactions),
        prototypes=tuple(prototypes),
        transitions=transitions,
        flows=tuple(flows),
    )


def _parse_edge(raw: Any, index: int) -> Optional[InteractionEdge]:
    if isinstance(raw, InteractionEdge):
        return raw
    if not isinstance(raw, Mapping):
        return None
    source = as_str(_pick(raw, "sourceId", "source_id", "source", "from", "nodeId"))
    if not source:
        return None
    trigger = raw.get("trigger")
    if isinstance(trigger, Mapping):
        trigger = trigger.get("type")
    action = raw.get("action") if isinstance(raw.get("action"), Mapping) else {}
    target = _pick(raw, "targetId", "target_id", "target", "to", "destinationId")
    if target is None:
        target = _pick(action, "destinationId", "targetId")
    transition = _pick(raw, "transitionType", "transition_type", "navigation")
    if isinstance(transition, Mapping):
        transition = transition.get("type")
    if transition is None:
        transition = _pick(action, "navigation", "type")
    return InteractionEdge(
        id=as_str(raw.get("id")) or f"interaction-{index}",
        trigger=as_str(trigger) or "click",
        source_id=source,
        target_id=as_str(target),
        transition_type=as_str(transition),
    )


def parse_design_context(raw: Any) -> DesignContext:
    if isinstance(raw, DesignContext):
        return raw
    data = as_dict(raw)
    return DesignContext(
        purpose=as_str(data.get("purpose")),
        target_audience=as_str(_pick(data, "targetAudience", "target_audience")),
        business_domain=as_str(_pick(data, "businessDomain", "business_domain")),
        platform=as_str(data.get("platform")),
        design_system=as_str(_pick(data, "designSystem", "design_system")),
    )


def parse_options(raw: Any) -> AnalysisOptions:
    if isinstance(raw, AnalysisOptions):
        return raw
    data = as_dict(raw)
    return AnalysisOptions(
        enable_caching=as_bool(_pick(data, "enableCaching", "enable_caching")),
        parallel_analysis=as_bool(_pick(data, "parallelAnalysis", "parallel_analysis")),
        include_performance_metrics=as_bool(
            _pick(data, "includePerformanceMetrics", "include_performance_metrics")
        ),
    )


def _sequence(value: Any) -> Sequence[Any]:
    if isinstance(value, Sequence) and not isinstance(value, str):
        return value
    return ()


__all__ = [
    "as_bool",
    "as_dict",
    "as_float",
    "as_int",
    "as_str",
    "as_str_list",
    "parse_component",
    "parse_design_context",
    "parse_design_spec",
    "parse_geometry",
    "parse_options",
    "parse_prototype_data",
    "parse_token_set",
]
