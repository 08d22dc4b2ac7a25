"""Interaction and navigation flow mapping from prototype wiring."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Set, Tuple

from .base import AnalysisRequest, Analyzer
from .semantic import INTERACTIVE_INTENTS
from ..config import InteractionConfig
from ..logging import get_logger
from ..models import Component, DesignContext, InteractionEdge, PrototypeData
from ..results import (
    FlowValidation,
    GesturePattern,
    InteractionResult,
    InteractiveComponent,
    NavigationFlow,
    NavigationLink,
    Recommendation,
    Severity,
    UserJourney,
)

_TRIGGER_ALIASES: Dict[str, str] = {
    "on_click": "click",
    "click": "click",
    "on_tap": "click",
    "tap": "click",
    "on_press": "press",
    "mouse_down": "press",
    "mouse_up": "press",
    "while_pressing": "press",
    "press": "press",
    "on_hover": "hover",
    "while_hovering": "hover",
    "mouse_enter": "hover",
    "mouse_leave": "hover",
    "hover": "hover",
    "on_drag": "drag",
    "drag": "drag",
    "on_swipe": "swipe",
    "swipe": "swipe",
    "swipe_left": "swipe",
    "swipe_right": "swipe",
    "swipe_up": "swipe",
    "swipe_down": "swipe",
    "on_long_press": "long_press",
    "long_press": "long_press",
    "longpress": "long_press",
    "press_and_hold": "long_press",
    "after_timeout": "timeout",
    "timeout": "timeout",
    "on_key_down": "key",
    "key": "key",
    "keydown": "key",
}
_TRANSITION_ALIASES: Dict[str, str] = {
    "navigate": "navigate",
    "node": "navigate",
    "swap": "navigate",
    "push": "navigate",
    "overlay": "overlay",
    "open_overlay": "overlay",
    "back": "back",
    "close": "close",
    "scroll_to": "scroll",
    "url": "external",
}
_INTENT_INTERACTIONS: Dict[str, Tuple[str, ...]] = {
    "button": ("click",),
    "link": ("click", "navigate"),
    "navigation": ("click", "navigate"),
    "input": ("focus", "input"),
    "toggle": ("click", "toggle"),
    "dropdown": ("click", "select"),
}


def normalize_trigger(raw: str | None) -> str:
    key = (raw or "click").strip().lower().replace("-", "_").replace(" ", "_")
    return _TRIGGER_ALIASES.get(key, key or "click")


def normalize_transition(raw: str | None, target_id: str | None) -> str:
    if raw:
        key = raw.strip().lower().replace("-", "_").replace(" ", "_")
        if key in _TRANSITION_ALIASES:
            return _TRANSITION_ALIASES[key]
        return key
    return "navigate" if target_id else "none"


class InteractionMapper(Analyzer):
    """Builds the navigation graph and user journeys from prototype edges."""

    name = "interaction"
    result_type = InteractionResult

    def __init__(self, config: InteractionConfig | None = None) -> None:
        self.config = config or InteractionConfig()
        self.logger = get_logger("analyzers.interaction")

    def analyze(self, request: AnalysisRequest) -> InteractionResult:
        return self.map_interaction_flows(request.components, request.prototype, request.context)

    def map_interaction_flows(
        self,
        components: Sequence[Component],
        prototype_data: PrototypeData | None = None,
        design_context: DesignContext | None = None,
    ) -> InteractionResult:
        prototype = prototype_data or PrototypeData()
        edges = list(prototype.interactions)
        known_ids = {component.id for component in components}

        outgoing: Dict[str, List[InteractionEdge]] = {}
        incoming: Dict[str, int] = {}
        for edge in edges:
            outgoing.setdefault(edge.source_id, []).append(edge)
            if edge.target_id:
                incoming[edge.target_id] = incoming.get(edge.target_id, 0) + 1

        interactive = self._interactive_components(components, outgoing)
        navigation = self._navigation_flow(edges, outgoing, incoming)
        journeys, cycles = self._user_journeys(prototype, navigation, outgoing)
        validation = FlowValidation(
            orphaned_components=(
                [item.id for item in interactive if item.id not in outgoing and item.id not in incoming]
                if edges
                else []
            ),
            unresolved_sources=sorted({edge.source_id for edge in edges if edge.source_id not in known_ids}),
            cycles=cycles,
        )
        navigation = navigation.model_copy(update={"total_flows": len(journeys)})
        gestures = self.detect_gesture_patterns(edges)

        if edges:
            resolved = sum(1 for edge in edges if edge.source_id in known_ids) / len(edges)
            confidence = 0.5 + 0.3 * resolved + (0.2 if journeys else 0.0)
        elif interactive:
            confidence = 0.4 * (sum(item.confidence for item in interactive) / len(interactive))
        else:
            confidence = 0.0

        result = InteractionResult(
            interactive_components=interactive,
            user_journeys=journeys,
            navigation_flow=navigation,
            validation=validation,
            gesture_patterns=gestures,
            recommendations=self._recommend(interactive, validation, edges),
            confidence=confidence,
            metadata={
                "edgeCount": len(edges),
                "platform": (design_context or DesignContext()).platform,
            },
        )
        self.logger.info(
            "Interaction mapping found %d interactive components and %d journeys from %d edges",
            len(interactive),
            len(journeys),
            len(edges),
        )
        return result

    # ------------------------------------------------------------------

    def _interactive_components(
        self,
        components: Sequence[Component],
        outgoing: Dict[str, List[InteractionEdge]],
    ) -> List[InteractiveComponent]:
        found: List[InteractiveComponent] = []
        for component in components:
            component_edges = outgoing.get(component.id, [])
            intent = component.intent
            intent_interactive = intent in INTERACTIVE_INTENTS
            if not component_edges and not intent_interactive:
                continue

            types: List[str] = []
            targets: List[str] = []
            evidence: List[str] = []
            for edge in component_edges:
                for kind in (
                    normalize_trigger(edge.trigger),
                    normalize_transition(edge.transition_type, edge.target_id),
                ):
                    if kind != "none" and kind not in types:
                        types.append(kind)
                if edge.target_id and edge.target_id not in targets:
                    targets.append(edge.target_id)

            if component_edges:
                confidence = min(1.0, 0.6 + 0.15 * len(component_edges))
                evidence.append(f"{len(component_edges)} prototype interaction(s)")
                if intent_interactive:
                    confidence = min(1.0, confidence + 0.1)
                    evidence.append(f"Semantic intent '{intent}'")
            else:
                semantic_confidence = component.semantic.confidence if component.semantic else 0.0
                confidence = 0.3 + 0.5 * semantic_confidence
                evidence.append(f"Semantic intent '{intent}' without prototype wiring")
                types.extend(_INTENT_INTERACTIONS.get(intent or "", ("click",)))

            found.append(
                InteractiveComponent(
                    id=component.id,
                    name=component.name,
                    intent=intent,
                    interaction_types=types,
                    targets=targets,
                    confidence=confidence,
                    evidence=evidence,
                )
            )
        return found

    def detect_gesture_patterns(self, edges: Sequence[InteractionEdge]) -> List[GesturePattern]:
        """Group swipe, long-press and drag triggers by gesture."""
        members: Dict[str, List[str]] = {}
        evidence: Dict[str, List[str]] = {}
        explicit: Set[str] = set()
        for edge in edges:
            trigger = normalize_trigger(edge.trigger)
            transition = normalize_transition(edge.transition_type, edge.target_id)
            if trigger in ("swipe", "long_press"):
                gesture = trigger
                explicit.add(gesture)
            elif trigger == "drag":
                # Dragging between screens is how prototypes express a swipe.
                gesture = "swipe" if transition == "navigate" else "drag"
            else:
                continue
            ids = members.setdefault(gesture, [])
            if edge.source_id not in ids:
                ids.append(edge.source_id)
            evidence.setdefault(gesture, []).append(f"'{edge.trigger or trigger}' on {edge.source_id}")

        patterns = [
            GesturePattern(
                type=gesture,
                component_ids=ids,
                confidence=0.9 if gesture in explicit or gesture == "drag" else 0.75,
                evidence=evidence[gesture],
            )
            for gesture, ids in members.items()
        ]
        if patterns:
            self.logger.debug("Detected gesture patterns: %s", ", ".join(p.type for p in patterns))
        return patterns

    @staticmethod
    def _navigation_flow(
        edges: Sequence[InteractionEdge],
        outgoing: Dict[str, List[InteractionEdge]],
        incoming: Dict[str, int],
    ) -> NavigationFlow:
        links = [
            NavigationLink(
                id=edge.id,
                source_id=edge.source_id,
                target_id=edge.target_id,
                trigger=normalize_trigger(edge.trigger),
                transition=normalize_transition(edge.transition_type, edge.target_id),
            )
            for edge in edges
        ]
        entry_points = [source for source in outgoing if source not in incoming]
        exit_points = [
            target
            for target in _ordered_targets(edges)
            if target not in outgoing
        ]
        return NavigationFlow(links=links, entry_points=entry_points, exit_points=exit_points)

    def _user_journeys(
        self,
        prototype: PrototypeData,
        navigation: NavigationFlow,
        outgoing: Dict[str, List[InteractionEdge]],
    ) -> Tuple[List[UserJourney], List[List[str]]]:
        if not outgoing:
            return [], []

        named_starts = [node for node in prototype.starting_nodes if node in outgoing]
        if named_starts:
            starts, source = named_starts, "prototype"
        elif navigation.entry_points:
            starts, source = list(navigation.entry_points), "entry_point"
        else:
            starts, source = [next(iter(outgoing))], "fallback"

        names = {flow.starting_node: flow.name for flow in prototype.flows if flow.starting_node}
        names.update({p.starting_frame: p.name for p in prototype.prototypes if p.starting_frame and p.name})

        journeys: List[UserJourney] = []
        cycles: List[List[str]] = []
        seen_paths: Set[Tuple[str, ...]] = set()
        max_depth = self.config.max_flow_depth
        max_journeys = self.config.max_journeys

        def _walk(path: List[str], start: str) -> None:
            if len(journeys) >= max_journeys:
                return
            node = path[-1]
            next_nodes = [edge.target_id for edge in outgoing.get(node, []) if edge.target_id]
            if not next_nodes or len(path) > max_depth:
                _record(path, start, complete=not next_nodes)
                return
            extended = False
            for target in next_nodes:
                if target in path:
                    cycle = path[path.index(target):] + [target]
                    if cycle not in cycles:
                        cycles.append(cycle)
                    continue
                extended = True
                _walk(path + [target], start)
            if not extended:
                _record(path, start, complete=True)

        def _record(path: List[str], start: str, *, complete: bool) -> None:
            key = tuple(path)
            if len(path) < 2 or key in seen_paths or len(journeys) >= max_journeys:
                return
            seen_paths.add(key)
            index = len(journeys) + 1
            confidence = (0.9 if source == "prototype" else 0.7) * (1.0 if complete else 0.8)
            journeys.append(
                UserJourney(
                    id=f"journey-{index}",
                    name=names.get(start) or f"Journey from {start}",
                    steps=list(path),
                    start_id=path[0],
                    end_id=path[-1],
                    confidence=confidence,
                    source=source,
                    is_complete=complete,
                )
            )

        for start in starts:
            _walk([start], start)
        return journeys, cycles

    @staticmethod
    def _recommend(
        interactive: Sequence[InteractiveComponent],
        validation: FlowValidation,
        edges: Sequence[InteractionEdge],
    ) -> List[Recommendation]:
        recommendations: List[Recommendation] = []
        for component_id in validation.orphaned_components:
            recommendations.append(
                Recommendation(
                    category="interaction",
                    description=f"Interactive component '{component_id}' has no prototype connection",
                    action="Wire the component to its destination or mark it as non-interactive",
                    impact="Prototype behaviour is incomplete for this control",
                    severity=Severity.MEDIUM,
                    component_id=component_id,
                )
            )
        if validation.unresolved_sources:
            recommendations.append(
                Recommendation(
                    category="interaction",
                    description=(
                        f"{len(validation.unresolved_sources)} interaction(s) start from components missing in the design"
                    ),
                    action="Remove stale prototype links or include their source layers",
                    impact="Flow mapping may be incomplete",
                    severity=Severity.LOW,
                )
            )
        if any(normalize_trigger(edge.trigger) == "hover" for edge in edges):
            recommendations.append(
                Recommendation(
                    category="interaction",
                    description="Hover-triggered interactions have no touch equivalent",
                    action="Provide a click or tap alternative for hover interactions",
                    impact="Touch and keyboard users can reach the same content",
                    severity=Severity.MEDIUM,
                )
            )
        if not edges and interactive:
            recommendations.append(
                Recommendation(
                    category="interaction",
                    description="Interactive elements were found but the design has no prototype links",
                    action="Add prototype interactions to document navigation",
                    impact="Enables journey mapping and flow validation",
                    severity=Severity.LOW,
                )
            )
        return recommendations


def _ordered_targets(edges: Sequence[InteractionEdge]) -> List[str]:
    ordered: List[str] = []
    for edge in edges:
        target: Optional[str] = edge.target_id
        if target and target not in ordered:
            ordered.append(target)
    return ordered


__all__ = ["InteractionMapper", "normalize_trigger", "normalize_transition"]
