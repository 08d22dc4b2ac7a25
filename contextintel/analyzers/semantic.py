"""Semantic intent classification for design components."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .base import AnalysisRequest, Analyzer
from ..colors import RGB, color_similarity
from ..config import SemanticConfig
from ..logging import get_logger
from ..models import Component, DesignContext, Geometry, SemanticInfo
from ..results import (
    IntentCandidate,
    Recommendation,
    SemanticComponent,
    SemanticConfidence,
    SemanticPattern,
    SemanticResult,
    Severity,
)

INTENT_VOCABULARY: Dict[str, Tuple[str, ...]] = {
    "button": ("button", "btn", "submit", "send", "save", "delete", "cancel", "confirm", "action", "cta", "click"),
    "input": ("input", "field", "textbox", "textfield", "textarea", "search", "query", "email", "password", "username"),
    "navigation": ("nav", "navbar", "navigation", "menu", "breadcrumb", "tab", "tabs", "sidebar"),
    "link": ("link", "anchor", "href", "hyperlink"),
    "toggle": ("toggle", "switch", "checkbox", "radio"),
    "dropdown": ("dropdown", "select", "picker", "combobox"),
    "content": ("card", "article", "post", "content", "description", "body", "paragraph"),
    "hero": ("hero", "banner", "jumbotron", "splash", "intro", "welcome"),
    "form": ("form", "register", "login", "signup", "signin", "contact", "checkout"),
    "modal": ("modal", "dialog", "popup", "overlay", "lightbox"),
    "feedback": ("alert", "toast", "notification", "message", "warning", "error", "success"),
    "media": ("image", "img", "photo", "picture", "video", "avatar", "thumbnail"),
    "data": ("chart", "graph", "table", "list", "grid", "dashboard", "metric", "stat", "stats"),
    "header": ("header", "topbar", "appbar"),
    "footer": ("footer", "bottombar"),
    "icon": ("icon", "glyph"),
    "text": ("text", "label", "title", "heading", "headline", "caption", "subtitle"),
}

INTERACTIVE_INTENTS = frozenset({"button", "input", "link", "toggle", "dropdown", "navigation"})

_CONTEXT_HINTS: Dict[str, Tuple[str, ...]] = {
    "form": ("authentication", "login", "sign", "registration", "form", "checkout", "onboarding"),
    "input": ("authentication", "login", "sign", "registration", "form", "search"),
    "button": ("authentication", "login", "checkout", "form"),
    "data": ("dashboard", "analytics", "report", "admin"),
    "navigation": ("navigation", "portal", "dashboard"),
    "content": ("blog", "content", "marketing", "news", "landing"),
    "media": ("gallery", "media", "portfolio"),
}

_AUTH_WORDS = frozenset({"password", "login", "signin", "signup", "register", "username", "email", "logout", "auth"})
_REGISTRATION_WORDS = frozenset({"signup", "register", "registration", "create", "confirm"})
_COMMERCE_WORDS = frozenset({"cart", "checkout", "price", "product", "buy", "shop", "basket", "order", "payment"})
_SEARCH_WORDS = frozenset({"search", "filter", "query", "sort"})
_FRAME_TYPES = frozenset({"FRAME", "GROUP", "COMPONENT", "COMPONENT_SET", "SECTION", "CANVAS"})
_MEDIA_TYPES = frozenset({"IMAGE", "VECTOR", "ELLIPSE", "BOOLEAN_OPERATION"})

_FEEDBACK_COLORS = (RGB(220, 53, 69), RGB(40, 167, 69), RGB(255, 193, 7), RGB(244, 67, 54), RGB(76, 175, 80))
_CAMEL_RE = re.compile(r"([a-z0-9])([A-Z])")
_SPLIT_RE = re.compile(r"[^a-z0-9]+")


def tokenize(text: str) -> List[str]:
    """Split a layer name such as ``primaryButton/Login-CTA`` into lower-case words."""
    if not text:
        return []
    spaced = _CAMEL_RE.sub(r"\1 \2", text)
    return [token for token in _SPLIT_RE.split(spaced.lower()) if token]


@dataclass
class _Signals:
    scores: Dict[str, float] = field(default_factory=dict)
    keywords: List[str] = field(default_factory=list)
    reasons: List[str] = field(default_factory=list)

    def offer(self, intent: str, score: float, reason: Optional[str] = None) -> None:
        if score > self.scores.get(intent, 0.0):
            self.scores[intent] = score
        if reason and reason not in self.reasons:
            self.reasons.append(reason)

    @property
    def confidence(self) -> float:
        return max(self.scores.values(), default=0.0)


class SemanticAnalyzer(Analyzer):
    """Infers what each component is for from its name and its appearance."""

    name = "semantic"
    result_type = SemanticResult

    def __init__(self, config: SemanticConfig | None = None) -> None:
        self.config = config or SemanticConfig()
        self.logger = get_logger("analyzers.semantic")

    def analyze(self, request: AnalysisRequest) -> SemanticResult:
        return self.analyze_semantic_intent(request.components, request.context)

    def analyze_semantic_intent(
        self,
        components: Sequence[Component],
        design_context: DesignContext | None = None,
    ) -> SemanticResult:
        context = design_context or DesignContext()
        canvas = _canvas_bounds(components)
        context_words = set(tokenize(context.hint_text))

        classified = [self._classify(component, canvas, context_words) for component in components]
        patterns = self._detect_patterns(components, classified)

        component_scores = [item.confidence for item in classified]
        if component_scores:
            pattern_support = 0.8 if patterns else 0.5
            overall = (sum(component_scores) / len(component_scores) + pattern_support) / 2
        else:
            overall = 0.0

        distribution = Counter(item.intent for item in classified)
        result = SemanticResult(
            components=classified,
            patterns=patterns,
            semantic_confidence=SemanticConfidence(
                overall=overall,
                components=component_scores,
                patterns=[pattern.confidence for pattern in patterns],
            ),
            intent_distribution=dict(distribution),
            recommendations=self._recommend(classified),
            confidence=overall,
            metadata={"componentCount": len(classified), "patternCount": len(patterns)},
        )
        self.logger.info(
            "Semantic analysis classified %d components into %d intents (%d patterns)",
            len(classified),
            len(distribution),
            len(patterns),
        )
        return result

    def enrich_components(
        self, components: Sequence[Component], result: SemanticResult
    ) -> List[Component]:
        """Return copies of ``components`` carrying their classified intent."""
        return enrich_components(components, result)

    # ------------------------------------------------------------------
    # Per-component classification

    def _classify(
        self,
        component: Component,
        canvas: Optional[Geometry],
        context_words: Set[str],
    ) -> SemanticComponent:
        naming = self.naming_signals(component)
        visual = self.visual_signals(component, canvas)

        combined: Dict[str, float] = {}
        for intent in set(naming.scores) | set(visual.scores):
            score = self._combine(naming.scores.get(intent, 0.0), visual.scores.get(intent, 0.0))
            hints = _CONTEXT_HINTS.get(intent, ())
            if context_words and any(word.startswith(hint) or hint in word for hint in hints for word in context_words):
                score += self.config.context_bonus
            combined[intent] = min(score, 1.0)

        reasoning = [*naming.reasons, *visual.reasons]
        if combined:
            ranked = sorted(combined.items(), key=lambda item: (-item[1], item[0]))
            intent, confidence = ranked[0]
            alternatives = [
                IntentCandidate(intent=name, confidence=score) for name, score in ranked[1:3]
            ]
        else:
            alternatives = []
            if component.type in _FRAME_TYPES or component.children:
                intent, confidence = "container", 0.2
                reasoning.append("No specific signals; treated as a structural container")
            else:
                intent, confidence = "unknown", 0.1
                reasoning.append("No naming or visual signals matched")

        patterns = sorted(
            {
                pattern
                for pattern, intents in _INTENT_PATTERNS.items()
                if intent in intents
            }
        )
        return SemanticComponent(
            id=component.id,
            name=component.name,
            intent=intent,
            confidence=confidence,
            patterns=patterns,
            reasoning=reasoning,
            keywords=naming.keywords,
            alternatives=alternatives,
        )

    def _combine(self, naming: float, visual: float) -> float:
        cfg = self.config
        if naming and visual:
            return cfg.naming_weight * naming + cfg.visual_weight * visual + cfg.agreement_bonus * min(naming, visual)
        # Uncorroborated evidence only earns half of the other source's share.
        if naming:
            return naming * (cfg.naming_weight + cfg.visual_weight / 2)
        if visual:
            return visual * (cfg.visual_weight + cfg.naming_weight / 2)
        return 0.0

    def naming_signals(self, component: Component) -> _Signals:
        signals = _Signals()
        name_tokens = tokenize(component.name)
        category = component.category.strip().lower()
        category_tokens = set(tokenize(component.category))

        for intent, vocabulary in INTENT_VOCABULARY.items():
            if category and (category == intent or category in vocabulary or intent in category_tokens):
                signals.offer(intent, 0.95, f"Category '{component.category}' maps to {intent}")
                _remember(signals.keywords, category)
            for keyword in vocabulary:
                if keyword in name_tokens:
                    signals.offer(intent, 0.9, f"Name contains {intent}-related keyword '{keyword}'")
                    _remember(signals.keywords, keyword)
                elif len(keyword) > 3 and any(token.startswith(keyword) for token in name_tokens):
                    signals.offer(intent, 0.7, f"Name partially matches '{keyword}'")
                    _remember(signals.keywords, keyword)
        return signals

    def visual_signals(self, component: Component, canvas: Optional[Geometry] = None) -> _Signals:
        signals = _Signals()
        style = component.style
        geometry = component.geometry

        if component.type == "TEXT":
            signals.offer("text", 0.8, "Text node")
        if component.type in _MEDIA_TYPES or _has_image_fill(component):
            signals.offer("media", 0.7, "Image or vector content")

        if geometry is None or not geometry.has_size:
            return signals

        background = style.background_color
        ratio = geometry.aspect_ratio
        has_label = bool(component.text or style.text("placeholder") or style.text("label"))

        if 1.5 <= ratio <= 8 and 24 <= geometry.height <= 72 and geometry.width <= 400:
            if background is not None or style.corner_radius > 0:
                score = 0.6
                if style.text_align == "center" or component.text:
                    score += 0.2
                signals.offer("button", score, "Compact filled rectangle shaped like a button")
            if ratio >= 3 and geometry.height <= 64 and (style.has_stroke or style.text("placeholder")):
                signals.offer("input", 0.7 if style.text("placeholder") else 0.55, "Wide bordered box shaped like a text field")

        if geometry.width <= 48 and 0.8 <= ratio <= 1.25 and component.type in _MEDIA_TYPES | {"INSTANCE"}:
            signals.offer("icon", 0.6, "Small square vector shaped like an icon")

        if (
            geometry.width >= 120
            and geometry.height >= 80
            and (style.corner_radius > 0 or style.has_effects)
            and (component.children or background is not None)
        ):
            signals.offer("content", 0.5, "Rounded or elevated panel shaped like a card")

        if canvas is not None and geometry.width >= canvas.width * 0.9 and geometry.height <= 120:
            if abs(geometry.y - canvas.y) <= 2:
                signals.offer("header", 0.6, "Full-width band at the top of the canvas")
            elif abs(geometry.bottom - canvas.bottom) <= 2:
                signals.offer("footer", 0.6, "Full-width band at the bottom of the canvas")

        if background is not None and geometry.height <= 80 and not has_label and component.type != "TEXT":
            if any(color_similarity(background, tone) >= 0.9 for tone in _FEEDBACK_COLORS):
                signals.offer("feedback", 0.4, "Status colour fill")

        return signals

    # ------------------------------------------------------------------
    # Cross-component patterns

    def _detect_patterns(
        self, components: Sequence[Component], classified: Sequence[SemanticComponent]
    ) -> List[SemanticPattern]:
        by_intent: Dict[str, List[str]] = {}
        for item in classified:
            by_intent.setdefault(item.intent, []).append(item.id)
        words_by_id = {
            component.id: set(tokenize(component.name)) | set(tokenize(component.text or ""))
            for component in components
        }

        def _ids_with(words: Iterable[str]) -> List[str]:
            wanted = set(words)
            return [cid for cid, tokens in words_by_id.items() if tokens & wanted]

        inputs = by_intent.get("input", [])
        buttons = by_intent.get("button", [])
        patterns: List[SemanticPattern] = []

        auth_ids = _ids_with(_AUTH_WORDS)
        if auth_ids and buttons:
            registration = bool(_ids_with(_REGISTRATION_WORDS))
            members = _unique([*auth_ids, *inputs, *buttons])
            patterns.append(
                SemanticPattern(
                    type="authentication_flow",
                    subtype="registration" if registration else "login",
                    confidence=min(0.6 + 0.1 * len(inputs) + 0.05 * len(auth_ids), 0.95),
                    component_ids=members,
                    description="Credential entry with a submit action",
                )
            )

        if inputs and buttons:
            patterns.append(
                SemanticPattern(
                    type="form_workflow",
                    subtype="data_entry",
                    confidence=min(0.5 + 0.1 * len(inputs) + 0.05 * len(buttons), 0.9),
                    component_ids=_unique([*by_intent.get("form", []), *inputs, *buttons]),
                    description=f"{len(inputs)} input(s) submitted by {len(buttons)} action(s)",
                )
            )

        navigation = by_intent.get("navigation", [])
        links = by_intent.get("link", [])
        if navigation or len(links) >= 3:
            patterns.append(
                SemanticPattern(
                    type="navigation_workflow",
                    subtype="menu" if navigation else "link_list",
                    confidence=0.75 if navigation else 0.6,
                    component_ids=_unique([*navigation, *links]),
                    description="Navigation structure between views",
                )
            )

        data = by_intent.get("data", [])
        if len(data) >= 2 or _ids_with({"dashboard"}):
            patterns.append(
                SemanticPattern(
                    type="dashboard_workflow",
                    subtype="data_overview",
                    confidence=min(0.5 + 0.1 * len(data), 0.85),
                    component_ids=_unique([*data, *_ids_with({"dashboard"})]),
                    description="Data visualisations grouped into an overview",
                )
            )

        cards = by_intent.get("content", [])
        if len(cards) >= 3:
            patterns.append(
                SemanticPattern(
                    type="information_architecture",
                    subtype="card_grid",
                    confidence=min(0.5 + 0.05 * len(cards), 0.85),
                    component_ids=cards,
                    description="Repeated content cards",
                )
            )
        if by_intent.get("header") and by_intent.get("footer") and (cards or by_intent.get("hero") or by_intent.get("text")):
            patterns.append(
                SemanticPattern(
                    type="information_architecture",
                    subtype="hierarchical_layout",
                    confidence=0.7,
                    component_ids=_unique([*by_intent["header"], *cards, *by_intent["footer"]]),
                    description="Header, body and footer page structure",
                )
            )

        modals = by_intent.get("modal", [])
        if modals:
            patterns.append(
                SemanticPattern(
                    type="interaction_pattern",
                    subtype="modal_dialog",
                    confidence=0.7 if buttons else 0.5,
                    component_ids=_unique([*modals, *buttons]),
                    description="Overlay dialog",
                )
            )

        commerce_ids = _ids_with(_COMMERCE_WORDS)
        if len(commerce_ids) >= 2:
            patterns.append(
                SemanticPattern(
                    type="business_logic_pattern",
                    subtype="ecommerce_flow",
                    confidence=min(0.5 + 0.1 * len(commerce_ids), 0.85),
                    component_ids=commerce_ids,
                    description="Product, cart or checkout elements",
                )
            )

        search_ids = _ids_with(_SEARCH_WORDS)
        if search_ids and (inputs or buttons):
            patterns.append(
                SemanticPattern(
                    type="search_and_filter",
                    subtype="search",
                    confidence=0.65,
                    component_ids=search_ids,
                    description="Search or filter controls",
                )
            )

        return patterns

    def _recommend(self, classified: Sequence[SemanticComponent]) -> List[Recommendation]:
        unclear = [item.id for item in classified if item.intent in {"unknown", "container"} and item.confidence < 0.3]
        if not unclear or len(unclear) * 2 < len(classified):
            return []
        return [
            Recommendation(
                category="semantics",
                description=f"{len(unclear)} of {len(classified)} components have no recognisable purpose",
                action="Give layers descriptive names such as 'Submit Button' or 'Email Input'",
                impact="Improves automated understanding and handoff",
                severity=Severity.LOW,
            )
        ]


_INTENT_PATTERNS: Dict[str, Tuple[str, ...]] = {
    "form": ("input", "button", "form", "toggle", "dropdown"),
    "navigation": ("navigation", "link", "header", "footer"),
    "content": ("content", "hero", "text", "media"),
    "feedback": ("feedback", "modal"),
    "action": ("button",),
    "display": ("data",),
}


def enrich_components(
    components: Sequence[Component], result: SemanticResult
) -> List[Component]:
    """Attach classified intents to components, matching by position then by id."""
    if len(result.components) == len(components):
        pairs: Iterable[Tuple[Component, Optional[SemanticComponent]]] = zip(components, result.components)
    else:
        by_id = {item.id: item for item in result.components}
        pairs = ((component, by_id.get(component.id)) for component in components)
    enriched: List[Component] = []
    for component, classified in pairs:
        if classified is None or classified.id != component.id:
            enriched.append(component)
            continue
        enriched.append(
            component.with_semantic(
                SemanticInfo(
                    intent=classified.intent,
                    confidence=classified.confidence,
                    patterns=tuple(classified.patterns),
                    reasoning=tuple(classified.reasoning),
                )
            )
        )
    return enriched


def _canvas_bounds(components: Sequence[Component]) -> Optional[Geometry]:
    boxes = [c.geometry for c in components if c.geometry is not None and c.geometry.has_size]
    if len(boxes) < 3:
        return None
    left = min(box.x for box in boxes)
    top = min(box.y for box in boxes)
    right = max(box.right for box in boxes)
    bottom = max(box.bottom for box in boxes)
    return Geometry(x=left, y=top, width=right - left, height=bottom - top)


def _has_image_fill(component: Component) -> bool:
    for fill in component.style.fills:
        if isinstance(fill, dict) and str(fill.get("type", "")).upper() == "IMAGE":
            return True
    return False


def _remember(items: List[str], value: str) -> None:
    if value not in items:
        items.append(value)


def _unique(values: Iterable[str]) -> List[str]:
    seen: Set[str] = set()
    ordered: List[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


__all__ = ["INTENT_VOCABULARY", "INTERACTIVE_INTENTS", "SemanticAnalyzer", "enrich_components", "tokenize"]
