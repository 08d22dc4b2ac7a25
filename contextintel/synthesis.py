"""Merges the five module results into one interpretation of the design."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from .analyzers.semantic import INTERACTIVE_INTENTS, tokenize
from .config import MODULE_NAMES, SynthesisWeights
from .logging import get_logger
from .models import DesignContext
from .results import (
    AccessibilityResult,
    BusinessLogic,
    DesignQuality,
    DetectedPattern,
    InteractionResult,
    LayoutResult,
    ModuleResult,
    Recommendation,
    Recommendations,
    ScenarioCandidate,
    SemanticResult,
    Severity,
    Synthesis,
    TokenResult,
    UserExperience,
)

SCENARIO_THRESHOLD = 0.35

_BUCKETS = {
    Severity.CRITICAL.value: "critical",
    Severity.HIGH.value: "important",
    Severity.MEDIUM.value: "suggested",
    Severity.LOW.value: "enhancements",
}


@dataclass(frozen=True)
class Scenario:
    """A business purpose and the evidence that points to it."""

    key: str
    primary_function: str
    patterns: Mapping[str, float] = field(default_factory=dict)
    intents: Mapping[str, float] = field(default_factory=dict)
    context_words: Tuple[str, ...] = ()
    context_weight: float = 0.2


SCENARIO_CATALOG: Tuple[Scenario, ...] = (
    Scenario(
        key="authentication",
        primary_function="user authentication",
        patterns={"authentication_flow": 0.6, "form_workflow": 0.15},
        intents={"input": 0.1, "button": 0.05},
        context_words=("login", "authentication", "auth", "sign", "password", "account"),
    ),
    Scenario(
        key="data_entry",
        primary_function="data collection",
        patterns={"form_workflow": 0.5, "search_and_filter": 0.1},
        intents={"input": 0.2, "dropdown": 0.1, "toggle": 0.05},
        context_words=("form", "registration", "survey", "onboarding", "application", "booking"),
    ),
    Scenario(
        key="dashboard",
        primary_function="data monitoring",
        patterns={"dashboard_workflow": 0.5, "navigation_workflow": 0.15},
        intents={"data": 0.2},
        context_words=("dashboard", "analytics", "admin", "report", "monitoring"),
    ),
    Scenario(
        key="navigation",
        primary_function="site navigation",
        patterns={"navigation_workflow": 0.5, "navigation_flow": 0.15},
        intents={"navigation": 0.2, "link": 0.1},
        context_words=("navigation", "portal", "menu", "home"),
    ),
    Scenario(
        key="ecommerce",
        primary_function="commerce transaction",
        patterns={"ecommerce_flow": 0.6},
        intents={"button": 0.05, "media": 0.05},
        context_words=("shop", "commerce", "store", "checkout", "retail", "product"),
        context_weight=0.3,
    ),
    Scenario(
        key="content",
        primary_function="content presentation",
        patterns={"card_grid": 0.3, "hierarchical_layout": 0.3},
        intents={"content": 0.2, "hero": 0.1, "media": 0.1},
        context_words=("marketing", "blog", "content", "landing", "news", "article"),
    ),
    Scenario(
        key="search",
        primary_function="information retrieval",
        patterns={"search_and_filter": 0.6},
        intents={"input": 0.1},
        context_words=("search", "catalog", "discovery", "directory"),
    ),
)

DEFAULT_RECOMMENDATION = Recommendation(
    category="general",
    description="No issues were detected in the analysed design",
    action="Maintain current design standards",
    impact="Keeps the design consistent and accessible",
    severity=Severity.LOW,
)


@dataclass
class ModuleResults:
    """The five module results of one run, real or degraded."""

    semantic: SemanticResult
    interaction: InteractionResult
    accessibility: AccessibilityResult
    tokens: TokenResult
    layout: LayoutResult

    def items(self) -> List[Tuple[str, ModuleResult]]:
        return [(name, getattr(self, name)) for name in MODULE_NAMES]


class ContextSynthesizer:
    """Weights module confidences, cross-references patterns and buckets recommendations."""

    def __init__(
        self,
        weights: SynthesisWeights | Mapping[str, float] | None = None,
        *,
        catalog: Sequence[Scenario] = SCENARIO_CATALOG,
        confidence_threshold: float = 0.7,
    ) -> None:
        if weights is None:
            weights = SynthesisWeights()
        self.weights: Dict[str, float] = (
            weights.as_mapping() if isinstance(weights, SynthesisWeights) else dict(weights)
        )
        self.catalog = tuple(catalog)
        self.confidence_threshold = confidence_threshold
        self.logger = get_logger("synthesis")

    def synthesize(
        self,
        results: ModuleResults,
        *,
        design_context: DesignContext | None = None,
        components_analyzed: int = 0,
        active_modules: Optional[Iterable[str]] = None,
    ) -> Tuple[Synthesis, Recommendations]:
        active = set(active_modules) if active_modules is not None else set(MODULE_NAMES)
        module_confidence = {name: result.confidence for name, result in results.items() if name in active}
        overall = self.overall_confidence(module_confidence)
        patterns = self.detect_patterns(results)
        business = self.infer_business_logic(results, patterns, design_context)
        insights = self.key_insights(results, patterns, business, components_analyzed, active)

        synthesis = Synthesis(
            overall_confidence=overall,
            module_confidence=module_confidence,
            key_insights=insights,
            business_logic=business,
            patterns=patterns,
            user_experience=self.assess_user_experience(results),
            design_quality=self.assess_design_quality(results),
        )
        extra: List[Recommendation] = []
        for name, result in results.items():
            if name in active and result.error:
                extra.append(
                    Recommendation(
                        category="engine",
                        description=f"{name} analysis did not complete: {result.error}",
                        action=f"Check the design data used by the {name} module",
                        impact="Overall confidence is reduced while this module is missing",
                        severity=Severity.MEDIUM,
                    )
                )
        if components_analyzed and overall < self.confidence_threshold:
            extra.append(
                Recommendation(
                    category="data-quality",
                    description=f"Overall confidence {overall:.0%} is below {self.confidence_threshold:.0%}",
                    action="Provide descriptive layer names, styles and prototype links",
                    impact="Richer input produces more reliable analysis",
                    severity=Severity.LOW,
                )
            )
        recommendations = merge_recommendations(
            [rec for name, result in results.items() if name in active for rec in _recommendations_of(result)]
            + extra
        )
        return synthesis, recommendations

    # ------------------------------------------------------------------

    def overall_confidence(self, module_confidence: Mapping[str, float]) -> float:
        total_weight = sum(self.weights.get(name, 0.0) for name in module_confidence)
        if total_weight <= 0:
            return 0.0
        weighted = sum(self.weights.get(name, 0.0) * value for name, value in module_confidence.items())
        return min(max(weighted / total_weight, 0.0), 1.0)

    def detect_patterns(self, results: ModuleResults) -> List[DetectedPattern]:
        interaction = results.interaction
        wired = {item.id for item in interaction.interactive_components if item.targets}
        patterns: List[DetectedPattern] = []

        for pattern in results.semantic.patterns:
            sources = ["semantic"]
            confidence = pattern.confidence
            if wired & set(pattern.component_ids):
                sources.append("interaction")
                confidence = min(1.0, confidence + 0.1)
            patterns.append(
                DetectedPattern(
                    type=pattern.type,
                    confidence=confidence,
                    sources=sources,
                    component_ids=list(pattern.component_ids),
                    description=pattern.description,
                )
            )

        by_intent: Dict[str, List[str]] = {}
        for item in interaction.interactive_components:
            if item.intent:
                by_intent.setdefault(item.intent, []).append(item.id)
        if by_intent.get("input") and by_intent.get("button"):
            members = [*by_intent["input"], *by_intent["button"]]
            base = next((p.confidence for p in patterns if p.type == "form_workflow"), 0.6)
            patterns.append(
                DetectedPattern(
                    type="interactive_form",
                    confidence=min(1.0, (base + 0.8) / 2 + (0.1 if wired & set(members) else 0.0)),
                    sources=["semantic", "interaction"],
                    component_ids=members,
                    description="Inputs and submit actions that are interactive in the prototype",
                )
            )

        if interaction.user_journeys:
            steps = {step for journey in interaction.user_journeys for step in journey.steps}
            patterns.append(
                DetectedPattern(
                    type="navigation_flow",
                    confidence=max(journey.confidence for journey in interaction.user_journeys),
                    sources=["interaction"],
                    component_ids=sorted(steps),
                    description=f"{len(interaction.user_journeys)} user journey(s) through the prototype",
                )
            )

        regular = [grid for grid in results.layout.grid_systems if grid.type == "regular-grid"]
        if regular:
            patterns.append(
                DetectedPattern(
                    type="grid_layout",
                    confidence=max(grid.confidence for grid in regular),
                    sources=["layout"],
                    component_ids=[cid for grid in regular for cid in grid.component_ids],
                    description="Content placed on a regular grid",
                )
            )
        patterns.sort(key=lambda item: -item.confidence)
        return patterns

    def infer_business_logic(
        self,
        results: ModuleResults,
        patterns: Sequence[DetectedPattern],
        design_context: DesignContext | None = None,
    ) -> BusinessLogic:
        pattern_keys: Set[str] = {pattern.type for pattern in patterns}
        pattern_keys.update(p.subtype for p in results.semantic.patterns if p.subtype)
        intents = set(results.semantic.intent_distribution)
        context_words = set(tokenize((design_context or DesignContext()).hint_text))

        scored: List[Tuple[float, Scenario, List[str]]] = []
        for scenario in self.catalog:
            score = 0.0
            evidence: List[str] = []
            for key, weight in scenario.patterns.items():
                if key in pattern_keys:
                    score += weight
                    evidence.append(f"pattern {key}")
            for intent, weight in scenario.intents.items():
                if intent in intents:
                    score += weight
                    evidence.append(f"intent {intent}")
            if context_words and any(
                word.startswith(hint) for hint in scenario.context_words for word in context_words
            ):
                score += scenario.context_weight
                evidence.append("design context")
            scored.append((min(score, 1.0), scenario, evidence))
        scored.sort(key=lambda item: -item[0])

        workflows = [journey.name for journey in results.interaction.user_journeys]
        workflows.extend(p.type for p in patterns if p.type.endswith("workflow") or p.type.endswith("flow"))
        workflows = list(dict.fromkeys(workflows))
        alternatives = [
            ScenarioCandidate(scenario=scenario.key, score=score) for score, scenario, _ in scored[1:4] if score > 0
        ]

        if scored and scored[0][0] >= SCENARIO_THRESHOLD:
            score, scenario, evidence = scored[0]
            return BusinessLogic(
                primary_function=scenario.primary_function,
                scenario=scenario.key,
                confidence=score,
                evidence=evidence,
                user_workflows=workflows,
                alternatives=alternatives,
            )
        best = scored[0][0] if scored else 0.0
        return BusinessLogic(
            primary_function="general interface",
            scenario="general",
            confidence=max(0.0, 1.0 - best) * 0.5 if patterns or intents else 0.0,
            evidence=[],
            user_workflows=workflows,
            alternatives=[ScenarioCandidate(scenario=s.key, score=v) for v, s, _ in scored[:3] if v > 0],
        )

    # ------------------------------------------------------------------
    # Experience and quality summaries

    def assess_user_experience(self, results: ModuleResults) -> UserExperience:
        interaction = results.interaction
        journeys = interaction.user_journeys
        journey_quality = (
            sum(journey.confidence * (1.0 if journey.is_complete else 0.5) for journey in journeys) / len(journeys)
            if journeys
            else 0.0
        )

        interactive = interaction.interactive_components
        interaction_quality = 0.0
        if interactive:
            orphaned = set(interaction.validation.orphaned_components)
            mean = sum(item.confidence for item in interactive) / len(interactive)
            wired_share = sum(1 for item in interactive if item.id not in orphaned) / len(interactive)
            interaction_quality = mean * wired_share

        compliance = results.accessibility.compliance.overall
        accessibility_score = compliance.score if compliance.total_checks else 0.0
        evaluated = [
            score
            for score, present in (
                (accessibility_score, compliance.total_checks > 0),
                (journey_quality, bool(journeys)),
                (interaction_quality, bool(interactive)),
            )
            if present
        ]
        return UserExperience(
            usability_score=sum(evaluated) / len(evaluated) if evaluated else 0.0,
            journey_quality=journey_quality,
            accessibility_score=accessibility_score,
            interaction_quality=interaction_quality,
            cognitive_load=_cognitive_load(len(interactive)),
        )

    def assess_design_quality(self, results: ModuleResults) -> DesignQuality:
        analyses = results.tokens.analyses
        categories = [item for item in (analyses.colors, analyses.typography, analyses.spacing) if item.token_count]
        consistency = sum(item.consistency for item in categories) / len(categories) if categories else 0.0
        system_compliance = results.tokens.compliance.overall
        layout_quality = _layout_quality(results.layout)
        components = results.semantic.components
        component_quality = (
            sum(item.confidence for item in components) / len(components) if components else 0.0
        )

        evaluated: List[float] = []
        if categories:
            evaluated.extend([consistency, system_compliance])
        if layout_quality is not None:
            evaluated.append(layout_quality)
        if components:
            evaluated.append(component_quality)
        return DesignQuality(
            consistency=consistency,
            system_compliance=system_compliance,
            layout_quality=layout_quality or 0.0,
            component_quality=component_quality,
            overall=sum(evaluated) / len(evaluated) if evaluated else 0.0,
        )

    def key_insights(
        self,
        results: ModuleResults,
        patterns: Sequence[DetectedPattern],
        business: BusinessLogic,
        components_analyzed: int,
        active: Set[str],
    ) -> List[str]:
        if not components_analyzed:
            return ["No components were supplied for analysis"]
        insights: List[str] = []
        interactive_ids = {item.id for item in results.interaction.interactive_components}
        interactive_ids.update(
            item.id for item in results.semantic.components if item.intent in INTERACTIVE_INTENTS
        )

        semantic_patterns = [p for p in patterns if "semantic" in p.sources]
        if semantic_patterns:
            top = semantic_patterns[0]
            count = sum(1 for cid in top.component_ids if cid in interactive_ids)
            insights.append(f"Detected {_pattern_label(top, results.semantic)} pattern with {count} interactive elements")
        if business.scenario != "general":
            insights.append(f"Primary function looks like {business.primary_function} ({business.confidence:.0%})")

        interaction = results.interaction
        if interaction.user_journeys:
            insights.append(
                f"{len(interaction.user_journeys)} user journey(s) mapped across "
                f"{len(interaction.interactive_components)} interactive component(s)"
            )

        compliance = results.accessibility.compliance.overall
        if compliance.total_checks:
            critical = sum(1 for issue in results.accessibility.issues if issue.severity == Severity.CRITICAL)
            insights.append(
                f"Accessibility grade {compliance.grade} ({compliance.score:.0%}) with {critical} critical issue(s)"
            )

        detection = results.tokens.system_detection
        if results.tokens.metadata.get("tokenCount"):
            if detection.detected_system != "Custom":
                insights.append(f"Design tokens align with {detection.detected_system} ({detection.confidence:.0%})")
            else:
                insights.append(
                    f"Custom design tokens cover {results.tokens.token_mapping.coverage:.0%} of style values"
                )

        layout = results.layout
        if layout.grid_systems:
            insights.append(
                f"Layout uses {len(layout.grid_systems)} grid or stack pattern(s) over "
                f"{layout.hierarchical_structure.depth} nesting level(s)"
            )

        for name, result in results.items():
            if name in active and result.error:
                insights.append(f"{name.capitalize()} analysis unavailable: {result.error}")
        return insights


def merge_recommendations(items: Iterable[Recommendation]) -> Recommendations:
    """Deduplicate and bucket recommendations by severity."""
    buckets: Dict[str, List[Recommendation]] = {name: [] for name in _BUCKETS.values()}
    seen: Set[Tuple[str, str, Optional[str]]] = set()
    for item in items:
        key = (item.category, item.description, item.component_id)
        if key in seen:
            continue
        seen.add(key)
        severity = item.severity.value if isinstance(item.severity, Severity) else str(item.severity)
        buckets[_BUCKETS.get(severity, "suggested")].append(item)
    if not any(buckets.values()):
        buckets["enhancements"].append(DEFAULT_RECOMMENDATION)
    return Recommendations(**buckets)


def _recommendations_of(result: ModuleResult) -> List[Recommendation]:
    return list(getattr(result, "recommendations", []) or [])


def _cognitive_load(interactive_count: int) -> str:
    if interactive_count <= 5:
        return "low"
    if interactive_count <= 12:
        return "medium"
    return "high"


def _layout_quality(layout: LayoutResult) -> Optional[float]:
    """Share of positioned components that sit on a grid or alignment line, less overlaps."""
    hierarchy = layout.hierarchical_structure
    positioned = {cid for level in hierarchy.levels for cid in level.component_ids}
    if not positioned:
        return None
    organised = {cid for grid in layout.grid_systems for cid in grid.component_ids}
    organised.update(cid for pattern in layout.alignment_patterns for cid in pattern.component_ids)
    overlaps = sum(1 for relationship in hierarchy.relationships if relationship.type == "overlaps")
    return max(0.0, len(organised & positioned) / len(positioned) - 0.1 * overlaps)


def _pattern_label(pattern: DetectedPattern, semantic: SemanticResult) -> str:
    if pattern.type == "authentication_flow":
        subtype = next((p.subtype for p in semantic.patterns if p.type == pattern.type and p.subtype), "login")
        return f"{subtype}-form"
    return pattern.type.replace("_", "-")


__all__ = [
    "ContextSynthesizer",
    "DEFAULT_RECOMMENDATION",
    "ModuleResults",
    "SCENARIO_CATALOG",
    "SCENARIO_THRESHOLD",
    "Scenario",
    "merge_recommendations",
]
