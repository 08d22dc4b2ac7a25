"""Design token analysis and design-system detection."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .base import AnalysisRequest, Analyzer
from ..colors import RGB, color_similarity, parse_color, to_hex
from ..config import TokenConfig
from ..logging import get_logger
from ..models import Component, DesignContext, DesignToken, DesignTokenSet
from ..results import (
    CategoryAnalysis,
    Recommendation,
    Severity,
    SystemCandidate,
    SystemDetection,
    TokenAnalyses,
    TokenCompliance,
    TokenMapping,
    TokenMappingEntry,
    TokenReference,
    TokenResult,
)

CUSTOM_SYSTEM = "Custom"

_CATEGORY_WEIGHTS = {"colors": 0.3, "typography": 0.2, "spacing": 0.2, "naming": 0.3}
_REFERENCE_RE = re.compile(r"^(?:\{(?:[\w-]+\.)*([\w-]+)\}|var\(--([\w-]+)\)|\$([\w-]+))$")


@dataclass(frozen=True)
class SystemProfile:
    """Conventions of a known design system."""

    name: str
    aliases: Tuple[str, ...]
    palette: Tuple[str, ...]
    type_scale: Tuple[float, ...]
    fonts: Tuple[str, ...]
    spacing_scale: Tuple[float, ...]
    naming: Tuple[re.Pattern, ...]

    def palette_colors(self) -> List[RGB]:
        return [color for color in (parse_color(value) for value in self.palette) if color is not None]


KNOWN_SYSTEMS: Tuple[SystemProfile, ...] = (
    SystemProfile(
        name="Material",
        aliases=("material", "material design", "md3", "m3"),
        palette=(
            "#6200EE", "#3700B3", "#03DAC6", "#018786", "#B00020", "#1976D2",
            "#2196F3", "#F44336", "#4CAF50", "#FF9800", "#9C27B0", "#121212",
        ),
        type_scale=(96, 60, 48, 34, 24, 20, 16, 14, 12, 10),
        fonts=("roboto", "google sans"),
        spacing_scale=(4, 8, 16, 24, 32, 40, 48, 56, 64),
        naming=(
            re.compile(r"^(md[-_.])"),
            re.compile(r"^(on[-_]?)?(primary|secondary|tertiary|surface|background|error)([-_]?(variant|container))?$"),
            re.compile(r"(headline|subtitle|body|caption|overline|button)"),
        ),
    ),
    SystemProfile(
        name="Bootstrap",
        aliases=("bootstrap", "bs", "twbs"),
        palette=(
            "#0D6EFD", "#6C757D", "#198754", "#DC3545", "#FFC107", "#0DCAF0",
            "#F8F9FA", "#212529", "#007BFF", "#28A745", "#17A2B8",
        ),
        type_scale=(40, 32, 28, 24, 20, 16, 14),
        fonts=("system-ui", "segoe ui", "helvetica neue", "arial"),
        spacing_scale=(4, 8, 16, 24, 48),
        naming=(
            re.compile(r"^(primary|secondary|success|danger|warning|info|light|dark)$"),
            re.compile(r"^(h[1-6]|display[-_]?\d|lead|small)$"),
            re.compile(r"^(spacer|[mp][trblxy]?-\d)"),
        ),
    ),
    SystemProfile(
        name="Tailwind",
        aliases=("tailwind", "tailwindcss", "tailwind css"),
        palette=(
            "#3B82F6", "#2563EB", "#EF4444", "#10B981", "#F59E0B", "#6366F1",
            "#8B5CF6", "#EC4899", "#111827", "#6B7280", "#F3F4F6",
        ),
        type_scale=(12, 14, 16, 18, 20, 24, 30, 36, 48, 60),
        fonts=("inter", "ui-sans-serif"),
        spacing_scale=(4, 8, 12, 16, 20, 24, 32, 40, 48, 64),
        naming=(
            re.compile(r"^[a-z]+-(50|[1-9]00|950)$"),
            re.compile(r"^text-(xs|sm|base|lg|[2-9]?xl)$"),
            re.compile(r"^(p|m|gap|space)[xy]?-\d"),
        ),
    ),
)


@dataclass
class SystemMatch:
    """Score of one token set against one design system."""

    system: str
    score: float = 0.0
    categories: Dict[str, float] = field(default_factory=dict)
    evidence: List[str] = field(default_factory=list)


@dataclass
class _UsedValue:
    component_id: str
    attribute: str
    raw: Any
    display: str


class DesignTokenLinker(Analyzer):
    """Links component styles to declared tokens and recognises known systems."""

    name = "tokens"
    result_type = TokenResult

    def __init__(
        self,
        config: TokenConfig | None = None,
        systems: Sequence[SystemProfile] = KNOWN_SYSTEMS,
    ) -> None:
        self.config = config or TokenConfig()
        self.systems = tuple(systems)
        self.logger = get_logger("analyzers.tokens")

    def analyze(self, request: AnalysisRequest) -> TokenResult:
        return self.analyze_design_tokens(request.tokens, request.components, request.context)

    def analyze_design_tokens(
        self,
        design_tokens: DesignTokenSet | None,
        components: Sequence[Component] = (),
        design_context: DesignContext | None = None,
    ) -> TokenResult:
        tokens = design_tokens or DesignTokenSet()
        detection = self.detect_design_system(tokens, components, design_context)

        color_analysis, color_entries = self.analyze_color_tokens(tokens.colors, components)
        type_analysis, type_entries = self.analyze_typography_tokens(tokens.typography, components)
        spacing_analysis, spacing_entries = self.analyze_spacing_tokens(tokens.spacing, components)

        entries = [*color_entries, *type_entries, *spacing_entries]
        mapped = [entry for entry in entries if entry.token is not None]
        unmapped = [entry for entry in entries if entry.token is None]
        mapping = TokenMapping(
            mapped=mapped,
            unmapped=unmapped,
            coverage=len(mapped) / len(entries) if entries else 0.0,
        )

        category_scores = {
            "colors": _category_compliance(color_analysis),
            "typography": _category_compliance(type_analysis),
            "spacing": _category_compliance(spacing_analysis),
        }
        active = [
            name
            for name, analysis in (
                ("colors", color_analysis),
                ("typography", type_analysis),
                ("spacing", spacing_analysis),
            )
            if analysis.token_count or analysis.used_values
        ]
        overall = sum(category_scores[name] for name in active) / len(active) if active else 0.0
        compliance = TokenCompliance(overall=overall if not tokens.is_empty else 0.0, **category_scores)

        if tokens.is_empty:
            confidence = 0.0
        else:
            confidence = 0.5 + (0.25 if entries else 0.0) + 0.25 * detection.confidence

        analyses = TokenAnalyses(colors=color_analysis, typography=type_analysis, spacing=spacing_analysis)
        result = TokenResult(
            system_detection=detection,
            token_mapping=mapping,
            compliance=compliance,
            analyses=analyses,
            recommendations=self._recommend(tokens, detection, analyses),
            confidence=confidence,
            metadata={"tokenCount": tokens.count, "styleValues": len(entries)},
        )
        self.logger.info(
            "Token analysis detected %s (confidence %.2f), coverage %.0f%% of %d style values",
            detection.detected_system,
            detection.confidence,
            mapping.coverage * 100,
            len(entries),
        )
        return result

    # ------------------------------------------------------------------
    # Design system detection

    def detect_design_system(
        self,
        tokens: DesignTokenSet,
        components: Sequence[Component] = (),
        design_context: DesignContext | None = None,
    ) -> SystemDetection:
        if tokens.is_empty:
            return SystemDetection(detected_system=CUSTOM_SYSTEM, confidence=0.0)

        hint = ((design_context.design_system if design_context else None) or "").strip().lower()
        matches: List[SystemMatch] = []
        for profile in self.systems:
            match = self.calculate_system_match(tokens, profile)
            if hint and (profile.name.lower() in hint or any(alias == hint for alias in profile.aliases)):
                match.score = min(1.0, match.score + 0.1)
                match.evidence.append(f"design context names {profile.name}")
            matches.append(match)
        matches.sort(key=lambda item: (-item.score, item.system))

        best = matches[0] if matches else None
        alternatives = [SystemCandidate(name=match.system, score=match.score) for match in matches]
        if (
            best is not None
            and best.score >= self.config.detection_threshold
            and len(best.evidence) >= self.config.min_evidence
        ):
            return SystemDetection(
                detected_system=best.system,
                confidence=min(0.95, 0.3 * best.score + 0.15 * len(best.evidence)),
                evidence=best.evidence,
                alternatives=alternatives[1:],
            )
        # Scaled by the evidence behind the nearest known system.
        evidence_score = min(best.score, 0.15 * len(best.evidence)) if best is not None else 0.0
        return SystemDetection(
            detected_system=CUSTOM_SYSTEM,
            confidence=evidence_score,
            evidence=[f"no known system reached {self.config.detection_threshold:.0%} match"],
            alternatives=alternatives,
        )

    def calculate_system_match(
        self, tokens: DesignTokenSet, system: Union[str, SystemProfile]
    ) -> SystemMatch:
        profile = self._profile(system) if isinstance(system, str) else system
        if profile is None:
            return SystemMatch(system=str(system))
        match = SystemMatch(system=profile.name)
        tolerance = self.config.numeric_tolerance

        if tokens.colors:
            palette = profile.palette_colors()
            hits = 0
            for token in tokens.colors:
                color = parse_color(token.value)
                if color is None:
                    continue
                if any(color_similarity(color, swatch) >= self.config.color_tolerance for swatch in palette):
                    hits += 1
                    match.evidence.append(f"color '{token.name}' is in the {profile.name} palette")
            match.categories["colors"] = hits / len(tokens.colors)

        if tokens.typography:
            hits = 0
            for token in tokens.typography:
                size = token.numeric_value
                family = str(token.attributes.get("fontFamily", "")).lower()
                if size is not None and _near_any(size, profile.type_scale, tolerance):
                    hits += 1
                    match.evidence.append(f"type size {size:g} of '{token.name}' is on the {profile.name} scale")
                elif family and any(font in family for font in profile.fonts):
                    hits += 1
                    match.evidence.append(f"font family of '{token.name}' belongs to {profile.name}")
            match.categories["typography"] = hits / len(tokens.typography)

        if tokens.spacing:
            hits = 0
            for token in tokens.spacing:
                value = token.numeric_value
                if value is not None and _near_any(value, profile.spacing_scale, tolerance):
                    hits += 1
                    match.evidence.append(f"spacing {value:g} of '{token.name}' is on the {profile.name} scale")
            match.categories["spacing"] = hits / len(tokens.spacing)

        every_token = [*tokens.colors, *tokens.typography, *tokens.spacing]
        named = [token for token in every_token if any(rx.search(token.name.lower()) for rx in profile.naming)]
        match.categories["naming"] = len(named) / len(every_token) if every_token else 0.0
        match.evidence.extend(f"token name '{token.name}' follows {profile.name} naming" for token in named)

        weight_total = sum(_CATEGORY_WEIGHTS[name] for name in match.categories)
        if weight_total:
            match.score = sum(
                _CATEGORY_WEIGHTS[name] * value for name, value in match.categories.items()
            ) / weight_total
        return match

    def _profile(self, name: str) -> Optional[SystemProfile]:
        lowered = name.strip().lower()
        for profile in self.systems:
            if lowered == profile.name.lower() or lowered in profile.aliases:
                return profile
        return None

    # ------------------------------------------------------------------
    # Per-category analysis

    def analyze_color_tokens(
        self, tokens: Sequence[DesignToken], components: Sequence[Component] = ()
    ) -> Tuple[CategoryAnalysis, List[TokenMappingEntry]]:
        parsed = [(token, parse_color(token.value)) for token in tokens]
        palette = [(token, color) for token, color in parsed if color is not None]

        used: List[_UsedValue] = []
        for component in components:
            for attribute, keys in (
                ("backgroundColor", ("backgroundColor", "background", "fill", "fillColor")),
                ("color", ("color", "textColor", "foreground", "fontColor")),
                ("borderColor", ("borderColor", "stroke", "strokeColor")),
            ):
                raw = component.style.first(keys)
                if raw is None and attribute == "backgroundColor":
                    background = component.style.background_color
                    raw = to_hex(background) if background is not None else None
                if raw is not None:
                    used.append(_UsedValue(component.id, attribute, raw, _display(raw)))

        entries: List[TokenMappingEntry] = []
        for value in used:
            token = self._reference(value.raw, tokens)
            if token is None:
                color = parse_color(value.raw)
                if color is None:
                    continue
                best = max(
                    palette,
                    key=lambda item: color_similarity(color, item[1]),
                    default=None,
                )
                if best is not None and color_similarity(color, best[1]) >= self.config.color_tolerance:
                    token = best[0]
            entries.append(_entry(value, token, "colors"))

        inconsistencies: List[str] = []
        for index, (token, color) in enumerate(palette):
            for other, other_color in palette[index + 1:]:
                if color != other_color and color_similarity(color, other_color) >= 0.97:
                    inconsistencies.append(
                        f"colors '{token.name}' and '{other.name}' are nearly identical"
                    )
        consistency = 1.0 - len(inconsistencies) / len(palette) if palette else 0.0
        return _analysis(len(tokens), entries, consistency, inconsistencies), entries

    def analyze_typography_tokens(
        self, tokens: Sequence[DesignToken], components: Sequence[Component] = ()
    ) -> Tuple[CategoryAnalysis, List[TokenMappingEntry]]:
        entries: List[TokenMappingEntry] = []
        tolerance = self.config.numeric_tolerance
        for component in components:
            raw = component.style.get("fontSize")
            size = component.style.font_size
            if raw is None or size is None:
                continue
            value = _UsedValue(component.id, "fontSize", raw, _display(raw))
            token = self._reference(raw, tokens)
            if token is None:
                token = next(
                    (
                        candidate
                        for candidate in tokens
                        if candidate.numeric_value is not None
                        and abs(candidate.numeric_value - size) <= tolerance
                    ),
                    None,
                )
            entries.append(_entry(value, token, "typography"))

        families = {
            str(token.attributes.get("fontFamily")).strip().lower()
            for token in tokens
            if token.attributes.get("fontFamily")
        }
        families.update(
            family.lower() for family in (c.style.font_family for c in components) if family
        )
        inconsistencies: List[str] = []
        if len(families) > 2:
            inconsistencies.append(f"{len(families)} font families in use: {', '.join(sorted(families))}")
        consistency = max(0.0, 1.0 - 0.2 * max(0, len(families) - 2)) if tokens else 0.0
        return _analysis(len(tokens), entries, consistency, inconsistencies), entries

    def analyze_spacing_tokens(
        self, tokens: Sequence[DesignToken], components: Sequence[Component] = ()
    ) -> Tuple[CategoryAnalysis, List[TokenMappingEntry]]:
        tolerance = self.config.numeric_tolerance
        scale = [token for token in tokens if token.numeric_value is not None]
        entries: List[TokenMappingEntry] = []
        for component in components:
            for amount in component.style.spacing_values:
                value = _UsedValue(component.id, "spacing", amount, f"{amount:g}")
                token = next(
                    (t for t in scale if abs((t.numeric_value or 0.0) - amount) <= tolerance),
                    None,
                )
                entries.append(_entry(value, token, "spacing"))

        base = self.config.spacing_base
        inconsistencies = [
            f"spacing '{token.name}' ({token.numeric_value:g}) is off the {base:g}-unit grid"
            for token in scale
            if base > 0 and (token.numeric_value or 0.0) % base > tolerance
        ]
        consistency = 1.0 - len(inconsistencies) / len(scale) if scale else 0.0
        return _analysis(len(tokens), entries, consistency, inconsistencies), entries

    @staticmethod
    def _reference(raw: Any, tokens: Sequence[DesignToken]) -> Optional[DesignToken]:
        if not isinstance(raw, str):
            return None
        match = _REFERENCE_RE.match(raw.strip())
        if not match:
            return None
        name = next(group for group in match.groups() if group)
        for token in tokens:
            if token.name == name or token.name.split(".")[-1] == name:
                return token
        return None

    # ------------------------------------------------------------------

    @staticmethod
    def _recommend(
        tokens: DesignTokenSet, detection: SystemDetection, analyses: TokenAnalyses
    ) -> List[Recommendation]:
        if tokens.is_empty:
            return [
                Recommendation(
                    category="design-tokens",
                    description="No design tokens are defined",
                    action="Establish colour, typography and spacing tokens",
                    impact="Enables consistent styling and automated handoff",
                    severity=Severity.MEDIUM,
                )
            ]
        recommendations: List[Recommendation] = []
        for label, analysis in (
            ("colors", analyses.colors),
            ("typography", analyses.typography),
            ("spacing", analyses.spacing),
        ):
            if analysis.used_values and analysis.coverage < 0.5:
                recommendations.append(
                    Recommendation(
                        category="design-tokens",
                        description=(
                            f"Only {analysis.matched_values} of {analysis.used_values} {label} values use tokens"
                        ),
                        action=f"Replace hard-coded {label} values with tokens",
                        impact="Reduces visual drift between screens",
                        severity=Severity.MEDIUM,
                    )
                )
            for message in analysis.inconsistencies:
                recommendations.append(
                    Recommendation(
                        category="design-tokens",
                        description=message,
                        action=f"Consolidate {label} tokens",
                        impact="Keeps the token set small and predictable",
                        severity=Severity.LOW,
                    )
                )
        if detection.detected_system == CUSTOM_SYSTEM:
            recommendations.append(
                Recommendation(
                    category="design-tokens",
                    description="Tokens do not follow a known design system",
                    action="Document the naming convention of the custom token set",
                    impact="Helps developers map tokens to code",
                    severity=Severity.LOW,
                )
            )
        return recommendations


def _analysis(
    token_count: int,
    entries: Sequence[TokenMappingEntry],
    consistency: float,
    inconsistencies: List[str],
) -> CategoryAnalysis:
    matched = sum(1 for entry in entries if entry.token is not None)
    return CategoryAnalysis(
        token_count=token_count,
        used_values=len(entries),
        matched_values=matched,
        coverage=matched / len(entries) if entries else 0.0,
        consistency=consistency,
        inconsistencies=inconsistencies,
    )


def _category_compliance(analysis: CategoryAnalysis) -> float:
    if not analysis.token_count:
        return 0.0
    if analysis.used_values:
        return analysis.coverage
    return analysis.consistency


def _entry(value: _UsedValue, token: Optional[DesignToken], category: str) -> TokenMappingEntry:
    reference = None
    if token is not None:
        reference = TokenReference(token=token.name, category=category, value=_display(token.value))
    return TokenMappingEntry(
        component_id=value.component_id,
        attribute=value.attribute,
        value=value.display,
        token=reference,
    )


def _display(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, dict):
        color = parse_color(value)
        return to_hex(color) if color is not None else str(value)
    return str(value)


def _near_any(value: float, scale: Iterable[float], tolerance: float) -> bool:
    return any(abs(value - step) <= tolerance for step in scale)


__all__ = [
    "CUSTOM_SYSTEM",
    "DesignTokenLinker",
    "KNOWN_SYSTEMS",
    "SystemMatch",
    "SystemProfile",
]
