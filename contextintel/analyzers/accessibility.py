"""WCAG-style accessibility estimation over design components.

The checks are heuristics over static design data. A check that cannot be
evaluated because style or geometry is missing is counted as indeterminate: it
lowers the module confidence but never counts as a failure.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .base import AnalysisRequest, Analyzer
from .semantic import INTERACTIVE_INTENTS
from ..colors import RGB, contrast_ratio, to_hex
from ..config import AccessibilityConfig
from ..logging import get_logger
from ..models import Component, DesignContext
from ..results import (
    AccessibilityIssue,
    AccessibilityResult,
    ComplianceSummary,
    ContrastCheck,
    InteractionResult,
    OverallCompliance,
    PrincipleScore,
    Recommendation,
    Severity,
    TouchTargetCheck,
)

PRINCIPLES = ("perceivable", "operable", "understandable", "robust")

_GENERIC_NAME_RE = re.compile(
    r"^(frame|rectangle|rect|group|vector|ellipse|instance|component|layer|shape|union|line)[\s_-]*\d*$",
    re.IGNORECASE,
)
_GRADES = ((0.95, "A"), (0.85, "B"), (0.7, "C"), (0.6, "D"))
_NON_POINTER_TYPES = {"click", "press", "key", "drag", "navigate", "overlay", "focus", "input", "select", "toggle"}
_MEDIA_INTENTS = {"media", "icon"}

_ISSUE_ACTIONS: Dict[str, str] = {
    "1.4.3": "Adjust foreground or background colour to reach the required contrast ratio",
    "1.1.1": "Provide alternative text describing the element",
    "2.5.5": "Enlarge the element or its hit area",
    "2.1.1": "Offer a click, tap or keyboard trigger alongside hover",
    "3.3.2": "Add a visible label or placeholder to the field",
    "3.1.5": "Increase the font size",
    "4.1.2": "Rename the layer or add an accessible name",
}


def is_large_text(font_size: Optional[float], font_weight: Optional[float]) -> bool:
    if font_size is None:
        return False
    return font_size >= 24 or (font_size >= 18 and (font_weight or 400) >= 700)


def grade_for(score: float) -> str:
    for threshold, grade in _GRADES:
        if score >= threshold:
            return grade
    return "F"


@dataclass
class _Tally:
    passed: int = 0
    failed: int = 0
    indeterminate: int = 0

    def record(self, outcome: Optional[bool]) -> None:
        if outcome is None:
            self.indeterminate += 1
        elif outcome:
            self.passed += 1
        else:
            self.failed += 1

    def score(self) -> PrincipleScore:
        total = self.passed + self.failed
        return PrincipleScore(
            score=self.passed / total if total else 0.0,
            passed=self.passed,
            total=total,
            indeterminate=self.indeterminate,
        )


@dataclass
class _Run:
    tallies: Dict[str, _Tally] = field(default_factory=lambda: {name: _Tally() for name in PRINCIPLES})
    issues: List[AccessibilityIssue] = field(default_factory=list)
    contrast: List[ContrastCheck] = field(default_factory=list)
    targets: List[TouchTargetCheck] = field(default_factory=list)

    def check(
        self,
        principle: str,
        outcome: Optional[bool],
        *,
        guideline: str = "",
        severity: Severity = Severity.MEDIUM,
        component_id: str = "",
        message: str = "",
    ) -> None:
        self.tallies[principle].record(outcome)
        if outcome is False:
            self.issues.append(
                AccessibilityIssue(
                    principle=principle,
                    guideline=guideline,
                    severity=severity,
                    component_id=component_id,
                    message=message,
                )
            )


class AccessibilityChecker(Analyzer):
    """Estimates WCAG compliance from colours, sizes, labels and interactions."""

    name = "accessibility"
    result_type = AccessibilityResult

    def __init__(self, config: AccessibilityConfig | None = None) -> None:
        self.config = config or AccessibilityConfig()
        self.logger = get_logger("analyzers.accessibility")

    def analyze(self, request: AnalysisRequest) -> AccessibilityResult:
        return self.analyze_accessibility(request.components, request.interaction, request.context)

    def analyze_accessibility(
        self,
        components: Sequence[Component],
        interaction_result: InteractionResult | None = None,
        design_context: DesignContext | None = None,
    ) -> AccessibilityResult:
        run = _Run()
        wired: Dict[str, List[str]] = {}
        if interaction_result is not None:
            wired = {
                item.id: list(item.interaction_types)
                for item in interaction_result.interactive_components
            }
        text_nodes = [c for c in components if c.type == "TEXT" and c.geometry is not None]

        for component in components:
            interactive = component.intent in INTERACTIVE_INTENTS or component.id in wired
            self._check_contrast(run, component)
            self._check_text_alternative(run, component, interactive)
            if interactive:
                self._check_touch_target(run, component)
                self._check_accessible_name(run, component)
            if component.id in wired and wired[component.id]:
                self._check_keyboard(run, component, wired[component.id])
            if component.intent == "input":
                self._check_input_label(run, component, text_nodes)
            self._check_font_size(run, component)

        compliance = self._compliance(run)
        determinate = compliance.overall.total_checks
        indeterminate = compliance.overall.indeterminate_checks
        confidence = determinate / (determinate + indeterminate) if determinate + indeterminate else 0.0

        result = AccessibilityResult(
            compliance=compliance,
            issues=run.issues,
            contrast_checks=run.contrast,
            touch_targets=run.targets,
            recommendations=[self._recommendation(issue) for issue in run.issues],
            confidence=confidence,
            metadata={
                "platform": (design_context or DesignContext()).platform,
                "keyboardDataAvailable": interaction_result is not None,
            },
        )
        self.logger.info(
            "Accessibility grade %s (score %.2f) with %d issue(s), %d indeterminate check(s)",
            compliance.overall.grade,
            compliance.overall.score,
            len(run.issues),
            indeterminate,
        )
        return result

    # ------------------------------------------------------------------
    # Perceivable

    def check_contrast(
        self, foreground: RGB, background: RGB, *, large_text: bool = False
    ) -> ContrastCheck:
        """Classify one colour pair; accepts parsed colours."""
        ratio = contrast_ratio(foreground, background)
        return ContrastCheck(
            component_id="",
            foreground=to_hex(foreground),
            background=to_hex(background),
            ratio=round(ratio, 2),
            level=self._contrast_level(ratio, large_text),
            large_text=large_text,
        )

    def _contrast_level(self, ratio: float, large_text: bool) -> str:
        cfg = self.config
        if ratio >= cfg.enhanced_contrast:
            return "AAA"
        minimum = cfg.large_text_contrast if large_text else cfg.normal_text_contrast
        if ratio >= minimum:
            return "AA"
        return "fail"

    def _check_contrast(self, run: _Run, component: Component) -> None:
        style = component.style
        foreground = style.foreground_color
        background = style.background_color
        if foreground is None or background is None:
            if component.type == "TEXT" or component.text:
                run.check("perceivable", None)
            return
        large = is_large_text(style.font_size, style.font_weight)
        check = self.check_contrast(foreground, background, large_text=large).model_copy(
            update={"component_id": component.id}
        )
        run.contrast.append(check)
        run.check(
            "perceivable",
            check.level != "fail",
            guideline="1.4.3",
            severity=Severity.CRITICAL,
            component_id=component.id,
            message=f"Contrast ratio {check.ratio}:1 between {check.foreground} and {check.background} is too low",
        )

    def _check_text_alternative(self, run: _Run, component: Component, interactive: bool) -> None:
        style = component.style
        if component.intent in _MEDIA_INTENTS or component.type == "IMAGE":
            has_alt = bool(style.accessible_text or component.text)
            run.check(
                "perceivable",
                has_alt,
                guideline="1.1.1",
                severity=Severity.HIGH if interactive else Severity.MEDIUM,
                component_id=component.id,
                message=f"'{component.label}' has no text alternative",
            )
        elif interactive:
            has_name = bool(
                style.accessible_text
                or component.text
                or (component.name and not _GENERIC_NAME_RE.match(component.name.strip()))
            )
            run.check(
                "perceivable",
                has_name,
                guideline="1.1.1",
                severity=Severity.HIGH,
                component_id=component.id,
                message=f"Control '{component.label}' has no visible or accessible label",
            )

    # ------------------------------------------------------------------
    # Operable

    def _check_touch_target(self, run: _Run, component: Component) -> None:
        geometry = component.geometry
        if geometry is None or not geometry.has_size:
            run.check("operable", None)
            return
        minimum = self.config.min_touch_target
        valid = geometry.width >= minimum and geometry.height >= minimum
        run.targets.append(
            TouchTargetCheck(
                component_id=component.id,
                width=geometry.width,
                height=geometry.height,
                valid=valid,
                recommended_size=None
                if valid
                else {"width": max(geometry.width, minimum), "height": max(geometry.height, minimum)},
            )
        )
        run.check(
            "operable",
            valid,
            guideline="2.5.5",
            severity=Severity.HIGH,
            component_id=component.id,
            message=(
                f"Touch target {geometry.width:g}x{geometry.height:g} is below "
                f"{minimum:g}x{minimum:g}"
            ),
        )

    def _check_keyboard(self, run: _Run, component: Component, interaction_types: List[str]) -> None:
        reachable = any(kind in _NON_POINTER_TYPES for kind in interaction_types)
        run.check(
            "operable",
            reachable,
            guideline="2.1.1",
            severity=Severity.MEDIUM,
            component_id=component.id,
            message=f"'{component.label}' is only reachable by hovering",
        )

    # ------------------------------------------------------------------
    # Understandable

    def _check_input_label(self, run: _Run, component: Component, text_nodes: Sequence[Component]) -> None:
        style = component.style
        if style.text("label") or style.text("placeholder") or style.accessible_text or component.text:
            run.check("understandable", True)
            return
        geometry = component.geometry
        if geometry is None:
            run.check("understandable", None)
            return
        labelled = False
        for node in text_nodes:
            box = node.geometry
            if box is None or node.id == component.id:
                continue
            above = 0 <= geometry.y - box.bottom <= 40 and box.x < geometry.right and geometry.x < box.right
            left = 0 <= geometry.x - box.right <= 24 and abs(box.center_y - geometry.center_y) <= geometry.height / 2
            if above or left:
                labelled = True
                break
        run.check(
            "understandable",
            labelled,
            guideline="3.3.2",
            severity=Severity.MEDIUM,
            component_id=component.id,
            message=f"Input '{component.label}' has no label",
        )

    def _check_font_size(self, run: _Run, component: Component) -> None:
        size = component.style.font_size
        if size is None:
            if component.type == "TEXT":
                run.check("understandable", None)
            return
        run.check(
            "understandable",
            size >= self.config.min_font_size,
            guideline="3.1.5",
            severity=Severity.LOW,
            component_id=component.id,
            message=f"Font size {size:g} is below {self.config.min_font_size:g}",
        )

    # ------------------------------------------------------------------
    # Robust

    def _check_accessible_name(self, run: _Run, component: Component) -> None:
        generic = not component.name or bool(_GENERIC_NAME_RE.match(component.name.strip()))
        named = not generic or bool(component.style.accessible_text or component.text)
        run.check(
            "robust",
            named,
            guideline="4.1.2",
            severity=Severity.MEDIUM,
            component_id=component.id,
            message=f"Interactive element '{component.label}' only has an auto-generated name",
        )

    # ------------------------------------------------------------------

    def _compliance(self, run: _Run) -> ComplianceSummary:
        scores = {name: tally.score() for name, tally in run.tallies.items()}
        weights = self.config.principle_weights
        evaluated = [name for name in PRINCIPLES if scores[name].evaluated]
        weight_sum = sum(weights.get(name, 0.0) for name in evaluated)
        if evaluated and weight_sum > 0:
            overall = sum(scores[name].score * weights.get(name, 0.0) for name in evaluated) / weight_sum
            grade = grade_for(overall)
        else:
            overall, grade = 0.0, "N/A"
        return ComplianceSummary(
            overall=OverallCompliance(
                score=overall,
                grade=grade,
                passed_checks=sum(score.passed for score in scores.values()),
                total_checks=sum(score.total for score in scores.values()),
                indeterminate_checks=sum(score.indeterminate for score in scores.values()),
            ),
            **scores,
        )

    @staticmethod
    def _recommendation(issue: AccessibilityIssue) -> Recommendation:
        return Recommendation(
            category="accessibility",
            description=issue.message,
            action=_ISSUE_ACTIONS.get(issue.guideline, "Review against WCAG guidance"),
            impact=f"WCAG {issue.guideline} ({issue.principle})",
            severity=issue.severity,
            component_id=issue.component_id or None,
        )


__all__ = ["AccessibilityChecker", "PRINCIPLES", "grade_for", "is_large_text"]
