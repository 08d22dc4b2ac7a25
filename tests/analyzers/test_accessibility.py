"""Tests for the accessibility checker."""

from __future__ import annotations

import pytest

from contextintel.analyzers.accessibility import AccessibilityChecker, grade_for, is_large_text
from contextintel.colors import RGB
from contextintel.models import Component, Geometry, SemanticInfo, StyleBag
from contextintel.results import InteractionResult, InteractiveComponent


def _button(component_id: str = "btn", *, width: float = 120, height: float = 44, **style: object) -> Component:
    return Component(
        id=component_id,
        name="Login Button",
        type="COMPONENT",
        geometry=Geometry(x=0, y=0, width=width, height=height),
        style=StyleBag(values=dict(style)),
        text="Login",
        semantic=SemanticInfo(intent="button", confidence=0.9),
    )


def test_brand_blue_on_white_is_aa() -> None:
    check = AccessibilityChecker().check_contrast(RGB(0, 102, 204), RGB(255, 255, 255))
    assert check.level == "AA"
    assert check.ratio == pytest.approx(5.57, abs=0.01)
    assert check.foreground == "#0066CC"


def test_contrast_levels() -> None:
    checker = AccessibilityChecker()
    assert checker.check_contrast(RGB(0, 0, 0), RGB(255, 255, 255)).level == "AAA"
    assert checker.check_contrast(RGB(160, 160, 160), RGB(255, 255, 255)).level == "fail"
    assert checker.check_contrast(RGB(160, 160, 160), RGB(255, 255, 255), large_text=True).level == "fail"
    assert checker.check_contrast(RGB(130, 130, 130), RGB(255, 255, 255), large_text=True).level == "AA"


def test_large_text_rules() -> None:
    assert is_large_text(24, None)
    assert is_large_text(18, 700)
    assert not is_large_text(18, 400)
    assert not is_large_text(None, 700)


def test_touch_targets() -> None:
    checker = AccessibilityChecker()
    result = checker.analyze_accessibility((_button("small", width=30, height=30), _button("ok", width=120, height=44)))

    targets = {target.component_id: target for target in result.touch_targets}
    assert targets["small"].valid is False
    assert targets["small"].recommended_size == {"width": 44, "height": 44}
    assert targets["ok"].valid is True
    assert targets["ok"].recommended_size is None

    issue = next(issue for issue in result.issues if issue.guideline == "2.5.5")
    assert issue.component_id == "small"
    assert issue.severity == "high"


def test_zero_size_geometry_is_indeterminate() -> None:
    result = AccessibilityChecker().analyze_accessibility((_button("collapsed", width=0, height=0),))

    assert result.touch_targets == []
    assert all(issue.guideline != "2.5.5" for issue in result.issues)
    assert result.compliance.overall.indeterminate_checks >= 1


def test_login_button_scores_and_grade() -> None:
    button = _button(height=40, backgroundColor="#0066CC", color="#FFFFFF", fontSize=14, fontWeight="bold")

    result = AccessibilityChecker().analyze_accessibility((button,))

    compliance = result.compliance
    assert result.contrast_checks[0].level == "AA"
    assert compliance.perceivable.score == 1.0
    assert compliance.operable.score == 0.0
    assert compliance.overall.score == pytest.approx(0.65)
    assert compliance.overall.grade == "D"
    assert [issue.guideline for issue in result.issues] == ["2.5.5"]
    assert result.recommendations[0].component_id == "btn"
    assert result.confidence == 1.0


def test_failing_contrast_is_critical() -> None:
    component = Component(
        id="caption",
        type="TEXT",
        text="Fine print",
        style=StyleBag(values={"color": "#BBBBBB", "backgroundColor": "#FFFFFF", "fontSize": 10}),
    )

    result = AccessibilityChecker().analyze_accessibility((component,))

    by_guideline = {issue.guideline: issue for issue in result.issues}
    assert by_guideline["1.4.3"].severity == "critical"
    assert by_guideline["3.1.5"].severity == "low"


def test_missing_style_is_indeterminate_not_failure() -> None:
    component = Component(id="t", type="TEXT", text="Hello")

    result = AccessibilityChecker().analyze_accessibility((component,))

    assert result.issues == []
    assert result.compliance.overall.grade == "N/A"
    assert result.compliance.overall.indeterminate_checks == 2
    assert result.confidence == 0.0


def test_hover_only_interaction_fails_keyboard_check() -> None:
    button = _button(width=120, height=44)
    interaction = InteractionResult(
        interactive_components=[
            InteractiveComponent(id="btn", name="Login Button", interaction_types=["hover"], confidence=0.7)
        ]
    )

    result = AccessibilityChecker().analyze_accessibility((button,), interaction)

    assert [issue.guideline for issue in result.issues] == ["2.1.1"]
    assert result.metadata["keyboardDataAvailable"] is True


def test_unlabelled_input_and_generic_names() -> None:
    field = Component(
        id="field",
        name="Rectangle 12",
        geometry=Geometry(x=0, y=100, width=240, height=44),
        semantic=SemanticInfo(intent="input", confidence=0.6),
    )
    label = Component(id="label", type="TEXT", text="Email", geometry=Geometry(x=0, y=70, width=60, height=20))

    unlabelled = AccessibilityChecker().analyze_accessibility((field,))
    labelled = AccessibilityChecker().analyze_accessibility((field, label))

    unlabelled_guidelines = {issue.guideline for issue in unlabelled.issues}
    assert {"1.1.1", "3.3.2", "4.1.2"} <= unlabelled_guidelines
    assert "3.3.2" not in {issue.guideline for issue in labelled.issues}


def test_grade_boundaries() -> None:
    assert grade_for(0.95) == "A"
    assert grade_for(0.9) == "B"
    assert grade_for(0.7) == "C"
    assert grade_for(0.6) == "D"
    assert grade_for(0.1) == "F"


def test_empty_input() -> None:
    result = AccessibilityChecker().analyze_accessibility(())
    assert result.issues == []
    assert result.compliance.overall.grade == "N/A"
    assert result.confidence == 0.0
