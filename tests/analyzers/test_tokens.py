"""Tests for design token linking and design-system detection."""

from __future__ import annotations

import pytest

from contextintel.analyzers.tokens import CUSTOM_SYSTEM, DesignTokenLinker
from contextintel.models import Component, DesignContext, DesignToken, DesignTokenSet, StyleBag
from contextintel.normalize import parse_design_context, parse_design_spec


def test_login_tokens_detect_material_with_context(login_payload: dict) -> None:
    spec = parse_design_spec(login_payload["designSpec"])
    context = parse_design_context(login_payload["designContext"])

    result = DesignTokenLinker().analyze_design_tokens(spec.design_tokens, spec.components, context)

    detection = result.system_detection
    assert detection.detected_system == "Material"
    assert detection.confidence == pytest.approx(0.95)
    assert any("design context" in item for item in detection.evidence)

    mapped = {(entry.attribute, entry.token.token) for entry in result.token_mapping.mapped}
    assert mapped == {("backgroundColor", "primary"), ("fontSize", "button-text")}
    assert [entry.value for entry in result.token_mapping.unmapped] == ["#FFFFFF"]
    assert result.token_mapping.coverage == pytest.approx(2 / 3)
    assert 0.9 < result.confidence <= 1.0


def test_tie_without_hint_is_broken_by_name() -> None:
    tokens = DesignTokenSet(
        colors=(DesignToken(name="primary", value="#0066CC", type="color"),),
        typography=(DesignToken(name="button-text", value=14, type="typography"),),
        spacing=(DesignToken(name="small", value=8, type="spacing"),),
    )
    linker = DesignTokenLinker()

    material = linker.calculate_system_match(tokens, "material design")
    bootstrap = linker.calculate_system_match(tokens, "Bootstrap")

    assert material.score == pytest.approx(0.6)
    assert bootstrap.score == pytest.approx(0.6)
    assert linker.detect_design_system(tokens).detected_system == "Bootstrap"


def test_unknown_system_name_scores_zero() -> None:
    match = DesignTokenLinker().calculate_system_match(DesignTokenSet(), "Carbon")
    assert match.system == "Carbon"
    assert match.score == 0.0


def test_custom_tokens_fall_back_to_custom() -> None:
    tokens = DesignTokenSet(
        colors=(DesignToken(name="brand-zest", value="#123456"),),
        spacing=(DesignToken(name="gutter-odd", value=7),),
    )

    result = DesignTokenLinker().analyze_design_tokens(tokens)

    assert result.system_detection.detected_system == CUSTOM_SYSTEM
    assert result.system_detection.confidence < 0.4
    assert result.analyses.spacing.inconsistencies == ["spacing 'gutter-odd' (7) is off the 4-unit grid"]
    descriptions = [rec.description for rec in result.recommendations]
    assert "Tokens do not follow a known design system" in descriptions


def test_custom_without_evidence_has_no_confidence() -> None:
    tokens = DesignTokenSet(colors=(DesignToken(name="zz-brand-a", value="not-a-colour"),))

    detection = DesignTokenLinker().detect_design_system(tokens)

    assert detection.detected_system == CUSTOM_SYSTEM
    assert detection.confidence == 0.0
    assert all(candidate.score == 0.0 for candidate in detection.alternatives)


def test_token_references_resolve_by_name() -> None:
    tokens = DesignTokenSet(colors=(DesignToken(name="primary", value="#0066CC"),))
    components = (
        Component(id="a", style=StyleBag(values={"backgroundColor": "{colors.primary}"})),
        Component(id="b", style=StyleBag(values={"color": "var(--primary)"})),
    )

    analysis, entries = DesignTokenLinker().analyze_color_tokens(tokens.colors, components)

    assert [entry.token.token for entry in entries] == ["primary", "primary"]
    assert analysis.coverage == 1.0


def test_near_duplicate_colors_are_flagged() -> None:
    tokens = (
        DesignToken(name="blue", value="#0066CC"),
        DesignToken(name="blue-2", value="#0067CD"),
        DesignToken(name="broken", value="not-a-colour"),
    )

    analysis, _ = DesignTokenLinker().analyze_color_tokens(tokens)

    assert analysis.token_count == 3
    assert analysis.inconsistencies == ["colors 'blue' and 'blue-2' are nearly identical"]
    assert analysis.consistency == pytest.approx(0.5)


def test_typography_family_sprawl() -> None:
    tokens = tuple(
        DesignToken(name=f"font-{index}", value=16, attributes={"fontFamily": family})
        for index, family in enumerate(["Inter", "Roboto", "Georgia"])
    )

    analysis, _ = DesignTokenLinker().analyze_typography_tokens(tokens)

    assert len(analysis.inconsistencies) == 1
    assert analysis.consistency == pytest.approx(0.8)


def test_empty_tokens() -> None:
    result = DesignTokenLinker().analyze_design_tokens(DesignTokenSet(), (), DesignContext())

    assert result.system_detection.detected_system == CUSTOM_SYSTEM
    assert result.system_detection.confidence == 0.0
    assert result.confidence == 0.0
    assert result.recommendations[0].description == "No design tokens are defined"
