"""Tests for semantic intent classification."""

from __future__ import annotations

from contextintel.analyzers.semantic import SemanticAnalyzer, enrich_components, tokenize
from contextintel.models import Component, DesignContext
from contextintel.normalize import parse_design_context, parse_design_spec


def _components(payload: dict) -> tuple:
    return parse_design_spec(payload).components


def test_tokenize_splits_layer_names() -> None:
    assert tokenize("primaryButton/Login-CTA") == ["primary", "button", "login", "cta"]
    assert tokenize("") == []


def test_login_button_is_classified_as_button(login_payload: dict) -> None:
    analyzer = SemanticAnalyzer()
    components = _components(login_payload["designSpec"])
    context = parse_design_context(login_payload["designContext"])

    result = analyzer.analyze_semantic_intent(components, context)

    button = result.components[0]
    assert button.intent == "button"
    assert button.confidence >= 0.9
    assert "button" in button.keywords
    assert any(alt.intent == "form" for alt in button.alternatives)
    assert result.intent_distribution == {"button": 1}
    assert [pattern.type for pattern in result.patterns] == ["authentication_flow"]
    assert result.patterns[0].subtype == "login"
    assert 0.0 < result.confidence <= 1.0
    assert result.semantic_confidence.overall == result.confidence


def test_input_and_button_form_a_form_workflow(design_builder) -> None:
    design_builder.component("email", "Email Input", category="Input", width=280, height=40)
    design_builder.component("submit", "Submit", category="Button", y=60, width=120, height=40, backgroundColor="#0066CC")
    components = _components(design_builder.design_spec())

    result = SemanticAnalyzer().analyze_semantic_intent(components)

    intents = {item.id: item.intent for item in result.components}
    assert intents == {"email": "input", "submit": "button"}
    pattern_types = {pattern.type for pattern in result.patterns}
    assert "form_workflow" in pattern_types
    assert "authentication_flow" in pattern_types


def test_components_without_signals_fall_back() -> None:
    components = (
        Component(id="blank"),
        Component(id="frame", type="FRAME"),
    )
    result = SemanticAnalyzer().analyze_semantic_intent(components)

    by_id = {item.id: item for item in result.components}
    assert (by_id["blank"].intent, by_id["blank"].confidence) == ("unknown", 0.1)
    assert (by_id["frame"].intent, by_id["frame"].confidence) == ("container", 0.2)
    assert len(result.recommendations) == 1
    assert result.recommendations[0].severity == "low"


def test_empty_input_has_zero_confidence() -> None:
    result = SemanticAnalyzer().analyze_semantic_intent((), DesignContext())
    assert result.components == []
    assert result.patterns == []
    assert result.confidence == 0.0


def test_context_hint_raises_confidence() -> None:
    component = Component(id="c1", name="Email field")
    analyzer = SemanticAnalyzer()

    plain = analyzer.analyze_semantic_intent((component,)).components[0]
    hinted = analyzer.analyze_semantic_intent(
        (component,), DesignContext(purpose="Login form")
    ).components[0]

    assert plain.intent == hinted.intent == "input"
    assert hinted.confidence > plain.confidence


def test_enrich_components_attaches_intent(login_payload: dict) -> None:
    components = _components(login_payload["designSpec"])
    result = SemanticAnalyzer().analyze_semantic_intent(components)

    enriched = enrich_components(components, result)

    assert enriched[0].intent == "button"
    assert enriched[0].semantic is not None
    assert components[0].semantic is None


def test_partial_name_matches_need_a_word_prefix() -> None:
    analyzer = SemanticAnalyzer()

    def scores(name: str) -> dict:
        return analyzer.naming_signals(Component(id="c", name=name)).scores

    assert "data" not in scores("Typography")
    assert "form" not in scores("Information Panel")
    assert "form" not in scores("Platform")
    assert "text" not in scores("Context")
    assert scores("Buttons")["button"] == 0.7
    assert scores("loginButton")["button"] == 0.9
