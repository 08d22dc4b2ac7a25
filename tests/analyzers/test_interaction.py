"""Tests for interaction and navigation flow mapping."""

from __future__ import annotations

import pytest

from contextintel.analyzers.interaction import InteractionMapper, normalize_transition, normalize_trigger
from contextintel.config import InteractionConfig
from contextintel.models import Component, InteractionEdge, PrototypeData, SemanticInfo
from contextintel.normalize import parse_design_spec, parse_prototype_data


def _edge(source: str, target: str | None, trigger: str = "click", edge_id: str | None = None) -> InteractionEdge:
    return InteractionEdge(id=edge_id or f"{source}->{target}", trigger=trigger, source_id=source, target_id=target)


def test_trigger_and_transition_aliases() -> None:
    assert normalize_trigger("ON_CLICK") == "click"
    assert normalize_trigger("tap") == "click"
    assert normalize_trigger("While-Hovering") == "hover"
    assert normalize_trigger(None) == "click"
    assert normalize_transition("OPEN_OVERLAY", "x") == "overlay"
    assert normalize_transition(None, "x") == "navigate"
    assert normalize_transition(None, None) == "none"


def test_login_flow_produces_named_journey(login_payload: dict) -> None:
    components = parse_design_spec(login_payload["designSpec"]).components
    prototype = parse_prototype_data(login_payload["prototypeData"])

    result = InteractionMapper().map_interaction_flows(components, prototype)

    assert [item.id for item in result.interactive_components] == ["test-component-1"]
    button = result.interactive_components[0]
    assert button.interaction_types == ["click", "navigate"]
    assert button.targets == ["dashboard-1"]
    assert button.confidence == pytest.approx(0.75)

    assert result.navigation_flow.entry_points == ["test-component-1"]
    assert result.navigation_flow.exit_points == ["dashboard-1"]
    assert result.navigation_flow.total_flows == 1

    journey = result.user_journeys[0]
    assert journey.steps == ["test-component-1", "dashboard-1"]
    assert journey.name == "login-flow"
    assert journey.source == "prototype"
    assert journey.is_complete is True
    assert result.validation.is_valid
    assert result.confidence == pytest.approx(1.0)


def test_cycles_are_reported_without_looping() -> None:
    components = (Component(id="a", name="Home"), Component(id="b", name="Settings"))
    prototype = PrototypeData(interactions=(_edge("a", "b"), _edge("b", "a")))

    result = InteractionMapper().map_interaction_flows(components, prototype)

    assert result.validation.cycles == [["a", "b", "a"]]
    assert [journey.steps for journey in result.user_journeys] == [["a", "b"]]
    assert result.user_journeys[0].source == "fallback"


def test_journey_count_is_bounded() -> None:
    edges = tuple(_edge("hub", f"leaf-{index}") for index in range(10))
    mapper = InteractionMapper(InteractionConfig(max_flow_depth=10, max_journeys=3))

    result = mapper.map_interaction_flows((Component(id="hub"),), PrototypeData(interactions=edges))

    assert len(result.user_journeys) == 3
    assert result.navigation_flow.total_flows == 3


def test_semantic_intent_without_edges_is_still_interactive() -> None:
    component = Component(id="cta", name="Buy", semantic=SemanticInfo(intent="button", confidence=0.8))

    result = InteractionMapper().map_interaction_flows((component,), PrototypeData())

    item = result.interactive_components[0]
    assert item.interaction_types == ["click"]
    assert item.confidence == pytest.approx(0.7)
    assert result.confidence == pytest.approx(0.28)
    assert result.validation.orphaned_components == []
    assert any("no prototype links" in rec.description for rec in result.recommendations)


def test_unresolved_sources_and_hover_are_flagged() -> None:
    components = (Component(id="menu", semantic=SemanticInfo(intent="navigation", confidence=0.9)),)
    prototype = PrototypeData(interactions=(_edge("ghost", "page", trigger="ON_HOVER"),))

    result = InteractionMapper().map_interaction_flows(components, prototype)

    assert result.validation.unresolved_sources == ["ghost"]
    assert result.validation.orphaned_components == ["menu"]
    assert not result.validation.is_valid
    descriptions = " ".join(rec.description for rec in result.recommendations)
    assert "Hover-triggered" in descriptions
    assert "missing in the design" in descriptions


def test_empty_input() -> None:
    result = InteractionMapper().map_interaction_flows((), None)
    assert result.interactive_components == []
    assert result.user_journeys == []
    assert result.confidence == 0.0


def test_gesture_triggers_are_classified() -> None:
    components = (
        Component(id="carousel", name="Carousel"),
        Component(id="card", name="Card"),
        Component(id="slider", name="Volume Slider"),
        Component(id="btn", name="Next Button"),
    )
    edges = (
        _edge("carousel", "slide-2", trigger="ON_DRAG"),
        InteractionEdge(
            id="lp", trigger="Long-Press", source_id="card", target_id="menu", transition_type="OPEN_OVERLAY"
        ),
        InteractionEdge(id="knob", trigger="drag", source_id="slider"),
        _edge("btn", "slide-2"),
    )

    result = InteractionMapper().map_interaction_flows(components, PrototypeData(interactions=edges))

    gestures = {pattern.type: pattern for pattern in result.gesture_patterns}
    assert set(gestures) == {"swipe", "long_press", "drag"}
    assert gestures["swipe"].component_ids == ["carousel"]
    assert gestures["swipe"].confidence == pytest.approx(0.75)
    assert gestures["long_press"].component_ids == ["card"]
    assert gestures["long_press"].confidence == pytest.approx(0.9)
    assert gestures["long_press"].evidence == ["'Long-Press' on card"]
    assert gestures["drag"].component_ids == ["slider"]


def test_click_only_prototypes_have_no_gestures() -> None:
    components = (Component(id="a", name="Home"), Component(id="b", name="Settings"))
    prototype = PrototypeData(interactions=(_edge("a", "b"), _edge("b", "a", trigger="ON_HOVER")))

    assert InteractionMapper().map_interaction_flows(components, prototype).gesture_patterns == []
