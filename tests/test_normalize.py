"""Tests for turning raw design payloads into models."""

from __future__ import annotations

import pytest

from contextintel.colors import RGB
from contextintel.models import DesignSpec, Geometry
from contextintel.normalize import (
    as_float,
    as_str,
    parse_component,
    parse_design_context,
    parse_design_spec,
    parse_geometry,
    parse_options,
    parse_prototype_data,
)


def test_parse_design_spec_reads_login_component(login_payload: dict) -> None:
    spec = parse_design_spec(login_payload["designSpec"])

    assert len(spec.components) == 1
    button = spec.components[0]
    assert button.id == "test-component-1"
    assert button.type == "COMPONENT"
    assert button.category == "Button"
    assert button.geometry == Geometry(x=100, y=200, width=120, height=40)
    assert button.style.background_color == RGB(0, 102, 204)
    assert button.style.foreground_color == RGB(255, 255, 255)
    assert button.style.font_weight == 700
    assert button.style.corner_radius == 4
    assert button.text == "Login"


def test_parse_design_spec_reads_token_groups(login_payload: dict) -> None:
    tokens = parse_design_spec(login_payload["designSpec"]).design_tokens

    assert [token.name for token in tokens.colors] == ["primary"]
    typography = tokens.typography[0]
    assert typography.value == 14
    assert typography.attributes["fontWeight"] == "bold"
    assert tokens.spacing[0].numeric_value == 8
    assert tokens.count == 3


def test_parse_design_spec_tolerates_garbage() -> None:
    assert parse_design_spec(None) == DesignSpec()
    spec = parse_design_spec({"components": ["oops", {"name": "Card", "width": "12", "height": 8}]})

    assert [component.id for component in spec.components] == ["component-0", "component-1"]
    assert spec.components[0].geometry is None
    assert spec.components[1].geometry == Geometry(x=0, y=0, width=12, height=8)


def test_parse_token_mapping_form() -> None:
    spec = parse_design_spec({"designTokens": {"colors": {"brand": "#FF0000"}, "spacing": {"md": "16px"}}})

    assert spec.design_tokens.colors[0].name == "brand"
    assert spec.design_tokens.colors[0].type == "color"
    assert spec.design_tokens.spacing[0].numeric_value == 16


def test_parse_prototype_data_accepts_figma_shapes() -> None:
    prototype = parse_prototype_data(
        {
            "interactions": [
                {"source": "a", "trigger": {"type": "ON_CLICK"}, "action": {"destinationId": "b", "navigation": "NAVIGATE"}},
                {"trigger": "click"},
            ],
            "prototypes": [{"id": "p", "startingFrame": "a"}],
            "flows": [{"id": "f", "name": "main", "startingNode": "a"}],
        }
    )

    assert len(prototype.interactions) == 1
    edge = prototype.interactions[0]
    assert (edge.source_id, edge.target_id, edge.trigger, edge.transition_type) == ("a", "b", "ON_CLICK", "NAVIGATE")
    assert prototype.starting_nodes == ["a"]


def test_parse_context_and_options() -> None:
    context = parse_design_context({"purpose": "Checkout", "designSystem": "Bootstrap", "platform": "Web"})
    assert context.design_system == "Bootstrap"
    assert context.hint_text == "checkout"

    options = parse_options({"parallelAnalysis": "false", "enable_caching": True})
    assert options.parallel_analysis is False
    assert options.enable_caching is True
    assert options.include_performance_metrics is None


@pytest.mark.parametrize("value", [10**400, float("nan"), float("inf"), "1e999", "-inf", True, [1], None])
def test_as_float_treats_non_finite_numbers_as_missing(value: object) -> None:
    assert as_float(value) is None


def test_as_str_rejects_integers_too_long_to_print() -> None:
    assert as_str(10**5000) is None
    assert as_str(42) == "42"


def test_huge_and_nan_numbers_do_not_break_components() -> None:
    assert parse_geometry({"width": 10**400, "height": 40}) is None
    assert parse_geometry({"width": 120, "height": float("nan")}) is None
    assert parse_geometry({"x": 10**400, "width": 120, "height": 40}) == Geometry(x=0, y=0, width=120, height=40)

    component = parse_component(
        {
            "id": "huge",
            "width": 10**400,
            "height": 40,
            "style": {"fontSize": 10**400, "cornerRadius": float("nan"), "padding": "1e999px", "fontWeight": 10**400},
        },
        0,
    )

    assert component.geometry is None
    assert component.style.font_size is None
    assert component.style.font_weight is None
    assert component.style.corner_radius == 0.0
    assert component.style.spacing_values == []
