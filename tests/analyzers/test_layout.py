"""Tests for layout intent extraction."""

from __future__ import annotations

import pytest

from contextintel.analyzers.layout import LayoutIntentExtractor, cluster_values
from contextintel.models import Component, DesignContext, Geometry, StyleBag


def _box(component_id: str, x: float, y: float, width: float, height: float, **kwargs: object) -> Component:
    style = kwargs.pop("style", None)
    return Component(
        id=component_id,
        geometry=Geometry(x=x, y=y, width=width, height=height),
        style=StyleBag(values=dict(style or {})),
        **kwargs,  # type: ignore[arg-type]
    )


def _card_grid() -> tuple:
    return (
        _box("container", 0, 0, 400, 400, type="FRAME"),
        _box("card-1", 10, 10, 80, 80),
        _box("card-2", 110, 10, 80, 80),
        _box("card-3", 10, 110, 80, 80),
        _box("card-4", 110, 110, 80, 80),
    )


def test_cluster_values_groups_within_tolerance() -> None:
    clusters = cluster_values([("c", 10.0), ("a", 0.0), ("b", 1.5)], 2.0)
    assert clusters == [(0.0, ["a", "b"]), (10.0, ["c"])]


def test_regular_grid_inside_container() -> None:
    result = LayoutIntentExtractor().extract_layout_intent(_card_grid())

    assert len(result.grid_systems) == 1
    grid = result.grid_systems[0]
    assert grid.type == "regular-grid"
    assert grid.container_id == "container"
    assert (grid.columns, grid.rows) == (2, 2)
    assert grid.gutter == 20
    assert sorted(grid.component_ids) == ["card-1", "card-2", "card-3", "card-4"]

    hierarchy = result.hierarchical_structure
    assert hierarchy.depth == 2
    assert hierarchy.levels[0].component_ids == ["container"]
    assert {rel.child_id for rel in hierarchy.relationships if rel.type == "contains"} == {
        "card-1",
        "card-2",
        "card-3",
        "card-4",
    }
    assert result.responsive_patterns.breakpoints == [400.0]
    assert result.confidence == pytest.approx(1.0)


def test_horizontal_stack() -> None:
    components = (
        _box("one", 0, 0, 100, 40),
        _box("two", 110, 0, 100, 40),
        _box("three", 220, 0, 100, 40),
    )

    grids = LayoutIntentExtractor().detect_grid_systems(components)

    assert [grid.type for grid in grids] == ["horizontal-stack"]
    stack = grids[0]
    assert stack.component_ids == ["one", "two", "three"]
    assert stack.gutter == 10
    assert stack.confidence == pytest.approx(0.95)


def test_alignment_groups_by_axis() -> None:
    components = (_box("a", 0, 0, 100, 40), _box("b", 0, 60, 100, 40))

    patterns = LayoutIntentExtractor().analyze_alignment_patterns(components)

    axes = [pattern.axis for pattern in patterns]
    assert axes == ["left", "right", "center-x"]
    assert all(pattern.component_ids == ["a", "b"] for pattern in patterns)


def test_partial_overlap_is_reported() -> None:
    components = (_box("a", 0, 0, 100, 100), _box("b", 50, 50, 100, 100))

    result = LayoutIntentExtractor().extract_layout_intent(components)

    overlaps = [rel for rel in result.hierarchical_structure.relationships if rel.type == "overlaps"]
    assert [(rel.parent_id, rel.child_id) for rel in overlaps] == [("a", "b")]
    assert any(rec.severity == "medium" for rec in result.recommendations)


def test_responsive_hints() -> None:
    components = (
        _box("row", 0, 0, 300, 100, style={"layoutMode": "HORIZONTAL"}),
        _box("fill", 0, 0, 100, 100, style={"layoutGrow": 1}),
        _box("wide", 0, 50, 290, 20),
    )

    responsive = LayoutIntentExtractor().analyze_responsive_patterns(components, DesignContext(platform="Web"))

    assert responsive.platform == "Web"
    assert responsive.breakpoints == [768.0, 1024.0, 1440.0]
    assert responsive.adaptive_layouts == ["row"]
    assert responsive.flexible_elements == ["fill", "wide"]


def test_confidence_without_geometry() -> None:
    extractor = LayoutIntentExtractor()

    nothing = extractor.extract_layout_intent((Component(id="a"), Component(id="b")))
    single = extractor.extract_layout_intent((Component(id="a"), _box("b", 0, 0, 10, 10)))

    assert nothing.confidence == 0.0
    assert nothing.hierarchical_structure.unpositioned == ["a", "b"]
    assert single.confidence == pytest.approx(0.3)
    assert extractor.extract_layout_intent(()).confidence == 0.0
