"""Layout intent extraction: grids, alignment, containment and responsiveness."""

from __future__ import annotations

from statistics import mean
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from .base import AnalysisRequest, Analyzer
from ..config import LayoutConfig
from ..logging import get_logger
from ..models import Component, DesignContext, Geometry
from ..results import (
    AlignmentPattern,
    GridSystem,
    HierarchicalStructure,
    HierarchyLevel,
    HierarchyRelationship,
    LayoutResult,
    Recommendation,
    ResponsivePatterns,
    Severity,
)

_AXES = ("left", "right", "center-x", "top", "bottom", "center-y")
_AUTO_LAYOUT_MODES = {"HORIZONTAL", "VERTICAL", "FLEX", "GRID", "ROW", "COLUMN"}
_PLATFORM_BREAKPOINTS: Dict[str, Tuple[float, ...]] = {
    "web": (768.0, 1024.0, 1440.0),
    "mobile": (375.0, 414.0),
    "ios": (375.0, 414.0),
    "android": (360.0, 412.0),
    "tablet": (768.0, 1024.0),
}

Positioned = Tuple[Component, Geometry]


def _edge(geometry: Geometry, axis: str) -> float:
    if axis == "left":
        return geometry.x
    if axis == "right":
        return geometry.right
    if axis == "center-x":
        return geometry.center_x
    if axis == "top":
        return geometry.y
    if axis == "bottom":
        return geometry.bottom
    return geometry.center_y


def cluster_values(
    items: Sequence[Tuple[str, float]], tolerance: float
) -> List[Tuple[float, List[str]]]:
    """Group ``(id, value)`` pairs whose values lie within ``tolerance`` of the cluster start."""
    clusters: List[Tuple[float, List[str]]] = []
    for item_id, value in sorted(items, key=lambda item: item[1]):
        if clusters and value - clusters[-1][0] <= tolerance:
            clusters[-1][1].append(item_id)
        else:
            clusters.append((value, [item_id]))
    return clusters


class LayoutIntentExtractor(Analyzer):
    """Recovers the layout structure a designer most likely intended."""

    name = "layout"
    result_type = LayoutResult

    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config or LayoutConfig()
        self.logger = get_logger("analyzers.layout")

    def analyze(self, request: AnalysisRequest) -> LayoutResult:
        return self.extract_layout_intent(request.components, request.context)

    def extract_layout_intent(
        self,
        components: Sequence[Component],
        design_context: DesignContext | None = None,
    ) -> LayoutResult:
        positioned = _positioned(components)
        parents = _parent_map(positioned)

        grids = self.detect_grid_systems(components, parents=parents)
        alignments = self.analyze_alignment_patterns(components)
        hierarchy = self.extract_hierarchical_structure(components, parents=parents)
        responsive = self.analyze_responsive_patterns(components, design_context, parents=parents)

        if not components or not positioned:
            confidence = 0.0
        elif len(positioned) < 2:
            confidence = 0.3
        else:
            structure_found = bool(grids or alignments)
            confidence = 0.4 + 0.3 * (len(positioned) / len(components)) + (0.3 if structure_found else 0.0)

        result = LayoutResult(
            grid_systems=grids,
            alignment_patterns=alignments,
            hierarchical_structure=hierarchy,
            responsive_patterns=responsive,
            recommendations=self._recommend(positioned, grids, alignments, hierarchy, responsive),
            confidence=confidence,
            metadata={"positioned": len(positioned), "unpositioned": len(hierarchy.unpositioned)},
        )
        self.logger.info(
            "Layout analysis found %d grid/stack pattern(s), %d alignment group(s), depth %d",
            len(grids),
            len(alignments),
            hierarchy.depth,
        )
        return result

    # ------------------------------------------------------------------
    # Grids and stacks

    def detect_grid_systems(
        self,
        components: Sequence[Component],
        *,
        parents: Optional[Dict[str, Optional[str]]] = None,
    ) -> List[GridSystem]:
        positioned = _positioned(components)
        if parents is None:
            parents = _parent_map(positioned)
        scopes: Dict[Optional[str], List[Positioned]] = {}
        for component, geometry in positioned:
            scopes.setdefault(parents.get(component.id), []).append((component, geometry))

        systems: List[GridSystem] = []
        for scope_id, members in scopes.items():
            if len(members) >= 3:
                systems.extend(self._scope_grids(scope_id, members))
        return systems

    def _scope_grids(self, scope_id: Optional[str], members: List[Positioned]) -> List[GridSystem]:
        tolerance = self.config.grid_tolerance
        boxes = {component.id: geometry for component, geometry in members}
        columns = [c for c in cluster_values([(cid, g.x) for cid, g in boxes.items()], tolerance) if len(c[1]) >= 2]
        rows = [c for c in cluster_values([(cid, g.y) for cid, g in boxes.items()], tolerance) if len(c[1]) >= 2]

        in_column = {cid for _, ids in columns for cid in ids}
        in_row = {cid for _, ids in rows for cid in ids}
        aligned = [cid for cid in boxes if cid in in_column and cid in in_row]

        if len(columns) >= 2 and len(rows) >= 2 and len(aligned) >= self.config.min_grid_items:
            gaps: List[float] = []
            for _, ids in rows:
                row_boxes = sorted((boxes[cid] for cid in ids if cid in in_column), key=lambda g: g.x)
                gaps.extend(b.x - a.right for a, b in zip(row_boxes, row_boxes[1:]))
            regular = _is_regular(gaps, tolerance)
            return [
                GridSystem(
                    type="regular-grid" if regular else "irregular-grid",
                    container_id=scope_id,
                    columns=len(columns),
                    rows=len(rows),
                    gutter=round(mean(gaps), 2) if gaps else None,
                    component_ids=aligned,
                    confidence=0.5 + 0.3 * len(aligned) / len(boxes) + (0.2 if regular else 0.0),
                )
            ]

        stacks: List[GridSystem] = []
        for kind, lines, key, gap_of in (
            ("horizontal-stack", rows, lambda g: g.x, lambda a, b: b.x - a.right),
            ("vertical-stack", columns, lambda g: g.y, lambda a, b: b.y - a.bottom),
        ):
            for _, ids in lines:
                if len(ids) < 3:
                    continue
                ordered = sorted((boxes[cid] for cid in ids), key=key)
                gaps = [gap_of(a, b) for a, b in zip(ordered, ordered[1:])]
                if any(gap < -tolerance for gap in gaps):
                    continue
                regular = _is_regular(gaps, tolerance)
                stacks.append(
                    GridSystem(
                        type=kind,
                        container_id=scope_id,
                        columns=len(ids) if kind == "horizontal-stack" else 1,
                        rows=1 if kind == "horizontal-stack" else len(ids),
                        gutter=round(mean(gaps), 2) if gaps else None,
                        component_ids=sorted(ids, key=lambda cid: key(boxes[cid])),
                        confidence=min(0.5 + 0.1 * len(ids), 0.8) + (0.15 if regular else 0.0),
                    )
                )
        return stacks

    # ------------------------------------------------------------------
    # Alignment

    def analyze_alignment_patterns(self, components: Sequence[Component]) -> List[AlignmentPattern]:
        positioned = _positioned(components)
        if len(positioned) < 2:
            return []
        patterns: List[AlignmentPattern] = []
        for axis in _AXES:
            seen: Set[FrozenSet[str]] = set()
            values = [(component.id, _edge(geometry, axis)) for component, geometry in positioned]
            for position, ids in cluster_values(values, self.config.alignment_tolerance):
                members = frozenset(ids)
                if len(ids) < 2 or members in seen:
                    continue
                seen.add(members)
                patterns.append(
                    AlignmentPattern(
                        axis=axis,
                        position=round(position, 2),
                        component_ids=list(ids),
                        confidence=min(0.95, 0.5 + 0.1 * len(ids)),
                    )
                )
        return patterns

    # ------------------------------------------------------------------
    # Containment

    def extract_hierarchical_structure(
        self,
        components: Sequence[Component],
        *,
        parents: Optional[Dict[str, Optional[str]]] = None,
    ) -> HierarchicalStructure:
        positioned = _positioned(components)
        if parents is None:
            parents = _parent_map(positioned)
        known = {component.id for component in components}

        relationships: List[HierarchyRelationship] = []
        contained: Set[Tuple[str, str]] = set()
        for child_id, parent_id in parents.items():
            if parent_id is not None:
                relationships.append(HierarchyRelationship(type="contains", parent_id=parent_id, child_id=child_id))
                contained.add((parent_id, child_id))
        for component in components:
            for child_id in component.children:
                if child_id in known and (component.id, child_id) not in contained:
                    relationships.append(
                        HierarchyRelationship(type="contains", parent_id=component.id, child_id=child_id)
                    )
                    contained.add((component.id, child_id))

        for index, (component, geometry) in enumerate(positioned):
            for other, other_geometry in positioned[index + 1:]:
                if not geometry.overlaps(other_geometry):
                    continue
                if geometry.contains(other_geometry) or other_geometry.contains(geometry):
                    continue
                relationships.append(
                    HierarchyRelationship(type="overlaps", parent_id=component.id, child_id=other.id)
                )

        depths: Dict[str, int] = {}
        for component, _ in positioned:
            depth = 0
            cursor = parents.get(component.id)
            visited: Set[str] = set()
            while cursor is not None and cursor not in visited:
                visited.add(cursor)
                depth += 1
                cursor = parents.get(cursor)
            depths[component.id] = depth

        levels: Dict[int, List[str]] = {}
        for component, _ in positioned:
            levels.setdefault(depths[component.id], []).append(component.id)
        return HierarchicalStructure(
            levels=[HierarchyLevel(depth=depth, component_ids=ids) for depth, ids in sorted(levels.items())],
            relationships=relationships,
            depth=(max(levels) + 1) if levels else 0,
            unpositioned=[c.id for c in components if c.geometry is None or not c.geometry.has_size],
        )

    # ------------------------------------------------------------------
    # Responsiveness

    def analyze_responsive_patterns(
        self,
        components: Sequence[Component],
        design_context: DesignContext | None = None,
        *,
        parents: Optional[Dict[str, Optional[str]]] = None,
    ) -> ResponsivePatterns:
        positioned = _positioned(components)
        if parents is None:
            parents = _parent_map(positioned)
        boxes = {component.id: geometry for component, geometry in positioned}
        platform = (design_context.platform if design_context else None) or None

        root_widths = sorted(
            {
                round(geometry.width, 1)
                for component, geometry in positioned
                if parents.get(component.id) is None and component.type == "FRAME"
            }
        )
        breakpoints = list(root_widths)
        if not breakpoints and platform:
            breakpoints = list(_PLATFORM_BREAKPOINTS.get(platform.strip().lower(), ()))

        adaptive = [c.id for c in components if c.style.layout_mode in _AUTO_LAYOUT_MODES]
        flexible: List[str] = []
        for component, geometry in positioned:
            style = component.style
            if style.get("layoutGrow") == 1 or str(style.get("layoutAlign", "")).upper() == "STRETCH":
                flexible.append(component.id)
                continue
            parent_id = parents.get(component.id)
            if parent_id is not None and parent_id in boxes:
                parent_box = boxes[parent_id]
                if parent_box.width > 0 and geometry.width >= parent_box.width * 0.95:
                    flexible.append(component.id)
        return ResponsivePatterns(
            platform=platform,
            breakpoints=breakpoints,
            adaptive_layouts=adaptive,
            flexible_elements=flexible,
        )

    # ------------------------------------------------------------------

    @staticmethod
    def _recommend(
        positioned: Sequence[Positioned],
        grids: Sequence[GridSystem],
        alignments: Sequence[AlignmentPattern],
        hierarchy: HierarchicalStructure,
        responsive: ResponsivePatterns,
    ) -> List[Recommendation]:
        recommendations: List[Recommendation] = []
        if len(positioned) >= 4 and not grids:
            recommendations.append(
                Recommendation(
                    category="layout",
                    description="No grid or stack structure was detected",
                    action="Place elements on a consistent layout grid",
                    impact="Improves visual rhythm and implementation accuracy",
                    severity=Severity.LOW,
                )
            )
        aligned = {cid for pattern in alignments for cid in pattern.component_ids}
        stray = [component.id for component, _ in positioned if component.id not in aligned]
        if len(positioned) >= 3 and len(stray) * 2 > len(positioned):
            recommendations.append(
                Recommendation(
                    category="layout",
                    description=f"{len(stray)} element(s) do not share an edge or centre with any other element",
                    action="Align elements to shared edges",
                    impact="Cleaner structure and simpler CSS",
                    severity=Severity.LOW,
                )
            )
        overlaps = [rel for rel in hierarchy.relationships if rel.type == "overlaps"]
        if overlaps:
            recommendations.append(
                Recommendation(
                    category="layout",
                    description=f"{len(overlaps)} pair(s) of elements partially overlap",
                    action="Check overlapping elements are intentional layering",
                    impact="Avoids clipped or hidden content",
                    severity=Severity.MEDIUM,
                )
            )
        if len(positioned) >= 3 and not responsive.adaptive_layouts and not responsive.flexible_elements:
            recommendations.append(
                Recommendation(
                    category="layout",
                    description="No auto-layout or stretching elements were found",
                    action="Use auto layout so the design adapts to other screen sizes",
                    impact="Eases responsive implementation",
                    severity=Severity.LOW,
                )
            )
        return recommendations


def _positioned(components: Sequence[Component]) -> List[Positioned]:
    return [
        (component, component.geometry)
        for component in components
        if component.geometry is not None and component.geometry.has_size
    ]


def _parent_map(positioned: Sequence[Positioned]) -> Dict[str, Optional[str]]:
    """Smallest strictly larger containing box for each component (earlier wins ties)."""
    parents: Dict[str, Optional[str]] = {}
    for index, (component, geometry) in enumerate(positioned):
        best: Optional[Tuple[float, str]] = None
        for other_index, (other, other_geometry) in enumerate(positioned):
            if other_index == index or not other_geometry.contains(geometry):
                continue
            larger = other_geometry.area > geometry.area or (
                other_geometry.area == geometry.area and other_index < index
            )
            if not larger:
                continue
            if best is None or other_geometry.area < best[0]:
                best = (other_geometry.area, other.id)
        parents[component.id] = best[1] if best else None
    return parents


def _is_regular(gaps: Sequence[float], tolerance: float) -> bool:
    if len(gaps) < 1:
        return False
    average = mean(gaps)
    return all(abs(gap - average) <= tolerance for gap in gaps)


__all__ = ["LayoutIntentExtractor", "cluster_values"]
