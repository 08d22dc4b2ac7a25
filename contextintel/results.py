"""Result models produced by the analyzers and the orchestrator.

All models serialise with camelCase aliases (``model_dump(by_alias=True)``) and
accept either naming when validated, which lets cached JSON and HTTP payloads
round-trip without a separate schema layer.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _clamp_unit(value: float) -> float:
    if value != value:  # NaN
        return 0.0
    return min(max(float(value), 0.0), 1.0)


Confidence = Annotated[float, AfterValidator(_clamp_unit)]


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ModuleStatus(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"
    FAILED = "failed"
    DISABLED = "disabled"


class ResultModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        use_enum_values=True,
    )


class Recommendation(ResultModel):
    category: str
    description: str
    action: str = ""
    impact: str = ""
    severity: Severity = Severity.MEDIUM
    component_id: Optional[str] = None


class ModuleResult(ResultModel):
    """Fields every analyzer result carries."""

    confidence: Confidence = 0.0
    error: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def degraded(cls, reason: str) -> "ModuleResult":
        """Default-shaped result standing in for a module that could not run."""
        return cls(confidence=0.0, error=reason, metadata={"degraded": True})

    @property
    def is_degraded(self) -> bool:
        return self.error is not None


# ----------------------------------------------------------------------
# Semantic


class IntentCandidate(ResultModel):
    intent: str
    confidence: Confidence


class SemanticComponent(ResultModel):
    id: str
    name: str = ""
    intent: str
    confidence: Confidence
    patterns: List[str] = Field(default_factory=list)
    reasoning: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    alternatives: List[IntentCandidate] = Field(default_factory=list)


class SemanticPattern(ResultModel):
    type: str
    subtype: Optional[str] = None
    confidence: Confidence
    component_ids: List[str] = Field(default_factory=list)
    description: str = ""


class SemanticConfidence(ResultModel):
    overall: Confidence = 0.0
    components: List[Confidence] = Field(default_factory=list)
    patterns: List[Confidence] = Field(default_factory=list)


class SemanticResult(ModuleResult):
    components: List[SemanticComponent] = Field(default_factory=list)
    patterns: List[SemanticPattern] = Field(default_factory=list)
    semantic_confidence: SemanticConfidence = Field(default_factory=SemanticConfidence)
    intent_distribution: Dict[str, int] = Field(default_factory=dict)
    recommendations: List[Recommendation] = Field(default_factory=list)


# ----------------------------------------------------------------------
# Interaction


class InteractiveComponent(ResultModel):
    id: str
    name: str = ""
    intent: Optional[str] = None
    interaction_types: List[str] = Field(default_factory=list)
    targets: List[str] = Field(default_factory=list)
    confidence: Confidence = 0.0
    evidence: List[str] = Field(default_factory=list)


class NavigationLink(ResultModel):
    id: str
    source_id: str
    target_id: Optional[str] = None
    trigger: str
    transition: str


class NavigationFlow(ResultModel):
    links: List[NavigationLink] = Field(default_factory=list)
    entry_points: List[str] = Field(default_factory=list)
    exit_points: List[str] = Field(default_factory=list)
    total_flows: int = 0


class UserJourney(ResultModel):
    id: str
    name: str
    steps: List[str] = Field(default_factory=list)
    start_id: str
    end_id: str
    confidence: Confidence = 0.0
    source: str = "graph"
    is_complete: bool = True


class FlowValidation(ResultModel):
    orphaned_components: List[str] = Field(default_factory=list)
    unresolved_sources: List[str] = Field(default_factory=list)
    cycles: List[List[str]] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not (self.orphaned_components or self.unresolved_sources)


class GesturePattern(ResultModel):
    type: str
    component_ids: List[str] = Field(default_factory=list)
    confidence: Confidence = 0.0
    evidence: List[str] = Field(default_factory=list)


class InteractionResult(ModuleResult):
    interactive_components: List[InteractiveComponent] = Field(default_factory=list)
    user_journeys: List[UserJourney] = Field(default_factory=list)
    navigation_flow: NavigationFlow = Field(default_factory=NavigationFlow)
    validation: FlowValidation = Field(default_factory=FlowValidation)
    gesture_patterns: List[GesturePattern] = Field(default_factory=list)
    recommendations: List[Recommendation] = Field(default_factory=list)


# ----------------------------------------------------------------------
# Accessibility


class AccessibilityIssue(ResultModel):
    principle: str
    guideline: str
    severity: Severity
    component_id: str
    message: str


class ContrastCheck(ResultModel):
    component_id: str
    foreground: str
    background: str
    ratio: float
    level: str
    large_text: bool = False


class TouchTargetCheck(ResultModel):
    component_id: str
    width: float
    height: float
    valid: bool
    recommended_size: Optional[Dict[str, float]] = None


class PrincipleScore(ResultModel):
    score: Confidence = 0.0
    passed: int = 0
    total: int = 0
    indeterminate: int = 0

    @property
    def evaluated(self) -> bool:
        return self.total > 0


class OverallCompliance(ResultModel):
    score: Confidence = 0.0
    grade: str = "N/A"
    passed_checks: int = 0
    total_checks: int = 0
    indeterminate_checks: int = 0


class ComplianceSummary(ResultModel):
    overall: OverallCompliance = Field(default_factory=OverallCompliance)
    perceivable: PrincipleScore = Field(default_factory=PrincipleScore)
    operable: PrincipleScore = Field(default_factory=PrincipleScore)
    understandable: PrincipleScore = Field(default_factory=PrincipleScore)
    robust: PrincipleScore = Field(default_factory=PrincipleScore)


class AccessibilityResult(ModuleResult):
    compliance: ComplianceSummary = Field(default_factory=ComplianceSummary)
    issues: List[AccessibilityIssue] = Field(default_factory=list)
    contrast_checks: List[ContrastCheck] = Field(default_factory=list)
    touch_targets: List[TouchTargetCheck] = Field(default_factory=list)
    recommendations: List[Recommendation] = Field(default_factory=list)


# ----------------------------------------------------------------------
# Design tokens


class SystemCandidate(ResultModel):
    name: str
    score: Confidence


class SystemDetection(ResultModel):
    detected_system: str = "Custom"
    confidence: Confidence = 0.0
    evidence: List[str] = Field(default_factory=list)
    alternatives: List[SystemCandidate] = Field(default_factory=list)


class TokenReference(ResultModel):
    token: str
    category: str
    value: Optional[str] = None


class TokenMappingEntry(ResultModel):
    component_id: str
    attribute: str
    value: str
    token: Optional[TokenReference] = None


class TokenMapping(ResultModel):
    mapped: List[TokenMappingEntry] = Field(default_factory=list)
    unmapped: List[TokenMappingEntry] = Field(default_factory=list)
    coverage: Confidence = 0.0


class CategoryAnalysis(ResultModel):
    token_count: int = 0
    used_values: int = 0
    matched_values: int = 0
    coverage: Confidence = 0.0
    consistency: Confidence = 0.0
    inconsistencies: List[str] = Field(default_factory=list)


class TokenAnalyses(ResultModel):
    colors: CategoryAnalysis = Field(default_factory=CategoryAnalysis)
    typography: CategoryAnalysis = Field(default_factory=CategoryAnalysis)
    spacing: CategoryAnalysis = Field(default_factory=CategoryAnalysis)


class TokenCompliance(ResultModel):
    overall: Confidence = 0.0
    colors: Confidence = 0.0
    typography: Confidence = 0.0
    spacing: Confidence = 0.0


class TokenResult(ModuleResult):
    system_detection: SystemDetection = Field(default_factory=SystemDetection)
    token_mapping: TokenMapping = Field(default_factory=TokenMapping)
    compliance: TokenCompliance = Field(default_factory=TokenCompliance)
    analyses: TokenAnalyses = Field(default_factory=TokenAnalyses)
    recommendations: List[Recommendation] = Field(default_factory=list)


# ----------------------------------------------------------------------
# Layout


class GridSystem(ResultModel):
    type: str
    container_id: Optional[str] = None
    columns: int = 0
    rows: int = 0
    gutter: Optional[float] = None
    component_ids: List[str] = Field(default_factory=list)
    confidence: Confidence = 0.0


class AlignmentPattern(ResultModel):
    axis: str
    position: float
    component_ids: List[str] = Field(default_factory=list)
    confidence: Confidence = 0.0


class HierarchyLevel(ResultModel):
    depth: int
    component_ids: List[str] = Field(default_factory=list)


class HierarchyRelationship(ResultModel):
    type: str
    parent_id: str
    child_id: str


class HierarchicalStructure(ResultModel):
    levels: List[HierarchyLevel] = Field(default_factory=list)
    relationships: List[HierarchyRelationship] = Field(default_factory=list)
    depth: int = 0
    unpositioned: List[str] = Field(default_factory=list)


class ResponsivePatterns(ResultModel):
    platform: Optional[str] = None
    breakpoints: List[float] = Field(default_factory=list)
    adaptive_layouts: List[str] = Field(default_factory=list)
    flexible_elements: List[str] = Field(default_factory=list)


class LayoutResult(ModuleResult):
    grid_systems: List[GridSystem] = Field(default_factory=list)
    alignment_patterns: List[AlignmentPattern] = Field(default_factory=list)
    hierarchical_structure: HierarchicalStructure = Field(default_factory=HierarchicalStructure)
    responsive_patterns: ResponsivePatterns = Field(default_factory=ResponsivePatterns)
    recommendations: List[Recommendation] = Field(default_factory=list)


# ----------------------------------------------------------------------
# Synthesis


class DetectedPattern(ResultModel):
    type: str
    confidence: Confidence
    sources: List[str] = Field(default_factory=list)
    component_ids: List[str] = Field(default_factory=list)
    description: str = ""


class ScenarioCandidate(ResultModel):
    scenario: str
    score: Confidence


class BusinessLogic(ResultModel):
    primary_function: str = "general interface"
    scenario: str = "general"
    confidence: Confidence = 0.0
    evidence: List[str] = Field(default_factory=list)
    user_workflows: List[str] = Field(default_factory=list)
    alternatives: List[ScenarioCandidate] = Field(default_factory=list)


class UserExperience(ResultModel):
    usability_score: Confidence = 0.0
    journey_quality: Confidence = 0.0
    accessibility_score: Confidence = 0.0
    interaction_quality: Confidence = 0.0
    cognitive_load: str = "low"


class DesignQuality(ResultModel):
    consistency: Confidence = 0.0
    system_compliance: Confidence = 0.0
    layout_quality: Confidence = 0.0
    component_quality: Confidence = 0.0
    overall: Confidence = 0.0


class Synthesis(ResultModel):
    overall_confidence: Confidence = 0.0
    module_confidence: Dict[str, Confidence] = Field(default_factory=dict)
    key_insights: List[str] = Field(default_factory=list)
    business_logic: BusinessLogic = Field(default_factory=BusinessLogic)
    patterns: List[DetectedPattern] = Field(default_factory=list)
    user_experience: UserExperience = Field(default_factory=UserExperience)
    design_quality: DesignQuality = Field(default_factory=DesignQuality)


class Recommendations(ResultModel):
    critical: List[Recommendation] = Field(default_factory=list)
    important: List[Recommendation] = Field(default_factory=list)
    suggested: List[Recommendation] = Field(default_factory=list)
    enhancements: List[Recommendation] = Field(default_factory=list)

    def flatten(self) -> List[Recommendation]:
        return [*self.critical, *self.important, *self.suggested, *self.enhancements]


class ModuleTiming(ResultModel):
    module: str
    duration_ms: float
    status: ModuleStatus


class RunMetadata(ResultModel):
    analysis_id: str
    analysis_time: float = 0.0
    components_analyzed: int = 0
    fingerprint: str = ""
    cache_hit: bool = False
    parallel: bool = True
    module_status: Dict[str, ModuleStatus] = Field(default_factory=dict)
    errors: Dict[str, str] = Field(default_factory=dict)
    performance: List[ModuleTiming] = Field(default_factory=list)


class SynthesizedContext(ResultModel):
    semantic: SemanticResult = Field(default_factory=SemanticResult)
    interaction: InteractionResult = Field(default_factory=InteractionResult)
    accessibility: AccessibilityResult = Field(default_factory=AccessibilityResult)
    tokens: TokenResult = Field(default_factory=TokenResult)
    layout: LayoutResult = Field(default_factory=LayoutResult)
    synthesis: Synthesis = Field(default_factory=Synthesis)
    recommendations: Recommendations = Field(default_factory=Recommendations)
    metadata: RunMetadata

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


__all__ = [
    "AccessibilityIssue",
    "AccessibilityResult",
    "AlignmentPattern",
    "BusinessLogic",
    "CategoryAnalysis",
    "ComplianceSummary",
    "Confidence",
    "ContrastCheck",
    "DesignQuality",
    "DetectedPattern",
    "FlowValidation",
    "GesturePattern",
    "GridSystem",
    "HierarchicalStructure",
    "HierarchyLevel",
    "HierarchyRelationship",
    "IntentCandidate",
    "InteractionResult",
    "InteractiveComponent",
    "LayoutResult",
    "ModuleResult",
    "ModuleStatus",
    "ModuleTiming",
    "NavigationFlow",
    "NavigationLink",
    "OverallCompliance",
    "PrincipleScore",
    "Recommendation",
    "Recommendations",
    "ResponsivePatterns",
    "ResultModel",
    "RunMetadata",
    "ScenarioCandidate",
    "SemanticComponent",
    "SemanticConfidence",
    "SemanticPattern",
    "SemanticResult",
    "Severity",
    "SynthesizedContext",
    "SystemCandidate",
    "SystemDetection",
    "TokenAnalyses",
    "TokenCompliance",
    "TokenMapping",
    "TokenMappingEntry",
    "TokenReference",
    "TokenResult",
    "Synthesis",
    "TouchTargetCheck",
    "UserExperience",
    "UserJourney",
]
