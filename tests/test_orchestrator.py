"""Integration tests for the analysis orchestrator."""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Dict

import pytest

from contextintel import analyze_context_intelligence
from contextintel.analyzers import AnalysisRequest, Analyzer, discover_analyzers
from contextintel.analyzers.semantic import SemanticAnalyzer
from contextintel.config import EngineConfig
from contextintel.orchestrator import ContextIntelligenceOrchestrator, generate_analysis_id
from contextintel.results import AccessibilityResult, LayoutResult, ModuleStatus, SemanticResult


class _ExplodingLayout(Analyzer):
    name = "layout"
    result_type = LayoutResult

    def analyze(self, request: AnalysisRequest) -> LayoutResult:
        raise ValueError("geometry exploded")


class _WrongShapeAccessibility(Analyzer):
    name = "accessibility"
    result_type = AccessibilityResult

    def analyze(self, request: AnalysisRequest) -> SemanticResult:  # type: ignore[override]
        return SemanticResult(confidence=1.0)


class _RecordingAccessibility(Analyzer):
    name = "accessibility"
    result_type = AccessibilityResult

    def __init__(self) -> None:
        self.requests: list[AnalysisRequest] = []

    def analyze(self, request: AnalysisRequest) -> AccessibilityResult:
        self.requests.append(request)
        return AccessibilityResult(confidence=0.5)


class _GatedSemantic(SemanticAnalyzer):
    """Blocks until the event loop signals it, then analyzes normally."""

    def __init__(self, released: threading.Event) -> None:
        super().__init__()
        self.released = released
        self.waited = False

    def analyze(self, request: AnalysisRequest) -> SemanticResult:
        self.waited = self.released.wait(timeout=5)
        return super().analyze(request)


class _GatedLayout(Analyzer):
    name = "layout"
    result_type = LayoutResult

    def __init__(self, released: threading.Event) -> None:
        self.released = released
        self.waited = False

    def analyze(self, request: AnalysisRequest) -> LayoutResult:
        self.waited = self.released.wait(timeout=5)
        return LayoutResult(confidence=0.5)


def _circular() -> Dict[str, Any]:
    data: Dict[str, Any] = {"label": "loop"}
    data["self"] = data
    return data


def _orchestrator(caching: bool = False, **overrides: Analyzer) -> ContextIntelligenceOrchestrator:
    config = EngineConfig()
    config.analysis.caching = caching
    analyzers = discover_analyzers(config=config)
    analyzers.update(overrides)
    return ContextIntelligenceOrchestrator(config, analyzers=analyzers)


def _run(orchestrator: ContextIntelligenceOrchestrator, payload: Dict[str, Any], **options: Any):
    return orchestrator.analyze(
        payload["designSpec"],
        payload.get("prototypeData"),
        payload.get("designContext"),
        options or None,
    )


def test_login_analysis_end_to_end(login_payload: Dict[str, Any]) -> None:
    orchestrator = _orchestrator()

    result = _run(orchestrator, login_payload)

    metadata = result.metadata
    assert metadata.components_analyzed == 1
    assert metadata.cache_hit is False
    assert metadata.analysis_id.startswith("analysis_")
    assert set(metadata.module_status.values()) == {"ok"}
    assert metadata.errors == {}
    assert 0.0 <= result.synthesis.overall_confidence <= 1.0
    assert result.semantic.components[0].intent == "button"
    assert result.tokens.system_detection.detected_system == "Material"
    assert result.synthesis.business_logic.scenario == "authentication"


@pytest.mark.parametrize("spec", [None, {}, {"components": []}, "not a design"])
def test_empty_input_yields_zero_confidence(spec: Any) -> None:
    result = _orchestrator().analyze(spec)

    assert result.metadata.components_analyzed == 0
    assert result.synthesis.overall_confidence == 0.0
    assert result.synthesis.key_insights == ["No components were supplied for analysis"]


def test_failing_module_is_isolated(login_payload: Dict[str, Any]) -> None:
    result = _run(_orchestrator(layout=_ExplodingLayout()), login_payload)

    assert result.metadata.module_status["layout"] == "failed"
    assert result.metadata.errors["layout"] == "ValueError: geometry exploded"
    assert result.layout.error == "ValueError: geometry exploded"
    assert result.layout.confidence == 0.0
    assert result.synthesis.module_confidence["layout"] == 0.0
    assert result.semantic.components[0].intent == "button"
    assert result.metadata.module_status["semantic"] == "ok"


def test_wrong_result_type_is_degraded(login_payload: Dict[str, Any]) -> None:
    result = _run(_orchestrator(accessibility=_WrongShapeAccessibility()), login_payload)

    assert result.metadata.module_status["accessibility"] == "degraded"
    assert isinstance(result.accessibility, AccessibilityResult)
    assert result.accessibility.confidence == 0.0
    assert "SemanticResult" in result.metadata.errors["accessibility"]


def test_disabled_modules_are_left_out_of_confidence(login_payload: Dict[str, Any]) -> None:
    config = EngineConfig()
    config.analysis.caching = False
    analyzers = discover_analyzers(["semantic", "tokens"], config)
    orchestrator = ContextIntelligenceOrchestrator(config, analyzers=analyzers)

    result = _run(orchestrator, login_payload)

    status = result.metadata.module_status
    assert status["interaction"] == "disabled"
    assert status["layout"] == "disabled"
    assert set(result.synthesis.module_confidence) == {"semantic", "tokens"}
    assert result.layout.metadata == {"disabled": True}


def test_sequential_mode_shares_interaction_result(login_payload: Dict[str, Any]) -> None:
    recorder = _RecordingAccessibility()
    orchestrator = _orchestrator(accessibility=recorder)

    sequential = _run(orchestrator, login_payload, parallelAnalysis=False)
    parallel = _run(orchestrator, login_payload, parallelAnalysis=True)

    assert sequential.metadata.parallel is False
    assert parallel.metadata.parallel is True
    assert recorder.requests[0].interaction is not None
    assert recorder.requests[1].interaction is None
    assert recorder.requests[0].components[0].semantic is not None
    assert sequential.semantic == parallel.semantic
    assert sequential.synthesis.overall_confidence == pytest.approx(parallel.synthesis.overall_confidence)


def test_repeated_runs_are_deterministic(login_payload: Dict[str, Any]) -> None:
    orchestrator = _orchestrator()

    first = _run(orchestrator, login_payload)
    second = _run(orchestrator, login_payload)

    assert first.metadata.analysis_id != second.metadata.analysis_id
    assert first.metadata.fingerprint == second.metadata.fingerprint
    for name in ("semantic", "interaction", "accessibility", "tokens", "layout", "synthesis", "recommendations"):
        assert getattr(first, name) == getattr(second, name)


def test_cache_hit_reuses_result_with_new_id(login_payload: Dict[str, Any]) -> None:
    orchestrator = _orchestrator(caching=True)

    first = _run(orchestrator, login_payload)
    second = _run(orchestrator, login_payload)
    bypass = _run(orchestrator, login_payload, enableCaching=False)

    assert first.metadata.cache_hit is False
    assert second.metadata.cache_hit is True
    assert second.metadata.analysis_id != first.metadata.analysis_id
    assert second.synthesis == first.synthesis
    assert bypass.metadata.cache_hit is False

    history = orchestrator.performance_history()
    assert [entry["cacheHit"] for entry in history] == [False, True, False]


def test_fingerprint_depends_on_context(login_payload: Dict[str, Any]) -> None:
    orchestrator = _orchestrator(caching=True)

    first = _run(orchestrator, login_payload)
    changed = dict(login_payload, designContext={"purpose": "Checkout"})
    second = _run(orchestrator, changed)

    assert second.metadata.cache_hit is False
    assert second.metadata.fingerprint != first.metadata.fingerprint


def test_performance_metrics_on_request(login_payload: Dict[str, Any]) -> None:
    orchestrator = _orchestrator()

    without = _run(orchestrator, login_payload)
    with_metrics = _run(orchestrator, login_payload, includePerformanceMetrics=True)

    assert without.metadata.performance == []
    assert [timing.module for timing in with_metrics.metadata.performance] == [
        "semantic",
        "interaction",
        "accessibility",
        "tokens",
        "layout",
    ]
    assert all(timing.duration_ms >= 0 for timing in with_metrics.metadata.performance)


def test_form_with_submit_link_is_recognised(design_builder) -> None:
    design_builder.component("email", "Email Input", category="Input", width=280, height=40)
    design_builder.component("submit", "Submit Button", category="Button", y=60, width=120, height=48)
    design_builder.link("submit", "confirmation")

    result = _orchestrator().analyze(design_builder.design_spec(), design_builder.prototype_data())

    pattern_types = [pattern.type for pattern in result.synthesis.patterns]
    assert any("form" in kind or "authentication" in kind for kind in pattern_types)
    assert result.metadata.components_analyzed == 2


def test_ten_components_are_all_analyzed(design_builder) -> None:
    for index in range(10):
        design_builder.component(f"item-{index}", f"Card {index}", x=(index % 5) * 120, y=(index // 5) * 120)

    result = _orchestrator().analyze(design_builder.design_spec())

    assert result.metadata.components_analyzed == 10
    assert len(result.semantic.components) == 10
    assert 0.0 <= result.synthesis.overall_confidence <= 1.0


def test_module_level_entrypoint(login_payload: Dict[str, Any]) -> None:
    orchestrator = _orchestrator()

    result = asyncio.run(
        analyze_context_intelligence(
            login_payload["designSpec"],
            login_payload["prototypeData"],
            login_payload["designContext"],
            orchestrator=orchestrator,
        )
    )

    assert result.metadata.components_analyzed == 1
    assert len(orchestrator.performance_history()) == 1


def test_analysis_ids_are_unique() -> None:
    ids = {generate_analysis_id(lambda: 1.0) for _ in range(20)}
    assert len(ids) == 20
    assert all(item.startswith("analysis_1000_") for item in ids)


def test_circular_metadata_skips_caching() -> None:
    orchestrator = _orchestrator(caching=True)
    spec = {"components": [{"id": "a", "name": "Login Button", "properties": _circular()}], "metadata": _circular()}

    first = orchestrator.analyze(spec)
    second = orchestrator.analyze(spec)

    assert first.metadata.components_analyzed == 1
    assert first.metadata.fingerprint == ""
    assert first.semantic.components[0].intent == "button"
    assert [first.metadata.cache_hit, second.metadata.cache_hit] == [False, False]


@pytest.mark.parametrize(
    ("spec", "prototype", "count"),
    [
        ({"components": [5, "text", None, ["a"]]}, None, 4),
        ({"components": [{"id": "a", "name": "Button", "style": [1, 2], "geometry": [0, 0, 10, 10]}]}, None, 1),
        (
            {
                "components": [
                    {
                        "id": "a",
                        "name": "Card",
                        "width": 10**400,
                        "height": float("nan"),
                        "style": {"fontSize": 10**400, "color": float("nan"), "fills": [None, 5, {"color": [1]}]},
                    },
                    {"id": "b", "name": "Title", "geometry": {"x": float("nan"), "y": 0, "width": 10, "height": 10}},
                ]
            },
            None,
            2,
        ),
        ({"components": [{"id": "a", "name": "Button"}], "metadata": _circular()}, None, 1),
        (
            {"components": [{"id": "a", "name": "Button"}], "designTokens": {"colors": 5, "spacing": {"sm": [4]}}},
            None,
            1,
        ),
        ({"components": [{"id": "a", "name": "Next Button"}]}, {"interactions": 5, "flows": "x"}, 1),
        (
            {"components": [{"id": "a", "name": "Next Button"}]},
            {"interactions": [5, None, {"sourceId": {"a": 1}}, {"sourceId": "a", "trigger": ["x"]}]},
            1,
        ),
    ],
)
def test_malformed_input_still_produces_a_result(spec: Any, prototype: Any, count: int) -> None:
    result = _orchestrator(caching=True).analyze(spec, prototype)

    assert result.metadata.components_analyzed == count
    assert len(result.semantic.components) == count
    assert 0.0 <= result.synthesis.overall_confidence <= 1.0


def test_concurrent_runs_keep_separate_state(login_payload: Dict[str, Any]) -> None:
    orchestrator = _orchestrator()

    async def run_both():
        return await asyncio.gather(
            orchestrator.analyze_context_intelligence(login_payload["designSpec"], login_payload["prototypeData"]),
            orchestrator.analyze_context_intelligence({"components": []}),
        )

    login, empty = asyncio.run(run_both())

    assert login.metadata.components_analyzed == 1
    assert empty.metadata.components_analyzed == 0
    assert login.metadata.analysis_id != empty.metadata.analysis_id
    assert len(orchestrator.performance_history()) == 2


@pytest.mark.parametrize("parallel", [True, False])
def test_analyzers_do_not_block_the_event_loop(login_payload: Dict[str, Any], parallel: bool) -> None:
    released = threading.Event()
    semantic = _GatedSemantic(released)
    layout = _GatedLayout(released)
    orchestrator = _orchestrator(semantic=semantic, layout=layout)

    async def run():
        analysis = asyncio.ensure_future(
            orchestrator.analyze_context_intelligence(
                login_payload["designSpec"], options={"parallelAnalysis": parallel}
            )
        )
        await asyncio.sleep(0.05)
        released.set()
        return await analysis

    result = asyncio.run(run())

    assert semantic.waited is True
    assert layout.waited is True
    assert result.semantic.components[0].intent == "button"
