"""Runs the analysis modules and synthesizes their results."""

from __future__ import annotations

import asyncio
import hashlib
import inspect
import json
import logging
import secrets
import time
from collections import deque
from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional, Sequence, Type

from .analyzers import AnalysisRequest, Analyzer, discover_analyzers
from .analyzers.semantic import enrich_components
from .config import MODULE_NAMES, EngineConfig
from .logging import bind_run, get_logger
from .models import AnalysisOptions, Component, DesignContext, DesignSpec, PrototypeData
from .normalize import (
    parse_design_context,
    parse_design_spec,
    parse_options,
    parse_prototype_data,
)
from .results import (
    AccessibilityResult,
    InteractionResult,
    LayoutResult,
    ModuleResult,
    ModuleStatus,
    ModuleTiming,
    RunMetadata,
    SemanticResult,
    Synthesis,
    SynthesizedContext,
    TokenResult,
)
from .stores import AnalysisCache, CacheStore
from .synthesis import ContextSynthesizer, ModuleResults, merge_recommendations

ENGINE_CACHE_VERSION = "1"

RESULT_TYPES: Dict[str, Type[ModuleResult]] = {
    "semantic": SemanticResult,
    "interaction": InteractionResult,
    "accessibility": AccessibilityResult,
    "tokens": TokenResult,
    "layout": LayoutResult,
}

_SECOND_PHASE = ("interaction", "accessibility", "tokens", "layout")


class RunPhase(str, Enum):
    IDLE = "idle"
    DISPATCHING = "dispatching"
    SYNTHESIZING = "synthesizing"
    DONE = "done"


@dataclass
class ModuleOutcome:
    """Tagged result of one module invocation."""

    name: str
    result: ModuleResult
    status: ModuleStatus
    reason: Optional[str] = None
    duration_ms: float = 0.0


def generate_analysis_id(clock: Callable[[], float] = time.time) -> str:
    """Unique id for one run; not derived from the input."""
    return f"analysis_{int(clock() * 1000)}_{secrets.token_hex(4)}"


class ContextIntelligenceOrchestrator:
    """Coordinates the five analyzers as one fault-tolerant pipeline.

    No exception escapes :meth:`analyze_context_intelligence`: a module that
    raises or returns the wrong shape is replaced by its degraded result, and
    cache or synthesis failures are logged and skipped.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        analyzers: Optional[Mapping[str, Analyzer]] = None,
        cache: CacheStore | None = None,
        synthesizer: ContextSynthesizer | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or EngineConfig()
        if analyzers is None:
            analyzers = discover_analyzers(self.config.analyzers.enabled, self.config)
        self.analyzers: Dict[str, Analyzer] = dict(analyzers)
        self.cache: CacheStore = cache if cache is not None else AnalysisCache(self.config.analysis.cache_path)
        self.synthesizer = synthesizer or ContextSynthesizer(
            self.config.weights,
            confidence_threshold=self.config.analysis.confidence_threshold,
        )
        self.logger = get_logger("orchestrator")
        self._clock = clock
        self._history: Deque[Dict[str, Any]] = deque(maxlen=max(self.config.analysis.history_size, 1))
        self._signature: Optional[str] = None

    # ------------------------------------------------------------------
    # Public API

    def analyze(
        self,
        design_spec: Any,
        prototype_data: Any = None,
        design_context: Any = None,
        options: Any = None,
    ) -> SynthesizedContext:
        """Blocking wrapper around :meth:`analyze_context_intelligence`."""
        return asyncio.run(
            self.analyze_context_intelligence(design_spec, prototype_data, design_context, options)
        )

    async def analyze_context_intelligence(
        self,
        design_spec: Any,
        prototype_data: Any = None,
        design_context: Any = None,
        options: Any = None,
    ) -> SynthesizedContext:
        started = time.perf_counter()
        spec = self._parse("design spec", parse_design_spec, design_spec, DesignSpec)
        prototype = self._parse("prototype data", parse_prototype_data, prototype_data, PrototypeData)
        context = self._parse("design context", parse_design_context, design_context, DesignContext)
        opts = self._parse("options", parse_options, options, AnalysisOptions)
        analysis = self.config.analysis
        use_cache = analysis.caching if opts.enable_caching is None else opts.enable_caching
        parallel = analysis.parallel if opts.parallel_analysis is None else opts.parallel_analysis
        with_metrics = (
            analysis.performance_metrics
            if opts.include_performance_metrics is None
            else opts.include_performance_metrics
        )

        analysis_id = generate_analysis_id(self._clock)
        log = bind_run(self.logger, analysis_id)
        log.info(
            "Starting analysis of %d components (%s)",
            len(spec.components),
            "parallel" if parallel else "sequential",
        )
        try:
            fingerprint = self.fingerprint(spec, prototype, context)
        except Exception as exc:
            self._log_exception("Could not fingerprint the input; caching is skipped for this run", exc)
            fingerprint, use_cache = "", False

        if use_cache:
            cached = self._cache_lookup(fingerprint)
            if cached is not None:
                log.info("Cache hit for %s; reusing earlier analysis", fingerprint[:12])
                return self._from_cache(cached, analysis_id, started)

        log.debug("Run phase: %s", RunPhase.DISPATCHING.value)
        request = AnalysisRequest(
            components=spec.components,
            tokens=spec.design_tokens,
            prototype=prototype,
            context=context,
        )
        outcomes = await self._dispatch(request, parallel=parallel)

        log.debug("Run phase: %s", RunPhase.SYNTHESIZING.value)
        results = ModuleResults(**{name: outcome.result for name, outcome in outcomes.items()})  # type: ignore[arg-type]
        active = [name for name, outcome in outcomes.items() if outcome.status != ModuleStatus.DISABLED]
        try:
            synthesis, recommendations = self.synthesizer.synthesize(
                results,
                design_context=context,
                components_analyzed=len(spec.components),
                active_modules=active,
            )
        except Exception as exc:  # pragma: no cover - defensive guard
            self._log_exception("Synthesis failed; returning module results only", exc)
            synthesis, recommendations = Synthesis(), merge_recommendations([])

        elapsed_ms = (time.perf_counter() - started) * 1000
        context_result = SynthesizedContext(
            semantic=results.semantic,
            interaction=results.interaction,
            accessibility=results.accessibility,
            tokens=results.tokens,
            layout=results.layout,
            synthesis=synthesis,
            recommendations=recommendations,
            metadata=RunMetadata(
                analysis_id=analysis_id,
                analysis_time=round(elapsed_ms, 3),
                components_analyzed=len(spec.components),
                fingerprint=fingerprint,
                cache_hit=False,
                parallel=parallel,
                module_status={name: outcome.status for name, outcome in outcomes.items()},
                errors={name: outcome.reason for name, outcome in outcomes.items() if outcome.reason},
                performance=(
                    [
                        ModuleTiming(module=name, duration_ms=round(outcome.duration_ms, 3), status=outcome.status)
                        for name, outcome in outcomes.items()
                    ]
                    if with_metrics
                    else []
                ),
            ),
        )
        log.debug("Run phase: %s", RunPhase.DONE.value)

        if spec.components and synthesis.overall_confidence < analysis.confidence_threshold:
            log.warning(
                "Overall confidence %.2f is below the %.2f threshold",
                synthesis.overall_confidence,
                analysis.confidence_threshold,
            )
        log.info(
            "Finished analysis in %.1f ms (confidence %.2f)",
            elapsed_ms,
            synthesis.overall_confidence,
        )
        self._record(context_result, outcomes)
        if use_cache:
            self._cache_store(fingerprint, context_result)
        return context_result

    def fingerprint(
        self,
        design_spec: DesignSpec,
        prototype_data: PrototypeData | None = None,
        design_context: DesignContext | None = None,
    ) -> str:
        """Content hash of the normalized input plus the engine signature."""
        digest = hashlib.sha256()
        digest.update(self.engine_signature().encode("utf-8"))
        digest.update(b"\0")
        for part in (design_spec, prototype_data or PrototypeData(), design_context or DesignContext()):
            payload = json.dumps(asdict(part), sort_keys=True, default=str, separators=(",", ":"))
            digest.update(payload.encode("utf-8"))
            digest.update(b"\0")
        return digest.hexdigest()

    def engine_signature(self) -> str:
        if self._signature is None:
            parts = [f"engine:{ENGINE_CACHE_VERSION}"]
            parts.extend(
                f"{name}={self._analyzer_signature(self.analyzers[name])}"
                for name in sorted(self.analyzers)
            )
            parts.append(json.dumps(self.synthesizer.weights, sort_keys=True))
            self._signature = "|".join(parts)
        return self._signature

    def performance_history(self) -> List[Dict[str, Any]]:
        """Summaries of recent runs, oldest first."""
        return list(self._history)

    # ------------------------------------------------------------------
    # Dispatch

    async def _dispatch(self, request: AnalysisRequest, *, parallel: bool) -> Dict[str, ModuleOutcome]:
        outcomes: Dict[str, ModuleOutcome] = {}
        loop = asyncio.get_running_loop()

        # Analyzers are synchronous; keep them off the event loop.
        semantic = await loop.run_in_executor(None, self._invoke, "semantic", request)
        outcomes["semantic"] = semantic
        if semantic.status == ModuleStatus.OK:
            request = replace(request, components=tuple(self._enrich(request.components, semantic)))

        if parallel:
            gathered = await asyncio.gather(
                *(loop.run_in_executor(None, self._invoke, name, request) for name in _SECOND_PHASE)
            )
            outcomes.update({outcome.name: outcome for outcome in gathered})
        else:
            for name in _SECOND_PHASE:
                outcome = await loop.run_in_executor(None, self._invoke, name, request)
                outcomes[name] = outcome
                if name == "interaction" and outcome.status == ModuleStatus.OK:
                    request = replace(request, interaction=outcome.result)  # type: ignore[arg-type]
        return {name: outcomes[name] for name in MODULE_NAMES}

    def _invoke(self, name: str, request: AnalysisRequest) -> ModuleOutcome:
        result_type = RESULT_TYPES[name]
        analyzer = self.analyzers.get(name)
        if analyzer is None:
            return ModuleOutcome(
                name=name,
                result=result_type(metadata={"disabled": True}),
                status=ModuleStatus.DISABLED,
            )

        started = time.perf_counter()
        try:
            result = analyzer.analyze(request)
        except Exception as exc:
            reason = f"{exc.__class__.__name__}: {exc}"
            self._log_exception(f"{name} analysis failed", exc)
            return ModuleOutcome(
                name=name,
                result=result_type.degraded(reason),
                status=ModuleStatus.FAILED,
                reason=reason,
                duration_ms=(time.perf_counter() - started) * 1000,
            )
        duration = (time.perf_counter() - started) * 1000

        if not isinstance(result, result_type):
            reason = f"unexpected result type {type(result).__name__}"
            self.logger.warning("%s analysis returned %s; using a degraded result", name, type(result).__name__)
            return ModuleOutcome(
                name=name,
                result=result_type.degraded(reason),
                status=ModuleStatus.DEGRADED,
                reason=reason,
                duration_ms=duration,
            )
        self.logger.debug("%s analysis finished in %.1f ms", name, duration)
        return ModuleOutcome(name=name, result=result, status=ModuleStatus.OK, duration_ms=duration)

    def _enrich(self, components: Sequence[Component], outcome: ModuleOutcome) -> List[Component]:
        try:
            return enrich_components(components, outcome.result)  # type: ignore[arg-type]
        except Exception as exc:  # pragma: no cover - defensive guard
            self._log_exception("Could not attach semantic intents to components", exc)
            return list(components)

    # ------------------------------------------------------------------
    # Cache

    def _cache_lookup(self, fingerprint: str) -> Optional[SynthesizedContext]:
        try:
            cached = self.cache.get(fingerprint)
        except Exception as exc:
            self._log_exception("Cache lookup failed", exc)
            return None
        return cached if isinstance(cached, SynthesizedContext) else None

    def _cache_store(self, fingerprint: str, value: SynthesizedContext) -> None:
        try:
            self.cache.set(fingerprint, value, self.config.analysis.cache_ttl)
            persist = getattr(self.cache, "persist", None)
            if callable(persist):
                persist()
        except Exception as exc:
            self._log_exception("Cache write failed", exc)

    def _from_cache(self, cached: SynthesizedContext, analysis_id: str, started: float) -> SynthesizedContext:
        metadata = cached.metadata.model_copy(
            update={
                "analysis_id": analysis_id,
                "analysis_time": round((time.perf_counter() - started) * 1000, 3),
                "cache_hit": True,
            }
        )
        result = cached.model_copy(deep=True, update={"metadata": metadata})
        self._history.append(
            {
                "analysisId": analysis_id,
                "analysisTime": metadata.analysis_time,
                "cacheHit": True,
                "modules": {},
            }
        )
        return result

    # ------------------------------------------------------------------
    # Helpers

    def _parse(self, label: str, parser: Callable[[Any], Any], raw: Any, fallback: Callable[[], Any]) -> Any:
        try:
            return parser(raw)
        except Exception as exc:  # pragma: no cover - normalize is tolerant per field
            self._log_exception(f"Could not read {label}; analyzing it as empty", exc)
            return fallback()

    def _record(self, result: SynthesizedContext, outcomes: Mapping[str, ModuleOutcome]) -> None:
        self._history.append(
            {
                "analysisId": result.metadata.analysis_id,
                "analysisTime": result.metadata.analysis_time,
                "cacheHit": False,
                "modules": {name: round(outcome.duration_ms, 3) for name, outcome in outcomes.items()},
            }
        )

    @staticmethod
    def _analyzer_signature(analyzer: Analyzer) -> str:
        module = analyzer.__class__.__module__
        qualname = analyzer.__class__.__qualname__
        cache_version = getattr(analyzer, "cache_version", None) or "1"
        try:
            source = inspect.getsource(analyzer.__class__)
        except (OSError, TypeError):
            source_hash = f"{module}:{qualname}"
        else:
            source_hash = hashlib.sha256(source.encode("utf-8")).hexdigest()[:16]
        return f"{module}.{qualname}:{cache_version}:{source_hash}"

    def _log_exception(self, message: str, exc: Exception) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.exception("%s: %s", message, exc)
        else:
            self.logger.error("%s: %s", message, exc)


async def analyze_context_intelligence(
    design_spec: Any,
    prototype_data: Any = None,
    design_context: Any = None,
    options: Any = None,
    *,
    orchestrator: ContextIntelligenceOrchestrator | None = None,
) -> SynthesizedContext:
    """Analyze one design with a default (or supplied) orchestrator."""
    engine = orchestrator or ContextIntelligenceOrchestrator()
    return await engine.analyze_context_intelligence(design_spec, prototype_data, design_context, options)


__all__ = [
    "ContextIntelligenceOrchestrator",
    "ModuleOutcome",
    "RESULT_TYPES",
    "RunPhase",
    "analyze_context_intelligence",
    "generate_analysis_id",
]
