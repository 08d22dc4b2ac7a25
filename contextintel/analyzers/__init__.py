"""Analysis modules and their discovery."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Dict, Iterable, Sequence, Set

from .accessibility import AccessibilityChecker
from .base import AnalysisRequest, Analyzer
from .interaction import InteractionMapper
from .layout import LayoutIntentExtractor
from .semantic import SemanticAnalyzer
from .tokens import DesignTokenLinker
from ..config import EngineConfig

_ENTRY_POINT_GROUP = "contextintel.analyzers"

_BUILTIN_FACTORIES: Dict[str, Callable[[EngineConfig], Analyzer]] = {
    "semantic": lambda config: SemanticAnalyzer(config.semantic),
    "interaction": lambda config: InteractionMapper(config.interaction),
    "accessibility": lambda config: AccessibilityChecker(config.accessibility),
    "tokens": lambda config: DesignTokenLinker(config.tokens),
    "layout": lambda config: LayoutIntentExtractor(config.layout),
}


def discover_analyzers(
    enabled: Sequence[str] | None = None,
    config: EngineConfig | None = None,
) -> Dict[str, Analyzer]:
    """Return analyzers keyed by module name, honoring optional enabled names.

    Third-party packages may replace a built-in module by registering an
    ``Analyzer`` under the same name in the ``contextintel.analyzers`` entry
    point group.
    """
    config = config or EngineConfig()
    enabled_set: Set[str] | None = None
    if enabled is not None:
        enabled_set = {name.lower() for name in enabled}

    factories: Dict[str, Callable[[EngineConfig], Analyzer]] = dict(_BUILTIN_FACTORIES)
    for entry in _iter_entry_points():
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover - defensive guard
            raise RuntimeError(f"Failed to load analyzer entry point '{entry.name}': {exc}") from exc

        def _factory(cfg: EngineConfig, obj: object = loaded) -> Analyzer:
            return _coerce_analyzer(obj)

        factories[entry.name.lower()] = _factory

    analyzers: Dict[str, Analyzer] = {}
    for name, factory in factories.items():
        if enabled_set is not None and name not in enabled_set:
            continue
        instance = factory(config)
        if not isinstance(instance, Analyzer):
            raise TypeError(f"Analyzer factory for '{name}' did not return an Analyzer instance")
        analyzers[name] = instance

    if enabled_set:
        missing = enabled_set - set(analyzers)
        if missing:
            raise ValueError(f"Unknown analyzers requested: {', '.join(sorted(missing))}")
    return analyzers


def _coerce_analyzer(obj: object) -> Analyzer:
    if isinstance(obj, Analyzer):
        return obj
    if isinstance(obj, type) and issubclass(obj, Analyzer):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, Analyzer):
            return instance
    raise TypeError("Analyzer entry point must be an Analyzer subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    try:
        entry_points = metadata.entry_points()
    except Exception:  # pragma: no cover - defensive guard
        return []
    return entry_points.select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "AccessibilityChecker",
    "AnalysisRequest",
    "Analyzer",
    "DesignTokenLinker",
    "InteractionMapper",
    "LayoutIntentExtractor",
    "SemanticAnalyzer",
    "discover_analyzers",
]
