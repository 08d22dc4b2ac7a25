"""Configuration loading for the engine (.contextintel.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .normalize import as_bool, as_dict, as_float, as_int, as_str, as_str_list

CONFIG_FILENAME = ".contextintel.yml"
ENV_PARALLEL = "CONTEXTINTEL_PARALLEL"
ENV_CACHE = "CONTEXTINTEL_CACHE"

MODULE_NAMES = ("semantic", "interaction", "accessibility", "tokens", "layout")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class AnalysisConfig:
    """Run-level switches; per-call options override these."""

    parallel: bool = True
    caching: bool = True
    cache_ttl: float = 300.0
    cache_path: Optional[Path] = None
    performance_metrics: bool = False
    confidence_threshold: float = 0.7
    history_size: int = 50


@dataclass
class AnalyzersConfig:
    enabled: List[str] = field(default_factory=lambda: list(MODULE_NAMES))


@dataclass
class SynthesisWeights:
    """Relative weight of each module in the overall confidence."""

    semantic: float = 0.3
    interaction: float = 0.2
    accessibility: float = 0.2
    tokens: float = 0.15
    layout: float = 0.15

    def as_mapping(self) -> Dict[str, float]:
        return {name: float(getattr(self, name)) for name in MODULE_NAMES}


@dataclass
class SemanticConfig:
    naming_weight: float = 0.6
    visual_weight: float = 0.4
    agreement_bonus: float = 0.15
    context_bonus: float = 0.05


@dataclass
class InteractionConfig:
    max_flow_depth: int = 10
    max_journeys: int = 20


@dataclass
class AccessibilityConfig:
    min_touch_target: float = 44.0
    normal_text_contrast: float = 4.5
    large_text_contrast: float = 3.0
    enhanced_contrast: float = 7.0
    min_font_size: float = 12.0
    principle_weights: Dict[str, float] = field(
        default_factory=lambda: {
            "perceivable": 0.35,
            "operable": 0.35,
            "understandable": 0.15,
            "robust": 0.15,
        }
    )


@dataclass
class TokenConfig:
    color_tolerance: float = 0.95
    numeric_tolerance: float = 0.5
    spacing_base: float = 4.0
    detection_threshold: float = 0.4
    min_evidence: int = 2


@dataclass
class LayoutConfig:
    grid_tolerance: float = 4.0
    min_grid_items: int = 4
    alignment_tolerance: float = 2.0


@dataclass
class EngineConfig:
    """Represents the settings defined in .contextintel.yml."""

    root: Optional[Path] = None
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    analyzers: AnalyzersConfig = field(default_factory=AnalyzersConfig)
    weights: SynthesisWeights = field(default_factory=SynthesisWeights)
    semantic: SemanticConfig = field(default_factory=SemanticConfig)
    interaction: InteractionConfig = field(default_factory=InteractionConfig)
    accessibility: AccessibilityConfig = field(default_factory=AccessibilityConfig)
    tokens: TokenConfig = field(default_factory=TokenConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)


def load_config(
    config_path: Path, *, environ: Optional[Mapping[str, str]] = None
) -> EngineConfig:
    """Load configuration from disk and apply environment overrides."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return apply_env_overrides(EngineConfig(root=root), environ)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = EngineConfig(root=root)

    analysis_data = as_dict(data.get("analysis"))
    if analysis_data:
        analysis = config.analysis
        analysis.parallel = _bool_or(analysis_data.get("parallel"), analysis.parallel)
        analysis.caching = _bool_or(analysis_data.get("caching"), analysis.caching)
        analysis.performance_metrics = _bool_or(
            analysis_data.get("performance_metrics"), analysis.performance_metrics
        )
        analysis.cache_ttl = _non_negative(
            "analysis.cache_ttl", analysis_data.get("cache_ttl"), analysis.cache_ttl
        )
        threshold = as_float(analysis_data.get("confidence_threshold"))
        if threshold is not None:
            if not 0.0 <= threshold <= 1.0:
                raise ConfigError("analysis.confidence_threshold must be between 0 and 1")
            analysis.confidence_threshold = threshold
        history = as_int(analysis_data.get("history_size"))
        if history is not None:
            analysis.history_size = max(history, 0)
        cache_path = as_str(analysis_data.get("cache_path"))
        if cache_path:
            analysis.cache_path = root / cache_path

    analyzer_data = as_dict(data.get("analyzers"))
    if "enabled" in analyzer_data:
        enabled = [name.lower() for name in as_str_list(analyzer_data.get("enabled"))]
        unknown = sorted(set(enabled) - set(MODULE_NAMES))
        if unknown:
            raise ConfigError(f"Unknown analyzers in configuration: {', '.join(unknown)}")
        config.analyzers.enabled = enabled

    weights_data = as_dict(data.get("weights"))
    for name in MODULE_NAMES:
        if name in weights_data:
            value = _non_negative(f"weights.{name}", weights_data.get(name), 0.0)
            setattr(config.weights, name, value)
    if weights_data and sum(config.weights.as_mapping().values()) <= 0:
        raise ConfigError("weights must not all be zero")

    semantic_data = as_dict(data.get("semantic"))
    for attr in ("naming_weight", "visual_weight", "agreement_bonus", "context_bonus"):
        if attr in semantic_data:
            current = getattr(config.semantic, attr)
            setattr(config.semantic, attr, _non_negative(f"semantic.{attr}", semantic_data[attr], current))

    interaction_data = as_dict(data.get("interaction"))
    for attr in ("max_flow_depth", "max_journeys"):
        value = as_int(interaction_data.get(attr))
        if value is not None:
            if value < 1:
                raise ConfigError(f"interaction.{attr} must be at least 1")
            setattr(config.interaction, attr, value)

    accessibility_data = as_dict(data.get("accessibility"))
    for attr in (
        "min_touch_target",
        "normal_text_contrast",
        "large_text_contrast",
        "enhanced_contrast",
        "min_font_size",
    ):
        if attr in accessibility_data:
            current = getattr(config.accessibility, attr)
            setattr(
                config.accessibility,
                attr,
                _non_negative(f"accessibility.{attr}", accessibility_data[attr], current),
            )
    principle_data = as_dict(accessibility_data.get("principle_weights"))
    for principle, raw in principle_data.items():
        if principle in config.accessibility.principle_weights:
            config.accessibility.principle_weights[principle] = _non_negative(
                f"accessibility.principle_weights.{principle}", raw, 0.0
            )

    token_data = as_dict(data.get("tokens"))
    for attr in ("color_tolerance", "numeric_tolerance", "spacing_base", "detection_threshold"):
        if attr in token_data:
            current = getattr(config.tokens, attr)
            setattr(config.tokens, attr, _non_negative(f"tokens.{attr}", token_data[attr], current))
    min_evidence = as_int(token_data.get("min_evidence"))
    if min_evidence is not None:
        config.tokens.min_evidence = max(min_evidence, 0)

    layout_data = as_dict(data.get("layout"))
    for attr in ("grid_tolerance", "alignment_tolerance"):
        if attr in layout_data:
            current = getattr(config.layout, attr)
            setattr(config.layout, attr, _non_negative(f"layout.{attr}", layout_data[attr], current))
    min_items = as_int(layout_data.get("min_grid_items"))
    if min_items is not None:
        config.layout.min_grid_items = max(min_items, 2)

    return apply_env_overrides(config, environ)


def apply_env_overrides(
    config: EngineConfig, environ: Optional[Mapping[str, str]] = None
) -> EngineConfig:
    env = os.environ if environ is None else environ
    parallel = _parse_env_bool(env.get(ENV_PARALLEL))
    if parallel is not None:
        config.analysis.parallel = parallel
    caching = _parse_env_bool(env.get(ENV_CACHE))
    if caching is not None:
        config.analysis.caching = caching
    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _bool_or(value: Any, default: bool) -> bool:
    parsed = as_bool(value)
    return default if parsed is None else parsed


def _non_negative(label: str, value: Any, default: float) -> float:
    if value is None:
        return default
    number = as_float(value)
    if number is None:
        raise ConfigError(f"{label} must be a number")
    if number < 0:
        raise ConfigError(f"{label} must not be negative")
    return number


def _parse_env_bool(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return None


__all__ = [
    "AccessibilityConfig",
    "AnalysisConfig",
    "AnalyzersConfig",
    "ConfigError",
    "EngineConfig",
    "InteractionConfig",
    "LayoutConfig",
    "MODULE_NAMES",
    "SemanticConfig",
    "SynthesisWeights",
    "TokenConfig",
    "apply_env_overrides",
    "load_config",
]
