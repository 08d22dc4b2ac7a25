"""Design context analysis: semantics, interactions, accessibility, tokens and layout."""

from .config import ConfigError, EngineConfig, load_config
from .orchestrator import ContextIntelligenceOrchestrator, analyze_context_intelligence
from .results import SynthesizedContext

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "ContextIntelligenceOrchestrator",
    "EngineConfig",
    "SynthesizedContext",
    "analyze_context_intelligence",
    "load_config",
]
