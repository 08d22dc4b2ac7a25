"""Base classes for analyzer plugins."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Sequence, Type

from ..models import Component, DesignContext, DesignTokenSet, PrototypeData
from ..results import InteractionResult, ModuleResult


@dataclass(frozen=True)
class AnalysisRequest:
    """Everything an analyzer may look at during one run."""

    components: Sequence[Component] = ()
    tokens: DesignTokenSet = field(default_factory=DesignTokenSet)
    prototype: PrototypeData = field(default_factory=PrototypeData)
    context: DesignContext = field(default_factory=DesignContext)
    interaction: Optional[InteractionResult] = None


class Analyzer(ABC):
    """Contract for the analysis modules dispatched by the orchestrator."""

    name: str = ""
    result_type: Type[ModuleResult] = ModuleResult

    @abstractmethod
    def analyze(self, request: AnalysisRequest) -> ModuleResult:
        """Produce this module's result for the request."""

    def degraded(self, reason: str) -> ModuleResult:
        return self.result_type.degraded(reason)
