"""Result stores."""

from .analysis_cache import AnalysisCache, CacheStore

__all__ = ["AnalysisCache", "CacheStore"]
