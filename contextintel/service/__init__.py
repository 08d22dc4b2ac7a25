"""HTTP service mode."""

from .app import AnalyzeRequest, create_app, run_service

__all__ = ["AnalyzeRequest", "create_app", "run_service"]
