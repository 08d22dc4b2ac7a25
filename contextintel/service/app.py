"""FastAPI application entrypoint for contextintel service mode."""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from ..orchestrator import ContextIntelligenceOrchestrator


class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    design_spec: Optional[Dict[str, Any]] = Field(default=None, alias="designSpec")
    prototype_data: Optional[Dict[str, Any]] = Field(default=None, alias="prototypeData")
    design_context: Optional[Dict[str, Any]] = Field(default=None, alias="designContext")
    options: Optional[Dict[str, Any]] = None


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> ContextIntelligenceOrchestrator:
    return ContextIntelligenceOrchestrator()


def create_app(
    orchestrator_factory: Callable[[], ContextIntelligenceOrchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing the analysis pipeline."""

    app = FastAPI(title="Context Intelligence Service", version="1.0.0")
    # One orchestrator per app so the result cache and run history are shared.
    holder: Dict[str, ContextIntelligenceOrchestrator] = {}

    async def get_orchestrator() -> ContextIntelligenceOrchestrator:
        if "instance" not in holder:
            holder["instance"] = orchestrator_factory()
        return holder["instance"]

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/analyze")
    async def analyze(
        payload: AnalyzeRequest,
        orchestrator: ContextIntelligenceOrchestrator = Depends(get_orchestrator),
    ) -> JSONResponse:
        result = await orchestrator.analyze_context_intelligence(
            payload.design_spec,
            payload.prototype_data,
            payload.design_context,
            payload.options,
        )
        return JSONResponse(content=result.to_json_dict())

    # Analysis itself never raises; this covers building the orchestrator
    # (ConfigError, broken analyzer entry points).
    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(_: Any, exc: RuntimeError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app()
    uvicorn.run(app, host=host, port=port)
