"""FastAPI application exposing repository ingestion and search."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from ..config import apply_env_overrides, load_config
from ..logging import get_logger
from ..models import SearchResult, UseCase
from ..pipeline import Pipeline

logger = get_logger("service")


class ProcessRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    repository_url: Optional[str] = Field(default=None, alias="repositoryUrl")
    branch: Optional[str] = None


class ProcessResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    chunks_indexed: int = Field(alias="chunksIndexed")


class SearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: Optional[str] = None
    use_case: Optional[str] = Field(default=None, alias="useCase")
    limit: Optional[int] = None
    filters: Optional[Dict[str, Any]] = None


class SearchResults(BaseModel):
    chunks: List[Dict[str, Any]]
    scores: List[float]


class SearchResponse(BaseModel):
    success: bool
    results: SearchResults


class HealthResponse(BaseModel):
    status: str


def _default_pipeline() -> Pipeline:
    return Pipeline(apply_env_overrides(load_config(Path.cwd())))


def _error(status_code: int, **content: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content)


async def _run_blocking(func: Callable[[], Any]) -> Any:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func)


def create_app(
    pipeline_factory: Callable[[], Pipeline] = _default_pipeline,
) -> FastAPI:
    """Create the FastAPI application with routes mounted under ``/api``."""

    app = FastAPI(title="coderag", version="1.0.0")
    router = APIRouter()
    state: Dict[str, Pipeline] = {}

    async def get_pipeline() -> Pipeline:
        # One pipeline per app so the in-memory index is shared across requests.
        if "pipeline" not in state:
            state["pipeline"] = pipeline_factory()
        return state["pipeline"]

    @router.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @router.post("/repository/process", response_model=None)
    async def process_repository(
        payload: ProcessRequest,
        pipeline: Pipeline = Depends(get_pipeline),
    ) -> Any:
        if not payload.repository_url:
            return _error(400, error="Repository URL is required")

        repository_url = payload.repository_url

        def _run_process() -> int:
            pipeline.initialize_index()
            return pipeline.process_repository(repository_url, payload.branch)

        try:
            indexed = await _run_blocking(_run_process)
        except Exception as exc:
            logger.error("Failed to process repository %s: %s", repository_url, exc)
            return _error(
                500,
                success=False,
                error="Failed to process repository",
                message=str(exc),
            )
        return ProcessResponse(
            success=True,
            message=f"Successfully processed repository: {repository_url}",
            chunks_indexed=indexed,
        ).model_dump(by_alias=True)

    @router.post("/search", response_model=None)
    async def search(
        payload: SearchRequest,
        pipeline: Pipeline = Depends(get_pipeline),
    ) -> Any:
        if not payload.query:
            return _error(400, error="Search query is required")
        try:
            use_case = UseCase.parse(payload.use_case or "")
        except ValueError:
            return _error(
                400,
                error="Valid use case is required",
                validUseCases=[case.value for case in UseCase],
            )

        query = payload.query

        def _run_search() -> SearchResult:
            return pipeline.search(
                query,
                use_case,
                limit=payload.limit or 10,
                filters=payload.filters,
            )

        try:
            result = await _run_blocking(_run_search)
        except Exception as exc:
            logger.error("Search failed: %s", exc)
            return _error(500, success=False, error="Search failed", message=str(exc))
        return SearchResponse(
            success=True,
            results=SearchResults(chunks=result.chunks, scores=result.scores),
        ).model_dump()

    app.include_router(router, prefix="/api")
    return app


def run_service(
    host: str = "0.0.0.0",
    port: int = 8000,
    pipeline_factory: Callable[[], Pipeline] = _default_pipeline,
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app(pipeline_factory)
    uvicorn.run(app, host=host, port=port)
