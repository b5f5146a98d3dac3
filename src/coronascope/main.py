"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coronascope.api.routes import router
from coronascope.config import get_settings
from coronascope.errors import PipelineError
from coronascope.imaging.pipeline import CoronalHolePipeline
from coronascope.imaging.pool import AnalysisPool
from coronascope.upstream import SourceFetcher

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: initialize on startup, clean up on shutdown."""
    settings = get_settings()
    app.state.settings = settings

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    logger.info(
        "Starting Coronascope (max_concurrent=%s, target_size=%s, threshold=%s, radius=%s, luminance=%s)",
        settings.max_concurrent,
        settings.target_size,
        settings.dark_threshold,
        settings.disk_radius,
        settings.luminance_mode,
    )

    app.state.pipeline = CoronalHolePipeline(settings)
    app.state.analysis_pool = AnalysisPool(settings)
    app.state.fetcher = SourceFetcher(settings)

    logger.info("Coronascope ready")
    yield

    logger.info("Shutting down Coronascope")
    await app.state.fetcher.aclose()
    app.state.analysis_pool.shutdown()
    logger.info("Coronascope shutdown complete")


async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    """Report a terminal pipeline failure as a structured JSON body."""
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="Coronascope",
        description="Coronal hole boundary detection on full-disk solar images",
        version="0.1.0",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(PipelineError, pipeline_error_handler)  # type: ignore[arg-type]
    application.include_router(router)
    return application


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
