"""API route definitions."""

from __future__ import annotations

import base64
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import Response

from coronascope.api.schemas import (
    DetectionResponse,
    ErrorResponse,
    HealthResponse,
    OriginalDimensions,
    PointModel,
    ProcessedDimensions,
)
from coronascope.upstream import build_source_url

if TYPE_CHECKING:
    from coronascope.config import Settings
    from coronascope.imaging.pipeline import CoronalHolePipeline, DetectionResult
    from coronascope.imaging.pool import AnalysisPool
    from coronascope.upstream import SourceFetcher

router = APIRouter(prefix="/api/v1")

DATE_PATTERN = r"^\d{4}/\d{2}/\d{2}$"

DateQuery = Annotated[
    str | None,
    Query(pattern=DATE_PATTERN, description="Archive date path, YYYY/MM/DD (defaults to the configured date)"),
]

_PIPELINE_ERRORS: dict[int | str, dict[str, object]] = {
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "Analysis queue is full"},
}

_UPSTREAM_ERRORS: dict[int | str, dict[str, object]] = {
    **_PIPELINE_ERRORS,
    status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse},
}


def _get_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def _get_pipeline(request: Request) -> CoronalHolePipeline:
    pipeline: CoronalHolePipeline = request.app.state.pipeline
    return pipeline


def _get_pool(request: Request) -> AnalysisPool:
    pool: AnalysisPool = request.app.state.analysis_pool
    return pool


def _get_fetcher(request: Request) -> SourceFetcher:
    fetcher: SourceFetcher = request.app.state.fetcher
    return fetcher


async def _analyse(request: Request, image_bytes: bytes) -> DetectionResult:
    pool = _get_pool(request)
    pipeline = _get_pipeline(request)
    try:
        return await pool.run(pipeline.run, image_bytes)
    except TimeoutError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Analysis queue is full, try again later",
        ) from None


async def _fetch_and_analyse(request: Request, date: str | None) -> tuple[str, DetectionResult]:
    url = build_source_url(_get_settings(request), date)
    fetched = await _get_fetcher(request).fetch(url)
    return fetched.url, await _analyse(request, fetched.content)


def _build_response(result: DetectionResult, source: str) -> DetectionResponse:
    encoded = base64.b64encode(result.preview).decode("ascii")
    return DetectionResponse(
        source=source,
        timestamp=datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        original_dimensions=OriginalDimensions(width=result.original_width, height=result.original_height),
        processed_dimensions=ProcessedDimensions(
            out_w=result.analysis_width,
            out_h=result.analysis_height,
            step=result.step,
        ),
        polygon_count=len(result.points),
        coronal_holes_polygons=[PointModel(x=p.x, y=p.y) for p in result.points],
        contour_count=len(result.contours),
        contours=[[PointModel(x=p.x, y=p.y) for p in contour] for contour in result.contours],
        image_data=f"data:{result.preview_media_type};base64,{encoded}",
    )


@router.get(
    "/coronal-holes",
    response_model=DetectionResponse,
    responses=_UPSTREAM_ERRORS,
    summary="Detect coronal hole boundaries in the archived image for a date",
)
async def coronal_holes(request: Request, date: DateQuery = None) -> DetectionResponse:
    """Fetch the day's image, detect dark-region edges and return them with a preview."""
    source, result = await _fetch_and_analyse(request, date)
    return _build_response(result, source)


@router.get(
    "/coronal-holes/preview",
    response_class=Response,
    responses={**_UPSTREAM_ERRORS, status.HTTP_200_OK: {"content": {"image/png": {}, "image/bmp": {}}}},
    summary="Annotated preview image for a date",
)
async def coronal_holes_preview(request: Request, date: DateQuery = None) -> Response:
    """Same analysis as ``/coronal-holes`` but returns only the encoded preview."""
    _, result = await _fetch_and_analyse(request, date)
    return Response(content=result.preview, media_type=result.preview_media_type)


@router.post(
    "/coronal-holes/analyze",
    response_model=DetectionResponse,
    responses={
        **_PIPELINE_ERRORS,
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: {"description": "Upload exceeds the size limit"},
    },
    summary="Detect coronal hole boundaries in an uploaded image",
)
async def analyze_upload(request: Request, file: UploadFile) -> DetectionResponse:
    """Run the detection pipeline on an uploaded image instead of the archive."""
    settings = _get_settings(request)
    content = await file.read(settings.max_file_size + 1)
    if len(content) > settings.max_file_size:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Upload exceeds {settings.max_file_size} bytes",
        )
    result = await _analyse(request, content)
    return _build_response(result, file.filename or "upload")


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health(request: Request) -> HealthResponse:
    """Return service health status."""
    pool = _get_pool(request)
    return HealthResponse(
        status="ok",
        concurrent_requests=pool.active_count,
        queue_depth=pool.queue_depth,
    )
