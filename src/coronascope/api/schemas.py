"""Pydantic response schemas for the Coronascope API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PointModel(BaseModel):
    """A coordinate at original image resolution."""

    x: int
    y: int


class OriginalDimensions(BaseModel):
    width: int
    height: int


class ProcessedDimensions(BaseModel):
    """Analysis grid size and the stride used to reach it."""

    out_w: int = Field(serialization_alias="outW")
    out_h: int = Field(serialization_alias="outH")
    step: int = Field(description="Integer sampling stride; original coordinate = analysis coordinate * step")


class DetectionResponse(BaseModel):
    """Coronal hole detection result with an embedded preview image."""

    status: str = "success"
    source: str = Field(description="URL (or upload filename) the image came from")
    timestamp: str = Field(description="ISO-8601 UTC time the result was produced")
    original_dimensions: OriginalDimensions
    processed_dimensions: ProcessedDimensions
    polygon_count: int = Field(description="Number of flagged edge points")
    coronal_holes_polygons: list[PointModel] = Field(description="Flagged edge points in row-major order")
    contour_count: int
    contours: list[list[PointModel]] = Field(description="Traced boundary polylines")
    image_data: str = Field(description="Preview image as a base64 data URI")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    concurrent_requests: int
    queue_depth: int


class ErrorResponse(BaseModel):
    """Pipeline failure description."""

    status: str = "error"
    message: str
    error: str | None = None
    upstream_status: int | None = None
    upstream_status_text: str | None = None
    url: str | None = None
