"""Environment-based configuration for Coronascope."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


ColorChannel = Annotated[int, Field(ge=0, le=255)]


class Settings(BaseSettings):
    """Application settings loaded from CORONASCOPE_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CORONASCOPE_",
        case_sensitive=False,
    )

    # Server
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8083
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Concurrency
    max_concurrent: int = Field(default=2, ge=1)

    # Input limits
    max_image_pixels: int = Field(default=67_108_864, ge=1)
    max_file_size: int = Field(default=52_428_800, ge=1)

    # Upstream source
    source_url_template: str = "https://suntoday.lmsal.com/sdomedia/SunInTime/{date}/f0193.jpg"
    default_date: str = Field(default="2025/12/11", pattern=r"^\d{4}/\d{2}/\d{2}$")
    user_agent: str = "Mozilla/5.0 (Compatible; SolarCH-Worker/1.0)"
    fetch_timeout: float = Field(default=30.0, gt=0)

    # Analysis
    target_size: int = Field(default=512, ge=1)
    dark_threshold: int = Field(default=80, ge=0, le=255)
    disk_radius: float = Field(default=0.46, gt=0, le=1)
    min_contour_length: int = Field(default=5, ge=1)
    luminance_mode: Literal["linear", "log"] = "log"

    # Preview rendering
    highlight_color: tuple[ColorChannel, ColorChannel, ColorChannel] = (0, 255, 255)
    overlay_mode: Literal["points", "lines"] = "points"
    preview_source: Literal["luminance", "color"] = "luminance"
    preview_format: Literal["png", "bmp"] = "png"


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
