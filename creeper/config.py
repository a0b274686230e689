# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""Configuration management for the snapshot service.

Uses Pydantic Settings for environment variable and .env file support.
Settings are frozen: build them once with load_settings() at process start
and pass them explicitly to the components that need them.
"""

import re
from pathlib import Path
from typing import Literal, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

GRID_SLOTS = 4

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")


def parse_hex_color(value: str) -> Tuple[int, int, int]:
    """Convert '#RRGGBB' to an OpenCV BGR tuple."""
    match = _HEX_COLOR.match(value.strip())
    if not match:
        raise ValueError(f"Invalid color '{value}', expected #RRGGBB")
    digits = match.group(1)
    r, g, b = (int(digits[i:i + 2], 16) for i in (0, 2, 4))
    return (b, g, r)


class CameraEntry(BaseModel):
    """One configured camera feed."""

    model_config = ConfigDict(frozen=True)

    url: str
    location: str = Field(
        default="",
        description="Label drawn on the tile; folded to ASCII (accents stripped)"
    )


class FetchSettings(BaseSettings):
    """Source fetch settings."""

    model_config = SettingsConfigDict(env_prefix="CREEPER_FETCH_", frozen=True)

    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Per-attempt request timeout"
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        description="Additional attempts after the first failure"
    )
    retry_delay_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Fixed delay between attempts"
    )
    min_image_bytes: int = Field(
        default=100,
        ge=1,
        description="Responses shorter than this are rejected"
    )
    max_concurrent: int = Field(
        default=4,
        ge=1,
        le=GRID_SLOTS,
        description="Slots fetched in parallel"
    )
    cache_token: str = Field(
        default="COUNTER",
        min_length=1,
        description="Placeholder in camera URLs replaced with the current time"
    )
    probe_timeout_seconds: float = Field(
        default=3.0,
        gt=0,
        description="Timeout for health probes"
    )


class CanvasSettings(BaseSettings):
    """Grid canvas and visual transform settings."""

    model_config = SettingsConfigDict(env_prefix="CREEPER_CANVAS_", frozen=True)

    size: int = Field(
        default=2048,
        description="Canvas width and height in pixels"
    )
    border: int = Field(
        default=20,
        ge=0,
        description="Gutter between a cell edge and its drawable region"
    )
    background_color: str = Field(default="#000000")
    placeholder_color: str = Field(default="#444444")
    status_color: str = Field(default="#FFFFFF")
    label_color: str = Field(default="#FFFFFF")
    tint_color: str = Field(default="#00FF00")
    tint_opacity: float = Field(default=0.1, ge=0.0, le=1.0)
    label_opacity: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Opacity of the box behind location labels"
    )
    watermark_text: str = Field(default="CREEPER")
    watermark_color: str = Field(default="#00FF00")
    watermark_font_px: int = Field(default=96, ge=1)
    label_font_px: int = Field(default=24, ge=1)
    status_font_px: int = Field(default=48, ge=1)
    status_reason_length: int = Field(
        default=40,
        ge=1,
        description="Placeholder reason text is truncated to this many characters"
    )

    @field_validator(
        "background_color",
        "placeholder_color",
        "status_color",
        "label_color",
        "tint_color",
        "watermark_color",
    )
    @classmethod
    def _check_color(cls, value: str) -> str:
        parse_hex_color(value)
        return "#" + value.strip().lstrip("#").upper()

    @model_validator(mode="after")
    def _check_geometry(self) -> "CanvasSettings":
        if self.size < 2 or self.size % 2:
            raise ValueError(f"Canvas size must be a positive even number, got {self.size}")
        if 2 * self.border >= self.size // 2:
            raise ValueError(
                f"Border {self.border} leaves no drawable region in a "
                f"{self.size // 2}px cell"
            )
        return self

    @property
    def cell_size(self) -> int:
        return self.size // 2

    @property
    def inner_size(self) -> int:
        return self.cell_size - 2 * self.border


class OutputSettings(BaseSettings):
    """Published snapshot settings."""

    model_config = SettingsConfigDict(env_prefix="CREEPER_OUTPUT_", frozen=True)

    directory: Path = Field(
        default=Path("snapshots"),
        description="Directory holding the published snapshot"
    )
    filename: str = Field(default="latest.png")
    format: Literal["png", "jpeg"] = Field(default="png")
    jpeg_quality: int = Field(default=85, ge=1, le=100)

    @field_validator("filename")
    @classmethod
    def _check_filename(cls, value: str) -> str:
        if not value or Path(value).name != value:
            raise ValueError(f"Output filename must be a bare file name, got '{value}'")
        return value

    @property
    def published_path(self) -> Path:
        return self.directory / self.filename

    @property
    def media_type(self) -> str:
        return "image/jpeg" if self.format == "jpeg" else "image/png"


class ScheduleSettings(BaseSettings):
    """Snapshot scheduling settings."""

    model_config = SettingsConfigDict(env_prefix="CREEPER_SCHEDULE_", frozen=True)

    interval_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Time between snapshot runs (5 min)"
    )


class ServerSettings(BaseSettings):
    """FastAPI server settings."""

    model_config = SettingsConfigDict(env_prefix="CREEPER_SERVER_", frozen=True)

    host: str = Field(
        default="0.0.0.0",
        description="Host to bind to"
    )
    port: int = Field(
        default=3000,
        description="Port to listen on"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    metadata_file: Path = Field(
        default=Path("metadata.json"),
        description="Static metadata document served verbatim"
    )


class Settings(BaseSettings):
    """Root settings for the snapshot service.

    Settings are loaded from environment variables with the CREEPER_ prefix,
    or from a .env file in the working directory.

    Example environment variables:
        CREEPER_CAMERAS='[{"url": "https://example.org/cam.jpg?t=COUNTER", "location": "Harbour"}]'
        CREEPER_CANVAS_SIZE=2048
        CREEPER_OUTPUT_FORMAT=jpeg
        CREEPER_SCHEDULE_INTERVAL_SECONDS=300
    """

    model_config = SettingsConfigDict(
        env_prefix="CREEPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        frozen=True,
    )

    cameras: Tuple[CameraEntry, ...] = Field(
        default=(),
        description="Up to four camera feeds, in slot order"
    )

    # Nested settings
    fetch: FetchSettings = Field(default_factory=FetchSettings)
    canvas: CanvasSettings = Field(default_factory=CanvasSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
    schedule: ScheduleSettings = Field(default_factory=ScheduleSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    @field_validator("cameras")
    @classmethod
    def _check_camera_count(cls, value: Tuple[CameraEntry, ...]) -> Tuple[CameraEntry, ...]:
        if len(value) > GRID_SLOTS:
            raise ValueError(f"At most {GRID_SLOTS} cameras are supported, got {len(value)}")
        return value


def load_settings(**overrides) -> Settings:
    """Build the process-wide settings once from the environment.

    Keyword arguments override environment values, which is how tests and
    the CLI inject explicit configuration.
    """
    return Settings(**overrides)
