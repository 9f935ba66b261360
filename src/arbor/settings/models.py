"""Arbor settings models"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class EngineModel(BaseModel):
    poll_interval_ms: int = Field(
        default=1000,
        ge=1,
        description="Interval in milliseconds between checks on a running handler call",
    )
    progress_activity: str = Field(
        default="Retrieving data",
        description="Activity label shown while a slow handler call is running",
    )
    worker_thread_prefix: str = Field(
        default="ArborFetch",
        description="Thread name prefix for handler call workers",
    )


class ContentModel(BaseModel):
    temp_dir: Path | None = Field(
        default=None,
        description="Directory for transient content buffers (system temp dir when unset)",
    )
    encoding: str = Field(
        default="utf-8", description="Text encoding of content buffers"
    )
    newline: Literal["\n", "\r\n"] = Field(
        default="\n", description="Line terminator written to content buffers"
    )

    @field_validator("temp_dir", mode="before")
    def check_temp_dir(cls, v):
        if v == "" or not v:
            return None
        return v


class LoggingModel(BaseModel):
    enabled: bool = Field(default=False, description="Enable file logging")
    retention_hours: int = Field(
        default=24, description="Log retention period in hours"
    )
    rotation_mb: int = Field(default=10, description="Log file rotation size in MB")
    compression: Literal["zip", "gz", "bz2", "xz", "disabled"] = Field(
        default="disabled",
        description="Log compression format (empty for no compression)",
    )

    @field_validator("compression", mode="before")
    def check_compression(cls, v):
        if v == "" or not v:
            return "disabled"
        return v


class AppModel(BaseModel):
    log_level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = (
        Field(default="INFO", description="Logging level")
    )
    logging: LoggingModel = Field(
        default_factory=lambda: LoggingModel(),
        description="Logging configuration",
    )
    engine: EngineModel = Field(
        default_factory=lambda: EngineModel(),
        description="Invocation engine configuration",
    )
    content: ContentModel = Field(
        default_factory=lambda: ContentModel(),
        description="Content stream configuration",
    )
