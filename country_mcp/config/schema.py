"""Pydantic models for the Country MCP configuration file."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from country_mcp.constants import (
    COUNTRY_API_BASE_URL,
    COUNTRY_API_TIMEOUT,
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PORT,
    LOG_DIR,
)

_VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class ServerSettings(BaseModel):
    """HTTP listener settings."""

    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)


class UpstreamSettings(BaseModel):
    """REST Countries API settings."""

    base_url: str = COUNTRY_API_BASE_URL
    timeout: float = Field(default=COUNTRY_API_TIMEOUT, gt=0)

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class LoggingSettings(BaseModel):
    """Log file location and level."""

    level: str = DEFAULT_LOG_LEVEL
    directory: str = LOG_DIR
    console: bool = True
    """Mirror application logs to stderr as well as the log file."""

    @field_validator("level", mode="before")
    @classmethod
    def _normalise_level(cls, v: str) -> str:
        """Accept any case; unknown levels fall back to the default."""
        if isinstance(v, str) and v.strip().upper() in _VALID_LOG_LEVELS:
            return v.strip().upper()
        return DEFAULT_LOG_LEVEL


class AppConfig(BaseModel):
    """Top-level configuration document."""

    server: ServerSettings = Field(default_factory=ServerSettings)
    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
