"""Configuration models and loading for Country MCP."""

from country_mcp.config.loader import load_config, resolve_port
from country_mcp.config.schema import (
    AppConfig,
    LoggingSettings,
    ServerSettings,
    UpstreamSettings,
)

__all__ = [
    "AppConfig",
    "LoggingSettings",
    "ServerSettings",
    "UpstreamSettings",
    "load_config",
    "resolve_port",
]
