"""MCP tool definitions."""

from country_mcp.tools.country import (
    TOOL_NAME,
    GetCountryDataInput,
    GetCountryDataOutput,
    country_tool,
    get_country_data,
)

__all__ = [
    "TOOL_NAME",
    "GetCountryDataInput",
    "GetCountryDataOutput",
    "country_tool",
    "get_country_data",
]
