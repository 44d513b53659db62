"""
Country MCP - an MCP server exposing REST Countries lookups as a tool.

Country MCP serves a single ``get_country_data`` tool over an SSE endpoint
(many concurrent client sessions) or over stdio (one implicit session).
"""

from country_mcp.constants import SERVER_NAME, SERVER_VERSION

__version__ = SERVER_VERSION
__app_name__ = SERVER_NAME

__all__ = [
    "SERVER_NAME",
    "SERVER_VERSION",
    "__version__",
    "__app_name__",
]
