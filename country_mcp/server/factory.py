"""Protocol server factory: one low-level MCP server per session."""

import logging
from typing import Any, Dict, List, Tuple

from mcp import types as mcp_types
from mcp.server import Server as McpServer
from mcp.server.lowlevel import NotificationOptions
from mcp.server.models import InitializationOptions

from country_mcp.constants import SERVER_NAME, SERVER_VERSION
from country_mcp.tools.country import TOOL_NAME, country_tool, get_country_data
from country_mcp.upstream.client import CountryDataClient

logger = logging.getLogger(__name__)


def register_handlers(mcp_server: McpServer, client: CountryDataClient) -> None:
    """Register the tool handlers on the server instance."""

    @mcp_server.list_tools()
    async def handle_list_tools() -> List[mcp_types.Tool]:
        logger.debug("Handling listTools request...")
        return [country_tool()]

    @mcp_server.call_tool()
    async def handle_call_tool(
        name: str, arguments: Dict[str, Any]
    ) -> Tuple[List[mcp_types.TextContent], Dict[str, Any]]:
        logger.debug("Handling callTool: name='%s'", name)
        if name != TOOL_NAME:
            raise ValueError(f"Unknown tool: '{name}'")
        return await get_country_data(client, arguments)


def create_mcp_server(client: CountryDataClient) -> McpServer:
    """Build a fresh server bound to the shared *client*.

    Servers hold per-connection protocol state, so every session gets its
    own instance; the client is stateless per call and is shared.
    """
    mcp_server = McpServer(SERVER_NAME, version=SERVER_VERSION)
    register_handlers(mcp_server, client)
    return mcp_server


def initialization_options(mcp_server: McpServer) -> InitializationOptions:
    """Fixed server identity and capabilities sent during the handshake."""
    return InitializationOptions(
        server_name=SERVER_NAME,
        server_version=SERVER_VERSION,
        capabilities=mcp_server.get_capabilities(NotificationOptions(), {}),
    )
