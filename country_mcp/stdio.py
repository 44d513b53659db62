"""Stdio binding: a single MCP session over stdin/stdout.

stdout carries the JSON-RPC stream, so all diagnostics go to stderr and
the log file.
"""

import logging
import sys

from mcp.server.stdio import stdio_server

from country_mcp.config.schema import AppConfig
from country_mcp.server.factory import create_mcp_server, initialization_options
from country_mcp.upstream.client import CountryDataClient

logger = logging.getLogger(__name__)


async def run_stdio(config: AppConfig) -> None:
    """Serve one MCP session on stdio until stdin closes."""
    client = CountryDataClient(
        config.upstream.base_url,
        timeout=config.upstream.timeout,
    )
    mcp_server = create_mcp_server(client)
    try:
        async with stdio_server() as (read_stream, write_stream):
            logger.info("MCP Server running on stdio")
            await mcp_server.run(read_stream, write_stream, initialization_options(mcp_server))
    finally:
        await client.close()
        logger.info("Stdio session ended.")


def main() -> None:
    """Console-script entry point for ``country-mcp-stdio``."""
    from country_mcp.cli import main as cli_main

    cli_main(["stdio", *sys.argv[1:]])
