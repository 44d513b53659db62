"""Application lifespan management - startup and shutdown sequences.

Startup builds the shared REST Countries client and the session manager and
stores both on ``app.state``; shutdown closes every live session and then
the HTTP client.
"""

import functools
import logging
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Callable, Optional

from starlette.applications import Starlette

from country_mcp.config.schema import AppConfig
from country_mcp.constants import SERVER_NAME, SERVER_VERSION
from country_mcp.server.factory import create_mcp_server
from country_mcp.server.session import SessionManager
from country_mcp.upstream.client import CountryDataClient

logger = logging.getLogger(__name__)


def make_lifespan(
    config: AppConfig,
    session_manager: Optional[SessionManager] = None,
) -> Callable[[Starlette], AsyncContextManager[None]]:
    """Return a lifespan context for *config*.

    A prebuilt *session_manager* replaces the default one; the client is
    still created and closed here.
    """

    @asynccontextmanager
    async def app_lifespan(app: Starlette) -> AsyncIterator[None]:
        logger.info("%s v%s starting up...", SERVER_NAME, SERVER_VERSION)
        client = CountryDataClient(
            config.upstream.base_url,
            timeout=config.upstream.timeout,
        )
        manager = session_manager or SessionManager(
            functools.partial(create_mcp_server, client)
        )
        app.state.country_client = client
        app.state.session_manager = manager
        logger.info("Upstream country API: %s", client.base_url)

        try:
            yield
        finally:
            logger.info("%s shutting down...", SERVER_NAME)
            manager.shutdown()
            await client.close()
            logger.info("%s shutdown complete.", SERVER_NAME)

    return app_lifespan
