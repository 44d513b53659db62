"""Starlette ASGI application factory and HTTP dispatch.

Routes:

* ``GET /health``                     - liveness and session count
* ``GET /mcp``                        - open an SSE session
* ``POST /mcp/messages?sessionId=..`` - post a JSON-RPC message to a session
* ``OPTIONS /mcp``, ``/mcp/messages`` - CORS preflight

Any other method or path gets ``404 Not Found``.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Dict, Optional

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route
from starlette.types import ASGIApp, Receive, Scope, Send

from country_mcp.config.schema import AppConfig
from country_mcp.constants import (
    HEALTH_PATH,
    MESSAGE_CORS_HEADERS,
    POST_MESSAGES_PATH,
    PREFLIGHT_HEADERS,
    SERVER_NAME,
    SERVER_VERSION,
    SESSION_ID_PARAM,
    SSE_PATH,
)
from country_mcp.errors import SessionNotFoundError
from country_mcp.server.lifespan import make_lifespan
from country_mcp.server.session import SessionManager

logger = logging.getLogger(__name__)

_PROCESS_START = time.monotonic()


class MethodDispatch:
    """ASGI endpoint that picks a handler by HTTP method.

    Starlette passes non-function endpoints through as raw ASGI apps, so
    methods without a handler fall through to our own 404 instead of
    Starlette's 405.
    """

    def __init__(self, handlers: Dict[str, ASGIApp]) -> None:
        self._handlers = handlers

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        handler = self._handlers.get(scope["method"])
        if handler is None:
            response = PlainTextResponse("Not Found", status_code=404)
            await response(scope, receive, send)
            return
        await handler(scope, receive, send)


def _get_session_manager(request: Request) -> SessionManager:
    """Retrieve the SessionManager instance from app state."""
    manager: Optional[SessionManager] = getattr(request.app.state, "session_manager", None)
    if manager is None:
        raise RuntimeError("SessionManager not found on app.state")
    return manager


# ── GET /health ──────────────────────────────────────────────────────────


async def handle_health(scope: Scope, receive: Receive, send: Send) -> None:
    """Liveness probe: always 200 while the process is serving."""
    request = Request(scope, receive)
    manager = _get_session_manager(request)
    response = JSONResponse(
        {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - _PROCESS_START, 3),
            "sessions": manager.active_count,
            "version": SERVER_VERSION,
        }
    )
    await response(scope, receive, send)


# ── OPTIONS /mcp, /mcp/messages ──────────────────────────────────────────


async def handle_preflight(scope: Scope, receive: Receive, send: Send) -> None:
    response = Response(status_code=204, headers=PREFLIGHT_HEADERS)
    await response(scope, receive, send)


# ── GET /mcp ─────────────────────────────────────────────────────────────


async def handle_sse(scope: Scope, receive: Receive, send: Send) -> None:
    """Handle incoming SSE connection requests."""
    request = Request(scope, receive)
    client = request.client
    logger.debug(
        "Received new SSE connection request from %s",
        f"{client.host}:{client.port}" if client else "unknown",
    )
    await _get_session_manager(request).open_session(scope, receive, send)


# ── POST /mcp/messages ───────────────────────────────────────────────────


async def handle_post_message(scope: Scope, receive: Receive, send: Send) -> None:
    """Route a posted JSON-RPC message to the session named in the query."""
    request = Request(scope, receive)
    session_id = request.query_params.get(SESSION_ID_PARAM)
    if not session_id:
        response = PlainTextResponse(
            f"Missing {SESSION_ID_PARAM} query parameter",
            status_code=400,
            headers=MESSAGE_CORS_HEADERS,
        )
        await response(scope, receive, send)
        return

    try:
        await _get_session_manager(request).route_message(session_id, scope, receive, send)
    except SessionNotFoundError:
        logger.warning("Message posted for unknown session %s", session_id)
        response = PlainTextResponse(
            "Session not found", status_code=404, headers=MESSAGE_CORS_HEADERS
        )
        await response(scope, receive, send)


def create_app(
    config: Optional[AppConfig] = None,
    *,
    session_manager: Optional[SessionManager] = None,
) -> Starlette:
    """Create and return the Starlette ASGI application."""
    config = config or AppConfig()
    application = Starlette(
        lifespan=make_lifespan(config, session_manager),
        routes=[
            Route(HEALTH_PATH, endpoint=MethodDispatch({"GET": handle_health})),
            Route(
                SSE_PATH,
                endpoint=MethodDispatch({"GET": handle_sse, "OPTIONS": handle_preflight}),
            ),
            Route(
                POST_MESSAGES_PATH,
                endpoint=MethodDispatch(
                    {"POST": handle_post_message, "OPTIONS": handle_preflight}
                ),
            ),
        ],
    )
    logger.info(
        "Starlette ASGI app '%s' created. SSE GET on %s, POST on %s, health on %s",
        SERVER_NAME,
        SSE_PATH,
        POST_MESSAGES_PATH,
        HEALTH_PATH,
    )
    return application
