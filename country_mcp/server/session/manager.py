"""Session table and lifecycle for SSE-connected MCP clients."""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Dict, List, Optional

import anyio
from mcp.server import Server as McpServer
from starlette.responses import PlainTextResponse
from starlette.types import Receive, Scope, Send

from country_mcp.constants import CORS_ALLOW_ORIGIN, MESSAGE_CORS_HEADERS, POST_MESSAGES_PATH
from country_mcp.errors import SessionNotFoundError
from country_mcp.server.factory import initialization_options
from country_mcp.server.session.models import McpSession
from country_mcp.server.transport import ResponseStartTracker, SseSessionTransport

logger = logging.getLogger(__name__)


def _root_cause(exc: BaseException) -> BaseException:
    """Unwrap single-member exception groups raised out of task groups."""
    while isinstance(exc, BaseExceptionGroup) and len(exc.exceptions) == 1:
        exc = exc.exceptions[0]
    return exc


class SessionManager:
    """Owns the table of live SSE sessions.

    Every stream-open creates a transport and a fresh protocol server,
    registers them under the transport's session id and runs the server
    until the stream ends.  Message posts are routed to the matching
    transport by id.  Teardown happens exactly once per session no matter
    how many close signals arrive.

    All methods run on the event loop thread; the table needs no lock.

    Parameters
    ----------
    server_factory:
        Returns a new protocol server for each session.
    transport_factory:
        Builds a transport given the message-post path.
    init_options:
        Builds the handshake options for a server.
    message_path:
        Path announced to clients for posting messages.
    """

    def __init__(
        self,
        server_factory: Callable[[], McpServer],
        *,
        transport_factory: Callable[[str], SseSessionTransport] = SseSessionTransport,
        init_options: Callable[[McpServer], Any] = initialization_options,
        message_path: str = POST_MESSAGES_PATH,
    ) -> None:
        self._sessions: Dict[str, McpSession] = {}
        self._server_factory = server_factory
        self._transport_factory = transport_factory
        self._init_options = init_options
        self._message_path = message_path

    # ── Stream open ──────────────────────────────────────────────────

    async def open_session(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Serve one SSE stream for its whole lifetime.

        Never raises: connection failures are logged and answered with a
        500 when the response has not started yet.
        """
        transport = self._transport_factory(self._message_path)
        server = self._server_factory()
        session = McpSession(server=server, transport=transport)

        if session.id in self._sessions:
            logger.error("Refusing duplicate session id %s", session.id)
            response = PlainTextResponse(
                "Failed to establish SSE connection: duplicate session id",
                status_code=500,
                headers=CORS_ALLOW_ORIGIN,
            )
            await response(scope, receive, send)
            return

        self._sessions[session.id] = session
        transport.on_close = functools.partial(self._teardown, session)
        transport.on_error = functools.partial(self._on_transport_error, session)
        logger.info("Session opened: id=%s (active=%d)", session.id, len(self._sessions))

        try:
            async with transport.connect_sse(scope, receive, send) as (read_stream, write_stream):
                with anyio.CancelScope() as run_scope:
                    session.bind_run_scope(run_scope)
                    await server.run(read_stream, write_stream, self._init_options(server))
        except Exception as exc:
            cause = _root_cause(exc)
            logger.error(
                "Failed to start SSE connection for session %s: %s",
                session.id,
                cause,
                exc_info=True,
            )
            self._teardown(session)
            if not transport.headers_sent:
                response = PlainTextResponse(
                    f"Failed to establish SSE connection: {cause}",
                    status_code=500,
                    headers=CORS_ALLOW_ORIGIN,
                )
                await response(scope, receive, send)
        finally:
            self._teardown(session)
        logger.debug("SSE stream ended for session %s", session.id)

    # ── Message post ─────────────────────────────────────────────────

    async def route_message(
        self, session_id: str, scope: Scope, receive: Receive, send: Send
    ) -> None:
        """Forward a posted message to the session's transport.

        Raises :class:`SessionNotFoundError` for ids not in the table; any
        other failure is logged and answered with a 500 if possible.
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)

        tracker = ResponseStartTracker(send)
        try:
            await session.transport.handle_post_message(scope, receive, tracker)
        except Exception as exc:
            logger.error(
                "Failed to process message for session %s: %s", session_id, exc, exc_info=True
            )
            if not tracker.headers_sent:
                response = PlainTextResponse(
                    f"Failed to process message: {exc}",
                    status_code=500,
                    headers=MESSAGE_CORS_HEADERS,
                )
                await response(scope, receive, send)

    # ── Teardown ─────────────────────────────────────────────────────

    def close_session(self, session_id: str) -> bool:
        """Tear down a live session by id.

        Returns ``True`` if this call performed the teardown.
        """
        session = self._sessions.get(session_id)
        if session is None:
            return False
        return self._teardown(session)

    def shutdown(self) -> int:
        """Close every live session.  Returns how many were closed."""
        count = 0
        for session in list(self._sessions.values()):
            if self._teardown(session):
                count += 1
        logger.info("SessionManager stopped. Closed %d session(s).", count)
        return count

    def _teardown(self, session: McpSession) -> bool:
        if not session.begin_close():
            return False
        if self._sessions.get(session.id) is session:
            del self._sessions[session.id]
        try:
            session.shutdown_server()
        except Exception as exc:
            logger.error("Error closing server for session %s: %s", session.id, exc, exc_info=True)
        finally:
            session.mark_closed()
        logger.info("Session closed: id=%s (active=%d)", session.id, len(self._sessions))
        return True

    def _on_transport_error(self, session: McpSession, exc: Exception) -> None:
        logger.error("SSE transport error for session %s: %s", session.id, exc)

    # ── Queries ──────────────────────────────────────────────────────

    def get_session(self, session_id: str) -> Optional[McpSession]:
        return self._sessions.get(session_id)

    @property
    def active_count(self) -> int:
        """Number of sessions currently in the table."""
        return len(self._sessions)

    def list_sessions(self) -> List[Dict[str, Any]]:
        """Return a summary of every live session."""
        return [s.to_dict() for s in self._sessions.values()]
