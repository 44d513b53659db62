"""Per-session SSE transport for MCP connections.

Each :class:`SseSessionTransport` serves exactly one client: it owns the
session id, the long-lived ``GET`` event stream and the inbound message
stream fed by ``POST`` requests carrying ``?sessionId=<id>``.  The
:class:`~country_mcp.server.session.SessionManager` keeps the table that
maps ids to transports.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, Optional, Tuple, Union
from urllib.parse import quote
from uuid import uuid4

import anyio
from anyio.abc import TaskGroup
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from mcp import types as mcp_types
from mcp.shared.message import SessionMessage
from pydantic import ValidationError
from sse_starlette.sse import EventSourceResponse
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.types import Message, Receive, Scope, Send

from country_mcp.constants import CORS_ALLOW_ORIGIN, MESSAGE_CORS_HEADERS, SESSION_ID_PARAM
from country_mcp.errors import TransportError

logger = logging.getLogger(__name__)


class ResponseStartTracker:
    """Wrap an ASGI ``send`` and remember whether headers went out."""

    def __init__(self, send: Send) -> None:
        self._send = send
        self.headers_sent = False

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.headers_sent = True
        await self._send(message)


class SseSessionTransport:
    """Server side of one SSE session.

    Parameters
    ----------
    endpoint:
        Path clients post messages to; announced in the first
        ``endpoint`` event together with the session id.

    Callbacks
    ---------
    on_close:
        Called once, synchronously, when the transport closes for any
        reason (client disconnect, explicit :meth:`close`, or the protocol
        loop ending).
    on_error:
        Called with exceptions raised while streaming the response.
    """

    def __init__(self, endpoint: str) -> None:
        self._endpoint = endpoint
        self.session_id: str = uuid4().hex
        self.on_close: Optional[Callable[[], None]] = None
        self.on_error: Optional[Callable[[Exception], None]] = None

        self._read_stream_writer: Optional[
            MemoryObjectSendStream[Union[SessionMessage, Exception]]
        ] = None
        self._task_group: Optional[TaskGroup] = None
        self._response_tracker: Optional[ResponseStartTracker] = None
        self._closed = False

    # ── State ────────────────────────────────────────────────────────

    @property
    def endpoint_url(self) -> str:
        """Relative URL the client must post its messages to."""
        return f"{quote(self._endpoint)}?{SESSION_ID_PARAM}={self.session_id}"

    @property
    def headers_sent(self) -> bool:
        """``True`` once the SSE response start has been written."""
        return self._response_tracker is not None and self._response_tracker.headers_sent

    @property
    def connected(self) -> bool:
        return self._read_stream_writer is not None and not self._closed

    @property
    def closed(self) -> bool:
        return self._closed

    # ── Stream side (GET) ────────────────────────────────────────────

    @asynccontextmanager
    async def connect_sse(
        self, scope: Scope, receive: Receive, send: Send
    ) -> AsyncIterator[
        Tuple[
            MemoryObjectReceiveStream[Union[SessionMessage, Exception]],
            MemoryObjectSendStream[SessionMessage],
        ]
    ]:
        """Start the event stream and yield the protocol server's streams.

        The SSE response runs in a background task; the caller runs the
        protocol server inside the ``async with`` body.  Leaving the body
        closes the transport.
        """
        if scope["type"] != "http":
            raise TransportError("connect_sse can only handle HTTP requests", self.session_id)
        if self._read_stream_writer is not None or self._closed:
            raise TransportError("transport was already started", self.session_id)

        read_stream_writer: MemoryObjectSendStream[Union[SessionMessage, Exception]]
        read_stream: MemoryObjectReceiveStream[Union[SessionMessage, Exception]]
        read_stream_writer, read_stream = anyio.create_memory_object_stream(0)

        write_stream: MemoryObjectSendStream[SessionMessage]
        write_stream_reader: MemoryObjectReceiveStream[SessionMessage]
        write_stream, write_stream_reader = anyio.create_memory_object_stream(0)

        sse_stream_writer: MemoryObjectSendStream[Dict[str, Any]]
        sse_stream_reader: MemoryObjectReceiveStream[Dict[str, Any]]
        sse_stream_writer, sse_stream_reader = anyio.create_memory_object_stream(0)

        self._read_stream_writer = read_stream_writer
        self._response_tracker = ResponseStartTracker(send)

        async def sse_writer() -> None:
            async with sse_stream_writer, write_stream_reader:
                await sse_stream_writer.send({"event": "endpoint", "data": self.endpoint_url})
                logger.debug("Session %s: sent endpoint event", self.session_id)
                async for session_message in write_stream_reader:
                    await sse_stream_writer.send(
                        {
                            "event": "message",
                            "data": session_message.message.model_dump_json(
                                by_alias=True, exclude_none=True
                            ),
                        }
                    )

        async def run_response() -> None:
            response = EventSourceResponse(
                content=sse_stream_reader,
                data_sender_callable=sse_writer,
                headers=CORS_ALLOW_ORIGIN,
            )
            try:
                await response(scope, receive, self._response_tracker)
            except Exception as exc:
                self._report_error(exc)
            finally:
                logger.debug("Session %s: SSE response finished", self.session_id)
                self.close()

        async with anyio.create_task_group() as tg:
            self._task_group = tg
            tg.start_soon(run_response)
            try:
                yield read_stream, write_stream
            finally:
                self.close()
                write_stream.close()
                read_stream.close()

    # ── Message side (POST) ──────────────────────────────────────────

    async def handle_post_message(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Accept one JSON-RPC message for this session.

        Replies ``202 Accepted`` and forwards the message to the protocol
        server, or ``400`` when the body is not a JSON-RPC message.

        Raises :class:`TransportError` if the transport is not connected.
        """
        if not self.connected:
            state = "closed" if self._closed else "not connected"
            raise TransportError(f"transport is {state}", self.session_id)
        writer = self._read_stream_writer

        request = Request(scope, receive)
        body = await request.body()
        try:
            message = mcp_types.JSONRPCMessage.model_validate_json(body)
        except ValidationError as err:
            logger.warning("Session %s: could not parse message: %s", self.session_id, err)
            response = PlainTextResponse(
                "Could not parse message", status_code=400, headers=MESSAGE_CORS_HEADERS
            )
            await response(scope, receive, send)
            await writer.send(err)
            return

        logger.debug("Session %s: received message %s", self.session_id, message)
        response = PlainTextResponse("Accepted", status_code=202, headers=MESSAGE_CORS_HEADERS)
        await response(scope, receive, send)
        await writer.send(SessionMessage(message))

    # ── Teardown ─────────────────────────────────────────────────────

    def close(self) -> None:
        """Close the transport.  Safe to call any number of times."""
        if self._closed:
            return
        self._closed = True
        logger.debug("Session %s: transport closing", self.session_id)

        if self.on_close is not None:
            try:
                self.on_close()
            except Exception as exc:
                logger.error(
                    "Session %s: close callback failed: %s", self.session_id, exc, exc_info=True
                )
        if self._read_stream_writer is not None:
            self._read_stream_writer.close()
        if self._task_group is not None:
            self._task_group.cancel_scope.cancel()

    def _report_error(self, exc: Exception) -> None:
        if self.on_error is not None:
            self.on_error(exc)
        else:
            logger.error("Session %s: SSE transport error: %s", self.session_id, exc)
