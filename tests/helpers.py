"""Fakes and ASGI helpers shared by the session and HTTP tests."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional
from uuid import uuid4

import anyio
from starlette.responses import PlainTextResponse


class FakeTransport:
    """Stands in for SseSessionTransport without any real streaming."""

    def __init__(self, endpoint: str) -> None:
        self.endpoint = endpoint
        self.session_id = uuid4().hex
        self.on_close = None
        self.on_error = None
        self.headers_sent = False
        self.connect_error: Optional[Exception] = None
        self.post_error: Optional[Exception] = None
        self.close_error: Optional[Exception] = None
        self.close_calls = 0
        self.posted = 0
        self.closed = False

    @asynccontextmanager
    async def connect_sse(self, scope, receive, send):
        if self.connect_error is not None:
            raise self.connect_error
        yield "read-stream", "write-stream"

    async def handle_post_message(self, scope, receive, send) -> None:
        self.posted += 1
        if self.post_error is not None:
            raise self.post_error
        await PlainTextResponse("Accepted", status_code=202)(scope, receive, send)

    def close(self) -> None:
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error
        if self.closed:
            return
        self.closed = True
        if self.on_close is not None:
            self.on_close()


class FakeServer:
    """Protocol server that idles until its run scope is cancelled."""

    def __init__(self) -> None:
        self.runs = 0

    async def run(self, read_stream, write_stream, init_options) -> None:
        self.runs += 1
        await anyio.sleep_forever()


class AsgiRecorder:
    """Collects ASGI messages written by a handler."""

    def __init__(self) -> None:
        self.messages: List[Dict[str, Any]] = []

    async def send(self, message: Dict[str, Any]) -> None:
        self.messages.append(message)

    @property
    def status(self) -> Optional[int]:
        for msg in self.messages:
            if msg["type"] == "http.response.start":
                return msg["status"]
        return None

    @property
    def headers(self) -> Dict[str, str]:
        for msg in self.messages:
            if msg["type"] == "http.response.start":
                return {k.decode(): v.decode() for k, v in msg["headers"]}
        return {}

    @property
    def body(self) -> bytes:
        return b"".join(m.get("body", b"") for m in self.messages if m["type"] == "http.response.body")


def http_scope(method: str = "GET", path: str = "/mcp", query: str = "") -> Dict[str, Any]:
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "query_string": query.encode(),
        "root_path": "",
        "headers": [(b"host", b"testserver")],
        "client": ("127.0.0.1", 50000),
        "server": ("testserver", 80),
    }


def body_receiver(body: bytes = b""):
    """Return an ASGI ``receive`` that yields *body* once, then disconnects."""
    sent = False

    async def receive() -> Dict[str, Any]:
        nonlocal sent
        if not sent:
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}
        await anyio.sleep_forever()
        return {"type": "http.disconnect"}

    return receive
