"""Session data models for per-client MCP sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from time import monotonic
from typing import TYPE_CHECKING, Any, Dict, Optional

import anyio

if TYPE_CHECKING:
    from mcp.server import Server as McpServer

    from country_mcp.server.transport import SseSessionTransport


class SessionState(str, Enum):
    """Lifecycle of a session.  Transitions only move forward."""

    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass(eq=False)
class McpSession:
    """One client's SSE stream plus the protocol server bound to it.

    The session exclusively owns its ``server`` and ``transport``; the
    :class:`~country_mcp.server.session.SessionManager` table holds the
    only long-lived reference to the session itself.
    """

    server: "McpServer"
    transport: "SseSessionTransport"

    id: str = ""
    """Opaque session id, taken from the transport when left empty."""

    state: SessionState = SessionState.OPEN

    created_at: float = field(default_factory=monotonic)
    """Monotonic timestamp of session creation."""

    _run_scope: Optional[anyio.CancelScope] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not self.id:
            self.id = self.transport.session_id

    @property
    def is_open(self) -> bool:
        return self.state is SessionState.OPEN

    @property
    def age_seconds(self) -> float:
        """Seconds since the session was created."""
        return monotonic() - self.created_at

    def begin_close(self) -> bool:
        """Move ``OPEN -> CLOSING``.

        Returns ``True`` only for the caller that performed the
        transition; every later call returns ``False``.
        """
        if self.state is not SessionState.OPEN:
            return False
        self.state = SessionState.CLOSING
        return True

    def mark_closed(self) -> None:
        self.state = SessionState.CLOSED

    def bind_run_scope(self, scope: anyio.CancelScope) -> None:
        """Attach the cancel scope the protocol server runs in."""
        self._run_scope = scope
        if not self.is_open:
            # closed before the server even started
            scope.cancel()

    def shutdown_server(self) -> None:
        """Stop the protocol server and close the transport."""
        if self._run_scope is not None:
            self._run_scope.cancel()
        self.transport.close()

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the session summary."""
        return {
            "id": self.id,
            "state": self.state.value,
            "age_seconds": round(self.age_seconds, 1),
        }
