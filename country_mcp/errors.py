"""
Defines project-specific exception classes.
"""
from typing import Optional


class CountryMcpError(Exception):
    """Base class for all custom exceptions in Country MCP."""
    pass


class ConfigurationError(CountryMcpError):
    """Raised when loading or validating the configuration fails."""
    pass


class TransportError(CountryMcpError):
    """
    Raised when an SSE session transport cannot accept work,
    e.g. it was never connected or has already been closed.
    """

    def __init__(self, message: str, session_id: Optional[str] = None):
        self.session_id = session_id

        full_msg = "Transport error"
        if session_id:
            full_msg += f" (session: {session_id})"
        full_msg += f": {message}"
        super().__init__(full_msg)


class SessionNotFoundError(CountryMcpError):
    """Raised when a message is posted for a session id that is not live."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: '{session_id}'")


class UpstreamError(CountryMcpError):
    """
    Raised inside the country data client when the upstream API call fails.
    Never escapes the client; it is converted into a failed lookup result.
    """

    def __init__(self,
                 message: str,
                 status_code: Optional[int] = None,
                 orig_exc: Optional[Exception] = None):
        self.status_code = status_code
        self.orig_exc = orig_exc

        full_msg = "Upstream error"
        if status_code is not None:
            full_msg += f" (HTTP {status_code})"
        full_msg += f": {message}"
        if orig_exc:
            full_msg += f" (original error: {type(orig_exc).__name__})"
        super().__init__(full_msg)
