"""Session management for per-client MCP sessions."""

from country_mcp.server.session.manager import SessionManager
from country_mcp.server.session.models import McpSession, SessionState

__all__ = ["McpSession", "SessionManager", "SessionState"]
