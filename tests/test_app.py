"""Tests for the HTTP dispatch layer."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from starlette.testclient import TestClient

from country_mcp.server.app import create_app
from country_mcp.server.session import SessionManager
from country_mcp.server.session.models import McpSession
from tests.helpers import FakeTransport


@pytest.fixture
def manager() -> SessionManager:
    return SessionManager(lambda: MagicMock(), transport_factory=FakeTransport)


@pytest.fixture
def client(manager: SessionManager):
    with TestClient(create_app(session_manager=manager)) as test_client:
        yield test_client


def _insert_session(manager: SessionManager) -> FakeTransport:
    transport = FakeTransport("/mcp/messages")
    session = McpSession(server=MagicMock(), transport=transport)
    manager._sessions[session.id] = session
    return transport


class TestHealth:
    def test_health_ok(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["sessions"] == 0
        assert body["uptime"] >= 0
        assert "timestamp" in body
        assert "version" in body

    def test_health_counts_sessions(self, client: TestClient, manager: SessionManager) -> None:
        _insert_session(manager)
        _insert_session(manager)
        assert client.get("/health").json()["sessions"] == 2

    def test_health_only_answers_get(self, client: TestClient) -> None:
        assert client.post("/health").status_code == 404

    def test_default_app_lifespan(self) -> None:
        with TestClient(create_app()) as test_client:
            assert test_client.get("/health").json()["sessions"] == 0


class TestPreflight:
    @pytest.mark.parametrize("path", ["/mcp", "/mcp/messages"])
    def test_options_returns_cors(self, client: TestClient, path: str) -> None:
        resp = client.options(path)
        assert resp.status_code == 204
        assert resp.content == b""
        assert resp.headers["access-control-allow-origin"] == "*"
        assert resp.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
        assert resp.headers["access-control-allow-headers"] == "content-type"


class TestPostMessage:
    def test_missing_session_id_is_400(self, client: TestClient, manager: SessionManager) -> None:
        resp = client.post("/mcp/messages", json={"jsonrpc": "2.0", "id": 1, "method": "ping"})
        assert resp.status_code == 400
        assert resp.headers["access-control-allow-origin"] == "*"
        assert manager.active_count == 0

    def test_empty_session_id_is_400(self, client: TestClient) -> None:
        resp = client.post("/mcp/messages?sessionId=", json={})
        assert resp.status_code == 400

    def test_unknown_session_is_404(self, client: TestClient, manager: SessionManager) -> None:
        resp = client.post(
            "/mcp/messages",
            params={"sessionId": "does-not-exist"},
            json={"jsonrpc": "2.0", "id": 1, "method": "ping"},
        )
        assert resp.status_code == 404
        assert resp.text == "Session not found"
        assert manager.active_count == 0

    def test_known_session_is_routed(self, client: TestClient, manager: SessionManager) -> None:
        transport = _insert_session(manager)
        resp = client.post(
            "/mcp/messages",
            params={"sessionId": transport.session_id},
            json={"jsonrpc": "2.0", "id": 1, "method": "ping"},
        )
        assert resp.status_code == 202
        assert transport.posted == 1

    def test_get_on_message_path_is_404(self, client: TestClient) -> None:
        assert client.get("/mcp/messages").status_code == 404


class TestNotFound:
    @pytest.mark.parametrize(
        "method, path",
        [("DELETE", "/foo"), ("GET", "/foo"), ("DELETE", "/mcp"), ("PUT", "/mcp/messages")],
    )
    def test_unknown_routes(self, client: TestClient, method: str, path: str) -> None:
        resp = client.request(method, path)
        assert resp.status_code == 404
