"""Fixtures shared across the test modules."""

from __future__ import annotations

from typing import List, Tuple

import pytest

from country_mcp.server.session import SessionManager
from tests.helpers import FakeServer, FakeTransport


@pytest.fixture
def fake_manager() -> Tuple[SessionManager, List[FakeTransport], List[FakeServer]]:
    transports: List[FakeTransport] = []
    servers: List[FakeServer] = []

    def transport_factory(endpoint: str) -> FakeTransport:
        transport = FakeTransport(endpoint)
        transports.append(transport)
        return transport

    def server_factory() -> FakeServer:
        server = FakeServer()
        servers.append(server)
        return server

    manager = SessionManager(
        server_factory,
        transport_factory=transport_factory,
        init_options=lambda server: None,
    )
    return manager, transports, servers
