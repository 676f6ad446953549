"""Tests for health check endpoints."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient


@pytest.fixture
async def db_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Client whose health checks run against the in-memory database."""
    from infrastructure.database.session import get_async_session
    from main import create_app

    async def _session():
        async with session_factory() as session:
            yield session

    app = create_app()
    app.dependency_overrides[get_async_session] = _session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


class TestHealthEndpoint:
    """Tests for the basic health check."""

    async def test_health_returns_200(self, client: AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == 200

    async def test_health_reports_service_fields_only(self, client: AsyncClient) -> None:
        """The basic check never touches the database or the outbox."""
        data = (await client.get("/health")).json()

        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"
        assert "timestamp" in data
        assert "environment" in data
        assert data["database"] is None
        assert data["pending_notifications"] is None


class TestDetailedHealthEndpoint:
    async def test_reports_database_and_backlog(self, db_client: AsyncClient) -> None:
        data = (await db_client.get("/health/detailed")).json()

        assert data["status"] == "healthy"
        assert data["database"] == "healthy"
        assert data["pending_notifications"] == 0
        assert data["websocket_connections"] == 0
        assert data["llm_configured"] is False
