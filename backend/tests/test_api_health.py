"""Tests for health, readiness and root API endpoints."""

from unittest.mock import MagicMock

import pytest
from httpx import AsyncClient
from sqlalchemy.orm import Session

from codeset_builder.main import app


class TestHealthEndpoint:
    """Test health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_returns_200(self, client: AsyncClient) -> None:
        """Test health endpoint returns 200 OK."""
        response = await client.get("/health")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_health_returns_healthy_status(self, client: AsyncClient) -> None:
        """Test health endpoint returns healthy status."""
        response = await client.get("/health")
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "lab-codeset-builder"
        assert data["version"] == "0.1.0"

    @pytest.mark.asyncio
    async def test_health_returns_timestamp(self, client: AsyncClient) -> None:
        """Test health endpoint returns timestamp."""
        response = await client.get("/health")
        data = response.json()
        # Should be ISO format
        assert "T" in data["timestamp"]


class TestReadyEndpoint:
    """Test readiness endpoint."""

    @pytest.mark.asyncio
    async def test_ready_with_database(
        self, client: AsyncClient, override_session, vocab_session: Session
    ) -> None:
        """Test ready reports ready when the database answers."""
        override_session(vocab_session)
        response = await client.get("/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    @pytest.mark.asyncio
    async def test_ready_without_database(
        self, client: AsyncClient, override_session, failing_session: MagicMock
    ) -> None:
        """Test ready returns 503 when the database is unreachable."""
        override_session(failing_session)
        response = await client.get("/ready")
        assert response.status_code == 503
        assert response.json() == {"status": "unavailable", "service": "lab-codeset-builder"}


class TestRootEndpoint:
    """Test root endpoint."""

    @pytest.mark.asyncio
    async def test_root_returns_service_info(self, client: AsyncClient) -> None:
        """Test root endpoint returns service info."""
        response = await client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert "Lab Code Set Builder" in data["service"]
        assert data["docs"] == "/docs"
        assert data["health"] == "/health"
        assert data["ready"] == "/ready"


class TestAPIMetadata:
    """Test API metadata and configuration."""

    def test_app_title(self) -> None:
        assert app.title == "Lab Code Set Builder"

    def test_app_version(self) -> None:
        assert app.version == "0.1.0"

    def test_app_has_description(self) -> None:
        assert "OMOP" in app.description

    def test_search_route_registered(self) -> None:
        """Test the search route is mounted once under /api."""
        paths = app.openapi()["paths"]
        assert set(paths["/api/labtest-search"]) == {"post", "options"}
        assert "/labtest-search" not in paths
