"""Tests for the health endpoint."""

from unittest.mock import AsyncMock

import pytest

from src.api.dependencies import get_database


class TestHealthEndpoint:
    def test_healthy(self, client):
        resp = client.get("/health")

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"
        assert data["latency_ms"] >= 0
        assert isinstance(data["timestamp"], int)

    @pytest.mark.parametrize(
        "health_check",
        [
            AsyncMock(return_value=False),
            AsyncMock(side_effect=Exception("Connection refused")),
        ],
    )
    def test_unhealthy_database(self, app, client, health_check):
        db = AsyncMock()
        db.health_check = health_check
        app.dependency_overrides[get_database] = lambda: db

        resp = client.get("/health")

        assert resp.status_code == 200
        assert resp.json()["status"] == "unhealthy"
        assert resp.json()["database"] == "unhealthy"

    def test_health_needs_no_session(self, client, mock_auth_service):
        client.get("/health")
        mock_auth_service.authenticate.assert_not_called()

    def test_root(self, client):
        assert client.get("/").json()["service"] == "Pin Timeline API"
