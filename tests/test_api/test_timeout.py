"""Tests for request timeout middleware."""

import asyncio

from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.middleware.timeout import TimeoutMiddleware


def _create_test_app(timeout: float = 1.0) -> FastAPI:
    """Minimal app with a fast route, a stuck fan-out route, and health."""
    app = FastAPI()
    app.add_middleware(TimeoutMiddleware, timeout_seconds=timeout)

    @app.get("/api/pins/timeline")
    async def timeline():
        return {"photos": [], "waterline": 0}

    @app.post("/api/pins")
    async def stuck_fanout():
        await asyncio.sleep(10)
        return {"id": "never"}

    @app.get("/health")
    async def health():
        await asyncio.sleep(0.2)
        return {"status": "healthy"}

    return app


class TestTimeoutMiddleware:
    def test_fast_request_passes_through(self):
        client = TestClient(_create_test_app(timeout=5.0))

        resp = client.get("/api/pins/timeline")

        assert resp.status_code == 200
        assert resp.json() == {"photos": [], "waterline": 0}

    def test_slow_request_returns_504_error_body(self):
        client = TestClient(_create_test_app(timeout=0.1))

        resp = client.post("/api/pins")

        assert resp.status_code == 504
        data = resp.json()
        assert data["error"] == "Request timed out"
        assert "0.1s" in data["message"]

    def test_health_is_never_timed_out(self):
        client = TestClient(_create_test_app(timeout=0.05))

        resp = client.get("/health")

        assert resp.status_code == 200
