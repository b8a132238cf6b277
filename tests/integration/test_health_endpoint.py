"""Health endpoint: dependency checks, caching and channel stats."""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.integration


class TestHealthEndpoint:
    async def test_healthy_without_redis(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "healthy"
        assert body["redis"] == "not_configured"
        assert body["channel"] == {"connections": 0, "rooms": 0, "subscriptions": 0}
        assert body["cached"] is False

    async def test_second_call_is_cached(self, client: AsyncClient):
        first = await client.get("/health")
        with patch("src.app.core.health._check_database", AsyncMock()) as check:
            second = await client.get("/health")

        check.assert_not_called()
        assert first.json()["cached"] is False
        assert second.json()["cached"] is True
        assert "cache_age_seconds" in second.json()

    async def test_database_down_is_unhealthy(self, client: AsyncClient):
        with patch(
            "src.app.core.health._check_database",
            AsyncMock(return_value="unhealthy: connection refused"),
        ):
            response = await client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    async def test_redis_down_is_degraded(self, client: AsyncClient):
        with patch(
            "src.app.core.health._check_redis",
            AsyncMock(return_value="unhealthy: timeout"),
        ):
            response = await client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "degraded"

    async def test_redis_reported_when_configured(self, client: AsyncClient, mock_redis):
        response = await client.get("/health")

        assert response.json()["redis"] == "healthy"