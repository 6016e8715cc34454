"""Health endpoint tests."""

import pytest
from httpx import AsyncClient


@pytest.mark.api
@pytest.mark.asyncio
class TestHealth:

    async def test_liveness(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    async def test_readiness_ignores_disabled_cache(self, client: AsyncClient):
        response = await client.get("/health/ready")

        assert response.status_code == 200
        checks = response.json()["checks"]
        assert checks["database"] == "ok"
        assert checks["redis"] == "disabled"
