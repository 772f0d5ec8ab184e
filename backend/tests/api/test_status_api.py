# tests/api/test_status_api.py
import pytest
from fastapi import status
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

async def test_healthcheck_reports_missing_database(test_client: AsyncClient):
    """Sem conexão com o MongoDB o healthcheck responde 503 com o componente marcado."""
    response = await test_client.get("/api/v1/status/healthcheck")
    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    body = response.json()
    assert body["overall_status"] == "error"
    assert body["components"]["database_mongodb"]["status"] == "unavailable"
    assert response.headers["X-Trace-ID"]
