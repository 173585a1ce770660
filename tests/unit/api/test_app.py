"""Unit tests for the application factory."""

import pytest
from httpx import ASGITransport, AsyncClient

from collectiondesk.application.services import ErrorInfo
from collectiondesk.infrastructure.api.app import build_gateway, create_app, lifespan
from collectiondesk.infrastructure.api.errors import error_response, status_for
from collectiondesk.infrastructure.gateways import InMemoryCollectionGateway


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_ready_check(client):
    response = await client.get("/ready")

    assert response.json() == {
        "status": "ready",
        "service": "CollectionDesk",
        "gateway_backend": "memory",
    }


@pytest.mark.asyncio
async def test_ready_without_manager(test_settings):
    app = create_app(settings=test_settings)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/ready")

    assert response.status_code == 503


@pytest.mark.asyncio
async def test_correlation_id_is_echoed(client):
    response = await client.get("/api/v1", headers={"X-Correlation-ID": "cid_test"})

    assert response.headers["X-Correlation-ID"] == "cid_test"
    assert response.json()["api_version"] == "v1"


@pytest.mark.asyncio
async def test_lifespan_builds_manager(test_settings):
    app = create_app(settings=test_settings)

    async with lifespan(app):
        assert app.state.collection_manager is not None
        assert isinstance(app.state.collection_manager.gateway, InMemoryCollectionGateway)


@pytest.mark.asyncio
async def test_build_sql_gateway(tmp_path, test_settings):
    settings = test_settings.model_copy(
        update={
            "gateway_backend": "sql",
            "database_url": f"sqlite+aiosqlite:///{tmp_path / 'app.db'}",
        }
    )

    gateway, db = await build_gateway(settings)

    try:
        assert db is not None
        assert await gateway.list_collections() == []
    finally:
        await db.disconnect()


def test_status_mapping():
    assert status_for(ErrorInfo(code="MigrationAborted", message="x")) == 409
    assert status_for(ErrorInfo(code="GatewayUnavailable", message="x")) == 503
    assert status_for(ErrorInfo(code="Unknown", message="x")) == 500

    response = error_response(ErrorInfo(code="NotFound", message="gone", details={"slug": "a"}))
    assert response.status_code == 404
