"""Pytest configuration and shared fixtures."""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from collectiondesk.application.services import CollectionManager
from collectiondesk.core.config import Settings
from collectiondesk.core.logging import get_logger
from collectiondesk.domain.entities.collection import FieldDefinition, FieldType
from collectiondesk.infrastructure.api.app import create_app
from collectiondesk.infrastructure.gateways import InMemoryCollectionGateway
from collectiondesk.infrastructure.persistence.database import DatabaseManager

logger = get_logger(__name__)

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def test_settings() -> Settings:
    """Settings for the testing environment."""
    return Settings(
        _env_file=None,
        environment="testing",
        gateway_backend="memory",
        database_url=TEST_DATABASE_URL,
        log_format="console",
        migration_page_size=2,
    )


@pytest.fixture
def product_fields() -> list[FieldDefinition]:
    """Field set of the products collection used across tests."""
    return [
        FieldDefinition(name="title", type=FieldType.TEXT, required=True),
        FieldDefinition(name="price", type=FieldType.TEXT),
        FieldDefinition(name="in_stock", type=FieldType.BOOLEAN, default_value=True),
    ]


@pytest.fixture
def memory_gateway() -> InMemoryCollectionGateway:
    """Empty in-memory gateway."""
    return InMemoryCollectionGateway()


@pytest.fixture
def manager(memory_gateway, test_settings) -> CollectionManager:
    """Collection manager over the in-memory gateway."""
    return CollectionManager(memory_gateway, test_settings)


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine shared across one test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_manager(db_engine, test_settings) -> DatabaseManager:
    """Database manager with all tables created."""
    db = DatabaseManager(test_settings, engine=db_engine)
    await db.create_tables()
    return db


@pytest_asyncio.fixture
async def client(manager, test_settings) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the API, bound to the in-memory manager."""
    app = create_app(manager=manager, settings=test_settings)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
