"""SQL-backed collection gateway using SQLAlchemy async sessions.

Each gateway call runs in its own session and commits on success, so every
call is atomic for the single record it touches. SQLAlchemy errors surface
as GatewayUnavailable. Records carry a per-collection insertion sequence so
records created in the same clock tick list in creation order.
"""

import json
import uuid
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import Any, AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from collectiondesk.core.exceptions import Conflict, GatewayUnavailable, NotFound
from collectiondesk.core.logging import get_logger
from collectiondesk.domain.entities.collection import CollectionSchema, FieldDefinition
from collectiondesk.domain.entities.record import (
    Pagination,
    Record,
    RecordFilter,
    RecordPage,
    utcnow,
)
from collectiondesk.infrastructure.gateways.base import CollectionDataGateway
from collectiondesk.infrastructure.persistence.database import DatabaseManager
from collectiondesk.infrastructure.persistence.models import CollectionModel, RecordModel
from collectiondesk.infrastructure.persistence.repositories import (
    CollectionRepository,
    RecordRepository,
)

logger = get_logger(__name__)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _to_record(model: RecordModel) -> Record:
    return Record(
        id=model.id,
        collection_slug=model.collection_slug,
        values=json.loads(model.data),
        created_at=_aware(model.created_at),
        updated_at=_aware(model.updated_at),
    )


def _to_schema(model: CollectionModel) -> CollectionSchema:
    return CollectionSchema(
        slug=model.slug,
        fields=tuple(FieldDefinition.from_dict(f) for f in json.loads(model.schema)),
        version=model.version,
    )


def _dump_fields(schema: CollectionSchema) -> str:
    return json.dumps([f.to_dict() for f in schema.fields], default=_json_default)


class SqlCollectionGateway(CollectionDataGateway):
    """Gateway storing collections and records in a SQL database."""

    def __init__(self, db: DatabaseManager) -> None:
        self.db = db

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with self.db.session() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error("Database operation failed", operation=operation, error=str(e))
            raise GatewayUnavailable(
                f"Database error during {operation}", {"operation": operation, "error": str(e)}
            ) from e

    async def _require_collection(self, session: AsyncSession, slug: str) -> CollectionModel:
        model = await CollectionRepository(session).get_by_slug(slug)
        if model is None:
            raise NotFound(f"Collection '{slug}' not found", {"slug": slug})
        return model

    async def find(
        self,
        slug: str,
        record_filter: RecordFilter | None = None,
        pagination: Pagination | None = None,
    ) -> RecordPage:
        pagination = pagination or Pagination()
        async with self._session("find") as session:
            await self._require_collection(session, slug)
            models, total = await RecordRepository(session).find(
                slug, record_filter, pagination.offset, pagination.page_size
            )
            return RecordPage(
                items=[_to_record(m) for m in models],
                total=total,
                page=pagination.page,
                page_size=pagination.page_size,
            )

    async def create(self, slug: str, values: dict[str, Any]) -> Record:
        async with self._session("create") as session:
            await self._require_collection(session, slug)
            seq = await CollectionRepository(session).next_record_seq(slug)
            now = utcnow()
            model = RecordModel(
                id=str(uuid.uuid4()),
                collection_slug=slug,
                data=json.dumps(values, default=_json_default),
                seq=seq,
                created_at=now,
                updated_at=now,
            )
            await RecordRepository(session).create(model)
            await session.commit()
            return _to_record(model)

    async def update(self, slug: str, record_id: str, values: dict[str, Any]) -> Record:
        async with self._session("update") as session:
            repository = RecordRepository(session)
            model = await repository.get_by_id(slug, record_id)
            if model is None:
                raise NotFound(
                    f"Record '{record_id}' not found in '{slug}'",
                    {"slug": slug, "record_id": record_id},
                )
            model.data = json.dumps(values, default=_json_default)
            model.updated_at = utcnow()
            await repository.update(model)
            await session.commit()
            return _to_record(model)

    async def delete(self, slug: str, record_id: str) -> None:
        async with self._session("delete") as session:
            deleted = await RecordRepository(session).delete(slug, record_id)
            if not deleted:
                raise NotFound(
                    f"Record '{record_id}' not found in '{slug}'",
                    {"slug": slug, "record_id": record_id},
                )
            await session.commit()

    async def count(self, slug: str, record_filter: RecordFilter | None = None) -> int:
        async with self._session("count") as session:
            await self._require_collection(session, slug)
            return await RecordRepository(session).count(slug, record_filter)

    async def get_collection_config(self, slug: str) -> CollectionSchema:
        async with self._session("get_collection_config") as session:
            return _to_schema(await self._require_collection(session, slug))

    async def update_collection_config(self, slug: str, schema: CollectionSchema) -> CollectionSchema:
        async with self._session("update_collection_config") as session:
            model = await self._require_collection(session, slug)
            model.schema = _dump_fields(schema)
            model.version = schema.version
            model.updated_at = utcnow()
            await CollectionRepository(session).update(model)
            await session.commit()
            return schema

    async def create_collection(self, schema: CollectionSchema) -> CollectionSchema:
        async with self._session("create_collection") as session:
            repository = CollectionRepository(session)
            if await repository.slug_exists(schema.slug):
                raise Conflict(f"Collection '{schema.slug}' already exists", {"slug": schema.slug})
            await repository.create(
                CollectionModel(slug=schema.slug, schema=_dump_fields(schema), version=schema.version)
            )
            await session.commit()
            logger.info("Collection table row created", collection_slug=schema.slug)
            return schema

    async def delete_collection(self, slug: str) -> None:
        async with self._session("delete_collection") as session:
            await self._require_collection(session, slug)
            removed = await RecordRepository(session).delete_all(slug)
            await CollectionRepository(session).delete(slug)
            await session.commit()
            logger.info("Collection rows deleted", collection_slug=slug, records_deleted=removed)

    async def list_collections(self) -> list[CollectionSchema]:
        async with self._session("list_collections") as session:
            return [_to_schema(m) for m in await CollectionRepository(session).list_all()]
