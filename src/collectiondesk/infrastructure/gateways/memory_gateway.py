"""In-process collection gateway.

Default backend for development and tests. Records live in per-collection
dicts keyed by id in insertion order, so records created within the same
clock tick still list in creation order. A filter's sort order is applied
on top of creation order. Ids are uuid4 strings and timestamps are UTC.
"""

import uuid
from copy import deepcopy
from typing import Any

from collectiondesk.core.exceptions import Conflict, NotFound
from collectiondesk.core.logging import get_logger
from collectiondesk.domain.entities.collection import CollectionSchema
from collectiondesk.domain.entities.record import (
    Pagination,
    Record,
    RecordFilter,
    RecordPage,
    sort_records,
    utcnow,
)
from collectiondesk.infrastructure.gateways.base import CollectionDataGateway

logger = get_logger(__name__)


class InMemoryCollectionGateway(CollectionDataGateway):
    """Gateway keeping schemas and records in memory."""

    def __init__(self) -> None:
        self._schemas: dict[str, CollectionSchema] = {}
        self._records: dict[str, dict[str, Record]] = {}

    def _collection(self, slug: str) -> dict[str, Record]:
        try:
            return self._records[slug]
        except KeyError:
            raise NotFound(f"Collection '{slug}' not found", {"slug": slug}) from None

    def _record(self, slug: str, record_id: str) -> Record:
        try:
            return self._collection(slug)[record_id]
        except KeyError:
            raise NotFound(
                f"Record '{record_id}' not found in '{slug}'",
                {"slug": slug, "record_id": record_id},
            ) from None

    def _matching(self, slug: str, record_filter: RecordFilter | None) -> list[Record]:
        records = sorted(self._collection(slug).values(), key=lambda r: r.created_at)
        if record_filter is None:
            return records
        return sort_records([r for r in records if record_filter.matches(r)], record_filter.sort)

    async def find(
        self,
        slug: str,
        record_filter: RecordFilter | None = None,
        pagination: Pagination | None = None,
    ) -> RecordPage:
        pagination = pagination or Pagination()
        matching = self._matching(slug, record_filter)
        window = matching[pagination.offset : pagination.offset + pagination.page_size]
        return RecordPage(
            items=[deepcopy(r) for r in window],
            total=len(matching),
            page=pagination.page,
            page_size=pagination.page_size,
        )

    async def create(self, slug: str, values: dict[str, Any]) -> Record:
        records = self._collection(slug)
        now = utcnow()
        record = Record(
            id=str(uuid.uuid4()),
            collection_slug=slug,
            values=deepcopy(values),
            created_at=now,
            updated_at=now,
        )
        records[record.id] = record
        return deepcopy(record)

    async def update(self, slug: str, record_id: str, values: dict[str, Any]) -> Record:
        existing = self._record(slug, record_id)
        updated = Record(
            id=existing.id,
            collection_slug=slug,
            values=deepcopy(values),
            created_at=existing.created_at,
            updated_at=utcnow(),
        )
        self._records[slug][record_id] = updated
        return deepcopy(updated)

    async def delete(self, slug: str, record_id: str) -> None:
        self._record(slug, record_id)
        del self._records[slug][record_id]

    async def count(self, slug: str, record_filter: RecordFilter | None = None) -> int:
        return len(self._matching(slug, record_filter))

    async def get_collection_config(self, slug: str) -> CollectionSchema:
        try:
            return self._schemas[slug]
        except KeyError:
            raise NotFound(f"Collection '{slug}' not found", {"slug": slug}) from None

    async def update_collection_config(self, slug: str, schema: CollectionSchema) -> CollectionSchema:
        await self.get_collection_config(slug)
        self._schemas[slug] = schema
        return schema

    async def create_collection(self, schema: CollectionSchema) -> CollectionSchema:
        if schema.slug in self._schemas:
            raise Conflict(f"Collection '{schema.slug}' already exists", {"slug": schema.slug})
        self._schemas[schema.slug] = schema
        self._records[schema.slug] = {}
        logger.debug("Collection storage created", collection_slug=schema.slug)
        return schema

    async def delete_collection(self, slug: str) -> None:
        await self.get_collection_config(slug)
        del self._schemas[slug]
        self._records.pop(slug, None)
        logger.debug("Collection storage dropped", collection_slug=slug)

    async def list_collections(self) -> list[CollectionSchema]:
        return [self._schemas[slug] for slug in sorted(self._schemas)]
