"""Base abstraction for collection data gateways.

A gateway is the only component that talks to the storage backend. It is
the sole authority for record ids and timestamps. All failures surface as
CollectionDeskError subclasses: NotFound for unknown ids or slugs,
GatewayUnavailable for transport problems.
"""

from abc import ABC, abstractmethod
from typing import Any

from collectiondesk.domain.entities.collection import CollectionSchema
from collectiondesk.domain.entities.record import Pagination, Record, RecordFilter, RecordPage


class CollectionDataGateway(ABC):
    """Abstract base class for collection storage backends."""

    @abstractmethod
    async def find(
        self,
        slug: str,
        record_filter: RecordFilter | None = None,
        pagination: Pagination | None = None,
    ) -> RecordPage:
        """Find records matching a filter, ordered by creation time then id."""
        ...

    @abstractmethod
    async def create(self, slug: str, values: dict[str, Any]) -> Record:
        """Create a record; the backend assigns its id and timestamps."""
        ...

    @abstractmethod
    async def update(self, slug: str, record_id: str, values: dict[str, Any]) -> Record:
        """Replace a record's values."""
        ...

    @abstractmethod
    async def delete(self, slug: str, record_id: str) -> None:
        """Delete a record."""
        ...

    @abstractmethod
    async def count(self, slug: str, record_filter: RecordFilter | None = None) -> int:
        """Count records matching a filter."""
        ...

    @abstractmethod
    async def get_collection_config(self, slug: str) -> CollectionSchema:
        """Fetch the persisted schema of a collection."""
        ...

    @abstractmethod
    async def update_collection_config(self, slug: str, schema: CollectionSchema) -> CollectionSchema:
        """Persist a new schema for an existing collection."""
        ...

    @abstractmethod
    async def create_collection(self, schema: CollectionSchema) -> CollectionSchema:
        """Create backing storage for a new collection."""
        ...

    @abstractmethod
    async def delete_collection(self, slug: str) -> None:
        """Drop a collection and all of its records."""
        ...

    @abstractmethod
    async def list_collections(self) -> list[CollectionSchema]:
        """List all persisted collection schemas."""
        ...

    async def migrate_schema(self, current: CollectionSchema, target: CollectionSchema) -> None:
        """Apply a schema transition to backend-side structures.

        Records have already been rewritten by the caller. The default
        implementation persists the target schema.
        """
        await self.update_collection_config(target.slug, target)
