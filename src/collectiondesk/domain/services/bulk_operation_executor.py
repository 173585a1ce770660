"""Bulk operation executor with per-id partial-failure accounting.

The backend offers no multi-record transaction, so every id is processed
independently and its outcome recorded in the result. One id failing never
aborts its siblings.
"""

import asyncio
from collections import OrderedDict, defaultdict
from typing import Any

from collectiondesk.core.exceptions import CollectionDeskError, NotFound, PartialWriteError
from collectiondesk.core.logging import LoggingContext, get_logger
from collectiondesk.domain.entities.bulk_operation import (
    BulkFailure,
    BulkOperationKind,
    BulkOperationRequest,
    BulkOperationResult,
)
from collectiondesk.domain.entities.collection import CollectionSchema
from collectiondesk.domain.entities.record import Pagination, Record, RecordFilter
from collectiondesk.domain.services.cancellation import CancellationToken
from collectiondesk.domain.services.intent_lock import IntentLock
from collectiondesk.domain.services.record_exporter import RecordExporter
from collectiondesk.domain.services.record_validator import RecordValidator
from collectiondesk.domain.services.schema_registry import SchemaRegistry
from collectiondesk.infrastructure.gateways.base import CollectionDataGateway

logger = get_logger(__name__)

CANCELLED_CODE = "Cancelled"
UNEXPECTED_CODE = "Error"


class BulkOperationExecutor:
    """Runs delete, duplicate, update and export over a set of record ids."""

    def __init__(
        self,
        gateway: CollectionDataGateway,
        registry: SchemaRegistry,
        intents: IntentLock | None = None,
        concurrency: int = 8,
        delete_missing_is_success: bool = False,
        tombstone_limit: int = 10_000,
    ) -> None:
        """Initialize the executor.

        Args:
            gateway: Backend used for per-record calls.
            registry: Registry providing the schema duplicates and updates are
                validated against.
            intents: Per-slug intent lock shared with the migration planner.
            concurrency: Maximum per-record gateway calls in flight.
            delete_missing_is_success: Treat NotFound on delete as success
                even for ids this executor never deleted.
            tombstone_limit: Deleted ids remembered per collection; the
                oldest are evicted once the limit is reached.
        """
        self.gateway = gateway
        self.registry = registry
        self.intents = intents or IntentLock()
        self.concurrency = concurrency
        self.delete_missing_is_success = delete_missing_is_success
        self.tombstone_limit = tombstone_limit
        self._deleted: defaultdict[str, OrderedDict[str, None]] = defaultdict(OrderedDict)

    def forget_collection(self, slug: str) -> None:
        """Drop delete bookkeeping for a collection that no longer exists."""
        self._deleted.pop(slug, None)

    def tombstone_count(self, slug: str) -> int:
        return len(self._deleted.get(slug, ()))

    def _remember_deleted(self, slug: str, record_id: str) -> None:
        tombstones = self._deleted[slug]
        tombstones[record_id] = None
        tombstones.move_to_end(record_id)
        while len(tombstones) > self.tombstone_limit:
            tombstones.popitem(last=False)

    async def execute(
        self,
        request: BulkOperationRequest,
        cancel_token: CancellationToken | None = None,
    ) -> BulkOperationResult:
        """Execute a bulk operation.

        Every requested id ends up either in ``succeeded`` or in ``failed``.
        Ids not yet started when ``cancel_token`` fires fail with code
        ``Cancelled``; ids already in flight complete and are recorded.

        Raises:
            NotFound: If the collection is unknown.
            Conflict: If a migration is running on the collection.
            InvalidRecord: If the values of a bulk update do not match the schema.
        """
        slug = request.collection_slug
        schema = self.registry.get(slug)
        if request.kind is BulkOperationKind.UPDATE:
            RecordValidator.ensure_valid(request.values, schema, partial=True)

        succeeded: set[str] = set()
        failed: dict[str, BulkFailure] = {}
        created: dict[str, str] = {}
        updated: dict[str, Record] = {}
        exported: dict[str, Record] = {}

        with self.intents.shared(slug), LoggingContext(bulk_kind=request.kind.value):
            semaphore = asyncio.Semaphore(self.concurrency)

            async def run(record_id: str) -> None:
                async with semaphore:
                    if cancel_token is not None and cancel_token.cancelled:
                        failed[record_id] = BulkFailure(
                            code=CANCELLED_CODE,
                            message=cancel_token.reason or "Operation cancelled",
                            retryable=True,
                        )
                        return
                    try:
                        if request.kind is BulkOperationKind.DELETE:
                            await self._delete(slug, record_id)
                        elif request.kind is BulkOperationKind.DUPLICATE:
                            created[record_id] = await self._duplicate(slug, schema, record_id)
                        elif request.kind is BulkOperationKind.UPDATE:
                            updated[record_id] = await self._update(
                                slug, schema, record_id, request.values
                            )
                        else:
                            exported[record_id] = await self._fetch(slug, record_id)
                    except CollectionDeskError as e:
                        failed[record_id] = BulkFailure(
                            code=e.code, message=e.message, retryable=e.retryable
                        )
                    except Exception as e:
                        logger.error(
                            "Unexpected error in bulk operation",
                            collection_slug=slug,
                            record_id=record_id,
                            error=str(e),
                            exc_info=True,
                        )
                        failed[record_id] = BulkFailure(code=UNEXPECTED_CODE, message=str(e))
                    else:
                        succeeded.add(record_id)

            await asyncio.gather(*(run(record_id) for record_id in sorted(request.ids)))

        payload = None
        if request.kind is BulkOperationKind.EXPORT:
            payload = RecordExporter(schema).export(exported.values(), request.export_format)

        result = BulkOperationResult(
            kind=request.kind,
            succeeded=frozenset(succeeded),
            failed=failed,
            created=created,
            updated=updated,
            exported=exported,
            payload=payload,
        )

        log = logger.warning if result.has_failures else logger.info
        log(
            "Bulk operation finished",
            collection_slug=slug,
            kind=request.kind.value,
            succeeded_count=len(result.succeeded),
            failed_count=len(result.failed),
        )
        return result

    async def _fetch(self, slug: str, record_id: str) -> Record:
        page = await self.gateway.find(
            slug, RecordFilter.for_id(record_id), Pagination(page=1, page_size=1)
        )
        if not page.items:
            raise NotFound(
                f"Record '{record_id}' not found in '{slug}'",
                {"slug": slug, "record_id": record_id},
            )
        return page.items[0]

    async def _delete(self, slug: str, record_id: str) -> None:
        try:
            await self.gateway.delete(slug, record_id)
        except NotFound:
            if record_id not in self._deleted[slug] and not self.delete_missing_is_success:
                raise
            logger.debug("Record already deleted", collection_slug=slug, record_id=record_id)
        self._remember_deleted(slug, record_id)

    async def _duplicate(self, slug: str, schema: CollectionSchema, record_id: str) -> str:
        """Copy one record, returning the new record's id."""
        source = await self._fetch(slug, record_id)
        values = RecordValidator.ensure_valid(source.values, schema)

        try:
            copy = await self.gateway.create(slug, values)
        except PartialWriteError as e:
            if e.record_id is not None:
                await self._compensate(slug, record_id, e.record_id)
            raise
        return copy.id

    async def _update(
        self, slug: str, schema: CollectionSchema, record_id: str, patch: dict[str, Any]
    ) -> Record:
        """Merge ``patch`` into one record and store it."""
        source = await self._fetch(slug, record_id)
        values = RecordValidator.ensure_valid({**source.values, **patch}, schema)
        return await self.gateway.update(slug, record_id, values)

    async def _compensate(self, slug: str, source_id: str, orphan_id: str) -> None:
        """Best-effort removal of a partially created duplicate."""
        try:
            await self.gateway.delete(slug, orphan_id)
        except NotFound:
            return
        except CollectionDeskError as e:
            logger.warning(
                "Compensating delete failed",
                collection_slug=slug,
                source_id=source_id,
                orphan_id=orphan_id,
                error=e.message,
            )
        else:
            logger.info(
                "Removed partially created duplicate",
                collection_slug=slug,
                source_id=source_id,
                orphan_id=orphan_id,
            )
