"""Collection manager façade.

Presentation code talks to CollectionDesk only through this class. Every
operation is async and returns an OperationResult instead of raising
domain errors, so callers can render failure detail directly.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Generic, Iterable, Mapping, TypeVar

from collectiondesk.core.config import Settings, get_settings
from collectiondesk.core.exceptions import (
    CollectionDeskError,
    GatewayUnavailable,
    InvalidRequest,
    PartialFailure,
)
from collectiondesk.core.logging import get_logger
from collectiondesk.domain.entities.bulk_operation import (
    BulkOperationKind,
    BulkOperationRequest,
    BulkOperationResult,
    ExportFormat,
)
from collectiondesk.domain.entities.collection import CollectionSchema, FieldDefinition, FieldType
from collectiondesk.domain.entities.filter_state import DEFAULT_CATEGORY, FilterState
from collectiondesk.domain.entities.migration import ConflictPolicy, MigrationPlan, MigrationReport
from collectiondesk.domain.entities.record import (
    Pagination,
    Record,
    RecordFilter,
    RecordPage,
    SortOrder,
)
from collectiondesk.domain.services.bulk_operation_executor import BulkOperationExecutor
from collectiondesk.domain.services.cancellation import CancellationToken
from collectiondesk.domain.services.intent_lock import IntentLock
from collectiondesk.domain.services.migration_planner import MigrationPlanner
from collectiondesk.domain.services.record_validator import RecordValidator
from collectiondesk.domain.services.schema_registry import SchemaRegistry
from collectiondesk.domain.services.value_coercer import coerce
from collectiondesk.infrastructure.gateways.base import CollectionDataGateway

logger = get_logger(__name__)

T = TypeVar("T")

SEARCHABLE_TYPES = frozenset({FieldType.TEXT, FieldType.EMAIL, FieldType.URL})


@dataclass
class ErrorInfo:
    """Renderable description of a failed operation."""

    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    retryable: bool = False

    @classmethod
    def from_exception(cls, error: CollectionDeskError) -> "ErrorInfo":
        return cls(
            code=error.code,
            message=error.message,
            details=dict(error.details),
            retryable=error.retryable,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
        }


@dataclass
class OperationResult(Generic[T]):
    """Result-or-error shape returned by every façade operation.

    A partially failed bulk operation carries both ``value`` and ``error``.
    """

    ok: bool
    value: T | None = None
    error: ErrorInfo | None = None

    @classmethod
    def success(cls, value: T) -> "OperationResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: ErrorInfo, value: T | None = None) -> "OperationResult[T]":
        return cls(ok=False, value=value, error=error)


def _to_fields(fields: Iterable[FieldDefinition | Mapping[str, Any]]) -> tuple[FieldDefinition, ...]:
    return tuple(f if isinstance(f, FieldDefinition) else FieldDefinition.from_dict(dict(f)) for f in fields)


class CollectionManager:
    """Async façade over the registry, planner, executor and gateway."""

    def __init__(
        self,
        gateway: CollectionDataGateway,
        settings: Settings | None = None,
        registry: SchemaRegistry | None = None,
        intents: IntentLock | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            gateway: Storage backend.
            settings: Application settings; defaults to the cached settings.
            registry: Schema registry; a fresh one is created when omitted.
            intents: Per-slug intent lock shared by migrations, record writes
                and bulk operations.
        """
        self.gateway = gateway
        self.settings = settings or get_settings()
        self.registry = registry or SchemaRegistry()
        self.intents = intents or IntentLock()
        self.planner = MigrationPlanner(
            self.registry,
            gateway,
            self.intents,
            page_size=self.settings.migration_page_size,
        )
        self.executor = BulkOperationExecutor(
            gateway,
            self.registry,
            self.intents,
            concurrency=self.settings.bulk_concurrency,
            delete_missing_is_success=self.settings.bulk_delete_missing_is_success,
            tombstone_limit=self.settings.bulk_tombstone_limit,
        )

    async def _run(self, operation: str, call: Awaitable[T]) -> OperationResult[T]:
        try:
            value = await call
        except CollectionDeskError as e:
            log = logger.error if isinstance(e, GatewayUnavailable) else logger.warning
            log(
                "Operation failed",
                operation=operation,
                error_code=e.code,
                error=e.message,
            )
            return OperationResult.failure(ErrorInfo.from_exception(e))
        return OperationResult.success(value)

    async def load_collections(self) -> int:
        """Register every collection persisted by the backend.

        Returns:
            Number of schemas adopted.
        """
        adopted = 0
        for schema in await self.gateway.list_collections():
            if schema.slug not in self.registry:
                self.registry.adopt(schema)
                adopted += 1
        logger.info("Collections loaded", count=adopted)
        return adopted

    async def _schema(self, slug: str) -> CollectionSchema:
        if slug in self.registry:
            return self.registry.get(slug)
        return self.registry.adopt(await self.gateway.get_collection_config(slug))

    def _pagination(self, pagination: Pagination | None) -> Pagination:
        if pagination is None:
            return Pagination(page=1, page_size=self.settings.default_page_size)
        if pagination.page_size > self.settings.max_page_size:
            return Pagination(page=pagination.page, page_size=self.settings.max_page_size)
        return pagination

    # =========================================================================
    # Collections
    # =========================================================================

    async def create_collection(
        self, slug: str, fields: Iterable[FieldDefinition | Mapping[str, Any]]
    ) -> OperationResult[CollectionSchema]:
        async def call() -> CollectionSchema:
            registered = self.registry.create(CollectionSchema(slug=slug, fields=_to_fields(fields)))
            try:
                await self.gateway.create_collection(registered)
            except CollectionDeskError:
                self.registry.drop(slug)
                raise
            logger.info("Collection created", collection_slug=slug)
            return registered

        return await self._run("create_collection", call())

    async def get_collection_config(self, slug: str) -> OperationResult[CollectionSchema]:
        return await self._run("get_collection_config", self._schema(slug))

    async def list_collections(self) -> OperationResult[list[CollectionSchema]]:
        async def call() -> list[CollectionSchema]:
            return [self.registry.get(slug) for slug in self.registry.slugs()]

        return await self._run("list_collections", call())

    async def delete_collection(self, slug: str, confirm: bool = False) -> OperationResult[None]:
        """Delete a collection and all of its records. Requires ``confirm=True``."""

        async def call() -> None:
            if not confirm:
                raise InvalidRequest(
                    f"Deleting '{slug}' discards all of its records; confirmation is required",
                    {"slug": slug},
                )
            await self._schema(slug)
            with self.intents.exclusive(slug):
                await self.gateway.delete_collection(slug)
                self.registry.drop(slug)
                self.executor.forget_collection(slug)
            logger.warning("Collection deleted", collection_slug=slug)

        return await self._run("delete_collection", call())

    # =========================================================================
    # Migrations
    # =========================================================================

    async def plan_migration(
        self,
        slug: str,
        desired_fields: Iterable[FieldDefinition | Mapping[str, Any]],
        renames: Mapping[str, str] | None = None,
        conflict_policy: ConflictPolicy | str = ConflictPolicy.FAIL,
    ) -> OperationResult[MigrationPlan]:
        async def call() -> MigrationPlan:
            current = await self._schema(slug)
            return MigrationPlanner.plan(current, _to_fields(desired_fields), renames, conflict_policy)

        return await self._run("plan_migration", call())

    async def migrate_schema(
        self, plan: MigrationPlan, cancel_token: CancellationToken | None = None
    ) -> OperationResult[MigrationReport]:
        async def call() -> MigrationReport:
            await self._schema(plan.slug)
            return await self.planner.migrate(plan, cancel_token)

        return await self._run("migrate_schema", call())

    async def update_collection_config(
        self,
        slug: str,
        desired_fields: Iterable[FieldDefinition | Mapping[str, Any]],
        renames: Mapping[str, str] | None = None,
        conflict_policy: ConflictPolicy | str = ConflictPolicy.FAIL,
        cancel_token: CancellationToken | None = None,
    ) -> OperationResult[MigrationReport]:
        """Plan and run a migration to ``desired_fields`` in one call."""

        async def call() -> MigrationReport:
            current = await self._schema(slug)
            plan = MigrationPlanner.plan(current, _to_fields(desired_fields), renames, conflict_policy)
            return await self.planner.migrate(plan, cancel_token)

        return await self._run("update_collection_config", call())

    # =========================================================================
    # Records
    # =========================================================================

    async def find(
        self,
        slug: str,
        record_filter: RecordFilter | None = None,
        pagination: Pagination | None = None,
    ) -> OperationResult[RecordPage]:
        async def call() -> RecordPage:
            await self._schema(slug)
            return await self.gateway.find(slug, record_filter, self._pagination(pagination))

        return await self._run("find", call())

    async def find_for_view(self, slug: str, state: FilterState) -> OperationResult[RecordPage]:
        """Fetch the page a collection view displays for ``state``."""

        async def call() -> RecordPage:
            schema = await self._schema(slug)
            record_filter = self.build_filter(schema, state)
            pagination = Pagination(page=state.page, page_size=self.settings.default_page_size)
            return await self.gateway.find(slug, record_filter, pagination)

        return await self._run("find_for_view", call())

    @staticmethod
    def build_filter(schema: CollectionSchema, state: FilterState) -> RecordFilter:
        """Translate a view's FilterState into a gateway RecordFilter.

        ``query`` searches every text-like field, or only the ``category``
        field when one is selected. ``filter`` is a comma-separated list of
        ``field=value`` conditions; values are converted to the field's type
        when possible. ``sort`` orders by one field, ``-field`` descending.

        Raises:
            InvalidRequest: If the category, a filter condition or the sort
                names an unknown field, a condition has no ``=``, or the sort
                field holds JSON.
        """
        if state.category != DEFAULT_CATEGORY:
            if schema.get_field(state.category) is None:
                raise InvalidRequest(
                    f"Unknown search category '{state.category}'", {"category": state.category}
                )
            search_fields: tuple[str, ...] = (state.category,)
        else:
            search_fields = tuple(f.name for f in schema.fields if f.type in SEARCHABLE_TYPES)

        equals: dict[str, Any] = {}
        for condition in state.filter.split(","):
            condition = condition.strip()
            if not condition:
                continue
            name, sep, raw = condition.partition("=")
            name = name.strip()
            if not sep:
                raise InvalidRequest(
                    f"Filter condition '{condition}' must have the form field=value",
                    {"filter": state.filter},
                )
            definition = schema.get_field(name)
            if definition is None:
                raise InvalidRequest(f"Unknown filter field '{name}'", {"filter": state.filter})
            raw = raw.strip()
            try:
                equals[name] = coerce(raw, definition.type)
            except ValueError:
                equals[name] = raw

        sort = SortOrder.parse(state.sort)
        if sort is not None:
            definition = schema.get_field(sort.field)
            if definition is None:
                raise InvalidRequest(f"Unknown sort field '{sort.field}'", {"sort": state.sort})
            if definition.type is FieldType.JSON:
                raise InvalidRequest(
                    f"Cannot sort by JSON field '{sort.field}'", {"sort": state.sort}
                )

        return RecordFilter(
            search=state.query, search_fields=search_fields, equals=equals, sort=sort
        )

    async def create_record(self, slug: str, values: dict[str, Any]) -> OperationResult[Record]:
        async def call() -> Record:
            with self.intents.shared(slug):
                schema = await self._schema(slug)
                return await self.gateway.create(slug, RecordValidator.ensure_valid(values, schema))

        return await self._run("create_record", call())

    async def update_record(
        self, slug: str, record_id: str, values: dict[str, Any]
    ) -> OperationResult[Record]:
        """Replace a record's values after validating them against the current schema."""

        async def call() -> Record:
            with self.intents.shared(slug):
                schema = await self._schema(slug)
                return await self.gateway.update(
                    slug, record_id, RecordValidator.ensure_valid(values, schema)
                )

        return await self._run("update_record", call())

    async def delete_record(self, slug: str, record_id: str) -> OperationResult[None]:
        async def call() -> None:
            with self.intents.shared(slug):
                await self._schema(slug)
                await self.gateway.delete(slug, record_id)

        return await self._run("delete_record", call())

    async def count(
        self, slug: str, record_filter: RecordFilter | None = None
    ) -> OperationResult[int]:
        async def call() -> int:
            await self._schema(slug)
            return await self.gateway.count(slug, record_filter)

        return await self._run("count", call())

    # =========================================================================
    # Bulk operations
    # =========================================================================

    async def execute_bulk_operation(
        self,
        slug: str,
        ids: Iterable[str],
        kind: BulkOperationKind | str,
        export_format: ExportFormat | str = ExportFormat.JSON,
        cancel_token: CancellationToken | None = None,
        values: dict[str, Any] | None = None,
    ) -> OperationResult[BulkOperationResult]:
        """Run delete, duplicate, update or export over ``ids``.

        ``values`` is the partial update merged into every record of a bulk
        update.

        When some ids fail the result carries both the BulkOperationResult
        and a PartialFailure error.
        """

        async def call() -> BulkOperationResult:
            request = BulkOperationRequest(
                collection_slug=slug,
                ids=frozenset(ids),
                kind=kind,
                export_format=export_format,
                values=values,
            )
            await self._schema(slug)
            return await self.executor.execute(request, cancel_token)

        result = await self._run("execute_bulk_operation", call())
        if result.ok and result.value is not None and result.value.has_failures:
            return OperationResult.failure(
                ErrorInfo.from_exception(PartialFailure(result.value)), value=result.value
            )
        return result
