"""Domain services for CollectionDesk.

Services hold the schema, migration, bulk and filter logic that does not
belong to a single entity. The backend is reached only through the
CollectionDataGateway interface.
"""

from collectiondesk.domain.services.bulk_operation_executor import BulkOperationExecutor
from collectiondesk.domain.services.cancellation import CancellationToken
from collectiondesk.domain.services.collection_validator import (
    CollectionValidationError,
    CollectionValidator,
)
from collectiondesk.domain.services.intent_lock import IntentLock
from collectiondesk.domain.services.migration_planner import MigrationPlanner
from collectiondesk.domain.services.query_filter_state import (
    DictParamStore,
    ParamStore,
    QueryFilterState,
)
from collectiondesk.domain.services.record_exporter import RecordExporter
from collectiondesk.domain.services.record_validator import (
    RecordValidationError,
    RecordValidator,
)
from collectiondesk.domain.services.schema_registry import SchemaRegistry
from collectiondesk.domain.services.value_coercer import coerce

__all__ = [
    "BulkOperationExecutor",
    "CancellationToken",
    "CollectionValidationError",
    "CollectionValidator",
    "DictParamStore",
    "IntentLock",
    "MigrationPlanner",
    "ParamStore",
    "QueryFilterState",
    "RecordExporter",
    "RecordValidationError",
    "RecordValidator",
    "SchemaRegistry",
    "coerce",
]
