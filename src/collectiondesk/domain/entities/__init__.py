"""Domain entities for CollectionDesk.

Entities are pure Python dataclasses that represent core business concepts.
They have no dependencies on infrastructure or external frameworks.
"""

from collectiondesk.domain.entities.bulk_operation import (
    BulkFailure,
    BulkOperationKind,
    BulkOperationRequest,
    BulkOperationResult,
    ExportFormat,
)
from collectiondesk.domain.entities.collection import CollectionSchema, FieldDefinition, FieldType
from collectiondesk.domain.entities.filter_state import FilterState
from collectiondesk.domain.entities.migration import (
    AddField,
    ConflictPolicy,
    DropField,
    MigrationPlan,
    MigrationReport,
    MigrationStep,
    RenameField,
    RetypeField,
)
from collectiondesk.domain.entities.record import (
    Pagination,
    Record,
    RecordFilter,
    RecordPage,
    SortOrder,
)

__all__ = [
    "AddField",
    "BulkFailure",
    "BulkOperationKind",
    "BulkOperationRequest",
    "BulkOperationResult",
    "CollectionSchema",
    "ConflictPolicy",
    "DropField",
    "ExportFormat",
    "FieldDefinition",
    "FieldType",
    "FilterState",
    "MigrationPlan",
    "MigrationReport",
    "MigrationStep",
    "Pagination",
    "Record",
    "RecordFilter",
    "RecordPage",
    "RenameField",
    "RetypeField",
    "SortOrder",
]
