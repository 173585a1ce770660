"""Pydantic schemas for API request/response validation."""

from collectiondesk.infrastructure.api.schemas.collection_schemas import (
    CollectionListResponse,
    CollectionResponse,
    CreateCollectionRequest,
    FieldDefinitionSchema,
    MigrationPlanResponse,
    MigrationReportResponse,
    MigrationRequest,
    MigrationStepResponse,
)
from collectiondesk.infrastructure.api.schemas.record_schemas import (
    BulkFailureSchema,
    BulkOperationRequestSchema,
    BulkOperationResponse,
    CountResponse,
    RecordListResponse,
    RecordResponse,
    RecordValuesRequest,
)

__all__ = [
    "BulkFailureSchema",
    "BulkOperationRequestSchema",
    "BulkOperationResponse",
    "CollectionListResponse",
    "CollectionResponse",
    "CountResponse",
    "CreateCollectionRequest",
    "FieldDefinitionSchema",
    "MigrationPlanResponse",
    "MigrationReportResponse",
    "MigrationRequest",
    "MigrationStepResponse",
    "RecordListResponse",
    "RecordResponse",
    "RecordValuesRequest",
]
