"""Pydantic schemas for record and bulk operation endpoints."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from collectiondesk.domain.entities.bulk_operation import BulkOperationResult
from collectiondesk.domain.entities.record import Record, RecordPage


class RecordValuesRequest(BaseModel):
    """Record values keyed by field name."""

    values: dict[str, Any] = Field(default_factory=dict)


class RecordResponse(BaseModel):
    """A single record."""

    id: str
    collection_slug: str
    values: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, record: Record) -> "RecordResponse":
        return cls(
            id=record.id,
            collection_slug=record.collection_slug,
            values=record.values,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class RecordListResponse(BaseModel):
    """One page of records plus the filter state that produced it."""

    items: list[RecordResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    query_string: str = Field(
        default="",
        description="Canonical query string of the applied filter state",
    )

    @classmethod
    def from_page(cls, page: RecordPage, query_string: str = "") -> "RecordListResponse":
        return cls(
            items=[RecordResponse.from_entity(r) for r in page.items],
            total=page.total,
            page=page.page,
            page_size=page.page_size,
            total_pages=page.total_pages,
            query_string=query_string,
        )


class CountResponse(BaseModel):
    """Number of records in a collection."""

    count: int


class BulkOperationRequestSchema(BaseModel):
    """Request body for a bulk operation."""

    ids: list[str] = Field(..., min_length=1, description="Record ids (duplicates are ignored)")
    kind: Literal["delete", "export", "duplicate", "update"]
    export_format: Literal["json", "csv"] = "json"
    values: dict[str, Any] | None = Field(
        default=None,
        description="Field values merged into every record (update only)",
    )


class BulkFailureSchema(BaseModel):
    """Why one id failed."""

    code: str
    message: str
    retryable: bool = False


class BulkOperationResponse(BaseModel):
    """Per-id outcome of a bulk operation."""

    kind: str
    succeeded: list[str]
    failed: dict[str, BulkFailureSchema]
    created: dict[str, str] = Field(default_factory=dict)
    payload: str | None = None
    succeeded_count: int
    failed_count: int

    @classmethod
    def from_result(cls, result: BulkOperationResult) -> "BulkOperationResponse":
        data = result.to_dict()
        return cls(
            **data,
            succeeded_count=len(result.succeeded),
            failed_count=len(result.failed),
        )
