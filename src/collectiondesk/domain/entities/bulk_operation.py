"""Bulk operation request and result entities."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from collectiondesk.core.exceptions import InvalidRequest
from collectiondesk.domain.entities.record import Record


class BulkOperationKind(str, Enum):
    """Supported bulk actions."""

    DELETE = "delete"
    EXPORT = "export"
    DUPLICATE = "duplicate"
    UPDATE = "update"


class ExportFormat(str, Enum):
    """Serialization formats for bulk export."""

    JSON = "json"
    CSV = "csv"


@dataclass(frozen=True)
class BulkOperationRequest:
    """A single logical action over a set of record ids.

    Ids are deduplicated on construction; an empty id set is rejected.
    ``values`` is the partial update merged into every record and is only
    accepted (and then required) for the update kind.
    """

    collection_slug: str
    ids: frozenset[str]
    kind: BulkOperationKind
    export_format: ExportFormat = ExportFormat.JSON
    values: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        ids = frozenset(self.ids)
        if not ids:
            raise InvalidRequest("Bulk operation requires at least one record id")
        if any(not isinstance(i, str) or not i for i in ids):
            raise InvalidRequest("Record ids must be non-empty strings")
        object.__setattr__(self, "ids", ids)
        try:
            object.__setattr__(self, "kind", BulkOperationKind(self.kind))
            object.__setattr__(self, "export_format", ExportFormat(self.export_format))
        except ValueError as e:
            raise InvalidRequest(str(e)) from e

        if self.kind is BulkOperationKind.UPDATE:
            if not self.values:
                raise InvalidRequest("Bulk update requires at least one field value")
            object.__setattr__(self, "values", dict(self.values))
        elif self.values is not None:
            raise InvalidRequest(f"Bulk {self.kind.value} does not accept field values")


@dataclass(frozen=True)
class BulkFailure:
    """Why one id failed."""

    code: str
    message: str
    retryable: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "retryable": self.retryable}


@dataclass(frozen=True)
class BulkOperationResult:
    """Per-id accounting of a bulk operation.

    Every requested id appears exactly once, either in ``succeeded`` or as
    a key of ``failed``.

    Attributes:
        kind: The executed action.
        succeeded: Ids processed successfully.
        failed: Failure reason per id.
        created: Source id to new id (duplicate only).
        updated: Source id to the stored record (update only).
        exported: Source id to fetched record (export only).
        payload: Serialized export (export only).
    """

    kind: BulkOperationKind
    succeeded: frozenset[str] = frozenset()
    failed: dict[str, BulkFailure] = field(default_factory=dict)
    created: dict[str, str] = field(default_factory=dict)
    updated: dict[str, Record] = field(default_factory=dict)
    exported: dict[str, Record] = field(default_factory=dict)
    payload: str | None = None

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)

    def accounts_for(self, ids: Iterable[str]) -> bool:
        """Check that the result covers exactly ``ids`` with no overlap."""
        expected = frozenset(ids)
        failed = frozenset(self.failed)
        return not (self.succeeded & failed) and (self.succeeded | failed) == expected

    def retry_request(
        self,
        collection_slug: str,
        export_format: ExportFormat = ExportFormat.JSON,
        values: dict[str, Any] | None = None,
    ) -> BulkOperationRequest | None:
        """Build a request for the failed ids, or None when nothing failed.

        A bulk update retry needs the same ``values`` as the original request.
        """
        if not self.failed:
            return None
        return BulkOperationRequest(
            collection_slug=collection_slug,
            ids=frozenset(self.failed),
            kind=self.kind,
            export_format=export_format,
            values=values,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "succeeded": sorted(self.succeeded),
            "failed": {k: v.to_dict() for k, v in sorted(self.failed.items())},
            "created": dict(sorted(self.created.items())),
            "payload": self.payload,
        }
