"""Error taxonomy for CollectionDesk.

Every domain error carries a stable ``code`` so the façade and the HTTP
layer can render it without inspecting exception types, and a ``retryable``
flag that separates transport failures from domain failures.
"""

from typing import Any


class CollectionDeskError(Exception):
    """Base class for all CollectionDesk errors."""

    code = "Error"
    retryable = False

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFound(CollectionDeskError):
    """Raised when a collection slug or record id is unknown."""

    code = "NotFound"


class Conflict(CollectionDeskError):
    """Raised for duplicate slugs or concurrent operations on one collection."""

    code = "Conflict"


class VersionMismatch(Conflict):
    """Raised when a schema replacement does not follow the current version."""

    code = "VersionMismatch"

    def __init__(
        self,
        slug: str,
        expected_version: int | None,
        actual_version: int | None,
        message: str | None = None,
    ) -> None:
        self.slug = slug
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            message
            or f"Schema version mismatch for '{slug}': expected {expected_version}, got {actual_version}",
            {
                "slug": slug,
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )


class InvalidSchema(CollectionDeskError):
    """Raised when a field definition set violates schema rules."""

    code = "InvalidSchema"

    def __init__(self, message: str, errors: list[Any] | None = None) -> None:
        self.errors = errors or []
        super().__init__(
            message,
            {"errors": [{"field": e.field, "message": e.message, "code": e.code} for e in self.errors]},
        )


class InvalidRecord(CollectionDeskError):
    """Raised when record values do not match the collection schema."""

    code = "InvalidRecord"

    def __init__(self, message: str, errors: list[Any] | None = None) -> None:
        self.errors = errors or []
        super().__init__(
            message,
            {"errors": [{"field": e.field, "message": e.message, "code": e.code} for e in self.errors]},
        )


class InvalidRequest(CollectionDeskError):
    """Raised when a request is malformed (empty id set, missing confirmation)."""

    code = "InvalidRequest"


class CoercionFailure(CollectionDeskError):
    """Raised when a value cannot be transformed to its target field type."""

    code = "CoercionFailure"

    def __init__(self, record_id: str, step: str, field: str, reason: str) -> None:
        self.record_id = record_id
        self.step = step
        self.field = field
        self.reason = reason
        super().__init__(
            f"Record '{record_id}': {step} on '{field}' failed: {reason}",
            {"record_id": record_id, "step": step, "field": field, "reason": reason},
        )


class MigrationAborted(CollectionDeskError):
    """Raised when a migration pass fails; the schema version is unchanged."""

    code = "MigrationAborted"

    def __init__(
        self,
        slug: str,
        reason: str,
        failure: CoercionFailure | None = None,
        processed: int = 0,
        last_record_id: str | None = None,
    ) -> None:
        self.slug = slug
        self.reason = reason
        self.failure = failure
        self.processed = processed
        self.last_record_id = last_record_id
        details: dict[str, Any] = {
            "slug": slug,
            "reason": reason,
            "processed": processed,
            "last_record_id": last_record_id,
        }
        if failure is not None:
            details["failure"] = failure.details
        super().__init__(f"Migration of '{slug}' aborted: {reason}", details)


class MigrationCancelled(MigrationAborted):
    """Raised when a migration pass is cancelled before committing."""

    code = "MigrationCancelled"


class PartialFailure(CollectionDeskError):
    """Reported when a bulk operation finished with some failed ids."""

    code = "PartialFailure"

    def __init__(self, result: Any) -> None:
        self.result = result
        super().__init__(
            f"{len(result.failed)} of {len(result.succeeded) + len(result.failed)} records failed",
            {
                "succeeded": sorted(result.succeeded),
                "failed": {
                    record_id: {"code": failure.code, "message": failure.message}
                    for record_id, failure in sorted(result.failed.items())
                },
            },
        )


class GatewayUnavailable(CollectionDeskError):
    """Raised for transport or backend failures; callers may retry."""

    code = "GatewayUnavailable"
    retryable = True


class PartialWriteError(GatewayUnavailable):
    """Raised when the backend left a partially created record behind."""

    code = "PartialWrite"

    def __init__(self, message: str, record_id: str | None = None) -> None:
        self.record_id = record_id
        super().__init__(message, {"record_id": record_id})
