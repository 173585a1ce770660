"""Unit tests for bulk operation request and result entities."""

import pytest

from collectiondesk.core.exceptions import InvalidRequest
from collectiondesk.domain.entities.bulk_operation import (
    BulkFailure,
    BulkOperationKind,
    BulkOperationRequest,
    BulkOperationResult,
    ExportFormat,
)


class TestBulkOperationRequest:
    def test_ids_are_deduplicated(self):
        request = BulkOperationRequest("orders", ["a", "b", "a"], "delete")

        assert request.ids == frozenset({"a", "b"})
        assert request.kind is BulkOperationKind.DELETE
        assert request.export_format is ExportFormat.JSON

    def test_empty_id_set_is_rejected(self):
        with pytest.raises(InvalidRequest):
            BulkOperationRequest("orders", [], BulkOperationKind.DELETE)

    def test_blank_id_is_rejected(self):
        with pytest.raises(InvalidRequest):
            BulkOperationRequest("orders", ["a", ""], BulkOperationKind.DELETE)

    def test_unknown_kind_is_rejected(self):
        with pytest.raises(InvalidRequest):
            BulkOperationRequest("orders", ["a"], "archive")

    def test_unknown_export_format_is_rejected(self):
        with pytest.raises(InvalidRequest):
            BulkOperationRequest("orders", ["a"], "export", export_format="xml")


class TestBulkOperationResult:
    def test_accounts_for_exact_id_set(self):
        result = BulkOperationResult(
            kind=BulkOperationKind.DELETE,
            succeeded=frozenset({"a", "c"}),
            failed={"b": BulkFailure("NotFound", "missing")},
        )

        assert result.accounts_for({"a", "b", "c"})
        assert not result.accounts_for({"a", "b"})
        assert result.has_failures

    def test_overlap_is_not_an_accounting(self):
        result = BulkOperationResult(
            kind=BulkOperationKind.DELETE,
            succeeded=frozenset({"a"}),
            failed={"a": BulkFailure("NotFound", "missing")},
        )

        assert not result.accounts_for({"a"})

    def test_retry_request_covers_failed_ids(self):
        result = BulkOperationResult(
            kind=BulkOperationKind.DUPLICATE,
            succeeded=frozenset({"a"}),
            failed={
                "b": BulkFailure("GatewayUnavailable", "down", retryable=True),
                "c": BulkFailure("NotFound", "missing"),
            },
        )

        retry = result.retry_request("orders")

        assert retry.ids == frozenset({"b", "c"})
        assert retry.kind is BulkOperationKind.DUPLICATE

    def test_retry_request_is_none_without_failures(self):
        result = BulkOperationResult(kind=BulkOperationKind.EXPORT, succeeded=frozenset({"a"}))

        assert result.retry_request("orders") is None

    def test_to_dict_is_sorted(self):
        result = BulkOperationResult(
            kind=BulkOperationKind.DELETE,
            succeeded=frozenset({"c", "a"}),
            failed={"b": BulkFailure("NotFound", "missing")},
        )

        data = result.to_dict()

        assert data["kind"] == "delete"
        assert data["succeeded"] == ["a", "c"]
        assert data["failed"]["b"] == {"code": "NotFound", "message": "missing", "retryable": False}
