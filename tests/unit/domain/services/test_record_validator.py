from datetime import date, datetime, timezone

import pytest

from collectiondesk.core.exceptions import InvalidRecord
from collectiondesk.domain.entities.collection import CollectionSchema, FieldDefinition, FieldType
from collectiondesk.domain.services.record_validator import RecordValidator


@pytest.fixture
def schema():
    return CollectionSchema(
        slug="contacts",
        fields=(
            FieldDefinition(name="name", type=FieldType.TEXT, required=True),
            FieldDefinition(name="email", type=FieldType.EMAIL),
            FieldDefinition(name="score", type=FieldType.NUMBER, default_value=0),
            FieldDefinition(name="active", type=FieldType.BOOLEAN, required=True, default_value=True),
        ),
    )


class TestRecordValidator:

    # --- Type Validation ---

    def test_validate_text(self):
        assert RecordValidator.validate_text("hello", "f") is None
        assert RecordValidator.validate_text(123, "f").code == "invalid_type"

    def test_validate_number(self):
        assert RecordValidator.validate_number(123, "f") is None
        assert RecordValidator.validate_number(12.34, "f") is None
        assert RecordValidator.validate_number("123", "f").code == "invalid_type"
        assert RecordValidator.validate_number(True, "f").code == "invalid_type"
        assert RecordValidator.validate_number(float("nan"), "f").code == "invalid_number"

    def test_validate_boolean(self):
        assert RecordValidator.validate_boolean(False, "f") is None
        assert RecordValidator.validate_boolean("true", "f").code == "invalid_type"

    def test_validate_datetime(self):
        assert RecordValidator.validate_datetime(datetime.now(timezone.utc), "f") is None
        assert RecordValidator.validate_datetime("2024-01-01T12:00:00Z", "f") is None
        assert RecordValidator.validate_datetime("not-a-date", "f").code == "invalid_datetime_format"
        assert RecordValidator.validate_datetime(123, "f").code == "invalid_type"

    def test_validate_date(self):
        assert RecordValidator.validate_date("2024-01-01", "f") is None
        assert RecordValidator.validate_date(date(2024, 1, 1), "f") is None
        assert RecordValidator.validate_date("not-a-date", "f").code == "invalid_date_format"
        assert RecordValidator.validate_date(123, "f").code == "invalid_type"

    def test_validate_email(self):
        assert RecordValidator.validate_email("test@example.com", "f") is None
        assert RecordValidator.validate_email("invalid-email", "f").code == "invalid_email_format"

    def test_validate_url(self):
        assert RecordValidator.validate_url("https://example.com", "f") is None
        assert RecordValidator.validate_url("not-url", "f").code == "invalid_url_format"

    def test_validate_json(self):
        assert RecordValidator.validate_json({"a": [1, 2]}, "f") is None
        assert RecordValidator.validate_json({1, 2}, "f").code == "invalid_json"

    def test_validate_relation(self):
        assert RecordValidator.validate_relation("rec-1", "f") is None
        assert RecordValidator.validate_relation("  ", "f").code == "empty_relation"
        assert RecordValidator.validate_relation(5, "f").code == "invalid_type"

    def test_validate_field_value_unknown_type(self):
        assert RecordValidator.validate_field_value("x", "blob", "f").code == "unknown_type"

    # --- Schema Validation ---

    def test_defaults_are_applied(self, schema):
        processed, errors = RecordValidator.validate_and_apply_defaults({"name": "Ada"}, schema)

        assert errors == []
        assert processed == {"name": "Ada", "score": 0, "active": True}

    def test_required_missing(self, schema):
        _, errors = RecordValidator.validate_and_apply_defaults({"email": "a@b.io"}, schema)

        assert [(e.field, e.code) for e in errors] == [("name", "required_missing")]

    def test_required_null(self, schema):
        _, errors = RecordValidator.validate_and_apply_defaults({"name": None}, schema)

        assert [e.code for e in errors] == ["required_null"]

    def test_optional_null_is_kept(self, schema):
        processed, errors = RecordValidator.validate_and_apply_defaults(
            {"name": "Ada", "email": None}, schema
        )

        assert errors == []
        assert processed["email"] is None

    def test_unknown_field(self, schema):
        _, errors = RecordValidator.validate_and_apply_defaults({"name": "Ada", "age": 3}, schema)

        assert [e.code for e in errors] == ["unknown_field"]

    def test_partial_tolerates_missing_fields(self, schema):
        processed, errors = RecordValidator.validate_and_apply_defaults(
            {"score": 3}, schema, partial=True
        )

        assert errors == []
        assert processed == {"score": 3}

    def test_ensure_valid_raises_invalid_record(self, schema):
        with pytest.raises(InvalidRecord) as exc_info:
            RecordValidator.ensure_valid({"name": 1, "email": "nope"}, schema)

        assert {e.field for e in exc_info.value.errors} == {"name", "email"}
        assert exc_info.value.details["errors"][0]["code"] == "invalid_type"
