"""Record validation service for validating record values against collection schemas.

Every write boundary (create, update, duplicate, migration rewrite) runs
record values through this validator, keyed on the field's FieldType.
"""

import json
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from collectiondesk.core.exceptions import InvalidRecord
from collectiondesk.domain.entities.collection import CollectionSchema, FieldType

# Email validation pattern (simplified but effective)
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

# URL validation pattern (simplified)
URL_PATTERN = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)


@dataclass
class RecordValidationError:
    """A single record validation error."""

    field: str
    message: str
    code: str


class RecordValidator:
    """Validator for record values against collection schemas.

    Validates field types, required fields, and applies default values.
    """

    @classmethod
    def validate_text(cls, value: Any, field_name: str) -> RecordValidationError | None:
        """Validate a text field value."""
        if not isinstance(value, str):
            return RecordValidationError(
                field=field_name,
                message=f"Expected text value, got {type(value).__name__}",
                code="invalid_type",
            )
        return None

    @classmethod
    def validate_number(cls, value: Any, field_name: str) -> RecordValidationError | None:
        """Validate a number field value."""
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            return RecordValidationError(
                field=field_name,
                message=f"Expected number value, got {type(value).__name__}",
                code="invalid_type",
            )
        if isinstance(value, float) and not math.isfinite(value):
            return RecordValidationError(
                field=field_name,
                message="Number must be finite",
                code="invalid_number",
            )
        return None

    @classmethod
    def validate_boolean(cls, value: Any, field_name: str) -> RecordValidationError | None:
        """Validate a boolean field value."""
        if not isinstance(value, bool):
            return RecordValidationError(
                field=field_name,
                message=f"Expected boolean value, got {type(value).__name__}",
                code="invalid_type",
            )
        return None

    @classmethod
    def validate_date(cls, value: Any, field_name: str) -> RecordValidationError | None:
        """Validate a date field value (ISO 8601 ``YYYY-MM-DD`` or a date object)."""
        if isinstance(value, date) and not isinstance(value, datetime):
            return None

        if isinstance(value, str):
            try:
                date.fromisoformat(value)
                return None
            except ValueError:
                return RecordValidationError(
                    field=field_name,
                    message="Invalid date format. Use ISO 8601 format (e.g., 2024-01-01)",
                    code="invalid_date_format",
                )

        return RecordValidationError(
            field=field_name,
            message=f"Expected date string, got {type(value).__name__}",
            code="invalid_type",
        )

    @classmethod
    def validate_datetime(cls, value: Any, field_name: str) -> RecordValidationError | None:
        """Validate a datetime field value.

        Accepts ISO 8601 formatted strings or datetime objects.
        """
        if isinstance(value, datetime):
            return None

        if isinstance(value, str):
            try:
                datetime.fromisoformat(value.replace("Z", "+00:00"))
                return None
            except ValueError:
                return RecordValidationError(
                    field=field_name,
                    message="Invalid datetime format. Use ISO 8601 format (e.g., 2024-01-01T12:00:00Z)",
                    code="invalid_datetime_format",
                )

        return RecordValidationError(
            field=field_name,
            message=f"Expected datetime string, got {type(value).__name__}",
            code="invalid_type",
        )

    @classmethod
    def validate_email(cls, value: Any, field_name: str) -> RecordValidationError | None:
        """Validate an email field value."""
        if not isinstance(value, str):
            return RecordValidationError(
                field=field_name,
                message=f"Expected email string, got {type(value).__name__}",
                code="invalid_type",
            )

        if not EMAIL_PATTERN.match(value):
            return RecordValidationError(
                field=field_name,
                message="Invalid email format",
                code="invalid_email_format",
            )

        return None

    @classmethod
    def validate_url(cls, value: Any, field_name: str) -> RecordValidationError | None:
        """Validate a URL field value."""
        if not isinstance(value, str):
            return RecordValidationError(
                field=field_name,
                message=f"Expected URL string, got {type(value).__name__}",
                code="invalid_type",
            )

        if not URL_PATTERN.match(value):
            return RecordValidationError(
                field=field_name,
                message="Invalid URL format. Must start with http:// or https://",
                code="invalid_url_format",
            )

        return None

    @classmethod
    def validate_json(cls, value: Any, field_name: str) -> RecordValidationError | None:
        """Validate a JSON field value.

        Accepts any value that can be serialized to JSON (dict, list, etc.).
        """
        try:
            json.dumps(value, allow_nan=False)
            return None
        except (TypeError, ValueError):
            return RecordValidationError(
                field=field_name,
                message="Value must be JSON-serializable (dict, list, string, number, boolean, or null)",
                code="invalid_json",
            )

    @classmethod
    def validate_relation(cls, value: Any, field_name: str) -> RecordValidationError | None:
        """Validate a relation field value.

        Relation values are record ids of the target collection. Existence of
        the target record is not checked here.
        """
        if not isinstance(value, str):
            return RecordValidationError(
                field=field_name,
                message=f"Expected relation id (string), got {type(value).__name__}",
                code="invalid_type",
            )

        if not value.strip():
            return RecordValidationError(
                field=field_name,
                message="Relation id cannot be empty",
                code="empty_relation",
            )

        return None

    @classmethod
    def validate_field_value(
        cls, value: Any, field_type: FieldType | str, field_name: str
    ) -> RecordValidationError | None:
        """Validate a single field value against its type.

        Args:
            value: The value to validate.
            field_type: The expected field type from schema.
            field_name: The field name for error messages.

        Returns:
            RecordValidationError if invalid, None if valid.
        """
        validators = {
            FieldType.TEXT: cls.validate_text,
            FieldType.NUMBER: cls.validate_number,
            FieldType.BOOLEAN: cls.validate_boolean,
            FieldType.DATE: cls.validate_date,
            FieldType.DATETIME: cls.validate_datetime,
            FieldType.EMAIL: cls.validate_email,
            FieldType.URL: cls.validate_url,
            FieldType.JSON: cls.validate_json,
            FieldType.RELATION: cls.validate_relation,
        }

        try:
            validator = validators.get(FieldType(field_type))
        except ValueError:
            validator = None
        if validator:
            return validator(value, field_name)

        return RecordValidationError(
            field=field_name,
            message=f"Unknown field type: {field_type}",
            code="unknown_type",
        )

    @classmethod
    def validate_and_apply_defaults(
        cls,
        values: dict[str, Any],
        schema: CollectionSchema,
        partial: bool = False,
    ) -> tuple[dict[str, Any], list[RecordValidationError]]:
        """Validate record values against a schema and apply default values.

        Args:
            values: The record values to validate.
            schema: The collection schema.
            partial: If True, only validate fields present in values; no
                defaults are applied and missing required fields are tolerated
                (sparse records left behind by a drop_invalid migration).

        Returns:
            Tuple of (processed_values, errors).
        """
        errors: list[RecordValidationError] = []
        processed: dict[str, Any] = {}

        for field_name in values:
            if schema.get_field(field_name) is None:
                errors.append(
                    RecordValidationError(
                        field=field_name,
                        message=f"Unknown field '{field_name}' not defined in collection schema",
                        code="unknown_field",
                    )
                )

        for field in schema.fields:
            if field.name in values:
                value = values[field.name]
                if value is None:
                    if field.required:
                        errors.append(
                            RecordValidationError(
                                field=field.name,
                                message=f"Required field '{field.name}' cannot be null",
                                code="required_null",
                            )
                        )
                    else:
                        processed[field.name] = None
                    continue

                error = cls.validate_field_value(value, field.type, field.name)
                if error:
                    errors.append(error)
                else:
                    processed[field.name] = value
            elif partial:
                continue
            elif field.default_value is not None:
                processed[field.name] = field.default_value
            elif field.required:
                errors.append(
                    RecordValidationError(
                        field=field.name,
                        message=f"Required field '{field.name}' is missing",
                        code="required_missing",
                    )
                )

        return processed, errors

    @classmethod
    def ensure_valid(
        cls,
        values: dict[str, Any],
        schema: CollectionSchema,
        partial: bool = False,
    ) -> dict[str, Any]:
        """Validate values and return them with defaults applied.

        Raises:
            InvalidRecord: If any value violates the schema.
        """
        processed, errors = cls.validate_and_apply_defaults(values, schema, partial)
        if errors:
            messages = "; ".join(f"{e.field}: {e.message}" for e in errors)
            raise InvalidRecord(f"Record does not match schema '{schema.slug}': {messages}", errors)
        return processed
