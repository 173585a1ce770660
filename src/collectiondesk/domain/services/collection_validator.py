"""Collection validation service for schema and field validation.

Provides validation for collection slugs, schema definitions, and field
configurations. Supported field types are the members of FieldType.
"""

import re
from dataclasses import dataclass
from typing import Sequence

from collectiondesk.domain.entities.collection import CollectionSchema, FieldDefinition, FieldType
from collectiondesk.domain.services.record_validator import RecordValidator

# Pattern for valid field names
FIELD_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Pattern for valid collection slugs
SLUG_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


@dataclass
class CollectionValidationError:
    """A single collection validation error."""

    field: str
    message: str
    code: str


class CollectionValidator:
    """Validator for collection schemas.

    Validates slugs, field definition sets and individual field configurations.
    """

    MAX_SLUG_LENGTH = 64
    MAX_FIELD_NAME_LENGTH = 64

    @classmethod
    def validate_slug(cls, slug: str) -> list[CollectionValidationError]:
        """Validate a collection slug.

        Args:
            slug: The collection slug to validate.

        Returns:
            List of validation errors (empty if valid).
        """
        errors = []

        if not slug:
            errors.append(
                CollectionValidationError(
                    field="slug",
                    message="Collection slug is required",
                    code="slug_required",
                )
            )
            return errors

        if len(slug) > cls.MAX_SLUG_LENGTH:
            errors.append(
                CollectionValidationError(
                    field="slug",
                    message=f"Collection slug must be at most {cls.MAX_SLUG_LENGTH} characters",
                    code="slug_too_long",
                )
            )

        if not SLUG_PATTERN.match(slug):
            errors.append(
                CollectionValidationError(
                    field="slug",
                    message="Collection slug must contain only lowercase letters, numbers, hyphens, and underscores",
                    code="slug_invalid_format",
                )
            )

        return errors

    @classmethod
    def validate_field_name(cls, name: str, field_index: int) -> list[CollectionValidationError]:
        """Validate a field name.

        Args:
            name: The field name to validate.
            field_index: Index of the field in the schema (for error messages).

        Returns:
            List of validation errors (empty if valid).
        """
        errors = []
        field_path = f"fields[{field_index}].name"

        if not name:
            errors.append(
                CollectionValidationError(
                    field=field_path,
                    message="Field name is required",
                    code="field_name_required",
                )
            )
            return errors

        if len(name) > cls.MAX_FIELD_NAME_LENGTH:
            errors.append(
                CollectionValidationError(
                    field=field_path,
                    message=f"Field name must be at most {cls.MAX_FIELD_NAME_LENGTH} characters",
                    code="field_name_too_long",
                )
            )

        if not FIELD_NAME_PATTERN.match(name):
            errors.append(
                CollectionValidationError(
                    field=field_path,
                    message="Field name must start with a letter or underscore and contain only letters, numbers, and underscores",
                    code="field_name_invalid_format",
                )
            )

        return errors

    @classmethod
    def validate_field_type(
        cls, field_type: FieldType | str, field_index: int
    ) -> list[CollectionValidationError]:
        """Validate a field type."""
        field_path = f"fields[{field_index}].type"

        if not field_type:
            return [
                CollectionValidationError(
                    field=field_path,
                    message="Field type is required",
                    code="field_type_required",
                )
            ]

        if not isinstance(field_type, FieldType):
            valid_types = [t.value for t in FieldType]
            return [
                CollectionValidationError(
                    field=field_path,
                    message=f"Invalid field type '{field_type}'. Valid types: {', '.join(valid_types)}",
                    code="field_type_invalid",
                )
            ]

        return []

    @classmethod
    def validate_relation_target(
        cls, field: FieldDefinition, field_index: int
    ) -> list[CollectionValidationError]:
        """Check that relation_target is set exactly when the type is relation."""
        field_path = f"fields[{field_index}].relation_target"

        if field.type == FieldType.RELATION and not field.relation_target:
            return [
                CollectionValidationError(
                    field=field_path,
                    message="Relation field requires 'relation_target' (target collection slug)",
                    code="relation_target_required",
                )
            ]

        if field.type != FieldType.RELATION and field.relation_target is not None:
            return [
                CollectionValidationError(
                    field=field_path,
                    message="Only relation fields may set 'relation_target'",
                    code="relation_target_not_allowed",
                )
            ]

        return []

    @classmethod
    def validate_default_value(
        cls, field: FieldDefinition, field_index: int
    ) -> list[CollectionValidationError]:
        """Check that a non-null default value is valid for the field type."""
        if field.default_value is None or not isinstance(field.type, FieldType):
            return []

        error = RecordValidator.validate_field_value(field.default_value, field.type, field.name)
        if error is None:
            return []

        return [
            CollectionValidationError(
                field=f"fields[{field_index}].default_value",
                message=f"Default value is invalid: {error.message}",
                code="default_value_invalid",
            )
        ]

    @classmethod
    def validate_field(
        cls, field: FieldDefinition, field_index: int
    ) -> list[CollectionValidationError]:
        """Validate a single field definition.

        Args:
            field: The field definition.
            field_index: Index of the field in the schema (for error messages).

        Returns:
            List of validation errors (empty if valid).
        """
        errors = []
        errors.extend(cls.validate_field_name(field.name, field_index))
        errors.extend(cls.validate_field_type(field.type, field_index))
        if isinstance(field.type, FieldType):
            errors.extend(cls.validate_relation_target(field, field_index))
            errors.extend(cls.validate_default_value(field, field_index))
        return errors

    @classmethod
    def validate_fields(
        cls, fields: Sequence[FieldDefinition]
    ) -> list[CollectionValidationError]:
        """Validate an ordered field definition set.

        Args:
            fields: Field definitions.

        Returns:
            List of validation errors (empty if valid).
        """
        errors = []

        if not fields:
            errors.append(
                CollectionValidationError(
                    field="fields",
                    message="Schema must define at least one field",
                    code="schema_empty",
                )
            )
            return errors

        seen_names: set[str] = set()
        for i, field in enumerate(fields):
            errors.extend(cls.validate_field(field, i))

            if field.name and field.name in seen_names:
                errors.append(
                    CollectionValidationError(
                        field=f"fields[{i}].name",
                        message=f"Duplicate field name '{field.name}'",
                        code="field_name_duplicate",
                    )
                )
            seen_names.add(field.name)

        return errors

    @classmethod
    def validate(cls, schema: CollectionSchema) -> list[CollectionValidationError]:
        """Validate a complete collection schema.

        Args:
            schema: The collection schema.

        Returns:
            List of validation errors (empty if valid).
        """
        errors = []
        errors.extend(cls.validate_slug(schema.slug))
        errors.extend(cls.validate_fields(schema.fields))
        if schema.version < 1:
            errors.append(
                CollectionValidationError(
                    field="version",
                    message="Schema version must be >= 1",
                    code="version_invalid",
                )
            )
        return errors
