"""Pydantic schemas for collection and migration endpoints."""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from collectiondesk.domain.entities.collection import CollectionSchema, FieldDefinition


class FieldDefinitionSchema(BaseModel):
    """Definition of a single field in a collection schema."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Field name (letters, digits and underscores; not starting with a digit)",
    )
    type: str = Field(
        ...,
        description="Field type: text, number, boolean, date, datetime, email, url, json, relation",
    )
    required: bool = Field(
        default=False,
        description="Whether the field is required",
    )
    default_value: Any = Field(
        default=None,
        description="Value injected when a record lacks the field",
    )
    relation_target: str | None = Field(
        default=None,
        description="Target collection slug (required for relation type)",
    )

    @field_validator("type")
    @classmethod
    def normalize_type(cls, v: str) -> str:
        """Normalize field type to lowercase."""
        return v.lower()

    def to_entity(self) -> FieldDefinition:
        return FieldDefinition(
            name=self.name,
            type=self.type,
            required=self.required,
            default_value=self.default_value,
            relation_target=self.relation_target,
        )


class CreateCollectionRequest(BaseModel):
    """Request body for creating a new collection."""

    slug: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Collection slug (lowercase letters, digits, '-' and '_')",
    )
    fields: list[FieldDefinitionSchema] = Field(
        ...,
        min_length=1,
        description="List of field definitions (at least one required)",
    )


class CollectionResponse(BaseModel):
    """A collection schema."""

    slug: str
    version: int
    fields: list[FieldDefinitionSchema]

    @classmethod
    def from_entity(cls, schema: CollectionSchema) -> "CollectionResponse":
        return cls(
            slug=schema.slug,
            version=schema.version,
            fields=[FieldDefinitionSchema(**f.to_dict()) for f in schema.fields],
        )


class CollectionListResponse(BaseModel):
    """All registered collections."""

    items: list[CollectionResponse]
    total: int


class MigrationRequest(BaseModel):
    """Desired field set for a schema migration."""

    fields: list[FieldDefinitionSchema] = Field(..., min_length=1)
    renames: dict[str, str] = Field(
        default_factory=dict,
        description="Explicit old name -> new name mapping",
    )
    conflict_policy: Literal["fail", "coerce", "drop_invalid"] = Field(
        default="fail",
        description="Treatment of values that cannot be converted to a new type",
    )


class MigrationStepResponse(BaseModel):
    """One record-affecting step of a plan."""

    kind: str
    name: str | None = None
    old_name: str | None = None
    new_name: str | None = None
    from_type: str | None = None
    to_type: str | None = None
    field: dict[str, Any] | None = None


class MigrationPlanResponse(BaseModel):
    """A computed migration plan."""

    slug: str
    from_version: int
    to_version: int
    conflict_policy: str
    steps: list[MigrationStepResponse]
    target_fields: list[FieldDefinitionSchema]


class MigrationReportResponse(BaseModel):
    """Outcome of a committed migration."""

    slug: str
    from_version: int
    to_version: int
    records_scanned: int
    records_rewritten: int
    values_coerced: int
    values_dropped: int
    applied_at: str
