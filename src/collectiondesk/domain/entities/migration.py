"""Migration entities: plan steps, plans and reports.

A MigrationPlan is a value object. It is computed once by the planner and
then applied; nothing mutates it mid-application.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Union

from collectiondesk.domain.entities.collection import CollectionSchema, FieldDefinition, FieldType
from collectiondesk.domain.entities.record import utcnow


class ConflictPolicy(str, Enum):
    """How a retype step treats values that cannot be coerced."""

    FAIL = "fail"
    COERCE = "coerce"
    DROP_INVALID = "drop_invalid"


@dataclass(frozen=True)
class AddField:
    """Inject a new field into every record lacking it."""

    field: FieldDefinition

    kind = "addField"

    @property
    def field_name(self) -> str:
        return self.field.name

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "field": self.field.to_dict()}


@dataclass(frozen=True)
class DropField:
    """Remove a field from every record. Old values are discarded."""

    name: str

    kind = "dropField"

    @property
    def field_name(self) -> str:
        return self.name

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "name": self.name}


@dataclass(frozen=True)
class RetypeField:
    """Coerce every value of a field to a new type."""

    field: FieldDefinition
    from_type: FieldType

    kind = "retypeField"

    @property
    def field_name(self) -> str:
        return self.field.name

    @property
    def to_type(self) -> FieldType:
        return self.field.type

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "name": self.field.name,
            "from_type": self.from_type.value,
            "to_type": self.field.type_name,
        }


@dataclass(frozen=True)
class RenameField:
    """Move a value to a new key, unchanged."""

    old_name: str
    new_name: str

    kind = "renameField"

    @property
    def field_name(self) -> str:
        return self.old_name

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "old_name": self.old_name, "new_name": self.new_name}


MigrationStep = Union[AddField, DropField, RetypeField, RenameField]


@dataclass(frozen=True)
class MigrationPlan:
    """Planned transition of one collection from one schema version to the next.

    Attributes:
        slug: Collection being migrated.
        from_version: Schema version the plan was computed against.
        to_version: Version committed on success (always from_version + 1).
        steps: Record-affecting steps, applied in order.
        conflict_policy: Treatment of values that fail coercion.
        target_fields: Field definitions of the resulting schema.
    """

    slug: str
    from_version: int
    to_version: int
    steps: tuple[MigrationStep, ...] = ()
    conflict_policy: ConflictPolicy = ConflictPolicy.FAIL
    target_fields: tuple[FieldDefinition, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.steps, tuple):
            object.__setattr__(self, "steps", tuple(self.steps))
        if not isinstance(self.target_fields, tuple):
            object.__setattr__(self, "target_fields", tuple(self.target_fields))
        if not isinstance(self.conflict_policy, ConflictPolicy):
            object.__setattr__(self, "conflict_policy", ConflictPolicy(self.conflict_policy))

    @property
    def affects_records(self) -> bool:
        """Whether applying the plan can change any record."""
        return bool(self.steps)

    def target_schema(self) -> CollectionSchema:
        """Schema that becomes current when the plan commits."""
        return CollectionSchema(slug=self.slug, fields=self.target_fields, version=self.to_version)

    def to_dict(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "from_version": self.from_version,
            "to_version": self.to_version,
            "conflict_policy": self.conflict_policy.value,
            "steps": [step.to_dict() for step in self.steps],
            "target_fields": [f.to_dict() for f in self.target_fields],
        }


@dataclass
class MigrationReport:
    """Outcome of a committed migration."""

    slug: str
    from_version: int
    to_version: int
    records_scanned: int = 0
    records_rewritten: int = 0
    values_coerced: int = 0
    values_dropped: int = 0
    applied_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "from_version": self.from_version,
            "to_version": self.to_version,
            "records_scanned": self.records_scanned,
            "records_rewritten": self.records_rewritten,
            "values_coerced": self.values_coerced,
            "values_dropped": self.values_dropped,
            "applied_at": self.applied_at.isoformat(),
        }
