"""Collection entities for dynamic schema definitions.

A collection is a named, schema-governed table of records. Its schema is an
ordered sequence of field definitions plus a version number that increases
by exactly one on every migration.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable


class FieldType(str, Enum):
    """Supported field types for collection schemas."""

    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    EMAIL = "email"
    URL = "url"
    JSON = "json"
    RELATION = "relation"


def _normalize_type(value: Any) -> Any:
    """Convert a type name to FieldType, leaving unknown names for the validator."""
    if isinstance(value, FieldType):
        return value
    if isinstance(value, str):
        try:
            return FieldType(value.lower())
        except ValueError:
            return value
    return value


@dataclass(frozen=True)
class FieldDefinition:
    """Definition of a single field in a collection schema.

    Construction never rejects a definition; rule checking happens in
    CollectionValidator so that a whole field set can be reported at once.

    Attributes:
        name: Field name, unique within the collection.
        type: Field type.
        required: Whether every record must carry a non-null value.
        default_value: Value injected when a record lacks the field.
        relation_target: Target collection slug (relation fields only).
    """

    name: str
    type: FieldType
    required: bool = False
    default_value: Any = None
    relation_target: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", _normalize_type(self.type))

    @property
    def type_name(self) -> str:
        """Return the type as a plain string."""
        return self.type.value if isinstance(self.type, FieldType) else str(self.type)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "name": self.name,
            "type": self.type_name,
            "required": self.required,
            "default_value": self.default_value,
            "relation_target": self.relation_target,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FieldDefinition":
        """Build a definition from a dict, accepting the short ``default`` key too."""
        return cls(
            name=data.get("name", ""),
            type=data.get("type", ""),
            required=bool(data.get("required", False)),
            default_value=data.get("default_value", data.get("default")),
            relation_target=data.get("relation_target"),
        )


@dataclass(frozen=True)
class CollectionSchema:
    """Versioned field schema of one collection.

    Attributes:
        slug: Globally unique, immutable collection identifier.
        fields: Ordered field definitions.
        version: Schema version, starting at 1.
    """

    slug: str
    fields: tuple[FieldDefinition, ...] = field(default_factory=tuple)
    version: int = 1

    def __post_init__(self) -> None:
        if not isinstance(self.fields, tuple):
            object.__setattr__(self, "fields", tuple(self.fields))

    @property
    def field_names(self) -> list[str]:
        """Field names in declared order."""
        return [f.name for f in self.fields]

    def get_field(self, name: str) -> FieldDefinition | None:
        """Return the field with the given name, if any."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def with_fields(
        self, fields: Iterable[FieldDefinition], version: int | None = None
    ) -> "CollectionSchema":
        """Return a copy with new fields and (optionally) a new version."""
        return replace(
            self,
            fields=tuple(fields),
            version=self.version if version is None else version,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "slug": self.slug,
            "version": self.version,
            "fields": [f.to_dict() for f in self.fields],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CollectionSchema":
        """Build a schema from its dict form."""
        return cls(
            slug=data["slug"],
            fields=tuple(FieldDefinition.from_dict(f) for f in data.get("fields", [])),
            version=int(data.get("version", 1)),
        )
