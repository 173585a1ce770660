"""Record entities and the query shapes used to fetch them."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Record:
    """A single record of a collection.

    The gateway is the sole authority for ``id`` and the timestamps.

    Attributes:
        id: Opaque backend-assigned identifier.
        collection_slug: Owning collection.
        values: Mapping of field name to value.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    id: str
    collection_slug: str
    values: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def with_values(self, values: dict[str, Any]) -> "Record":
        """Return a copy carrying new values."""
        return replace(self, values=dict(values))

    def to_dict(self) -> dict[str, Any]:
        """Flatten into a JSON-compatible dict (system fields plus values)."""
        return {
            "id": self.id,
            "collection_slug": self.collection_slug,
            "values": dict(self.values),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class SortOrder:
    """Ordering of a record listing by one field.

    Encoded as the field name, prefixed with ``-`` for descending order.
    Records whose value is missing or null always sort last.
    """

    field: str
    descending: bool = False

    @classmethod
    def parse(cls, raw: str) -> "SortOrder | None":
        """Parse ``field`` or ``-field``; an empty string means no ordering."""
        raw = raw.strip()
        descending = raw.startswith("-")
        name = raw[1:].strip() if descending else raw
        if not name:
            return None
        return cls(field=name, descending=descending)

    def __str__(self) -> str:
        return f"-{self.field}" if self.descending else self.field


@dataclass(frozen=True)
class RecordFilter:
    """Filter expression passed to the gateway.

    Attributes:
        ids: Restrict to these record ids.
        search: Case-insensitive substring searched in ``search_fields``.
        search_fields: Fields the search applies to.
        equals: Exact-match conditions (field name to value).
        sort: Ordering applied before creation order; None keeps creation order.
    """

    ids: frozenset[str] | None = None
    search: str = ""
    search_fields: tuple[str, ...] = ()
    equals: dict[str, Any] = field(default_factory=dict)
    sort: SortOrder | None = None

    @classmethod
    def for_id(cls, record_id: str) -> "RecordFilter":
        """Filter matching exactly one record id."""
        return cls(ids=frozenset({record_id}))

    def matches(self, record: Record) -> bool:
        """Evaluate the filter against a record in memory."""
        if self.ids is not None and record.id not in self.ids:
            return False
        for name, expected in self.equals.items():
            if record.values.get(name) != expected:
                return False
        if self.search:
            needle = self.search.lower()
            for name in self.search_fields:
                value = record.values.get(name)
                if value is not None and needle in str(value).lower():
                    return True
            return False
        return True


def sort_records(records: list[Record], sort: SortOrder | None) -> list[Record]:
    """Order records by ``sort``, keeping the incoming order for ties.

    Values of one field share a type once validated, so they compare
    directly. Missing and null values go last in both directions.
    """
    if sort is None:
        return list(records)
    present = [r for r in records if r.values.get(sort.field) is not None]
    missing = [r for r in records if r.values.get(sort.field) is None]
    present.sort(key=lambda r: r.values[sort.field], reverse=sort.descending)
    return present + missing


@dataclass(frozen=True)
class Pagination:
    """1-based page window."""

    page: int = 1
    page_size: int = 25

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass(frozen=True)
class RecordPage:
    """One page of records plus the total match count."""

    items: list[Record]
    total: int
    page: int = 1
    page_size: int = 25

    @property
    def total_pages(self) -> int:
        return (self.total + self.page_size - 1) // self.page_size
