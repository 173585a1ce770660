"""Repository for record operations.

Records of all collections live in one table with their values stored as
a JSON document. Filters and sort orders are translated to ``json_extract``
expressions; ties fall back to creation time and insertion sequence.
"""

from typing import Any

from sqlalchemy import ColumnElement, delete, false, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from collectiondesk.domain.entities.record import RecordFilter
from collectiondesk.infrastructure.persistence.models import RecordModel


def _json_value(field_name: str) -> ColumnElement[Any]:
    return func.json_extract(RecordModel.data, f"$.{field_name}")


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _order_by(record_filter: RecordFilter | None) -> list[ColumnElement[Any]]:
    order: list[ColumnElement[Any]] = []
    sort = record_filter.sort if record_filter is not None else None
    if sort is not None:
        value = _json_value(sort.field)
        # nulls last in both directions
        order.append(value.is_(None))
        order.append(value.desc() if sort.descending else value.asc())
    order.extend([RecordModel.created_at, RecordModel.seq])
    return order


class RecordRepository:
    """Repository for record database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    def _conditions(self, slug: str, record_filter: RecordFilter | None) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = [RecordModel.collection_slug == slug]
        if record_filter is None:
            return conditions

        if record_filter.ids is not None:
            conditions.append(RecordModel.id.in_(sorted(record_filter.ids)))

        for field_name, expected in record_filter.equals.items():
            if expected is None:
                conditions.append(_json_value(field_name).is_(None))
            else:
                conditions.append(_json_value(field_name) == expected)

        if record_filter.search:
            if not record_filter.search_fields:
                conditions.append(false())
            else:
                pattern = f"%{_escape_like(record_filter.search.lower())}%"
                conditions.append(
                    or_(
                        *(
                            func.lower(_json_value(name)).like(pattern, escape="\\")
                            for name in record_filter.search_fields
                        )
                    )
                )
        return conditions

    async def create(self, record: RecordModel) -> RecordModel:
        """Insert a record row."""
        self.session.add(record)
        await self.session.flush()
        return record

    async def get_by_id(self, slug: str, record_id: str) -> RecordModel | None:
        """Get a record by id within a collection."""
        result = await self.session.execute(
            select(RecordModel).where(
                RecordModel.collection_slug == slug,
                RecordModel.id == record_id,
            )
        )
        return result.scalar_one_or_none()

    async def find(
        self,
        slug: str,
        record_filter: RecordFilter | None,
        offset: int,
        limit: int,
    ) -> tuple[list[RecordModel], int]:
        """Find records matching a filter.

        Returns:
            Tuple of (records on the requested page, total match count).
        """
        conditions = self._conditions(slug, record_filter)
        total = await self.count(slug, record_filter)
        result = await self.session.execute(
            select(RecordModel)
            .where(*conditions)
            .order_by(*_order_by(record_filter))
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def count(self, slug: str, record_filter: RecordFilter | None) -> int:
        """Count records matching a filter."""
        result = await self.session.execute(
            select(func.count()).select_from(RecordModel).where(*self._conditions(slug, record_filter))
        )
        return result.scalar_one()

    async def update(self, record: RecordModel) -> RecordModel:
        """Flush changes made to a record model."""
        await self.session.flush()
        return record

    async def delete(self, slug: str, record_id: str) -> bool:
        """Delete a record.

        Returns:
            True if a row was deleted, False if the id was unknown.
        """
        result = await self.session.execute(
            delete(RecordModel).where(
                RecordModel.collection_slug == slug,
                RecordModel.id == record_id,
            )
        )
        return result.rowcount > 0

    async def delete_all(self, slug: str) -> int:
        """Delete every record of a collection, returning the row count."""
        result = await self.session.execute(
            delete(RecordModel).where(RecordModel.collection_slug == slug)
        )
        return result.rowcount
