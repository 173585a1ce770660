"""Repository for collection operations.

Provides CRUD operations for the collections table.
"""

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from collectiondesk.infrastructure.persistence.models import CollectionModel


class CollectionRepository:
    """Repository for collection database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def create(self, collection: CollectionModel) -> CollectionModel:
        """Create a new collection.

        Args:
            collection: The collection model to create.

        Returns:
            The created collection model.
        """
        self.session.add(collection)
        await self.session.flush()
        return collection

    async def get_by_slug(self, slug: str) -> CollectionModel | None:
        """Get a collection by slug.

        Args:
            slug: The collection slug.

        Returns:
            The collection model if found, None otherwise.
        """
        result = await self.session.execute(
            select(CollectionModel).where(CollectionModel.slug == slug)
        )
        return result.scalar_one_or_none()

    async def slug_exists(self, slug: str) -> bool:
        """Check if a collection with the given slug exists."""
        result = await self.session.execute(
            select(CollectionModel.slug).where(CollectionModel.slug == slug).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def list_all(self) -> list[CollectionModel]:
        """List all collections ordered by slug."""
        result = await self.session.execute(select(CollectionModel).order_by(CollectionModel.slug))
        return list(result.scalars().all())

    async def update(self, collection: CollectionModel) -> CollectionModel:
        """Flush changes made to a collection model."""
        await self.session.flush()
        return collection

    async def next_record_seq(self, slug: str) -> int:
        """Advance and return the record insertion counter of a collection.

        The increment runs in SQL inside the caller's transaction, so
        concurrent sessions never receive the same number. ``updated_at`` is
        left alone because the schema did not change.
        """
        await self.session.execute(
            update(CollectionModel)
            .where(CollectionModel.slug == slug)
            .values(
                record_seq=CollectionModel.record_seq + 1,
                updated_at=CollectionModel.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(
            select(CollectionModel.record_seq).where(CollectionModel.slug == slug)
        )
        return result.scalar_one()

    async def delete(self, slug: str) -> bool:
        """Delete a collection row.

        Returns:
            True if a row was deleted, False if the slug was unknown.
        """
        result = await self.session.execute(
            delete(CollectionModel).where(CollectionModel.slug == slug)
        )
        return result.rowcount > 0
