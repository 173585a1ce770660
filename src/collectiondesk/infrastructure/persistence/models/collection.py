"""SQLAlchemy model for the collections table.

Each row stores the current schema of one collection.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from collectiondesk.domain.entities.record import utcnow
from collectiondesk.infrastructure.persistence.database import Base


class CollectionModel(Base):
    """SQLAlchemy model for the collections table.

    Attributes:
        slug: Primary key, the collection slug.
        schema: JSON list of field definitions.
        version: Current schema version.
        record_seq: Last insertion sequence number handed to a record.
        created_at: Timestamp when the collection was created.
        updated_at: Timestamp when the schema last changed.
    """

    __tablename__ = "collections"

    slug: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Collection slug",
    )
    schema: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="JSON list of field definitions",
    )
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        comment="Schema version, incremented by every migration",
    )
    record_seq: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Insertion counter for records of this collection",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    def __repr__(self) -> str:
        return f"<Collection(slug={self.slug}, version={self.version})>"
