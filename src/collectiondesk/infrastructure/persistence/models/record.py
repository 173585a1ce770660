"""SQLAlchemy model for the records table.

Records of every collection share one table; values are stored as a JSON
document keyed by field name.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from collectiondesk.domain.entities.record import utcnow
from collectiondesk.infrastructure.persistence.database import Base


class RecordModel(Base):
    """SQLAlchemy model for the records table.

    Attributes:
        id: Primary key (UUID string).
        collection_slug: Owning collection.
        data: JSON object of field values.
        seq: Insertion order within the collection.
        created_at: Timestamp when the record was created.
        updated_at: Timestamp when the record was last updated.
    """

    __tablename__ = "records"
    __table_args__ = (Index("ix_records_collection_created", "collection_slug", "created_at", "seq"),)

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="Record ID (UUID)",
    )
    collection_slug: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("collections.slug", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    data: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="{}",
        comment="JSON object of field values",
    )
    seq: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Insertion order within the collection",
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
    )

    def __repr__(self) -> str:
        return f"<Record(id={self.id}, collection={self.collection_slug})>"
