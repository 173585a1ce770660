"""SQLAlchemy models for CollectionDesk storage tables."""

from collectiondesk.infrastructure.persistence.models.collection import CollectionModel
from collectiondesk.infrastructure.persistence.models.record import RecordModel

__all__ = [
    "CollectionModel",
    "RecordModel",
]
