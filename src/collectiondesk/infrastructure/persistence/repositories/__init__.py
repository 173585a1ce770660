"""Repositories wrapping SQLAlchemy queries for CollectionDesk tables."""

from collectiondesk.infrastructure.persistence.repositories.collection_repository import (
    CollectionRepository,
)
from collectiondesk.infrastructure.persistence.repositories.record_repository import (
    RecordRepository,
)

__all__ = [
    "CollectionRepository",
    "RecordRepository",
]
