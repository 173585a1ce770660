"""Application services for CollectionDesk."""

from collectiondesk.application.services.collection_manager import (
    CollectionManager,
    ErrorInfo,
    OperationResult,
)
from collectiondesk.application.services.collection_view import CollectionView

__all__ = [
    "CollectionManager",
    "CollectionView",
    "ErrorInfo",
    "OperationResult",
]
