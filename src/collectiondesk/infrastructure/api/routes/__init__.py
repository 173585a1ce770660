"""API Routes for CollectionDesk."""

from collectiondesk.infrastructure.api.routes.collections_router import router as collections_router
from collectiondesk.infrastructure.api.routes.records_router import router as records_router

__all__ = [
    "collections_router",
    "records_router",
]
