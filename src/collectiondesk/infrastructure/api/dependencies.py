"""FastAPI dependencies.

The collection manager is created once in the application lifespan (or
injected by the app factory) and stored on ``app.state``.
"""

from typing import Annotated

from fastapi import Depends, Request

from collectiondesk.application.services.collection_manager import CollectionManager


def get_collection_manager(request: Request) -> CollectionManager:
    """Return the application's CollectionManager."""
    return request.app.state.collection_manager


Manager = Annotated[CollectionManager, Depends(get_collection_manager)]
