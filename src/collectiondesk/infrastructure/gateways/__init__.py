"""Collection data gateways: the abstract interface and its backends."""

from collectiondesk.infrastructure.gateways.base import CollectionDataGateway
from collectiondesk.infrastructure.gateways.memory_gateway import InMemoryCollectionGateway

__all__ = [
    "CollectionDataGateway",
    "InMemoryCollectionGateway",
]
