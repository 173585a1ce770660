"""HTTP API for CollectionDesk."""
