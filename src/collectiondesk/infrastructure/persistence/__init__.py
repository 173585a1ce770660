"""SQL persistence for the collection gateway."""
