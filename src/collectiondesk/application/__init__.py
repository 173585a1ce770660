"""Application layer: façade and view orchestration over domain services."""
