"""CollectionDesk - schema-governed collections for admin dashboards.

Maintains live collection schemas with versioned migrations, runs bulk
record operations with per-id failure accounting, and keeps view filter
state in sync with a flat, shareable encoding.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
