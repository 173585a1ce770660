"""Infrastructure layer - storage backends and the HTTP surface.

This layer contains:
- Collection data gateways (in-memory, SQLAlchemy)
- Database session management
- API routes (FastAPI)
"""
