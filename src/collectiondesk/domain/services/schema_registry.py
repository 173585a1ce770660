"""In-memory registry of the current schema of every collection.

The registry exclusively owns CollectionSchema instances. Schemas enter it
through ``create`` (version 1) or ``adopt`` (hydration from the backend),
change only through ``replace`` (migrations), and leave through ``drop``.
"""

from collectiondesk.core.exceptions import Conflict, InvalidSchema, NotFound, VersionMismatch
from collectiondesk.core.logging import get_logger
from collectiondesk.domain.entities.collection import CollectionSchema
from collectiondesk.domain.services.collection_validator import CollectionValidator

logger = get_logger(__name__)


def _ensure_valid(schema: CollectionSchema) -> None:
    errors = CollectionValidator.validate(schema)
    if errors:
        messages = "; ".join(f"{e.field}: {e.message}" for e in errors)
        raise InvalidSchema(f"Invalid schema for '{schema.slug}': {messages}", errors)


class SchemaRegistry:
    """Slug-keyed mapping of current collection schemas."""

    def __init__(self) -> None:
        self._schemas: dict[str, CollectionSchema] = {}

    def __contains__(self, slug: object) -> bool:
        return slug in self._schemas

    def slugs(self) -> list[str]:
        """Registered slugs in sorted order."""
        return sorted(self._schemas)

    def get(self, slug: str) -> CollectionSchema:
        """Return the current schema.

        Raises:
            NotFound: If the slug is unknown.
        """
        try:
            return self._schemas[slug]
        except KeyError:
            raise NotFound(f"Collection '{slug}' not found", {"slug": slug}) from None

    def create(self, schema: CollectionSchema) -> CollectionSchema:
        """Register a new collection at version 1.

        Raises:
            Conflict: If the slug already exists.
            InvalidSchema: If the field set violates any rule.
        """
        if schema.slug in self._schemas:
            raise Conflict(f"Collection '{schema.slug}' already exists", {"slug": schema.slug})

        registered = schema.with_fields(schema.fields, version=1)
        _ensure_valid(registered)
        self._schemas[registered.slug] = registered

        logger.info(
            "Collection schema registered",
            collection_slug=registered.slug,
            field_count=len(registered.fields),
        )
        return registered

    def adopt(self, schema: CollectionSchema) -> CollectionSchema:
        """Register a schema already persisted by the backend, at its stored version."""
        if schema.slug in self._schemas:
            raise Conflict(f"Collection '{schema.slug}' already exists", {"slug": schema.slug})
        _ensure_valid(schema)
        self._schemas[schema.slug] = schema
        logger.debug("Collection schema adopted", collection_slug=schema.slug, version=schema.version)
        return schema

    def replace(self, slug: str, new_schema: CollectionSchema) -> CollectionSchema:
        """Swap in the next schema version. Only migrations call this.

        Raises:
            NotFound: If the slug is unknown.
            VersionMismatch: If ``new_schema.version`` is not current + 1.
            InvalidSchema: If the new field set violates any rule.
        """
        current = self.get(slug)
        if new_schema.slug != slug:
            raise InvalidSchema(f"Schema slug '{new_schema.slug}' does not match '{slug}'")
        if new_schema.version != current.version + 1:
            raise VersionMismatch(slug, current.version + 1, new_schema.version)

        _ensure_valid(new_schema)
        self._schemas[slug] = new_schema

        logger.info(
            "Collection schema replaced",
            collection_slug=slug,
            from_version=current.version,
            to_version=new_schema.version,
        )
        return new_schema

    def drop(self, slug: str) -> None:
        """Remove a schema entry. Irreversible.

        Raises:
            NotFound: If the slug is unknown.
        """
        self.get(slug)
        del self._schemas[slug]
        logger.info("Collection schema dropped", collection_slug=slug)
