"""Unit tests for SchemaRegistry."""

import pytest

from collectiondesk.core.exceptions import Conflict, InvalidSchema, NotFound, VersionMismatch
from collectiondesk.domain.entities.collection import CollectionSchema, FieldDefinition, FieldType
from collectiondesk.domain.services.schema_registry import SchemaRegistry

TITLE = FieldDefinition(name="title", type=FieldType.TEXT)
PRICE = FieldDefinition(name="price", type=FieldType.NUMBER)


@pytest.fixture
def registry():
    registry = SchemaRegistry()
    registry.create(CollectionSchema(slug="products", fields=(TITLE,)))
    return registry


class TestSchemaRegistry:
    def test_create_starts_at_version_one(self):
        registry = SchemaRegistry()

        schema = registry.create(CollectionSchema(slug="orders", fields=(TITLE,), version=7))

        assert schema.version == 1
        assert registry.get("orders") == schema
        assert "orders" in registry

    def test_create_duplicate_slug(self, registry):
        with pytest.raises(Conflict):
            registry.create(CollectionSchema(slug="products", fields=(PRICE,)))

    def test_create_invalid_schema(self):
        registry = SchemaRegistry()

        with pytest.raises(InvalidSchema) as exc_info:
            registry.create(CollectionSchema(slug="orders", fields=(TITLE, TITLE)))

        assert exc_info.value.errors[0].code == "field_name_duplicate"
        assert "orders" not in registry

    def test_get_unknown(self, registry):
        with pytest.raises(NotFound):
            registry.get("missing")

    def test_replace_requires_next_version(self, registry):
        with pytest.raises(VersionMismatch) as exc_info:
            registry.replace("products", CollectionSchema("products", (TITLE, PRICE), version=3))

        assert exc_info.value.expected_version == 2
        assert exc_info.value.actual_version == 3
        assert registry.get("products").version == 1

    def test_replace(self, registry):
        registry.replace("products", CollectionSchema("products", (TITLE, PRICE), version=2))

        assert registry.get("products").field_names == ["title", "price"]
        assert registry.get("products").version == 2

    def test_replace_slug_mismatch(self, registry):
        with pytest.raises(InvalidSchema):
            registry.replace("products", CollectionSchema("orders", (TITLE,), version=2))

    def test_replace_invalid_fields(self, registry):
        with pytest.raises(InvalidSchema):
            registry.replace("products", CollectionSchema("products", (), version=2))

        assert registry.get("products").version == 1

    def test_adopt_keeps_stored_version(self):
        registry = SchemaRegistry()

        registry.adopt(CollectionSchema("orders", (TITLE,), version=4))

        assert registry.get("orders").version == 4

    def test_drop(self, registry):
        registry.drop("products")

        assert "products" not in registry
        with pytest.raises(NotFound):
            registry.drop("products")

    def test_slugs_are_sorted(self, registry):
        registry.create(CollectionSchema(slug="authors", fields=(TITLE,)))

        assert registry.slugs() == ["authors", "products"]
