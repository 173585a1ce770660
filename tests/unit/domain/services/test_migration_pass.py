"""Unit tests for full migration passes against the in-memory gateway."""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from collectiondesk.core.exceptions import (
    Conflict,
    GatewayUnavailable,
    MigrationAborted,
    MigrationCancelled,
    VersionMismatch,
)
from collectiondesk.domain.entities.collection import CollectionSchema, FieldDefinition, FieldType
from collectiondesk.domain.entities.migration import ConflictPolicy
from collectiondesk.domain.services.cancellation import CancellationToken
from collectiondesk.domain.services.intent_lock import IntentLock
from collectiondesk.domain.services.migration_planner import MigrationPlanner
from collectiondesk.domain.services.schema_registry import SchemaRegistry
from collectiondesk.infrastructure.gateways.memory_gateway import InMemoryCollectionGateway

AMOUNT_TEXT = FieldDefinition(name="amount", type=FieldType.TEXT)
AMOUNT_NUMBER = FieldDefinition(name="amount", type=FieldType.NUMBER, default_value=0)


async def seed(gateway, registry, schema, *values):
    registry.create(schema)
    await gateway.create_collection(registry.get(schema.slug))
    return [await gateway.create(schema.slug, v) for v in values]


async def stored_values(gateway, slug):
    page = await gateway.find(slug)
    return {record.id: record.values for record in page.items}


@pytest.fixture
def gateway():
    return InMemoryCollectionGateway()


@pytest.fixture
def registry():
    return SchemaRegistry()


@pytest.fixture
def planner(registry, gateway):
    return MigrationPlanner(registry, gateway, IntentLock(), page_size=2)


@pytest_asyncio.fixture
async def amounts(gateway, registry):
    """Orders collection with text amounts, one of them not numeric."""
    return await seed(
        gateway,
        registry,
        CollectionSchema(slug="orders", fields=(AMOUNT_TEXT,)),
        {"amount": "12.5"},
        {"amount": "abc"},
        {"amount": "3"},
    )


@pytest.mark.asyncio
class TestMigrate:
    async def test_add_field_rewrites_existing_records(self, planner, gateway, registry):
        orders = CollectionSchema(
            slug="orders", fields=(FieldDefinition(name="amount", type=FieldType.NUMBER),)
        )
        (record,) = await seed(gateway, registry, orders, {"amount": 10})
        status = FieldDefinition(name="status", type=FieldType.TEXT, default_value="pending")

        plan = MigrationPlanner.plan(registry.get("orders"), [*orders.fields, status])
        report = await planner.migrate(plan)

        assert (await stored_values(gateway, "orders"))[record.id] == {
            "amount": 10,
            "status": "pending",
        }
        assert registry.get("orders").version == 2
        assert (await gateway.get_collection_config("orders")).version == 2
        assert report.records_scanned == 1
        assert report.records_rewritten == 1

    async def test_coerce_policy_pass(self, planner, gateway, registry, amounts):
        plan = MigrationPlanner.plan(
            registry.get("orders"), [AMOUNT_NUMBER], conflict_policy=ConflictPolicy.COERCE
        )

        report = await planner.migrate(plan)

        values = await stored_values(gateway, "orders")
        assert values[amounts[0].id] == {"amount": 12.5}
        assert values[amounts[1].id] == {"amount": 0}
        assert values[amounts[2].id] == {"amount": 3}
        assert report.records_scanned == 3
        assert report.values_coerced == 3

    async def test_fail_policy_leaves_everything_unchanged(self, planner, gateway, registry, amounts):
        before = await stored_values(gateway, "orders")
        plan = MigrationPlanner.plan(registry.get("orders"), [AMOUNT_NUMBER])

        with pytest.raises(MigrationAborted) as exc_info:
            await planner.migrate(plan)

        assert exc_info.value.failure.record_id == amounts[1].id
        assert exc_info.value.failure.step == "retypeField"
        assert registry.get("orders").version == 1
        assert (await gateway.get_collection_config("orders")).version == 1
        assert await stored_values(gateway, "orders") == before
        assert not planner.intents.is_exclusive("orders")

    async def test_drop_invalid_policy_pass(self, planner, gateway, registry, amounts):
        plan = MigrationPlanner.plan(
            registry.get("orders"), [AMOUNT_NUMBER], conflict_policy="drop_invalid"
        )

        report = await planner.migrate(plan)

        assert (await stored_values(gateway, "orders"))[amounts[1].id] == {}
        assert report.values_dropped == 1

    async def test_field_becoming_required_validates_records(self, planner, gateway, registry):
        await seed(
            gateway,
            registry,
            CollectionSchema(slug="notes", fields=(FieldDefinition(name="body", type=FieldType.TEXT),)),
            {"body": "hello"},
            {"body": None},
        )
        required = FieldDefinition(name="body", type=FieldType.TEXT, required=True)

        with pytest.raises(MigrationAborted) as exc_info:
            await planner.migrate(MigrationPlanner.plan(registry.get("notes"), [required]))

        assert exc_info.value.failure.step == "validate"
        assert registry.get("notes").version == 1

    async def test_stale_plan_is_version_mismatch(self, planner, registry, amounts):
        plan = MigrationPlanner.plan(
            registry.get("orders"), [AMOUNT_NUMBER], conflict_policy=ConflictPolicy.COERCE
        )
        await planner.migrate(plan)

        with pytest.raises(VersionMismatch):
            await planner.migrate(plan)

    async def test_concurrent_migration_is_rejected(self, planner, registry, amounts):
        plan = MigrationPlanner.plan(registry.get("orders"), [AMOUNT_TEXT])

        with planner.intents.exclusive("orders"):
            with pytest.raises(VersionMismatch):
                await planner.migrate(plan)

    async def test_migration_during_bulk_operation_conflicts(self, planner, registry, amounts):
        plan = MigrationPlanner.plan(registry.get("orders"), [AMOUNT_TEXT])

        with planner.intents.shared("orders"):
            with pytest.raises(Conflict):
                await planner.migrate(plan)

    async def test_cancel_before_start(self, planner, registry, amounts):
        token = CancellationToken()
        token.cancel("operator pressed stop")
        plan = MigrationPlanner.plan(
            registry.get("orders"), [AMOUNT_NUMBER], conflict_policy=ConflictPolicy.COERCE
        )

        with pytest.raises(MigrationCancelled) as exc_info:
            await planner.migrate(plan, token)

        assert exc_info.value.reason == "operator pressed stop"
        assert registry.get("orders").version == 1

    async def test_cancel_mid_write_then_rerun(self, planner, gateway, registry, amounts):
        token = CancellationToken()
        update = gateway.update

        async def update_then_cancel(slug, record_id, values):
            record = await update(slug, record_id, values)
            token.cancel()
            return record

        gateway.update = update_then_cancel
        plan = MigrationPlanner.plan(
            registry.get("orders"), [AMOUNT_NUMBER], conflict_policy=ConflictPolicy.COERCE
        )

        with pytest.raises(MigrationCancelled) as exc_info:
            await planner.migrate(plan, token)

        assert exc_info.value.processed == 1
        assert registry.get("orders").version == 1

        gateway.update = update
        report = await planner.migrate(plan)

        assert report.to_version == 2
        values = await stored_values(gateway, "orders")
        assert sorted(v["amount"] for v in values.values()) == [0, 3, 12.5]

    async def test_gateway_failure_on_read(self, planner, gateway, registry, amounts):
        gateway.find = AsyncMock(side_effect=GatewayUnavailable("backend down"))
        plan = MigrationPlanner.plan(
            registry.get("orders"), [AMOUNT_NUMBER], conflict_policy=ConflictPolicy.COERCE
        )

        with pytest.raises(MigrationAborted) as exc_info:
            await planner.migrate(plan)

        assert exc_info.value.processed == 0
        assert registry.get("orders").version == 1

    async def test_gateway_failure_on_write(self, planner, gateway, registry, amounts):
        gateway.update = AsyncMock(side_effect=GatewayUnavailable("backend down"))
        plan = MigrationPlanner.plan(
            registry.get("orders"), [AMOUNT_NUMBER], conflict_policy=ConflictPolicy.COERCE
        )

        with pytest.raises(MigrationAborted) as exc_info:
            await planner.migrate(plan)

        assert exc_info.value.last_record_id is not None
        assert registry.get("orders").version == 1
        assert not isinstance(exc_info.value, MigrationCancelled)
