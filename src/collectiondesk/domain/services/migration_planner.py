"""Migration planner: schema diffing, record transforms and migration passes.

``plan`` diffs a current schema against a desired field list and produces an
immutable MigrationPlan. ``apply`` runs the plan's steps over a record
stream. ``migrate`` performs a full pass against the gateway and commits the
new schema version only after every record has been transformed.
"""

from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator, Mapping
from typing import Any

from collectiondesk.core.exceptions import (
    CoercionFailure,
    GatewayUnavailable,
    InvalidRecord,
    InvalidRequest,
    InvalidSchema,
    MigrationAborted,
    MigrationCancelled,
    NotFound,
    VersionMismatch,
)
from collectiondesk.core.logging import get_logger
from collectiondesk.domain.entities.collection import CollectionSchema, FieldDefinition
from collectiondesk.domain.entities.migration import (
    AddField,
    ConflictPolicy,
    DropField,
    MigrationPlan,
    MigrationReport,
    MigrationStep,
    RenameField,
    RetypeField,
)
from collectiondesk.domain.entities.record import Pagination, Record
from collectiondesk.domain.services.cancellation import CancellationToken
from collectiondesk.domain.services.collection_validator import (
    CollectionValidationError,
    CollectionValidator,
)
from collectiondesk.domain.services.intent_lock import IntentLock
from collectiondesk.domain.services.record_validator import RecordValidator
from collectiondesk.domain.services.schema_registry import SchemaRegistry
from collectiondesk.domain.services.value_coercer import coerce
from collectiondesk.infrastructure.gateways.base import CollectionDataGateway

logger = get_logger(__name__)

VALIDATE_STEP = "validate"


def _tightens_requirements(current: CollectionSchema, target: CollectionSchema) -> bool:
    """Whether a field kept by the migration becomes required."""
    for field in target.fields:
        previous = current.get_field(field.name)
        if previous is not None and field.required and not previous.required:
            return True
    return False


class MigrationPlanner:
    """Computes and applies collection schema migrations.

    ``plan``, ``transform_values``, ``apply`` and ``apply_async`` are pure and
    need no collaborators. ``migrate`` needs the registry, the gateway and
    the intent lock.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        gateway: CollectionDataGateway,
        intents: IntentLock | None = None,
        page_size: int = 200,
    ) -> None:
        """Initialize the planner.

        Args:
            registry: Registry holding current schemas.
            gateway: Backend the record pass reads from and writes to.
            intents: Per-slug intent lock shared with the bulk executor.
            page_size: Records fetched per gateway page during a pass.
        """
        self.registry = registry
        self.gateway = gateway
        self.intents = intents or IntentLock()
        self.page_size = page_size

    # =========================================================================
    # Planning
    # =========================================================================

    @staticmethod
    def plan(
        current: CollectionSchema,
        desired_fields: Iterable[FieldDefinition],
        renames: Mapping[str, str] | None = None,
        conflict_policy: ConflictPolicy | str = ConflictPolicy.FAIL,
    ) -> MigrationPlan:
        """Diff ``current`` against ``desired_fields`` and build a plan.

        Args:
            current: Schema the plan starts from.
            desired_fields: Field definitions of the resulting schema.
            renames: Explicit ``old name -> new name`` mapping. Without it a
                renamed field is planned as a drop plus an add.
            conflict_policy: Treatment of values that fail coercion.

        Returns:
            MigrationPlan targeting ``current.version + 1``.

        Raises:
            InvalidSchema: If the desired fields are invalid, a rename does not
                match both field sets, or a required field is added without
                a default.
        """
        desired = tuple(desired_fields)
        renames = dict(renames or {})
        try:
            policy = ConflictPolicy(conflict_policy)
        except ValueError as e:
            raise InvalidRequest(f"Unknown conflict policy '{conflict_policy}'") from e

        errors = CollectionValidator.validate_fields(desired)
        if errors:
            messages = "; ".join(f"{e.field}: {e.message}" for e in errors)
            raise InvalidSchema(f"Invalid target fields for '{current.slug}': {messages}", errors)

        desired_by_name = {f.name: f for f in desired}
        current_names = set(current.field_names)

        rename_errors: list[CollectionValidationError] = []
        for old_name, new_name in renames.items():
            if old_name not in current_names:
                rename_errors.append(
                    CollectionValidationError(
                        field=old_name,
                        message=f"Cannot rename unknown field '{old_name}'",
                        code="rename_unknown_field",
                    )
                )
            if new_name not in desired_by_name:
                rename_errors.append(
                    CollectionValidationError(
                        field=new_name,
                        message=f"Rename target '{new_name}' is not in the desired fields",
                        code="rename_target_missing",
                    )
                )
            if new_name in current_names or old_name in desired_by_name:
                rename_errors.append(
                    CollectionValidationError(
                        field=new_name,
                        message=f"Rename '{old_name}' -> '{new_name}' collides with an existing field",
                        code="rename_collision",
                    )
                )
        if rename_errors:
            messages = "; ".join(e.message for e in rename_errors)
            raise InvalidSchema(f"Invalid renames for '{current.slug}': {messages}", rename_errors)

        steps: list[MigrationStep] = []

        for old_name, new_name in renames.items():
            steps.append(RenameField(old_name=old_name, new_name=new_name))
            old_field = current.get_field(old_name)
            new_field = desired_by_name[new_name]
            if old_field is not None and old_field.type != new_field.type:
                steps.append(RetypeField(field=new_field, from_type=old_field.type))

        for field in current.fields:
            if field.name in renames:
                continue
            target = desired_by_name.get(field.name)
            if target is None:
                steps.append(DropField(name=field.name))
            elif target.type != field.type:
                steps.append(RetypeField(field=target, from_type=field.type))

        renamed_to = set(renames.values())
        for field in desired:
            if field.name in current_names or field.name in renamed_to:
                continue
            if field.required and field.default_value is None:
                error = CollectionValidationError(
                    field=field.name,
                    message=f"Required field '{field.name}' needs a default value to be added",
                    code="required_without_default",
                )
                raise InvalidSchema(error.message, [error])
            steps.append(AddField(field=field))

        return MigrationPlan(
            slug=current.slug,
            from_version=current.version,
            to_version=current.version + 1,
            steps=tuple(steps),
            conflict_policy=policy,
            target_fields=desired,
        )

    # =========================================================================
    # Record transforms
    # =========================================================================

    @staticmethod
    def transform_values(
        plan: MigrationPlan, record_id: str, values: Mapping[str, Any]
    ) -> tuple[dict[str, Any], int, int]:
        """Apply every step of ``plan`` to one record's values.

        Applying a plan to values it already produced yields the same values.

        Returns:
            Tuple of (new_values, values_coerced, values_dropped).

        Raises:
            CoercionFailure: Under the ``fail`` policy, on the first value that
                cannot be converted.
        """
        out = dict(values)
        coerced = 0
        dropped = 0

        for step in plan.steps:
            if isinstance(step, AddField):
                out.setdefault(step.field.name, step.field.default_value)
            elif isinstance(step, DropField):
                out.pop(step.name, None)
            elif isinstance(step, RenameField):
                if step.old_name in out:
                    out[step.new_name] = out.pop(step.old_name)
            elif isinstance(step, RetypeField):
                name = step.field.name
                if out.get(name) is None:
                    continue
                original = out[name]
                try:
                    out[name] = coerce(original, step.to_type)
                except ValueError as e:
                    if plan.conflict_policy is ConflictPolicy.FAIL:
                        raise CoercionFailure(record_id, step.kind, name, str(e)) from e
                    if plan.conflict_policy is ConflictPolicy.COERCE:
                        out[name] = step.field.default_value
                        coerced += 1
                    else:
                        del out[name]
                        dropped += 1
                else:
                    if out[name] != original or type(out[name]) is not type(original):
                        coerced += 1

        return out, coerced, dropped

    @classmethod
    def apply(cls, plan: MigrationPlan, records: Iterable[Record]) -> Iterator[Record]:
        """Lazily transform a record stream.

        The generator can be restarted by calling ``apply`` again on the
        source; it cannot resume after raising.
        """
        for record in records:
            values, _, _ = cls.transform_values(plan, record.id, record.values)
            yield record.with_values(values)

    @classmethod
    async def apply_async(
        cls, plan: MigrationPlan, records: AsyncIterable[Record]
    ) -> AsyncIterator[Record]:
        """Async counterpart of ``apply`` for streamed record sources."""
        async for record in records:
            values, _, _ = cls.transform_values(plan, record.id, record.values)
            yield record.with_values(values)

    # =========================================================================
    # Migration pass
    # =========================================================================

    async def migrate(
        self, plan: MigrationPlan, cancel_token: CancellationToken | None = None
    ) -> MigrationReport:
        """Run ``plan`` against every record and commit the new schema version.

        Records are read and transformed in full before anything is written.
        The registry is updated last, so any failure leaves the schema
        version unchanged. Re-running a plan after an aborted write phase is
        safe because the transforms are idempotent.

        Raises:
            VersionMismatch: If another migration holds the slug, or the
                registry is no longer at ``plan.from_version``.
            Conflict: If record writes or bulk operations are running on the slug.
            MigrationAborted: On a coercion, validation or gateway failure.
            MigrationCancelled: If ``cancel_token`` fires mid-pass.
        """
        slug = plan.slug

        with self.intents.exclusive(slug):
            current = self.registry.get(slug)
            if current.version != plan.from_version:
                raise VersionMismatch(slug, plan.from_version, current.version)

            target = plan.target_schema()
            errors = CollectionValidator.validate(target)
            if errors:
                messages = "; ".join(f"{e.field}: {e.message}" for e in errors)
                raise InvalidSchema(f"Invalid target schema for '{slug}': {messages}", errors)

            logger.info(
                "Migration started",
                collection_slug=slug,
                from_version=plan.from_version,
                to_version=plan.to_version,
                step_count=len(plan.steps),
                conflict_policy=plan.conflict_policy.value,
            )

            report = MigrationReport(
                slug=slug, from_version=plan.from_version, to_version=plan.to_version
            )
            processed = 0
            last_record_id: str | None = None

            try:
                if plan.affects_records or _tightens_requirements(current, target):
                    rewrites = await self._transform_all(plan, target, report, cancel_token)

                    for record_id, values in rewrites:
                        self._check_cancelled(slug, cancel_token, processed, last_record_id)
                        last_record_id = record_id
                        try:
                            await self.gateway.update(slug, record_id, values)
                        except NotFound:
                            logger.warning(
                                "Record vanished during migration",
                                collection_slug=slug,
                                record_id=record_id,
                            )
                            continue
                        processed += 1
                    report.records_rewritten = processed

                self._check_cancelled(slug, cancel_token, processed, last_record_id)
                await self.gateway.migrate_schema(current, target)
            except CoercionFailure as e:
                logger.warning(
                    "Migration aborted",
                    collection_slug=slug,
                    record_id=e.record_id,
                    step=e.step,
                    field=e.field,
                    reason=e.reason,
                )
                raise MigrationAborted(
                    slug,
                    e.message,
                    failure=e,
                    processed=report.records_scanned,
                    last_record_id=e.record_id,
                ) from e
            except GatewayUnavailable as e:
                logger.error(
                    "Migration aborted by gateway failure",
                    collection_slug=slug,
                    processed=processed,
                    last_record_id=last_record_id,
                    error=e.message,
                )
                raise MigrationAborted(
                    slug, e.message, processed=processed, last_record_id=last_record_id
                ) from e

            self.registry.replace(slug, target)

        logger.info(
            "Migration committed",
            collection_slug=slug,
            to_version=plan.to_version,
            records_scanned=report.records_scanned,
            records_rewritten=report.records_rewritten,
            values_coerced=report.values_coerced,
            values_dropped=report.values_dropped,
        )
        return report

    async def _transform_all(
        self,
        plan: MigrationPlan,
        target: CollectionSchema,
        report: MigrationReport,
        cancel_token: CancellationToken | None,
    ) -> list[tuple[str, dict[str, Any]]]:
        """Read every record page and buffer the changed values."""
        slug = plan.slug
        partial = plan.conflict_policy is ConflictPolicy.DROP_INVALID
        rewrites: list[tuple[str, dict[str, Any]]] = []
        last_record_id: str | None = None
        page = 1

        while True:
            self._check_cancelled(slug, cancel_token, report.records_scanned, last_record_id)
            try:
                result = await self.gateway.find(
                    slug, None, Pagination(page=page, page_size=self.page_size)
                )
            except GatewayUnavailable as e:
                logger.error(
                    "Migration aborted by gateway failure",
                    collection_slug=slug,
                    processed=report.records_scanned,
                    last_record_id=last_record_id,
                    error=e.message,
                )
                raise MigrationAborted(
                    slug,
                    e.message,
                    processed=report.records_scanned,
                    last_record_id=last_record_id,
                ) from e

            for record in result.items:
                last_record_id = record.id
                values, coerced, dropped = self.transform_values(plan, record.id, record.values)
                try:
                    values = RecordValidator.ensure_valid(values, target, partial=partial)
                except InvalidRecord as e:
                    first = e.errors[0]
                    raise CoercionFailure(record.id, VALIDATE_STEP, first.field, first.message) from e

                report.records_scanned += 1
                report.values_coerced += coerced
                report.values_dropped += dropped
                if values != record.values:
                    rewrites.append((record.id, values))

            if not result.items or page * self.page_size >= result.total:
                break
            page += 1

        return rewrites

    @staticmethod
    def _check_cancelled(
        slug: str,
        cancel_token: CancellationToken | None,
        processed: int,
        last_record_id: str | None,
    ) -> None:
        if cancel_token is not None and cancel_token.cancelled:
            logger.warning(
                "Migration cancelled",
                collection_slug=slug,
                processed=processed,
                last_record_id=last_record_id,
            )
            raise MigrationCancelled(
                slug,
                cancel_token.reason or "cancelled",
                processed=processed,
                last_record_id=last_record_id,
            )

