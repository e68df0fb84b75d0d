"""Reconciliation engine: turn parsed records into targeted upserts.

One pass handles one entity identity:

1) resolve the store handle and mark the identity as importing
2) apply the batch transform (configured strategy or plugin reference)
3) clear the collection when truncating
4) consume records from the tail of the sequence, one at a time:
   hydrate defaults, resolve identity fields, build criteria, throttle, upsert
5) capture per-record store failures without aborting the batch
6) flush captured errors into the session and clear the importing flag

Only a missing store handle, a failed truncate, or a configuration error is
fatal for the pass.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, cast

from datamanager.domain.criteria import build_criteria, is_empty_criteria
from datamanager.domain.errors import PersistenceError, PluginLoadError, RecordImportError
from datamanager.domain.hydration import hydrate
from datamanager.domain.reconciliation.options import FunctionTransform, UpdateMethod
from datamanager.domain.reconciliation.throttle import Throttle

if TYPE_CHECKING:
    from collections.abc import Sequence

    from datamanager.domain.criteria import Criteria
    from datamanager.domain.ports import ModelHandle, ModelProvider, PluginLoader
    from datamanager.domain.records import Record, Schema
    from datamanager.domain.reconciliation.options import BatchTransform, ImportOptions
    from datamanager.domain.reconciliation.session import ReconciliationSession

log = getLogger(__name__)

type StoreOperation = Callable[[Criteria, Record], Awaitable[Record]]


def bind_operation(handle: ModelHandle, method: UpdateMethod) -> StoreOperation:
    """Map ``method`` to the matching call on ``handle``."""

    match method:
        case UpdateMethod.CREATE:

            async def create(criteria: Criteria, record: Record) -> Record:
                _ = criteria
                return await handle.create(record)

            return create
        case UpdateMethod.UPDATE_OR_CREATE:
            return handle.update_or_create
        case UpdateMethod.UPDATE:
            return handle.update


def record_strategy(
    pass_strategy: UpdateMethod,
    criteria: Criteria,
    *,
    truncate: bool,
) -> UpdateMethod:
    """Return the strategy for one record.

    A truncating pass degrades records without usable identity values to a
    plain create; every other record keeps the pass strategy.
    """

    if truncate and is_empty_criteria(criteria):
        return UpdateMethod.CREATE
    return pass_strategy


def as_record_list(items: Sequence[Record] | Record | None) -> list[Record]:
    if items is None:
        return []
    if isinstance(items, Mapping):
        return [cast("Record", items)]
    return list(items)


@dataclass(slots=True)
class ReconciliationEngine:
    """Run reconciliation passes against the store exposed by ``provider``."""

    provider: ModelProvider
    plugin_loader: PluginLoader | None = None
    throttle: Throttle = field(default_factory=Throttle)

    async def import_models(
        self,
        identity: str,
        items: Sequence[Record] | Record | None,
        options: ImportOptions,
        *,
        session: ReconciliationSession,
    ) -> list[Record]:
        """Reconcile ``items`` into the ``identity`` collection.

        Returns the persisted records in processing order. Per-record failures
        are only visible through ``session.consume_errors_for(identity)``.
        """

        handle = await self.provider.provide_model(identity)
        schema = handle.schema

        output: list[Record] = []
        errors: list[RecordImportError] = []
        session.mark_importing(identity, importing=True)
        try:
            records = self._transform(as_record_list(items), options)
            pass_strategy = UpdateMethod.CREATE if options.truncate else options.update_method
            operations = {
                strategy: bind_operation(handle, strategy)
                for strategy in {pass_strategy, UpdateMethod.CREATE}
            }

            log.info(
                "Importing %s record(s) into %s: strategy=%s, truncate=%s",
                len(records),
                identity,
                pass_strategy,
                options.truncate,
            )

            if options.truncate:
                await self._truncate(handle)

            processed = 0
            while records:
                record = records.pop()
                criteria = self._prepare(schema, record, options)
                strategy = record_strategy(pass_strategy, criteria, truncate=options.truncate)
                if is_empty_criteria(criteria):
                    log.warning(
                        "No identity values for %s record, using %s with empty criteria: %s",
                        identity,
                        strategy,
                        record,
                    )

                await self.throttle.before_record(processed, options)
                processed += 1

                payload = record if options.strict else _known_fields(schema, record)
                try:
                    persisted = await operations[strategy](criteria, payload)
                except Exception as exc:  # noqa: BLE001
                    log.error(
                        "%s.%s failed: %s\nThe record being processed:\n%s",
                        identity,
                        strategy,
                        exc,
                        record,
                    )
                    errors.append(
                        RecordImportError(
                            error_id=session.next_error_id(identity),
                            identity=identity,
                            strategy=strategy.value,
                            criteria=criteria,
                            record=record,
                            cause=exc,
                        )
                    )
                    continue
                output.append(persisted)
        finally:
            if errors:
                session.add_errors(identity, errors)
            session.mark_importing(identity, importing=False)

        log.info(
            "Finished importing %s: stored=%s, failed=%s",
            identity,
            len(output),
            len(errors),
        )
        return output

    def _prepare(self, schema: Schema, record: Record, options: ImportOptions) -> Criteria:
        hydrate(schema, record)
        identity_fields = options.identity_resolver.resolve_identity_fields(
            schema,
            record,
            options.identity_fields,
        )
        return build_criteria(schema, record, identity_fields)

    def _transform(self, records: list[Record], options: ImportOptions) -> list[Record]:
        transform = options.transform or self._load_transform(options.transform_plugin)
        if transform is None:
            return records
        return list(transform.transform_batch(records))

    def _load_transform(self, reference: str | None) -> BatchTransform | None:
        if reference is None:
            return None
        if self.plugin_loader is None:
            log.error("Cannot resolve transform %r: no plugin loader configured", reference)
            return None
        try:
            function = self.plugin_loader.load_plugin(reference)
        except PluginLoadError:
            log.exception("Failed to load transform %r, importing untransformed", reference)
            return None
        except Exception:
            # loaders other than ImportlibPluginLoader may not wrap their failures
            log.exception("Transform loader failed for %r, importing untransformed", reference)
            return None
        return FunctionTransform(cast("Callable[[list[Record]], Sequence[Record]]", function))

    async def _truncate(self, handle: ModelHandle) -> None:
        try:
            removed = await handle.destroy(None)
        except Exception as exc:
            raise PersistenceError(f"Failed to truncate {handle.identity}: {exc}") from exc
        log.info("Truncated %s: removed=%s", handle.identity, removed)


def _known_fields(schema: Schema, record: Record) -> Record:
    return {key: value for key, value in record.items() if key in schema}
