"""Export pipeline: query a model store and serialize the result."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datamanager.domain.criteria import Criteria
    from datamanager.domain.ports import ModelHandle, ModelProvider, ModelQuery, SortSpec
    from datamanager.domain.records import Record

log = getLogger(__name__)

type FileNameFactory = Callable[[str, str], str]


@dataclass(frozen=True, slots=True)
class PopulateSpec:
    """Populate one related field, optionally filtering the related rows."""

    name: str
    criteria: Criteria | None = None


type Populate = str | Sequence[str] | PopulateSpec


@dataclass(frozen=True, slots=True, kw_only=True)
class ExportQuery:
    criteria: Criteria | None = None
    populate: Populate | None = None
    skip: int | None = None
    limit: int | None = None
    sort: SortSpec | None = None


@runtime_checkable
class RecordSerializer(Protocol):
    """Serialize records into a format identified by a tag."""

    def serialize(
        self,
        fmt: str,
        records: Sequence[Record],
        options: Mapping[str, object] | None = None,
    ) -> Awaitable[bytes]: ...


def build_query(handle: ModelHandle, query: ExportQuery) -> ModelQuery:
    """Apply population, skip, limit and sort, in that order, when present."""

    orm = handle.find(query.criteria)
    if query.populate is not None:
        if isinstance(query.populate, PopulateSpec):
            orm = orm.populate(query.populate.name, query.populate.criteria)
        else:
            orm = orm.populate(query.populate)
    if query.skip:
        orm = orm.skip(query.skip)
    if query.limit:
        orm = orm.limit(query.limit)
    if query.sort:
        orm = orm.sort(query.sort)
    return orm


async def export_models(
    provider: ModelProvider,
    serializer: RecordSerializer,
    identity: str,
    query: ExportQuery | None = None,
    fmt: str = "json",
    options: Mapping[str, object] | None = None,
) -> bytes:
    """Query ``identity`` and serialize the matching records as ``fmt``."""

    handle = await provider.provide_model(identity)
    records = await build_query(handle, query or ExportQuery())
    log.info("Exporting %s %s record(s) as %s", len(records), identity, fmt)
    return await serializer.serialize(fmt, records, options)


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


def create_file_name_for(
    identity: str,
    fmt: str,
    *,
    clock: Callable[[], int] = _epoch_millis,
) -> str:
    """Return the default export file name ``<epoch-millis>-<identity>.<fmt>``."""

    return f"{clock()}-{identity}.{fmt}"
