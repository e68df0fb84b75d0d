"""Ports for the persistent model store."""

from __future__ import annotations

from collections.abc import Generator, Mapping, Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datamanager.domain.criteria import Criteria
    from datamanager.domain.records import Record, Schema

type SortSpec = str | Mapping[str, str]


@runtime_checkable
class ModelQuery(Protocol):
    """Lazy, chainable query; awaiting it yields the matching records."""

    def populate(
        self,
        names: str | Sequence[str],
        criteria: Criteria | None = None,
    ) -> ModelQuery: ...

    def skip(self, count: int) -> ModelQuery: ...

    def limit(self, count: int) -> ModelQuery: ...

    def sort(self, spec: SortSpec) -> ModelQuery: ...

    def __await__(self) -> Generator[object, None, list[Record]]: ...


@runtime_checkable
class ModelHandle(Protocol):
    """Store operations for one entity identity."""

    @property
    def identity(self) -> str: ...

    @property
    def schema(self) -> Schema: ...

    def find(self, criteria: Criteria | None = None) -> ModelQuery: ...

    async def destroy(self, criteria: Criteria | None = None) -> int: ...

    async def create(self, record: Record) -> Record: ...

    async def update(self, criteria: Criteria, record: Record) -> Record: ...

    async def update_or_create(self, criteria: Criteria, record: Record) -> Record: ...


@runtime_checkable
class ModelProvider(Protocol):
    """Resolve a store handle for an entity identity.

    Implementations raise ``ModelNotFoundError`` for unknown identities.
    """

    async def provide_model(self, identity: str) -> ModelHandle: ...
