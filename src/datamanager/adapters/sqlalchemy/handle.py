"""Model handle performing store operations on one SQLAlchemy table.

Each operation runs its transaction in a worker thread so that concurrent
passes over different identities do not block the event loop.
"""

from __future__ import annotations

import asyncio
from functools import cached_property
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import and_, delete, insert, select, update

from datamanager.domain.errors import PersistenceError

from .query import SqlAlchemyQuery, compile_criteria
from .schema import schema_from_table

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from sqlalchemy import Column, Connection, Engine, RowMapping, Table

    from datamanager.domain.criteria import Criteria
    from datamanager.domain.ports import ModelHandle
    from datamanager.domain.records import Record, Schema


class RecordNotFoundError(PersistenceError):
    """Raised by ``update`` when no row matches the criteria."""


class SqlAlchemyModelHandle:
    """Store operations for one table, each run in its own transaction."""

    def __init__(self, engine: Engine, table: Table, *, identity: str | None = None) -> None:
        self._engine = engine
        self._table = table
        self._identity = identity or table.name

    @property
    def identity(self) -> str:
        return self._identity

    @property
    def table(self) -> Table:
        return self._table

    @cached_property
    def schema(self) -> Schema:
        return schema_from_table(self._table)

    def find(self, criteria: Criteria | None = None) -> SqlAlchemyQuery:
        return SqlAlchemyQuery(self._engine, self._table, criteria)

    async def destroy(self, criteria: Criteria | None = None) -> int:
        stmt = delete(self._table).where(compile_criteria(self._table, criteria))
        return await self._run(lambda connection: connection.execute(stmt).rowcount)

    async def create(self, record: Record) -> Record:
        return await self._run(lambda connection: self._insert(connection, record))

    async def update(self, criteria: Criteria, record: Record) -> Record:
        def work(connection: Connection) -> Record:
            existing = self._first(connection, criteria)
            if existing is None:
                raise RecordNotFoundError(f"No {self._identity} record matches {criteria!r}")
            return self._update(connection, existing, record)

        return await self._run(work)

    async def update_or_create(self, criteria: Criteria, record: Record) -> Record:
        def work(connection: Connection) -> Record:
            existing = self._first(connection, criteria)
            if existing is None:
                return self._insert(connection, record)
            return self._update(connection, existing, record)

        return await self._run(work)

    async def _run[T](self, work: Callable[[Connection], T]) -> T:
        return await asyncio.to_thread(self._transact, work)

    def _transact[T](self, work: Callable[[Connection], T]) -> T:
        with self._engine.begin() as connection:
            return work(connection)

    def _first(self, connection: Connection, criteria: Criteria) -> RowMapping | None:
        stmt = select(self._table).where(compile_criteria(self._table, criteria)).limit(1)
        return connection.execute(stmt).mappings().first()

    def _insert(self, connection: Connection, record: Record) -> Record:
        result = connection.execute(insert(self._table).values(record))
        if not self._key_columns():
            return dict(record)
        primary_key = result.inserted_primary_key
        if primary_key is None or any(value is None for value in primary_key):
            return dict(record)
        return self._reload(connection, tuple(primary_key), fallback=record)

    def _update(self, connection: Connection, existing: RowMapping, record: Record) -> Record:
        key_columns = self._key_columns()
        if not key_columns:
            stmt = update(self._table).where(
                and_(*(column == existing[column.name] for column in self._table.columns))
            )
            connection.execute(stmt.values(record))
            return {**dict(existing), **record}

        stmt = update(self._table).where(
            and_(*(column == existing[column.name] for column in key_columns))
        )
        connection.execute(stmt.values(record))
        new_key = tuple(record.get(column.name, existing[column.name]) for column in key_columns)
        return self._reload(connection, new_key, fallback={**dict(existing), **record})

    def _reload(
        self,
        connection: Connection,
        key: Sequence[object],
        *,
        fallback: Record,
    ) -> Record:
        key_columns = self._key_columns()
        stmt = select(self._table).where(
            and_(*(column == value for column, value in zip(key_columns, key, strict=True)))
        )
        row = connection.execute(stmt).mappings().first()
        return dict(row) if row is not None else dict(fallback)

    def _key_columns(self) -> list[Column[Any]]:
        return list(self._table.primary_key.columns)


if TYPE_CHECKING:
    _handle_check: ModelHandle = SqlAlchemyModelHandle(
        cast("Engine", object()), cast("Table", object())
    )
