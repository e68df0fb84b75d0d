"""Compile criteria to SQL and run chainable queries."""

from __future__ import annotations

import asyncio
from collections.abc import Generator, Mapping, Sequence
from typing import TYPE_CHECKING, Any, Self, cast

from sqlalchemy import and_, false, or_, select, true

from datamanager.domain.criteria import AllOf, AnyOf, FieldEquals
from datamanager.domain.errors import ConfigurationError

if TYPE_CHECKING:
    from sqlalchemy import Column, ColumnElement, Connection, Engine, Table, UnaryExpression

    from datamanager.domain.criteria import Criteria
    from datamanager.domain.ports import ModelQuery, SortSpec
    from datamanager.domain.records import Record


def column_for(table: Table, name: str) -> Column[Any]:
    try:
        return table.columns[name]
    except KeyError:
        raise ConfigurationError(f"{table.name} has no field {name!r}") from None


def compile_criteria(table: Table, criteria: Criteria | None) -> ColumnElement[bool]:
    """Translate ``criteria`` into a boolean SQL expression over ``table``.

    ``None`` matches every row and an empty disjunction matches none.
    """

    if criteria is None:
        return true()
    if isinstance(criteria, FieldEquals):
        column = column_for(table, criteria.field)
        if criteria.value is None:
            return column.is_(None)
        return column == criteria.value
    if isinstance(criteria, AnyOf):
        if not criteria.clauses:
            return false()
        return or_(*(compile_criteria(table, clause) for clause in criteria.clauses))
    if isinstance(criteria, AllOf):
        if not criteria.clauses:
            return true()
        return and_(*(compile_criteria(table, clause) for clause in criteria.clauses))
    raise TypeError(f"Unsupported criteria: {criteria!r}")


def parse_sort(table: Table, spec: SortSpec) -> list[UnaryExpression[object]]:
    """Parse ``"name"``, ``"name desc, id"`` or ``{"name": "desc"}`` into ORDER BY terms."""

    if isinstance(spec, Mapping):
        pairs = [(str(field), str(direction)) for field, direction in spec.items()]
    else:
        pairs = []
        for part in spec.split(","):
            tokens = part.split()
            if not tokens:
                continue
            pairs.append((tokens[0], tokens[1] if len(tokens) > 1 else "asc"))

    terms: list[UnaryExpression[object]] = []
    for field, direction in pairs:
        column = column_for(table, field)
        normalized = direction.strip().lower()
        if normalized in {"asc", "1"}:
            terms.append(column.asc())
        elif normalized in {"desc", "-1"}:
            terms.append(column.desc())
        else:
            raise ConfigurationError(f"Invalid sort direction {direction!r} for {field!r}")
    return terms


class SqlAlchemyQuery:
    """Lazy query over one table; awaiting it returns the matching rows."""

    def __init__(self, engine: Engine, table: Table, criteria: Criteria | None = None) -> None:
        self._engine = engine
        self._table = table
        self._criteria = criteria
        self._populate: list[tuple[str, Criteria | None]] = []
        self._skip: int | None = None
        self._limit: int | None = None
        self._sort: SortSpec | None = None

    def populate(self, names: str | Sequence[str], criteria: Criteria | None = None) -> Self:
        if isinstance(names, str):
            names = [names]
        self._populate.extend((name, criteria) for name in names)
        return self

    def skip(self, count: int) -> Self:
        self._skip = count
        return self

    def limit(self, count: int) -> Self:
        self._limit = count
        return self

    def sort(self, spec: SortSpec) -> Self:
        self._sort = spec
        return self

    def __await__(self) -> Generator[object, None, list[Record]]:
        return self.all().__await__()

    async def all(self) -> list[Record]:
        return await asyncio.to_thread(self._fetch)

    def _fetch(self) -> list[Record]:
        stmt = select(self._table).where(compile_criteria(self._table, self._criteria))
        if self._sort:
            stmt = stmt.order_by(*parse_sort(self._table, self._sort))
        if self._skip:
            stmt = stmt.offset(self._skip)
        if self._limit:
            stmt = stmt.limit(self._limit)

        with self._engine.connect() as connection:
            records = [dict(row) for row in connection.execute(stmt).mappings()]
            for name, criteria in self._populate:
                self._populate_field(connection, records, name, criteria)
        return records

    def _populate_field(
        self,
        connection: Connection,
        records: list[Record],
        name: str,
        criteria: Criteria | None,
    ) -> None:
        column = column_for(self._table, name)
        if not column.foreign_keys:
            raise ConfigurationError(f"{self._table.name}.{name} is not a relation")
        target = next(iter(column.foreign_keys)).column
        target_table = cast("Table", target.table)
        for record in records:
            value = record.get(name)
            if value is None:
                continue
            stmt = (
                select(target_table)
                .where(target == value)
                .where(compile_criteria(target_table, criteria))
                .limit(1)
            )
            related = connection.execute(stmt).mappings().first()
            record[name] = dict(related) if related is not None else None


if TYPE_CHECKING:
    _query_check: ModelQuery = SqlAlchemyQuery(cast("Engine", object()), cast("Table", object()))
