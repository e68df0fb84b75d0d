"""Derive record schemas from SQLAlchemy table metadata."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)

from datamanager.domain.records import NO_DEFAULT, FieldDefinition

if TYPE_CHECKING:
    from sqlalchemy import Column, Table

    from datamanager.domain.records import DefaultValue, Schema

# Checked in order; Text before String because Text subclasses String.
_TYPE_TAGS: tuple[tuple[type[object], str], ...] = (
    (Text, "text"),
    (String, "string"),
    (Boolean, "boolean"),
    (Integer, "integer"),
    (Numeric, "number"),
    (DateTime, "datetime"),
    (Date, "date"),
    (JSON, "json"),
)


def type_tag(column: Column[object]) -> str:
    for sa_type, tag in _TYPE_TAGS:
        if isinstance(column.type, sa_type):
            return tag
    return str(column.type.__visit_name__)


def _unique_column_names(table: Table) -> set[str]:
    names = {column.name for column in table.columns if column.unique}
    for constraint in table.constraints:
        if isinstance(constraint, UniqueConstraint) and len(constraint.columns) == 1:
            names.update(column.name for column in constraint.columns)
    return names


def _python_default(column: Column[object]) -> DefaultValue:
    """Return the Python-side default of ``column`` or ``NO_DEFAULT``.

    Only scalar and callable column defaults are honoured; SQL expressions and
    sequences are left to the database.
    """

    default = column.default
    if default is None:
        return NO_DEFAULT
    if getattr(default, "is_scalar", False):
        return getattr(default, "arg", NO_DEFAULT)
    if getattr(default, "is_callable", False):
        function = getattr(default, "arg")  # noqa: B009

        def produce() -> object:
            # SQLAlchemy wraps zero-argument callables to accept an execution context
            return function(None)

        return produce
    return NO_DEFAULT


def schema_from_table(table: Table) -> Schema:
    unique = _unique_column_names(table)
    return {
        column.name: FieldDefinition(
            type=type_tag(column),
            unique=column.name in unique,
            defaults_to=_python_default(column),
        )
        for column in table.columns
    }
