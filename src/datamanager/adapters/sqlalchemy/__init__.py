"""SQLAlchemy adapter package for the data manager."""

from __future__ import annotations

from .handle import RecordNotFoundError, SqlAlchemyModelHandle
from .provider import (
    SqlAlchemyModelProvider,
    StartupError,
    configured_engine,
    create_store_engine,
    is_started,
    shutdown,
    startup,
)
from .query import SqlAlchemyQuery, compile_criteria, parse_sort
from .schema import schema_from_table, type_tag

__all__ = [
    "RecordNotFoundError",
    "SqlAlchemyModelHandle",
    "SqlAlchemyModelProvider",
    "SqlAlchemyQuery",
    "StartupError",
    "compile_criteria",
    "configured_engine",
    "create_store_engine",
    "is_started",
    "parse_sort",
    "schema_from_table",
    "shutdown",
    "startup",
    "type_tag",
]
