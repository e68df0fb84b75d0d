"""SQLAlchemy-backed model provider and engine lifecycle."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, cast

from sqlalchemy import MetaData, create_engine, make_url
from sqlalchemy.pool import StaticPool

from datamanager.config.storage import get_database_config
from datamanager.domain.errors import ModelNotFoundError

from .handle import SqlAlchemyModelHandle

if TYPE_CHECKING:
    from sqlalchemy import Table
    from sqlalchemy.engine import Engine

    from datamanager.domain.ports import ModelProvider

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the SQLAlchemy adapter is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    engine: Engine | None = None


_STATE = _AdapterState()


def create_store_engine(database_uri: str) -> Engine:
    """Create an engine whose connections may be used from worker threads.

    An in-memory SQLite database lives in a single connection, so it is shared
    across threads instead of opening a fresh, empty database per thread.
    """

    url = make_url(database_uri)
    if url.get_backend_name() == "sqlite" and url.database in {None, "", ":memory:"}:
        return create_engine(
            url,
            future=True,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_engine(url, future=True)


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    metadata: MetaData | None = None,
    force: bool = False,
) -> Engine:
    """Initialise the engine and create the tables declared in ``metadata``."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_store_engine(database_uri or get_database_config().uri)
    if metadata is not None:
        metadata.create_all(resolved_engine)
    _STATE.engine = resolved_engine
    return resolved_engine


def configured_engine() -> Engine:
    """Return the engine managed by the adapter."""

    if _STATE.engine is None:
        raise StartupError(
            "SQLAlchemy adapter not initialised. Call datamanager.adapters.sqlalchemy."
            "startup() before requesting models."
        )
    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class SqlAlchemyModelProvider:
    """Resolve entity identities to tables of one database."""

    def __init__(self, engine: Engine, tables: Mapping[str, Table] | Iterable[Table]) -> None:
        self._engine = engine
        if isinstance(tables, Mapping):
            self._tables: dict[str, Table] = dict(tables)
        else:
            self._tables = {table.name: table for table in tables}

    @classmethod
    def from_metadata(cls, engine: Engine, metadata: MetaData) -> SqlAlchemyModelProvider:
        return cls(engine, metadata.tables.values())

    @classmethod
    def reflect(cls, engine: Engine | None = None) -> SqlAlchemyModelProvider:
        """Build a provider from the tables that exist in the database."""

        resolved_engine = engine or configured_engine()
        metadata = MetaData()
        metadata.reflect(bind=resolved_engine)
        log.debug("Reflected tables: %s", ", ".join(sorted(metadata.tables)))
        return cls.from_metadata(resolved_engine, metadata)

    @property
    def identities(self) -> tuple[str, ...]:
        return tuple(sorted(self._tables))

    async def provide_model(self, identity: str) -> SqlAlchemyModelHandle:
        table = self._tables.get(identity)
        if table is None:
            raise ModelNotFoundError(identity)
        return SqlAlchemyModelHandle(self._engine, table, identity=identity)


if TYPE_CHECKING:
    _provider_check: ModelProvider = SqlAlchemyModelProvider(cast("Engine", object()), ())
