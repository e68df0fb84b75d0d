from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.pool import StaticPool

from datamanager.adapters.sqlalchemy import (
    SqlAlchemyModelProvider,
    StartupError,
    configured_engine,
    create_store_engine,
    is_started,
    startup,
)
from datamanager.domain.errors import ModelNotFoundError

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy import MetaData
    from sqlalchemy.engine import Engine


def test_identities_come_from_table_names(sqlite_provider: SqlAlchemyModelProvider) -> None:
    assert sqlite_provider.identities == ("contacts", "people", "teams")


def test_unknown_identity_raises(sqlite_provider: SqlAlchemyModelProvider) -> None:
    with pytest.raises(ModelNotFoundError, match="Model not found: ghosts"):
        asyncio.run(sqlite_provider.provide_model("ghosts"))


def test_explicit_identity_mapping(sqlite_engine: Engine, metadata: MetaData) -> None:
    provider = SqlAlchemyModelProvider(sqlite_engine, {"members": metadata.tables["people"]})

    handle = asyncio.run(provider.provide_model("members"))

    assert handle.identity == "members"
    assert handle.table.name == "people"


def test_reflection_discovers_existing_tables(sqlite_engine: Engine) -> None:
    provider = SqlAlchemyModelProvider.reflect(sqlite_engine)

    handle = asyncio.run(provider.provide_model("people"))

    assert provider.identities == ("contacts", "people", "teams")
    assert handle.schema["email"].unique


def test_startup_lifecycle(sqlite_engine: Engine, metadata: MetaData) -> None:
    assert not is_started()
    with pytest.raises(StartupError):
        configured_engine()

    assert startup(engine=sqlite_engine, metadata=metadata) is sqlite_engine
    assert configured_engine() is sqlite_engine
    with pytest.raises(StartupError, match="already initialised"):
        startup(engine=sqlite_engine)

    startup(database_uri="sqlite+pysqlite:///:memory:", force=True)
    assert configured_engine() is not sqlite_engine


def test_in_memory_databases_share_one_connection(tmp_path: Path) -> None:
    memory = create_store_engine("sqlite+pysqlite:///:memory:")
    on_disk = create_store_engine(f"sqlite+pysqlite:///{tmp_path / 'store.db'}")
    try:
        assert isinstance(memory.pool, StaticPool)
        assert not isinstance(on_disk.pool, StaticPool)
    finally:
        memory.dispose()
        on_disk.dispose()
