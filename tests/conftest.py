from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002

from datamanager.adapters.sqlalchemy import SqlAlchemyModelProvider, create_store_engine, shutdown
from datamanager.domain.reconciliation import ReconciliationSession
from tests.helpers.stores import InMemoryModelHandle, InMemoryModelProvider, RecordingSleep
from tests.helpers.tables import build_metadata

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import MetaData


@pytest.fixture
def metadata() -> MetaData:
    return build_metadata()


@pytest.fixture
def sqlite_engine(metadata: MetaData) -> Iterator[Engine]:
    engine = create_store_engine("sqlite+pysqlite:///:memory:")
    metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_provider(sqlite_engine: Engine, metadata: MetaData) -> SqlAlchemyModelProvider:
    return SqlAlchemyModelProvider.from_metadata(sqlite_engine, metadata)


@pytest.fixture(autouse=True)
def reset_adapter_state() -> Iterator[None]:
    yield
    shutdown()


@pytest.fixture
def session() -> ReconciliationSession:
    return ReconciliationSession()


@pytest.fixture
def people() -> InMemoryModelHandle:
    return InMemoryModelHandle()


@pytest.fixture
def provider(people: InMemoryModelHandle) -> InMemoryModelProvider:
    return InMemoryModelProvider.with_handle(people)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
