from __future__ import annotations

import asyncio

import pytest

from datamanager.domain.criteria import FieldEquals
from datamanager.domain.errors import ModelNotFoundError
from datamanager.domain.export import (
    ExportQuery,
    PopulateSpec,
    build_query,
    create_file_name_for,
    export_models,
)
from tests.helpers.stores import InMemoryModelHandle, InMemoryModelProvider


class _ReprSerializer:
    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []

    async def serialize(self, fmt, records, options=None) -> bytes:  # noqa: ANN001
        self.calls.append((fmt, options))
        return repr([record["name"] for record in records]).encode()


def test_query_steps_apply_in_fixed_order(people: InMemoryModelHandle) -> None:
    query = ExportQuery(
        sort="name desc",
        limit=2,
        skip=1,
        populate=PopulateSpec("team_id", FieldEquals("name", "Core")),
    )

    built = build_query(people, query)

    assert [name for name, _ in built.calls] == ["populate", "skip", "limit", "sort"]
    assert built.calls[0] == ("populate", ("team_id", FieldEquals("name", "Core")))


def test_absent_steps_are_not_applied(people: InMemoryModelHandle) -> None:
    built = build_query(people, ExportQuery(populate=["team_id"]))

    assert built.calls == [("populate", (["team_id"], None))]


def test_export_models_serializes_matching_records(
    provider: InMemoryModelProvider,
    people: InMemoryModelHandle,
) -> None:
    people.rows.extend(
        [
            {"id": 1, "name": "Ann", "active": True},
            {"id": 2, "name": "Bob", "active": False},
            {"id": 3, "name": "Cid", "active": True},
        ]
    )
    serializer = _ReprSerializer()
    query = ExportQuery(criteria=FieldEquals("active", True), skip=1)

    output = asyncio.run(
        export_models(provider, serializer, "people", query, "csv", {"header": False})
    )

    assert output == b"['Cid']"
    assert serializer.calls == [("csv", {"header": False})]


def test_export_of_unknown_model_fails() -> None:
    with pytest.raises(ModelNotFoundError):
        asyncio.run(export_models(InMemoryModelProvider(), _ReprSerializer(), "ghosts"))


def test_default_file_name_uses_epoch_millis() -> None:
    assert create_file_name_for("people", "csv", clock=lambda: 1_700_000_000_123) == (
        "1700000000123-people.csv"
    )
