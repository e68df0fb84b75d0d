from __future__ import annotations

from sqlalchemy import Column, Integer, MetaData, String, Table, UniqueConstraint, func

from datamanager.adapters.sqlalchemy import schema_from_table


def test_type_tags_and_unique_flags(metadata: MetaData) -> None:
    schema = schema_from_table(metadata.tables["people"])

    assert {name: field.type for name, field in schema.items()} == {
        "id": "integer",
        "uuid": "string",
        "email": "string",
        "name": "string",
        "bio": "text",
        "active": "boolean",
        "badge": "string",
        "team_id": "integer",
    }
    assert {name for name, field in schema.items() if field.unique} == {"uuid", "email"}


def test_scalar_and_callable_defaults(metadata: MetaData) -> None:
    schema = schema_from_table(metadata.tables["people"])

    assert schema["active"].default_value() is True
    first = schema["badge"].default_value()
    second = schema["badge"].default_value()
    assert first != second
    assert str(first).startswith("B")
    assert not schema["email"].has_default


def test_single_column_unique_constraints_count_as_unique() -> None:
    table = Table(
        "skus",
        MetaData(),
        Column("id", Integer, primary_key=True),
        Column("code", String),
        Column("shelf", String),
        Column("slot", String),
        UniqueConstraint("code"),
        UniqueConstraint("shelf", "slot"),
    )

    schema = schema_from_table(table)

    assert [name for name, field in schema.items() if field.unique] == ["code"]


def test_sql_expression_defaults_are_left_to_the_database() -> None:
    table = Table(
        "events",
        MetaData(),
        Column("id", Integer, primary_key=True),
        Column("stamp", String, default=func.current_timestamp()),
    )

    assert not schema_from_table(table)["stamp"].has_default
