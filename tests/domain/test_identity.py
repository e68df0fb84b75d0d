from __future__ import annotations

import pytest

from datamanager.domain.errors import ConfigurationError
from datamanager.domain.identity import (
    FixedIdentityResolver,
    UniqueFieldIdentityResolver,
    identity_resolver_named,
    resolve_identity_fields,
)
from datamanager.domain.records import FieldDefinition
from tests.helpers.stores import people_schema


def test_base_fields_come_first_followed_by_unique_fields() -> None:
    fields = resolve_identity_fields(people_schema(), ("id", "uuid"))

    assert fields == ("id", "uuid", "email")


def test_duplicates_are_dropped_first_occurrence_wins() -> None:
    fields = resolve_identity_fields(people_schema(), ("email", "id", "email"))

    assert fields == ("email", "id", "uuid")


def test_unique_fields_keep_schema_order() -> None:
    schema = {
        "code": FieldDefinition(type="string", unique=True),
        "name": FieldDefinition(type="string"),
        "slug": FieldDefinition(type="string", unique=True),
    }

    assert resolve_identity_fields(schema, ("id",)) == ("id", "code", "slug")


def test_default_resolver_ignores_record_contents() -> None:
    resolver = UniqueFieldIdentityResolver()

    fields = resolver.resolve_identity_fields(people_schema(), {}, ("id",))

    assert fields == ("id", "uuid", "email")


def test_fixed_resolver_uses_base_fields_only() -> None:
    resolver = FixedIdentityResolver()

    fields = resolver.resolve_identity_fields(people_schema(), {"email": "a@b"}, ("id", "id"))

    assert fields == ("id",)


def test_resolvers_are_looked_up_by_name() -> None:
    assert identity_resolver_named("unique") == UniqueFieldIdentityResolver()
    assert identity_resolver_named(" FIXED ") == FixedIdentityResolver()

    with pytest.raises(ConfigurationError, match="unique, fixed"):
        identity_resolver_named("fuzzy")
