"""Identity field resolution strategies."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, Protocol, runtime_checkable

from datamanager.domain.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from datamanager.domain.records import Record, Schema


@runtime_checkable
class IdentityResolver(Protocol):
    """Strategy deciding which fields may locate an existing row."""

    def resolve_identity_fields(
        self,
        schema: Schema,
        record: Record,
        base_fields: Sequence[str],
    ) -> tuple[str, ...]: ...


def resolve_identity_fields(schema: Schema, base_fields: Sequence[str]) -> tuple[str, ...]:
    """Return ``base_fields`` followed by every unique schema field not yet listed.

    Order is stable and duplicates are dropped, first occurrence wins.
    """

    fields: dict[str, None] = dict.fromkeys(base_fields)
    for name, definition in schema.items():
        if definition.unique:
            fields.setdefault(name, None)
    return tuple(fields)


@dataclass(frozen=True, slots=True)
class UniqueFieldIdentityResolver:
    """Default strategy: configured base fields plus schema-declared unique fields.

    Only the schema is consulted; whether the record actually carries a value
    for a field is decided later by the criteria builder.
    """

    def resolve_identity_fields(
        self,
        schema: Schema,
        record: Record,
        base_fields: Sequence[str],
    ) -> tuple[str, ...]:
        _ = record
        return resolve_identity_fields(schema, base_fields)


@dataclass(frozen=True, slots=True)
class FixedIdentityResolver:
    """Use the configured base fields as-is, ignoring unique schema fields."""

    def resolve_identity_fields(
        self,
        schema: Schema,
        record: Record,
        base_fields: Sequence[str],
    ) -> tuple[str, ...]:
        _ = schema, record
        return tuple(dict.fromkeys(base_fields))


IDENTITY_RESOLVERS: Final[Mapping[str, Callable[[], IdentityResolver]]] = {
    "unique": UniqueFieldIdentityResolver,
    "fixed": FixedIdentityResolver,
}


def identity_resolver_named(name: str) -> IdentityResolver:
    """Return a new resolver for ``name`` (``unique`` or ``fixed``, case-insensitive)."""

    factory = IDENTITY_RESOLVERS.get(name.strip().lower())
    if factory is None:
        choices = ", ".join(IDENTITY_RESOLVERS)
        raise ConfigurationError(f"Unknown identity resolver {name!r}, expected one of: {choices}")
    return factory()


if TYPE_CHECKING:
    _default_check: IdentityResolver = UniqueFieldIdentityResolver()
    _fixed_check: IdentityResolver = FixedIdentityResolver()
