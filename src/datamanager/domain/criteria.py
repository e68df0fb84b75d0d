"""Lookup criteria and the builder that derives them from identity fields.

A criteria value is one of three immutable shapes:

- ``FieldEquals``: one field-equality clause
- ``AnyOf``: a disjunction of clauses (an empty disjunction matches nothing)
- ``AllOf``: a conjunction of clauses, only produced from export queries

``build_criteria`` collapses a single surviving identity clause to a bare
``FieldEquals`` and wraps two or more in ``AnyOf``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, cast

from datamanager.domain.errors import ConfigurationError

if TYPE_CHECKING:
    from datamanager.domain.records import Record, Schema


@dataclass(frozen=True, slots=True)
class FieldEquals:
    field: str
    value: object


@dataclass(frozen=True, slots=True)
class AnyOf:
    clauses: tuple[Criteria, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.clauses)


@dataclass(frozen=True, slots=True)
class AllOf:
    clauses: tuple[Criteria, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.clauses)


type Criteria = FieldEquals | AnyOf | AllOf


def is_empty_value(value: object) -> bool:
    return value is None or value == ""


def is_empty_criteria(criteria: Criteria) -> bool:
    if isinstance(criteria, FieldEquals):
        return False
    return not criteria.clauses


def cast_field(schema: Schema, record: Record, field: str) -> object:
    """Return the record value for ``field`` cast to the storage type.

    Text fields are coerced to ``str`` and the coerced value is written back
    into ``record`` so the persisted row matches the lookup. ``None`` and
    absent values are left alone.
    """

    definition = schema.get(field)
    if definition is None:
        raise ConfigurationError(f"Identity field {field!r} is not part of the schema")

    value = record.get(field)
    if value is None:
        return None
    if definition.is_text and not isinstance(value, str):
        value = _as_text(value)
        record[field] = value
    return value


def _as_text(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_criteria(
    schema: Schema,
    record: Record,
    identity_fields: Sequence[str],
) -> Criteria:
    """Build the lookup criteria for ``record`` from ``identity_fields``."""

    if not identity_fields:
        raise ConfigurationError("At least one identity field is required to build criteria")

    clauses: list[FieldEquals] = []
    for field in identity_fields:
        value = cast_field(schema, record, field)
        if is_empty_value(value):
            continue
        clauses.append(FieldEquals(field, value))

    if len(clauses) == 1:
        return clauses[0]
    return AnyOf(tuple(clauses))


def criteria_from_mapping(payload: Mapping[str, object] | None) -> Criteria | None:
    """Translate a query mapping into criteria.

    ``{"field": value}`` pairs are combined with AND; an ``"or"`` key holds a
    list of such mappings combined with OR. ``None`` or an empty mapping
    means "match everything" and returns ``None``.
    """

    if not payload:
        return None

    clauses: list[Criteria] = []
    for key, value in payload.items():
        if key == "or":
            if not isinstance(value, Sequence) or isinstance(value, str | bytes):
                raise ConfigurationError("The 'or' criteria must be a list of mappings")
            alternatives: list[Criteria] = []
            for item in cast(Sequence[object], value):
                if not isinstance(item, Mapping):
                    raise ConfigurationError("The 'or' criteria must be a list of mappings")
                nested = criteria_from_mapping(cast(Mapping[str, object], item))
                if nested is not None:
                    alternatives.append(nested)
            clauses.append(AnyOf(tuple(alternatives)))
            continue
        clauses.append(FieldEquals(key, value))

    if len(clauses) == 1:
        return clauses[0]
    return AllOf(tuple(clauses))


def criteria_fields(criteria: Criteria) -> tuple[str, ...]:
    """Return every field referenced by ``criteria`` in first-seen order."""

    if isinstance(criteria, FieldEquals):
        return (criteria.field,)
    seen: dict[str, None] = {}
    for clause in criteria.clauses:
        for field in criteria_fields(clause):
            seen.setdefault(field, None)
    return tuple(seen)
