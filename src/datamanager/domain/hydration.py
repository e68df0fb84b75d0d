"""Default-value hydration for incoming records."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datamanager.domain.records import Record, Schema


def hydrate(schema: Schema, record: Record) -> Record:
    """Fill every defaulted schema field missing from ``record``, in place.

    A key that is present is never overwritten, even when its value is
    ``None``. Producers are invoked once per missing field.
    """

    for name, definition in schema.items():
        if name in record or not definition.has_default:
            continue
        record[name] = definition.default_value()
    return record
