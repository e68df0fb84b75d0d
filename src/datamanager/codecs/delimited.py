"""CSV and TSV codecs built on the standard library ``csv`` module."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from functools import partial
from typing import TYPE_CHECKING, cast

if TYPE_CHECKING:
    from datamanager.domain.records import Record

    from .registry import CodecOptions, CodecRegistry

DELIMITERS: dict[str, str] = {"csv": ",", "tsv": "\t"}


def register_delimited_codecs(registry: CodecRegistry) -> None:
    for fmt, delimiter in DELIMITERS.items():
        registry.register_parser(fmt, partial(parse_delimited, delimiter=delimiter))
        registry.register_exporter(fmt, partial(export_delimited, delimiter=delimiter))


def parse_delimited(content: str, options: CodecOptions, *, delimiter: str) -> list[Record]:
    """Parse delimited text whose first row holds the field names.

    Cells are trimmed unless ``trim`` is false. Rows shorter than the header
    leave the missing fields as ``None``; extra cells are dropped.
    """

    effective_delimiter = cast(str, options.get("delimiter") or delimiter)
    trim = bool(options.get("trim", True))

    reader = csv.reader(io.StringIO(content), delimiter=effective_delimiter)
    rows = [row for row in reader if row]
    if not rows:
        return []

    header = [cell.strip() for cell in rows[0]]
    records: list[Record] = []
    for row in rows[1:]:
        cells = [cell.strip() for cell in row] if trim else row
        record: Record = {}
        for index, key in enumerate(header):
            record[key] = cells[index] if index < len(cells) else None
        records.append(record)
    return records


def export_delimited(
    records: Sequence[Record],
    options: CodecOptions,
    *,
    delimiter: str,
) -> bytes:
    """Serialize ``records`` as delimited text with a header row.

    Columns default to the union of record keys in first-seen order.
    """

    effective_delimiter = cast(str, options.get("delimiter") or delimiter)
    header = bool(options.get("header", True))
    encoding = cast(str, options.get("encoding") or "utf-8")
    columns_option = options.get("columns")
    columns = (
        [str(column) for column in cast(Sequence[object], columns_option)]
        if columns_option
        else _collect_columns(records)
    )

    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=effective_delimiter, lineterminator="\n")
    if header:
        writer.writerow(columns)
    for record in records:
        writer.writerow([_format_cell(record.get(column)) for column in columns])
    return buffer.getvalue().encode(encoding)


def _collect_columns(records: Sequence[Record]) -> list[str]:
    columns: dict[str, None] = {}
    for record in records:
        for key in record:
            columns.setdefault(key, None)
    return list(columns)


def _format_cell(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, Mapping):
        # populated relation, keep only its key
        mapping = cast(Mapping[str, object], value)
        if "id" in mapping:
            return _format_cell(mapping["id"])
        return json.dumps(mapping, default=str)
    if isinstance(value, list | tuple):
        return json.dumps(value, default=str)
    return str(value)
