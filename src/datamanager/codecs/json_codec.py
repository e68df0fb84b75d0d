"""JSON codec; payloads are validated with pydantic."""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, cast

from pydantic import JsonValue, TypeAdapter, ValidationError

from datamanager.domain.errors import DataManagerError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from datamanager.domain.records import Record

    from .registry import CodecOptions, CodecRegistry

_PAYLOAD_ADAPTER: TypeAdapter[dict[str, JsonValue] | list[dict[str, JsonValue]]] = TypeAdapter(
    dict[str, JsonValue] | list[dict[str, JsonValue]]
)


class JsonPayloadError(DataManagerError):
    """Raised when JSON content is not a record or a list of records."""


def register_json_codecs(registry: CodecRegistry) -> None:
    registry.register_parser("json", parse_json)
    registry.register_exporter("json", export_json)


def parse_json(content: str, options: CodecOptions) -> list[Record]:
    """Parse a JSON record or array of records into a list of records."""

    _ = options
    try:
        payload = _PAYLOAD_ADAPTER.validate_json(content)
    except ValidationError as exc:
        raise JsonPayloadError(f"Invalid JSON records: {exc}") from exc
    if isinstance(payload, dict):
        return [cast("Record", payload)]
    return [cast("Record", item) for item in payload]


def export_json(records: Sequence[Record], options: CodecOptions) -> bytes:
    indent = cast("int | None", options.get("indent", 4))
    encoding = cast(str, options.get("encoding") or "utf-8")
    text = json.dumps(list(records), indent=indent, default=_json_default, ensure_ascii=False)
    return text.encode(encoding)


def _json_default(value: Any) -> object:
    if isinstance(value, datetime | date):
        return value.isoformat()
    return str(value)
