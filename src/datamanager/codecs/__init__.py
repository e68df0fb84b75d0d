"""Format codecs: parse raw content into records and serialize records back."""

from __future__ import annotations

from .delimited import export_delimited, parse_delimited
from .json_codec import JsonPayloadError, export_json, parse_json
from .registry import CodecOptions, CodecRegistry, Exporter, Parser

__all__ = [
    "CodecOptions",
    "CodecRegistry",
    "Exporter",
    "JsonPayloadError",
    "Parser",
    "export_delimited",
    "export_json",
    "parse_delimited",
    "parse_json",
]
