"""Format registry mapping tags to parsers and exporters."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, cast

from datamanager.domain.errors import UnsupportedFormatError

if TYPE_CHECKING:
    from datamanager.domain.export import RecordSerializer
    from datamanager.domain.records import Record

type CodecOptions = Mapping[str, object]
type Parser = Callable[[str, CodecOptions], Sequence[Record] | Awaitable[Sequence[Record]]]
type Exporter = Callable[[Sequence[Record], CodecOptions], bytes | Awaitable[bytes]]


@dataclass(slots=True)
class CodecRegistry:
    """Registered parsers and exporters keyed by format tag.

    Handlers may be plain functions or coroutine functions; ``parse`` and
    ``serialize`` await the result either way.
    """

    _parsers: dict[str, Parser] = field(default_factory=dict[str, Parser])
    _exporters: dict[str, Exporter] = field(default_factory=dict[str, Exporter])

    @classmethod
    def with_defaults(cls) -> CodecRegistry:
        from .delimited import register_delimited_codecs  # noqa: PLC0415
        from .json_codec import register_json_codecs  # noqa: PLC0415

        registry = cls()
        register_delimited_codecs(registry)
        register_json_codecs(registry)
        return registry

    def register_parser(self, fmt: str, parser: Parser) -> None:
        self._parsers[fmt] = parser

    def register_exporter(self, fmt: str, exporter: Exporter) -> None:
        self._exporters[fmt] = exporter

    def parser(self, fmt: str) -> Parser:
        try:
            return self._parsers[fmt]
        except KeyError:
            raise UnsupportedFormatError(fmt, kind="parser") from None

    def exporter(self, fmt: str) -> Exporter:
        try:
            return self._exporters[fmt]
        except KeyError:
            raise UnsupportedFormatError(fmt, kind="exporter") from None

    def formats(self) -> tuple[str, ...]:
        return tuple(sorted(set(self._parsers) | set(self._exporters)))

    async def parse(
        self,
        fmt: str,
        content: str,
        options: CodecOptions | None = None,
    ) -> list[Record]:
        result = self.parser(fmt)(content, options or {})
        if inspect.isawaitable(result):
            result = await result
        return list(cast("Sequence[Record]", result))

    async def serialize(
        self,
        fmt: str,
        records: Sequence[Record],
        options: CodecOptions | None = None,
    ) -> bytes:
        result = self.exporter(fmt)(records, options or {})
        if inspect.isawaitable(result):
            result = await result
        return cast("bytes", result)


if TYPE_CHECKING:
    _serializer_check: RecordSerializer = CodecRegistry()
