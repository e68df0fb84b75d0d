"""Data manager facade: parse, reconcile and export model collections."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Callable
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from datamanager.adapters import filesystem
from datamanager.codecs import CodecRegistry
from datamanager.domain import export as export_pipeline
from datamanager.domain.reconciliation import (
    ImportOptions,
    ReconciliationEngine,
    Throttle,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from datamanager.codecs import CodecOptions, Exporter, Parser
    from datamanager.domain.export import ExportQuery, FileNameFactory
    from datamanager.domain.ports import ModelProvider, PluginLoader
    from datamanager.domain.reconciliation import ReconciliationSession, Sleeper
    from datamanager.domain.records import Record

log = getLogger(__name__)

type Listener = Callable[[object], None]


def format_from_path(path: Path) -> str:
    return path.suffix.lstrip(".").lower()


class DataManager:
    """Entry point tying codecs, the reconciliation engine and exports together.

    Errors from individual records never fail an import; drain them from the
    session passed to the import call.
    """

    def __init__(
        self,
        provider: ModelProvider,
        *,
        codecs: CodecRegistry | None = None,
        import_options: ImportOptions | None = None,
        plugin_loader: PluginLoader | None = None,
        create_file_name_for: FileNameFactory | None = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.provider = provider
        self.codecs = codecs or CodecRegistry.with_defaults()
        self.import_options = import_options or ImportOptions()
        self.create_file_name_for: FileNameFactory = (
            create_file_name_for or export_pipeline.create_file_name_for
        )
        self.engine = ReconciliationEngine(
            provider,
            plugin_loader=plugin_loader,
            throttle=Throttle(sleep=sleep),
        )
        self._listeners: defaultdict[str, list[Listener]] = defaultdict(list)

    # events ---------------------------------------------------------------

    def on(self, event: str, listener: Listener) -> None:
        self._listeners[event].append(listener)

    def emit(self, event: str, payload: object) -> None:
        for listener in tuple(self._listeners.get(event, ())):
            listener(payload)

    # codecs ---------------------------------------------------------------

    def parser(self, fmt: str, handler: Parser) -> None:
        self.codecs.register_parser(fmt, handler)

    def exporter(self, fmt: str, handler: Exporter) -> None:
        self.codecs.register_exporter(fmt, handler)

    async def export(
        self,
        fmt: str,
        records: Sequence[Record],
        options: CodecOptions | None = None,
    ) -> bytes:
        return await self.codecs.serialize(fmt, records, options)

    # import ---------------------------------------------------------------

    async def import_content(
        self,
        fmt: str,
        content: str,
        options: CodecOptions | None = None,
        *,
        reverse: bool = True,
    ) -> list[Record]:
        """Parse ``content`` and announce the records to listeners.

        The parsed sequence is reversed by default so that the engine, which
        consumes from the tail, upserts records in file order.
        """

        records = await self.codecs.parse(fmt, content, options)
        if reverse:
            records.reverse()
        for record in records:
            self.emit(f"record.{fmt}", record)
        self.emit(f"records.{fmt}", records)
        return records

    async def import_file(
        self,
        path: Path | str,
        *,
        fmt: str | None = None,
        options: CodecOptions | None = None,
    ) -> list[Record]:
        source = Path(path)
        content = filesystem.read_text(source)
        return await self.import_content(fmt or format_from_path(source), content, options)

    async def import_models(
        self,
        identity: str,
        records: Sequence[Record] | Record | None,
        session: ReconciliationSession,
        **overrides: object,
    ) -> list[Record]:
        options = self.import_options.merged(**overrides)
        return await self.engine.import_models(identity, records, options, session=session)

    async def import_as_models(
        self,
        identity: str,
        fmt: str,
        content: str,
        session: ReconciliationSession,
        *,
        codec_options: CodecOptions | None = None,
        **overrides: object,
    ) -> list[Record]:
        records = await self.import_content(fmt, content, codec_options)
        return await self.import_models(identity, records, session, **overrides)

    async def import_file_as_models(
        self,
        identity: str,
        path: Path | str,
        session: ReconciliationSession,
        *,
        fmt: str | None = None,
        codec_options: CodecOptions | None = None,
        **overrides: object,
    ) -> list[Record]:
        records = await self.import_file(path, fmt=fmt, options=codec_options)
        return await self.import_models(identity, records, session, **overrides)

    # export ---------------------------------------------------------------

    async def export_models(
        self,
        identity: str,
        query: ExportQuery | None = None,
        fmt: str = "json",
        options: CodecOptions | None = None,
    ) -> bytes:
        return await export_pipeline.export_models(
            self.provider,
            self.codecs,
            identity,
            query,
            fmt,
            options,
        )

    async def export_models_to_file(
        self,
        identity: str,
        query: ExportQuery | None = None,
        fmt: str = "json",
        options: CodecOptions | None = None,
        *,
        filename: Path | str | None = None,
        directory: Path | None = None,
    ) -> Path:
        """Export ``identity`` and write it to ``filename`` (or a generated name)."""

        target = Path(filename or self.create_file_name_for(identity, fmt))
        if directory is not None and not target.is_absolute():
            target = directory / target
        output = await self.export_models(identity, query, fmt, options)
        filesystem.write_bytes(target, output)
        log.info("Exported %s to %s", identity, target)
        return target
