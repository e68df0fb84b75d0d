"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from datamanager.adapters import filesystem
from datamanager.adapters.plugins import ImportlibPluginLoader
from datamanager.adapters.sqlalchemy import (
    SqlAlchemyModelProvider,
    configured_engine,
    is_started,
    startup,
)
from datamanager.config import get_import_config
from datamanager.domain.reconciliation import ReconciliationSession
from datamanager.manager import DataManager

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from datamanager.codecs import CodecOptions
    from datamanager.domain.errors import RecordImportError
    from datamanager.domain.export import ExportQuery
    from datamanager.domain.records import Record

log = getLogger(__name__)


@dataclass(slots=True)
class ImportFileResult:
    """Records persisted by one import and the errors drained afterwards."""

    records: list[Record]
    errors: list[RecordImportError] = field(default_factory=list["RecordImportError"])

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(slots=True)
class SyncResult:
    records: list[Record]
    errors: list[RecordImportError] = field(default_factory=list["RecordImportError"])
    archived_to: Path | None = None


def build_manager(*, engine: Engine | None = None) -> DataManager:
    """Return a manager bound to the tables of the configured database."""

    if engine is None:
        if not is_started():
            startup()
        engine = configured_engine()
    return DataManager(
        SqlAlchemyModelProvider.reflect(engine),
        import_options=get_import_config().to_options(),
        plugin_loader=ImportlibPluginLoader(),
    )


def import_file(
    entity: str,
    path: Path | str,
    *,
    manager: DataManager | None = None,
    session: ReconciliationSession | None = None,
    fmt: str | None = None,
    codec_options: CodecOptions | None = None,
    **overrides: object,
) -> ImportFileResult:
    """Import ``path`` into ``entity`` and drain the errors the pass produced."""

    effective_manager = manager or build_manager()
    effective_session = session or ReconciliationSession()
    records = asyncio.run(
        effective_manager.import_file_as_models(
            entity,
            path,
            effective_session,
            fmt=fmt,
            codec_options=codec_options,
            **overrides,
        )
    )
    return ImportFileResult(
        records=records,
        errors=effective_session.consume_errors_for(entity),
    )


def export_models(
    entity: str,
    *,
    query: ExportQuery | None = None,
    fmt: str = "json",
    filename: Path | str | None = None,
    directory: Path | None = None,
    codec_options: CodecOptions | None = None,
    manager: DataManager | None = None,
) -> Path:
    """Export ``entity`` to a file and return its path."""

    effective_manager = manager or build_manager()
    return asyncio.run(
        effective_manager.export_models_to_file(
            entity,
            query,
            fmt,
            codec_options,
            filename=filename,
            directory=directory,
        )
    )


def sync_file(
    entity: str,
    path: Path | str,
    *,
    move_after_done: bool = False,
    history_path: Path | None = None,
    manager: DataManager | None = None,
    session: ReconciliationSession | None = None,
    **overrides: object,
) -> SyncResult:
    """Synchronise ``entity`` from an updated file.

    Errors are drained and logged. When the import is clean and
    ``move_after_done`` is set, the file is archived as
    ``<history_path>/<epoch-millis>-<name>``; archive failures are logged only.
    """

    source = Path(path)
    result = import_file(entity, source, manager=manager, session=session, **overrides)

    if result.errors:
        log.error("Import of %s returned with %s error(s).", entity, len(result.errors))
        for error in result.errors:
            log.error("%s: %s", error.error_id, error)
        return SyncResult(records=result.records, errors=result.errors)

    log.info("Sync completed for entity %s", entity)
    log.debug(json.dumps(result.records, indent=4, default=str))

    archived_to: Path | None = None
    if move_after_done:
        try:
            archived_to = filesystem.archive(source, history_path)
        except OSError:
            log.exception("Error archiving our file: %s", source)
        else:
            log.info("Archived %s to %s", source, archived_to)

    return SyncResult(records=result.records, archived_to=archived_to)
