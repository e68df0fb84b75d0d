"""File helpers for reading imports, writing exports and archiving sources."""

from __future__ import annotations

import shutil
import time
from logging import getLogger
from pathlib import Path

from datamanager.domain.errors import WriteError

log = getLogger(__name__)


def read_text(path: Path, *, encoding: str = "utf-8") -> str:
    try:
        return path.read_text(encoding=encoding)
    except OSError:
        log.error("Failed to read import file %s", path)
        raise


def write_bytes(path: Path, data: bytes) -> Path:
    """Write ``data`` to ``path``, creating parent directories."""

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as exc:
        raise WriteError(f"Failed to write {path}: {exc}") from exc
    return path


def archive_target(source: Path, history_dir: Path | None = None) -> Path:
    """Return ``<history_dir>/<epoch-millis>-<name>`` for ``source``."""

    directory = history_dir or source.parent
    return directory / f"{time.time_ns() // 1_000_000}-{source.name}"


def archive(source: Path, history_dir: Path | None = None) -> Path:
    target = archive_target(source, history_dir)
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(source, target)
    return target
