"""Shared logging helpers."""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_log_level(default: int = logging.INFO) -> int:
    """Return the level named by ``DATAMANAGER_LOG_LEVEL`` (e.g. ``DEBUG``)."""

    name = os.getenv("DATAMANAGER_LOG_LEVEL")
    if not name:
        return default
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else default


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger once with a terse format suitable for CLI output.

    ``level`` defaults to ``DATAMANAGER_LOG_LEVEL`` or INFO. Pass ``force=True``
    to reconfigure during tests or specialised entry points.
    """

    logging.basicConfig(
        level=level if level is not None else get_log_level(),
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        force=force,
    )
