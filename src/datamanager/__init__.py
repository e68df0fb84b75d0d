from __future__ import annotations

from importlib import metadata

from .domain.errors import (
    ConfigurationError,
    DataManagerError,
    ModelNotFoundError,
    NotFoundError,
    PersistenceError,
    PluginLoadError,
    RecordImportError,
    UnsupportedFormatError,
    WriteError,
)
from .domain.reconciliation import ImportOptions, ReconciliationSession, UpdateMethod
from .manager import DataManager

try:
    __version__ = metadata.version("datamanager")
except metadata.PackageNotFoundError:
    __version__ = "0.0.0+local"

__all__ = [
    "ConfigurationError",
    "DataManager",
    "DataManagerError",
    "ImportOptions",
    "ModelNotFoundError",
    "NotFoundError",
    "PersistenceError",
    "PluginLoadError",
    "ReconciliationSession",
    "RecordImportError",
    "UnsupportedFormatError",
    "UpdateMethod",
    "WriteError",
    "__version__",
]
