"""Error taxonomy shared by the import and export paths."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datamanager.domain.criteria import Criteria
    from datamanager.domain.records import Record


class DataManagerError(RuntimeError):
    """Base class for every error raised by the data manager."""


class ConfigurationError(DataManagerError):
    """Raised when configuration values are invalid."""


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration values are absent or blank."""


class NotFoundError(DataManagerError):
    """Raised when a requested collaborator is not registered."""


class ModelNotFoundError(NotFoundError):
    """Raised when the model provider has no store for an identity."""

    def __init__(self, identity: str) -> None:
        super().__init__(f"Model not found: {identity}")
        self.identity = identity


class UnsupportedFormatError(NotFoundError):
    """Raised when no parser or exporter is registered for a format tag."""

    def __init__(self, fmt: str, *, kind: str) -> None:
        super().__init__(f"No matching {kind} found: {fmt}")
        self.format = fmt
        self.kind = kind


class PersistenceError(DataManagerError):
    """Raised when the model store rejects an operation."""


class PluginLoadError(DataManagerError):
    """Raised when a plugin reference cannot be resolved to a callable."""


class WriteError(DataManagerError):
    """Raised when an export cannot be written to its destination."""


class RecordImportError(DataManagerError):
    """A single record that failed to reconcile.

    The store failure is chained as ``__cause__``; the record and the criteria
    are kept as they were at the time of the failed upsert.
    """

    def __init__(
        self,
        *,
        error_id: str,
        identity: str,
        strategy: str,
        criteria: Criteria,
        record: Record,
        cause: BaseException,
    ) -> None:
        super().__init__(f"{identity}.{strategy} failed: {cause}")
        self.error_id = error_id
        self.identity = identity
        self.strategy = strategy
        self.criteria = criteria
        self.record = record
        self.__cause__ = cause
