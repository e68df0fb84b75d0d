"""Options controlling one reconciliation pass."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Final, Protocol, runtime_checkable

from datamanager.domain.errors import ConfigurationError
from datamanager.domain.identity import IdentityResolver, UniqueFieldIdentityResolver

if TYPE_CHECKING:
    from datamanager.domain.records import Record

DEFAULT_IDENTITY_FIELDS: Final[tuple[str, ...]] = ("id",)


class UpdateMethod(StrEnum):
    """Store operation used to persist a record."""

    CREATE = "create"
    UPDATE_OR_CREATE = "update_or_create"
    UPDATE = "update"

    @classmethod
    def parse(cls, value: str | UpdateMethod) -> UpdateMethod:
        if isinstance(value, UpdateMethod):
            return value
        normalized = value.strip().replace("-", "_")
        if not normalized.isupper():
            # camelCase spelling, e.g. "updateOrCreate"
            normalized = "".join(f"_{c}" if c.isupper() else c for c in normalized)
        try:
            return cls(normalized.lower().lstrip("_"))
        except ValueError as exc:
            choices = ", ".join(member.value for member in cls)
            raise ConfigurationError(
                f"Unknown update method {value!r} (expected one of: {choices})"
            ) from exc


@runtime_checkable
class BatchTransform(Protocol):
    """Strategy mapping the whole incoming record sequence before reconciliation."""

    def transform_batch(self, records: Sequence[Record]) -> list[Record]: ...


@dataclass(frozen=True, slots=True)
class FunctionTransform:
    """Adapt a plain callable to ``BatchTransform``."""

    function: Callable[[list[Record]], Sequence[Record]]

    def transform_batch(self, records: Sequence[Record]) -> list[Record]:
        return list(self.function(list(records)))


@dataclass(frozen=True, slots=True, kw_only=True)
class ImportOptions:
    """Configuration of one reconciliation pass.

    ``transform_plugin`` names a callable resolved through the plugin loader at
    run time; it is only consulted when ``transform`` is not set. Delays are
    in milliseconds. ``strict=False`` drops record keys the schema does not
    declare before they reach the store.
    """

    truncate: bool = False
    identity_fields: tuple[str, ...] = DEFAULT_IDENTITY_FIELDS
    strict: bool = True
    update_method: UpdateMethod = UpdateMethod.UPDATE_OR_CREATE
    identity_resolver: IdentityResolver = field(default_factory=UniqueFieldIdentityResolver)
    transform: BatchTransform | None = None
    transform_plugin: str | None = None
    number_of_items_before_delay: int | None = None
    delay_after_item_batch: float = 0
    delay_between_items: float = 0

    def __post_init__(self) -> None:
        if isinstance(self.identity_fields, str):
            raise ConfigurationError("identity_fields must be a sequence of field names")
        if not isinstance(self.identity_fields, tuple):
            object.__setattr__(self, "identity_fields", tuple(self.identity_fields))
        object.__setattr__(self, "update_method", UpdateMethod.parse(self.update_method))

    def merged(self, **overrides: object) -> ImportOptions:
        """Return a copy with ``overrides`` applied; ``None`` values are ignored."""

        changes = {key: value for key, value in overrides.items() if value is not None}
        if not changes:
            return self
        try:
            return replace(self, **changes)  # pyright: ignore[reportArgumentType]
        except TypeError as exc:
            raise ConfigurationError(f"Invalid import option: {exc}") from exc
