"""Import defaults read from the environment."""

from __future__ import annotations

from dataclasses import dataclass, field

from datamanager.domain.identity import (
    IdentityResolver,
    UniqueFieldIdentityResolver,
    identity_resolver_named,
)
from datamanager.domain.reconciliation.options import (
    DEFAULT_IDENTITY_FIELDS,
    ImportOptions,
    UpdateMethod,
)

from .env import env_float, env_int, env_list, optional_env_var
from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class ImportConfig:
    identity_fields: tuple[str, ...] = DEFAULT_IDENTITY_FIELDS
    update_method: UpdateMethod = UpdateMethod.UPDATE_OR_CREATE
    identity_resolver: IdentityResolver = field(default_factory=UniqueFieldIdentityResolver)
    number_of_items_before_delay: int | None = None
    delay_after_item_batch: float = 0
    delay_between_items: float = 0

    def to_options(self) -> ImportOptions:
        return ImportOptions(
            identity_fields=self.identity_fields,
            update_method=self.update_method,
            identity_resolver=self.identity_resolver,
            number_of_items_before_delay=self.number_of_items_before_delay,
            delay_after_item_batch=self.delay_after_item_batch,
            delay_between_items=self.delay_between_items,
        )


def get_import_config() -> ImportConfig:
    identity_fields = env_list("DATAMANAGER_IDENTITY_FIELDS")
    if identity_fields == ():
        raise ConfigurationError("DATAMANAGER_IDENTITY_FIELDS must name at least one field")
    update_method = optional_env_var("DATAMANAGER_UPDATE_METHOD")
    resolver = optional_env_var("DATAMANAGER_IDENTITY_RESOLVER")
    batch_size = env_int("DATAMANAGER_ITEMS_BEFORE_DELAY")
    if batch_size is not None and batch_size < 0:
        raise ConfigurationError("DATAMANAGER_ITEMS_BEFORE_DELAY must be non-negative")

    return ImportConfig(
        identity_fields=identity_fields or DEFAULT_IDENTITY_FIELDS,
        update_method=(
            UpdateMethod.parse(update_method)
            if update_method
            else UpdateMethod.UPDATE_OR_CREATE
        ),
        identity_resolver=(
            identity_resolver_named(resolver) if resolver else UniqueFieldIdentityResolver()
        ),
        number_of_items_before_delay=batch_size,
        delay_after_item_batch=env_float("DATAMANAGER_DELAY_AFTER_BATCH_MS"),
        delay_between_items=env_float("DATAMANAGER_DELAY_BETWEEN_ITEMS_MS"),
    )
