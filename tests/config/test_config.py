from __future__ import annotations

import logging
from pathlib import Path

import pytest

from datamanager.config import (
    ConfigurationError,
    MissingConfigurationError,
    StorageConfig,
    get_database_config,
    get_import_config,
    get_log_level,
    get_storage_config,
    require_env_var,
    require_env_vars,
)
from datamanager.domain.identity import FixedIdentityResolver, UniqueFieldIdentityResolver
from datamanager.domain.reconciliation import UpdateMethod

IMPORT_VARS = (
    "DATAMANAGER_IDENTITY_FIELDS",
    "DATAMANAGER_UPDATE_METHOD",
    "DATAMANAGER_IDENTITY_RESOLVER",
    "DATAMANAGER_ITEMS_BEFORE_DELAY",
    "DATAMANAGER_DELAY_AFTER_BATCH_MS",
    "DATAMANAGER_DELAY_BETWEEN_ITEMS_MS",
)


@pytest.fixture(autouse=True)
def clean_import_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in IMPORT_VARS:
        monkeypatch.delenv(name, raising=False)


def test_require_env_vars_reports_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DM_PRESENT", "yes")
    monkeypatch.setenv("DM_BLANK", "   ")
    monkeypatch.delenv("DM_ABSENT", raising=False)

    with pytest.raises(MissingConfigurationError, match="DM_ABSENT, DM_BLANK"):
        require_env_vars(["DM_PRESENT", "DM_BLANK", "DM_ABSENT"])
    assert require_env_var("DM_PRESENT") == "yes"


def test_import_defaults_without_environment() -> None:
    options = get_import_config().to_options()

    assert options.identity_fields == ("id",)
    assert options.update_method is UpdateMethod.UPDATE_OR_CREATE
    assert options.identity_resolver == UniqueFieldIdentityResolver()
    assert options.number_of_items_before_delay is None
    assert options.delay_after_item_batch == 0
    assert options.delay_between_items == 0


def test_import_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATAMANAGER_IDENTITY_FIELDS", " sku ,id,")
    monkeypatch.setenv("DATAMANAGER_UPDATE_METHOD", "updateOrCreate")
    monkeypatch.setenv("DATAMANAGER_IDENTITY_RESOLVER", " Fixed ")
    monkeypatch.setenv("DATAMANAGER_ITEMS_BEFORE_DELAY", "50")
    monkeypatch.setenv("DATAMANAGER_DELAY_AFTER_BATCH_MS", "1000")
    monkeypatch.setenv("DATAMANAGER_DELAY_BETWEEN_ITEMS_MS", "2.5")

    config = get_import_config()

    assert config.identity_fields == ("sku", "id")
    assert config.update_method is UpdateMethod.UPDATE_OR_CREATE
    assert config.to_options().identity_resolver == FixedIdentityResolver()
    assert config.number_of_items_before_delay == 50
    assert config.delay_after_item_batch == 1000
    assert config.delay_between_items == 2.5


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("DATAMANAGER_IDENTITY_FIELDS", " , "),
        ("DATAMANAGER_UPDATE_METHOD", "merge"),
        ("DATAMANAGER_IDENTITY_RESOLVER", "fuzzy"),
        ("DATAMANAGER_ITEMS_BEFORE_DELAY", "ten"),
        ("DATAMANAGER_ITEMS_BEFORE_DELAY", "-1"),
        ("DATAMANAGER_DELAY_AFTER_BATCH_MS", "soon"),
    ],
)
def test_invalid_import_settings(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError):
        get_import_config()


def test_storage_paths(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DATAMANAGER_DATA_DIR", str(tmp_path / "data"))

    storage = get_storage_config()

    assert storage.root == (tmp_path / "data").resolve()
    assert storage.database_path == (tmp_path / "data" / "datamanager.db").resolve()
    assert not (tmp_path / "data").exists()
    assert storage.database_uri() == f"sqlite+pysqlite:///{storage.database_path}"
    assert (tmp_path / "data").is_dir()


def test_default_data_dir_follows_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("DATAMANAGER_DATA_DIR", raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))

    assert get_storage_config().root == (tmp_path / "datamanager").resolve()


def test_database_uri_prefers_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///:memory:")
    assert get_database_config().uri == "sqlite+pysqlite:///:memory:"

    monkeypatch.delenv("DATABASE_URI")
    storage = StorageConfig(data_dir=tmp_path, database_filename="x.db")
    assert get_database_config(storage=storage).uri.endswith(f"{Path(tmp_path).resolve()}/x.db")


def test_log_level_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATAMANAGER_LOG_LEVEL", "debug")
    assert get_log_level() == logging.DEBUG

    monkeypatch.setenv("DATAMANAGER_LOG_LEVEL", "chatty")
    assert get_log_level() == logging.INFO
