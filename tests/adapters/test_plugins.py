from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from datamanager.adapters.plugins import ImportlibPluginLoader
from datamanager.domain.errors import PluginLoadError

if TYPE_CHECKING:
    from pathlib import Path

PLUGIN = """
def transform(records):
    return [dict(record, source="plugin") for record in records]

def shout(records):
    return [dict(record, name=record["name"].upper()) for record in records]

NOT_CALLABLE = 3
"""


@pytest.fixture
def plugin_dir(tmp_path: Path) -> Path:
    (tmp_path / "enrich.py").write_text(PLUGIN)
    (tmp_path / "broken.py").write_text("raise RuntimeError('boom')\n")
    return tmp_path


def test_file_reference_defaults_to_transform(plugin_dir: Path) -> None:
    plugin = ImportlibPluginLoader(plugin_dir).load_plugin("enrich.py")

    assert plugin([{"name": "a"}]) == [{"name": "a", "source": "plugin"}]


def test_file_reference_with_attribute(plugin_dir: Path) -> None:
    plugin = ImportlibPluginLoader().load_plugin(f"{plugin_dir / 'enrich.py'}:shout")

    assert plugin([{"name": "a"}]) == [{"name": "A"}]


def test_module_reference() -> None:
    plugin = ImportlibPluginLoader().load_plugin("json:dumps")

    assert plugin([1]) == "[1]"


@pytest.mark.parametrize(
    ("reference", "message"),
    [
        ("", "Empty plugin reference"),
        ("missing.py", "not found"),
        ("enrich.py:absent", "no attribute"),
        ("enrich.py:NOT_CALLABLE", "not callable"),
        ("broken.py", "boom"),
        ("no_such_package.module", "Cannot import"),
    ],
)
def test_failures_raise_plugin_load_error(plugin_dir: Path, reference: str, message: str) -> None:
    with pytest.raises(PluginLoadError, match=message):
        ImportlibPluginLoader(plugin_dir).load_plugin(reference)


def test_module_raising_on_import_is_wrapped(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    (tmp_path / "misconfigured_plugin.py").write_text("raise ValueError('missing setting')\n")
    (tmp_path / "unparsable_plugin.py").write_text("def transform(:\n")
    monkeypatch.syspath_prepend(str(tmp_path))
    loader = ImportlibPluginLoader()

    with pytest.raises(PluginLoadError, match="missing setting") as excinfo:
        loader.load_plugin("misconfigured_plugin:transform")
    assert isinstance(excinfo.value.__cause__, ValueError)

    with pytest.raises(PluginLoadError, match="unparsable_plugin"):
        loader.load_plugin("unparsable_plugin")
