"""Resolve plugin references with ``importlib``."""

from __future__ import annotations

import importlib
import importlib.util
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Final, cast

from datamanager.domain.errors import PluginLoadError

if TYPE_CHECKING:
    from types import ModuleType

    from datamanager.domain.ports import PluginLoader

DEFAULT_ATTRIBUTE: Final[str] = "transform"


class ImportlibPluginLoader:
    """Load ``package.module:attr`` or ``path/to/file.py:attr`` references.

    The attribute defaults to ``transform`` when the reference has no
    ``:attr`` suffix. Relative file paths are resolved against ``base_dir``.
    """

    def __init__(self, base_dir: Path | None = None) -> None:
        self.base_dir = base_dir or Path.cwd()

    def load_plugin(self, reference: str) -> Callable[..., object]:
        target, _, attribute = reference.partition(":")
        attribute = attribute or DEFAULT_ATTRIBUTE
        if not target:
            raise PluginLoadError(f"Empty plugin reference: {reference!r}")

        module = self._load_module(target)
        try:
            plugin = getattr(module, attribute)
        except AttributeError as exc:
            raise PluginLoadError(f"Plugin {target!r} has no attribute {attribute!r}") from exc
        if not callable(plugin):
            raise PluginLoadError(f"Plugin {reference!r} is not callable")
        return cast("Callable[..., object]", plugin)

    def _load_module(self, target: str) -> ModuleType:
        if target.endswith(".py"):
            return self._load_file(Path(target))
        try:
            return importlib.import_module(target)
        except ImportError as exc:
            raise PluginLoadError(f"Cannot import plugin module {target!r}: {exc}") from exc
        except Exception as exc:
            raise PluginLoadError(f"Failed to execute plugin module {target!r}: {exc}") from exc

    def _load_file(self, path: Path) -> ModuleType:
        resolved = path if path.is_absolute() else self.base_dir / path
        spec = importlib.util.spec_from_file_location(
            f"datamanager_plugin_{resolved.stem}", resolved
        )
        if spec is None or spec.loader is None or not resolved.is_file():
            raise PluginLoadError(f"Plugin file not found: {resolved}")
        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)
        except Exception as exc:
            raise PluginLoadError(f"Failed to execute plugin {resolved}: {exc}") from exc
        return module


if TYPE_CHECKING:
    _loader_check: PluginLoader = ImportlibPluginLoader()
