"""Port for resolving plugin references to callables."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable


@runtime_checkable
class PluginLoader(Protocol):
    """Load the callable named by ``reference``, raising ``PluginLoadError`` on failure."""

    def load_plugin(self, reference: str) -> Callable[..., object]: ...
