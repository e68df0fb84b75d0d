"""Domain port definitions for adapters."""

from __future__ import annotations

from .model_store import ModelHandle, ModelProvider, ModelQuery, SortSpec
from .plugins import PluginLoader

__all__ = [
    "ModelHandle",
    "ModelProvider",
    "ModelQuery",
    "PluginLoader",
    "SortSpec",
]
