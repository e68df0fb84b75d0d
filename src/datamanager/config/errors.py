"""Configuration error definitions."""

from __future__ import annotations

from datamanager.domain.errors import ConfigurationError, MissingConfigurationError

__all__ = ["ConfigurationError", "MissingConfigurationError"]
