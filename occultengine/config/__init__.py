"""Configuration models for occultation searches."""

from __future__ import annotations

from .settings import (
    LEGACY_KEYS,
    ConfigError,
    EngineSettings,
    SearchConfig,
    load_engine_settings,
    load_search_config,
)

__all__ = [
    "ConfigError",
    "EngineSettings",
    "LEGACY_KEYS",
    "SearchConfig",
    "load_engine_settings",
    "load_search_config",
]
