from __future__ import annotations

from detrlmi.config.loader import YamlConfigLoader
from detrlmi.config.models import (
    AppConfig,
    BlsSettings,
    CacheSettings,
    ConfigLoadRequest,
    FredSettings,
    LoggingSettings,
    OdbcSettings,
)

__all__ = [
    "AppConfig",
    "BlsSettings",
    "CacheSettings",
    "ConfigLoadRequest",
    "FredSettings",
    "LoggingSettings",
    "OdbcSettings",
    "YamlConfigLoader",
]
