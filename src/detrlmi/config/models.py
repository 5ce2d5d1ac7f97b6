from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

CheckStrategy = Literal["size", "modified"]

DEFAULT_BLS_HEADERS: Dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,text/csv,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Referer": "https://www.bls.gov/cew/",
}


class FileRotationSettings(BaseModel):
    """Log files roll over at midnight; `backup_count` dated files are kept."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    backup_count: int = 7


class FileLoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = ""
    rotation: FileRotationSettings = Field(default_factory=FileRotationSettings)


class LoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    # Level for the detrlmi package loggers.
    level: str = "INFO"
    # Level for everything else (aiohttp, asyncio, matplotlib, ...).
    library_level: str = "WARNING"
    file: FileLoggingSettings = Field(default_factory=FileLoggingSettings)


class CacheSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    # Empty means the per-user platform cache directory for app_name.
    root_dir: str = ""
    app_name: str = "DETRLMI"

    check: CheckStrategy = "size"
    request_timeout_seconds: float = 300.0

    # Remove a directory sitting where a cached file should go.
    repair_path_collisions: bool = True


class FredSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    api_key: str = ""
    base_url: str = "https://api.stlouisfed.org/fred"
    timeout_seconds: float = 60.0


class BlsSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    qcew_base_url: str = "https://www.bls.gov/cew/data/api"
    headers: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_BLS_HEADERS))


class OdbcSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    dsn: str = "WID_DB"


class AppConfig(BaseModel):
    """
    Effective runtime configuration after applying all precedence rules.

    Every section has defaults so an empty or missing YAML file yields a usable config.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    fred: FredSettings = Field(default_factory=FredSettings)
    bls: BlsSettings = Field(default_factory=BlsSettings)
    odbc: OdbcSettings = Field(default_factory=OdbcSettings)


@dataclass(frozen=True, slots=True)
class ConfigLoadRequest:
    """Where `YamlConfigLoader` looks for the YAML file, the `.env` file and override variables."""

    yaml_path: str = "config.yaml"
    env_prefix: str = "DETRLMI__"
    dotenv_path: Optional[str] = ".env"
    fred_api_key_env: str = "FRED_API_KEY"
