from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel

from detrlmi.config.models import AppConfig, ConfigLoadRequest

OverridePath = tuple[str, ...]


def _read_yaml_config(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Top-level YAML must be a mapping, got: {type(data).__name__}")
    return data


def _section_model(model: type[BaseModel], field_name: str) -> Optional[type[BaseModel]]:
    annotation = model.model_fields[field_name].annotation
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return annotation
    return None


def resolve_override_path(env_name: str, prefix: str) -> OverridePath:
    """
    Map `<prefix>SECTION__KEY` to a field path of `AppConfig`.

    Every segment must name a field of the section before it, and the last one must be
    a value rather than a section. Unknown names raise `KeyError`.
    """
    segments = tuple(part.lower() for part in env_name[len(prefix) :].split("__") if part)
    if not segments:
        raise ValueError(f"Invalid environment variable override name: {env_name}")

    dotted = ".".join(segments)
    model: Optional[type[BaseModel]] = AppConfig
    for segment in segments:
        if model is None or segment not in model.model_fields:
            raise KeyError(f"Unknown configuration key path: {dotted} (from {env_name})")
        model = _section_model(model, segment)
    if model is not None:
        raise TypeError(f"Configuration key path names a section, not a value: {dotted} (from {env_name})")
    return segments


def _set_path(config: dict[str, Any], path: OverridePath, value: Any) -> None:
    node = config
    for segment in path[:-1]:
        child = node.get(segment)
        if child is None:
            child = node[segment] = {}
        elif not isinstance(child, dict):
            raise TypeError(f"Configuration section is not a mapping: {'.'.join(path)}")
        node = child
    # Values stay strings; pydantic coerces them during validation.
    node[path[-1]] = value


def _env_overrides(environ: Mapping[str, str], prefix: str) -> list[tuple[OverridePath, str]]:
    return [
        (resolve_override_path(name, prefix), value)
        for name, value in sorted(environ.items())
        if name.startswith(prefix)
    ]


def _apply_fred_api_key_env(config: dict[str, Any], environ: Mapping[str, str], env_name: str) -> None:
    fred = config.setdefault("fred", {})
    if not isinstance(fred, dict) or fred.get("api_key"):
        return
    value = environ.get(env_name, "").strip()
    if value:
        fred["api_key"] = value


class YamlConfigLoader:
    """
    Build `AppConfig` from its defaults, the YAML file and the environment, in that order.

    A `.env` file is loaded first without overriding variables that are already set.
    """

    async def load(self, request: ConfigLoadRequest = ConfigLoadRequest()) -> AppConfig:
        config = _read_yaml_config(Path(request.yaml_path))

        if request.dotenv_path is not None and Path(request.dotenv_path).is_file():
            load_dotenv(dotenv_path=request.dotenv_path, override=False)

        for path, value in _env_overrides(os.environ, request.env_prefix):
            _set_path(config, path, value)
        _apply_fred_api_key_env(config, os.environ, request.fred_api_key_env)
        return AppConfig.model_validate(config)
