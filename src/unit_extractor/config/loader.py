from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Sequence

import yaml
from dotenv import load_dotenv

from unit_extractor.config.models import AppConfig, ConfigLoadRequest

logger = logging.getLogger(__name__)


def _read_yaml_config(path: Path) -> dict[str, Any]:
    if not path.exists():
        logger.info("Config file not found, using defaults. path=%s", path)
        return {}

    raw = path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Top-level YAML must be a mapping, got: {type(data).__name__}")
    return data


def _deep_merge(base: MutableMapping[str, Any], overrides: Mapping[str, Any], path: Sequence[str] = ()) -> None:
    for key, value in overrides.items():
        dotted = ".".join([*path, key])
        if key not in base:
            raise KeyError(f"Unknown configuration key path: {dotted}")
        current = base[key]
        if isinstance(current, dict):
            if not isinstance(value, dict):
                raise TypeError(f"Configuration key path expects a mapping: {dotted}")
            _deep_merge(current, value, [*path, key])
        else:
            base[key] = value


def _load_dotenv_if_present(dotenv_path: Path) -> None:
    if not dotenv_path.exists():
        return
    load_dotenv(dotenv_path=dotenv_path, override=False)


def _env_var_name_to_segments(env_var_name: str, prefix: str) -> Sequence[str]:
    remainder = env_var_name[len(prefix) :]
    parts = [p for p in remainder.split("__") if p]
    if not parts:
        raise ValueError(f"Invalid environment variable override name: {env_var_name}")
    return [p.lower() for p in parts]


def _get_parent_mapping(config: MutableMapping[str, Any], path: Sequence[str]) -> MutableMapping[str, Any]:
    cur: MutableMapping[str, Any] = config
    for segment in path[:-1]:
        if segment not in cur:
            dotted = ".".join(path)
            raise KeyError(f"Unknown configuration key path: {dotted}")
        next_value = cur[segment]
        if not isinstance(next_value, dict):
            dotted = ".".join(path)
            raise TypeError(f"Configuration key path does not point to a mapping: {dotted}")
        cur = next_value
    return cur


def _apply_env_overrides(config: MutableMapping[str, Any], env_prefix: str, environ: Mapping[str, str]) -> None:
    for name, value in environ.items():
        if not name.startswith(env_prefix):
            continue

        segments = _env_var_name_to_segments(name, env_prefix)
        parent = _get_parent_mapping(config, segments)
        leaf = segments[-1]
        dotted = ".".join(segments)

        if leaf not in parent:
            raise KeyError(f"Unknown configuration key path: {dotted}")
        if isinstance(parent[leaf], dict):
            raise TypeError(f"Cannot override a configuration section with a scalar: {dotted}")

        # Pydantic handles type coercion/validation later.
        parent[leaf] = value


class YamlConfigLoader:
    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ

    async def load(self, request: ConfigLoadRequest = ConfigLoadRequest()) -> AppConfig:
        config = AppConfig().model_dump()

        if request.yaml_path:
            _deep_merge(config, _read_yaml_config(Path(request.yaml_path)))

        if request.dotenv_path is not None:
            _load_dotenv_if_present(Path(request.dotenv_path))

        environ = os.environ if self._environ is None else self._environ
        _apply_env_overrides(config, request.env_prefix, environ)
        return AppConfig.model_validate(config)
