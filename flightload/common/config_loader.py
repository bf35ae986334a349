"""Configuration loading and validation."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from flightload.common.constants import ENTITIES
from flightload.common.errors import ConfigError
from flightload.common.fs import read_yaml
from flightload.common.models import PipelineConfig, StoreSettings, WriterConfig
from flightload.common.schema import validate_pipeline_config


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        base = read_yaml(path)
        if overlay_path is None or not overlay_path.exists():
            return base
        overlay = read_yaml(overlay_path)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Malformed YAML config: {exc}") from exc
    if overlay is None:
        return base
    if not isinstance(overlay, dict):
        raise ConfigError(f"Overlay config must be a mapping: {overlay_path}")
    return _deep_merge(base, overlay)


def _writer_config(cfg: dict) -> WriterConfig:
    return WriterConfig(**cfg)


def _resolve_input(data_dir: Path, filename: str) -> Path:
    path = Path(filename)
    return path if path.is_absolute() else data_dir / path


def load_pipeline_config(
    config_path: Path,
    *,
    overlay_path: Path | None = None,
    allow_unknown: bool = False,
) -> PipelineConfig:
    cfg = validate_pipeline_config(_load_yaml_with_overlay(config_path, overlay_path), allow_unknown=allow_unknown)

    store_cfg = cfg["store"]
    timeout = store_cfg.get("timeout", {})
    store = StoreSettings(
        endpoint=store_cfg["endpoint"],
        secret_env=store_cfg["secret_env"],
        connect_timeout=float(timeout.get("connect", 10.0)),
        read_timeout=float(timeout.get("read", 60.0)),
    )

    data_dir = Path(cfg["paths"]["data_dir"])
    input_paths: dict[str, Path] = {}
    writers: dict[str, WriterConfig] = {}
    for entity, entity_cfg in cfg["entities"].items():
        input_paths[entity] = _resolve_input(data_dir, entity_cfg["file"])
        writers[entity] = _writer_config(_deep_merge(cfg["writer"], entity_cfg.get("writer", {})))

    return PipelineConfig(
        store=store,
        data_dir=data_dir,
        error_log=Path(cfg["paths"]["error_log"]),
        input_paths=input_paths,
        writers=writers,
    )


def resolve_entities(target: str, config: PipelineConfig) -> list[str]:
    if target == "all":
        return [entity for entity in ENTITIES if entity in config.input_paths]
    if target not in config.input_paths:
        raise ConfigError(f"No input file configured for entity {target}")
    return [target]


def resolve_secret(settings: StoreSettings) -> str:
    secret = os.environ.get(settings.secret_env, "").strip()
    if not secret:
        raise ConfigError(f"Store secret not set; export {settings.secret_env}")
    return secret
