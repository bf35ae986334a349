"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from flightload.common.constants import ENTITIES, WRITER_MODES
from flightload.common.errors import ConfigError

WRITER_KEYS = {"mode", "batch_size", "batch_pause_seconds", "max_in_flight"}


def _assert_mapping(obj, ctx: str) -> dict:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    return obj


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_number(value, ctx: str, *, minimum: float, integer: bool = False) -> None:
    allowed = (int,) if integer else (int, float)
    if isinstance(value, bool) or not isinstance(value, allowed):
        kind = "an integer" if integer else "a number"
        raise ConfigError(f"{ctx} must be {kind}")
    if value < minimum:
        raise ConfigError(f"{ctx} must be >= {minimum}")


def validate_writer_config(cfg: dict, ctx: str, *, allow_unknown: bool = False) -> dict:
    _assert_mapping(cfg, ctx)
    _assert_no_unknown_keys(cfg, WRITER_KEYS, ctx, allow_unknown)
    if "mode" in cfg and cfg["mode"] not in WRITER_MODES:
        raise ConfigError(f"{ctx}.mode must be one of: {', '.join(WRITER_MODES)}")
    if "batch_size" in cfg:
        _assert_number(cfg["batch_size"], f"{ctx}.batch_size", minimum=1, integer=True)
    if "batch_pause_seconds" in cfg:
        _assert_number(cfg["batch_pause_seconds"], f"{ctx}.batch_pause_seconds", minimum=0)
    if "max_in_flight" in cfg:
        _assert_number(cfg["max_in_flight"], f"{ctx}.max_in_flight", minimum=1, integer=True)
    return cfg


def validate_pipeline_config(cfg, *, allow_unknown: bool = False) -> dict:
    _assert_mapping(cfg, "pipeline config")
    top_required = {"store", "writer", "paths", "entities"}
    _assert_required_keys(cfg, top_required, "pipeline config")
    _assert_no_unknown_keys(cfg, top_required, "pipeline config", allow_unknown)

    store = _assert_mapping(cfg["store"], "store")
    _assert_required_keys(store, {"endpoint", "secret_env"}, "store")
    _assert_no_unknown_keys(store, {"endpoint", "secret_env", "timeout"}, "store", allow_unknown)
    timeout = _assert_mapping(store.get("timeout", {}), "store.timeout")
    for key in ("connect", "read"):
        if key in timeout:
            _assert_number(timeout[key], f"store.timeout.{key}", minimum=0)

    validate_writer_config(cfg["writer"], "writer", allow_unknown=allow_unknown)

    paths = _assert_mapping(cfg["paths"], "paths")
    _assert_required_keys(paths, {"data_dir", "error_log"}, "paths")

    entities = _assert_mapping(cfg["entities"], "entities")
    _assert_no_unknown_keys(entities, set(ENTITIES), "entities", allow_unknown=False)
    for name, entity_cfg in entities.items():
        _assert_mapping(entity_cfg, f"entities.{name}")
        _assert_required_keys(entity_cfg, {"file"}, f"entities.{name}")
        _assert_no_unknown_keys(entity_cfg, {"file", "writer"}, f"entities.{name}", allow_unknown)
        if "writer" in entity_cfg:
            validate_writer_config(entity_cfg["writer"], f"entities.{name}.writer", allow_unknown=allow_unknown)

    return cfg
