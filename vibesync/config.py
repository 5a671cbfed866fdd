from __future__ import annotations

import json
import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .sync.reconcile import RECONCILE_MODES

DEFAULT_CONFIG_PATH = Path("~/.config/vibesync/config.json").expanduser()

CONFIG_ENV_OVERRIDES = {
    "page_db_path": "VIBESYNC_PAGE_DB",
    "extension_db_path": "VIBESYNC_EXTENSION_DB",
    "reconcile_interval_s": "VIBESYNC_RECONCILE_INTERVAL_S",
    "reconcile_mode": "VIBESYNC_RECONCILE_MODE",
    "page_context": "VIBESYNC_PAGE_CONTEXT",
    "bridge_context": "VIBESYNC_BRIDGE_CONTEXT",
    "log_path": "VIBESYNC_LOG",
}


def get_config_path(path: Path | None = None) -> Path:
    candidate = path or Path(os.getenv("VIBESYNC_CONFIG", DEFAULT_CONFIG_PATH))
    return candidate.expanduser()


def read_config_file(path: Path | None = None) -> dict[str, Any]:
    config_path = get_config_path(path)
    if not config_path.exists():
        return {}
    raw = config_path.read_text()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("invalid config json") from exc
    if not isinstance(data, dict):
        raise ValueError("config must be an object")
    return data


def write_config_file(data: dict[str, Any], path: Path | None = None) -> Path:
    config_path = get_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(data, ensure_ascii=False, indent=2) + "\n")
    return config_path


def get_env_overrides() -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, env_var in CONFIG_ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value is not None:
            overrides[key] = value
    return overrides


@dataclass
class VibeSyncConfig:
    page_db_path: str = "~/.vibesync/page.sqlite"
    extension_db_path: str = "~/.vibesync/extension.sqlite"
    reconcile_interval_s: float = 5.0
    reconcile_mode: str = "symmetric"
    # Store handles in the same context never notify each other.
    page_context: str = "page"
    bridge_context: str = "bridge"
    log_path: str | None = "~/.vibesync/bridge.log"


def _parse_float(value: object, default: float, *, key: str) -> float:
    if value is None:
        return default
    try:
        parsed = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid number for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    if parsed <= 0:
        warnings.warn(f"Invalid number for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    return parsed


def _parse_mode(value: object, default: str) -> str:
    if value is None:
        return default
    if isinstance(value, str) and value.strip().lower() in RECONCILE_MODES:
        return value.strip().lower()
    warnings.warn(f"Invalid reconcile_mode: {value!r}", RuntimeWarning, stacklevel=2)
    return default


def load_config(path: Path | None = None) -> VibeSyncConfig:
    cfg = VibeSyncConfig()
    config_path = get_config_path(path)
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text())
        except json.JSONDecodeError:
            data = {}
        if isinstance(data, dict):
            cfg = _apply_dict(cfg, data)
    cfg = _apply_env(cfg)
    return cfg


def _apply_dict(cfg: VibeSyncConfig, data: dict[str, Any]) -> VibeSyncConfig:
    for key, value in data.items():
        if not hasattr(cfg, key):
            continue
        if key == "reconcile_interval_s":
            cfg.reconcile_interval_s = _parse_float(value, cfg.reconcile_interval_s, key=key)
            continue
        if key == "reconcile_mode":
            cfg.reconcile_mode = _parse_mode(value, cfg.reconcile_mode)
            continue
        setattr(cfg, key, value)
    return cfg


def _apply_env(cfg: VibeSyncConfig) -> VibeSyncConfig:
    cfg.page_db_path = os.getenv("VIBESYNC_PAGE_DB", cfg.page_db_path)
    cfg.extension_db_path = os.getenv("VIBESYNC_EXTENSION_DB", cfg.extension_db_path)
    cfg.reconcile_interval_s = _parse_float(
        os.getenv("VIBESYNC_RECONCILE_INTERVAL_S"),
        cfg.reconcile_interval_s,
        key="reconcile_interval_s",
    )
    cfg.reconcile_mode = _parse_mode(os.getenv("VIBESYNC_RECONCILE_MODE"), cfg.reconcile_mode)
    cfg.page_context = os.getenv("VIBESYNC_PAGE_CONTEXT", cfg.page_context)
    cfg.bridge_context = os.getenv("VIBESYNC_BRIDGE_CONTEXT", cfg.bridge_context)
    cfg.log_path = os.getenv("VIBESYNC_LOG", cfg.log_path)
    return cfg
