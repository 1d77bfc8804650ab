from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml


DEFAULT_CONFIG_PATH = "config/params.yaml"
CONFIG_ENV = "ISS_TRACKER_CONFIG"

OSM_ATTRIBUTION = (
    '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'
)

DEFAULTS: Dict[str, Any] = {
    "telemetry": {
        "url": "https://api.wheretheiss.at/v1/satellites/25544",
        "timeout_s": 10.0,
        "update_interval_ms": 5000,
    },
    "map": {
        "zoom": 3,
        "initial_center": [0.0, 0.0],
        "tile_url": "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
        "subdomains": "abc",
        "attribution": OSM_ATTRIBUTION,
    },
    "marker": {
        "icon_path": "assets/iss_icon.png",
        "icon_size": [50, 32],
        "icon_anchor": [25, 16],
        "popup": "<b>International Space Station (ISS)</b>",
    },
    "display": {
        "error_token": "Error",
        "placeholder": "--",
    },
    "server": {"host": "0.0.0.0", "port": 8000},
    "logging": {"level": None},
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def load_config(path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Load tracker parameters from YAML and merge them over DEFAULTS.

    `path` defaults to $ISS_TRACKER_CONFIG, then config/params.yaml.
    A missing file yields the defaults. A file that is not a YAML mapping
    raises ValueError.
    """
    p = Path(path or config_path_from_env())
    cfg = copy.deepcopy(DEFAULTS)
    if p.exists():
        with p.open("r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config {p} must be a YAML mapping, got {type(data).__name__}")
        cfg = _deep_merge(cfg, data)
    if overrides:
        cfg = _deep_merge(cfg, overrides)
    return cfg


def update_interval_s(cfg: Dict[str, Any]) -> float:
    ms = float(cfg["telemetry"]["update_interval_ms"])
    if ms <= 0:
        raise ValueError("telemetry.update_interval_ms must be > 0")
    return ms / 1000.0


def config_path_from_env(env: Optional[Mapping[str, str]] = None) -> str:
    """Config path fixed at process start: $ISS_TRACKER_CONFIG, else DEFAULT_CONFIG_PATH."""
    env = os.environ if env is None else env
    return env.get(CONFIG_ENV) or DEFAULT_CONFIG_PATH
