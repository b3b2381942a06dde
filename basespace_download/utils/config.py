"""Utility helpers to load YAML configs into namespace-style objects."""

from __future__ import annotations

import copy
import os
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Optional

import yaml

from basespace_download.api.errors import UsageError

TOKEN_ENV_VAR = "BASESPACE_APP_TOKEN"

DEFAULT_CONFIG: dict = {
    "api": {
        "base_url": "https://api.basespace.illumina.com/v1pre3",
        "timeout": [15, 60],
        "retries": 3,
        "backoff_factor": 1.0,
        "page_limit": None,
    },
    "download": {
        "output_dir": ".",
        "chunk_size": 262144,
        "temp_suffix": ".tmp",
        "progress_interval": 0.1,
    },
}


def _to_namespace(obj: Any) -> Any:
    if isinstance(obj, dict):
        return SimpleNamespace(**{k: _to_namespace(v) for k, v in obj.items()})
    if isinstance(obj, list):
        return [_to_namespace(item) for item in obj]
    return obj


def _merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[str | Path] = None) -> SimpleNamespace:
    """Load a YAML file over the built-in defaults and return nested SimpleNamespace objects.

    With no ``path`` the defaults are returned as-is. Keys absent from the file
    keep their default value.
    """
    data: dict = {}
    if path is not None:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return _to_namespace(_merge(DEFAULT_CONFIG, data))


def namespace_to_dict(ns: Any) -> Any:
    """Recursively convert a SimpleNamespace back into primitive types."""
    if isinstance(ns, SimpleNamespace):
        return {k: namespace_to_dict(v) for k, v in ns.__dict__.items()}
    if isinstance(ns, list):
        return [namespace_to_dict(item) for item in ns]
    return ns


def resolve_token(explicit: Optional[str] = None) -> str:
    """Return the app token from the command line, else from ``BASESPACE_APP_TOKEN``."""
    token = explicit or os.environ.get(TOKEN_ENV_VAR, "")
    token = token.strip()
    if not token:
        raise UsageError("Missing app-token! You must obtain an Application Token from Illumina!")
    return token
