"""
Typed readers for environment configuration. Values come from the process
environment after setup() has loaded the .env file.
"""
from __future__ import annotations

import os
from pathlib import Path

DEFAULT_DATA_DIR = "local/.agentry"


def get_int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except Exception:
        return default


def get_float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except Exception:
        return default


def get_bool_env(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return val.strip().lower() in ("true", "1", "yes", "on")


def get_data_dir() -> Path:
    """Directory for memory and research files. Created on first use."""
    path = Path(os.getenv("AGENTRY_DATA_DIR", DEFAULT_DATA_DIR))
    path.mkdir(parents=True, exist_ok=True)
    return path
