# Shared helpers: environment setup, env parsing, ids.

from .setup import setup, setup_logging
from .env import get_int_env, get_float_env, get_bool_env, get_data_dir
from .id import create_id

__all__ = [
    "setup",
    "setup_logging",
    "get_int_env",
    "get_float_env",
    "get_bool_env",
    "get_data_dir",
    "create_id",
]
