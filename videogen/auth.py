"""Configuration and credential lookup.

The API key never lives in config.yaml. It is read from the process
environment each time it is needed, so a key selected mid-session is
picked up by the next request.
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml

DEFAULT_KEY_ENV = "API_KEY"

_DEFAULT_CONFIG = "config.yaml"


def load_config(config_path: str | Path | None = None) -> dict:
    """Load and return the configuration dictionary.

    Args:
        config_path: Path to config.yaml. Defaults to ./config.yaml.

    Returns:
        The parsed config dictionary.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the file does not contain a mapping.
    """
    path = Path(config_path or _DEFAULT_CONFIG)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Config must be a mapping, got {type(config).__name__}: {path}")
    return config


def get_key_env(config: dict) -> str:
    """Name of the environment variable holding the API key."""
    return config.get("api", {}).get("key_env") or DEFAULT_KEY_ENV


def has_api_key(key_env: str = DEFAULT_KEY_ENV) -> bool:
    return bool(os.environ.get(key_env, "").strip())


def get_api_key(key_env: str = DEFAULT_KEY_ENV) -> str:
    """Return the API key from the environment.

    Raises:
        ValueError: If the variable is unset or blank.
    """
    api_key = os.environ.get(key_env, "").strip()
    if not api_key:
        raise ValueError(
            f"API key not configured. Set the {key_env} environment variable "
            "or select a key with --select-key."
        )
    return api_key
