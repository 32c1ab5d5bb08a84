"""
Configuration management for FlowCanvas.

Settings come from two places:
- config.json next to the executable/project root
- FLOWCANVAS_* environment variables (a .env file is loaded by app.py)

Environment variables always win over the config file.
"""

import json
import logging
import os
from typing import Any, Optional

from flowcanvas.paths import get_config_path, get_db_dir

logger = logging.getLogger(__name__)

# setting key -> (environment variable, default)
SETTINGS = {
    "storage_backend": ("FLOWCANVAS_STORAGE", "file"),
    "api_base_url": ("FLOWCANVAS_API_URL", "http://localhost:3000"),
    "api_token": ("FLOWCANVAS_API_TOKEN", None),
    "request_timeout": ("FLOWCANVAS_TIMEOUT", 10.0),
    "data_dir": ("FLOWCANVAS_DATA_DIR", None),
    "log_level": ("FLOWCANVAS_LOG_LEVEL", "INFO"),
    "port": ("FLOWCANVAS_PORT", 8081),
}


def load_config() -> dict:
    """Load configuration from config.json."""
    config_path = get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Failed to load config from {config_path}: {e}")
            return {}
    return {}


def save_config(config: dict) -> None:
    """Save configuration to config.json."""
    config_path = get_config_path()
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)


def _coerce(value: Any, default: Any) -> Any:
    """Cast a raw (string) value to the type of its default."""
    if default is None or value is None:
        return value
    try:
        if isinstance(default, bool):
            return str(value).lower() in ("1", "true", "yes", "on")
        if isinstance(default, int):
            return int(value)
        if isinstance(default, float):
            return float(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid config value {value!r}, using default {default!r}")
        return default
    return value


def get_setting(key: str, config: Optional[dict] = None) -> Any:
    """
    Get a single setting.

    Priority:
    1. Environment variable (e.g. FLOWCANVAS_API_URL)
    2. Stored in config.json
    3. Built-in default
    """
    if key not in SETTINGS:
        raise KeyError(f"Unknown setting: {key}")
    env_name, default = SETTINGS[key]

    env_value = os.environ.get(env_name)
    if env_value:
        return _coerce(env_value, default)

    if config is None:
        config = load_config()
    if config.get(key) is not None:
        return _coerce(config[key], default)

    if key == "data_dir":
        return str(get_db_dir())
    return default


def get_settings() -> dict:
    """Resolve every known setting at once (config file read a single time)."""
    config = load_config()
    return {key: get_setting(key, config) for key in SETTINGS}


def set_setting(key: str, value: Any) -> None:
    """Persist a setting to config.json."""
    if key not in SETTINGS:
        raise KeyError(f"Unknown setting: {key}")
    config = load_config()
    config[key] = value
    save_config(config)
