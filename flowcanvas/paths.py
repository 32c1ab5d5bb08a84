"""
Path utilities for FlowCanvas.

The home directory holds config.json and the default local store (db/).
It resolves in this order:
- FLOWCANVAS_HOME, when set (installed packages, containers)
- next to the executable when frozen (PyInstaller)
- the project root in development

A local store directory is laid out as flows/, published/ and reference/.
"""

import os
import sys
from pathlib import Path
from typing import Dict, Union

HOME_ENV = "FLOWCANVAS_HOME"

# store section -> subdirectory of the store root
STORE_LAYOUT = {
    "flows": "flows",
    "published": "published",
    "reference": "reference",
}


def get_app_dir() -> Path:
    home = os.environ.get(HOME_ENV)
    if home:
        return Path(home).expanduser()
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    return Path(__file__).parent.parent


def get_db_dir() -> Path:
    """Default root of the file store."""
    return get_app_dir() / "db"


def get_config_path() -> Path:
    return get_app_dir() / "config.json"


def ensure_dir(path: Union[str, Path]) -> Path:
    """Create a directory (and parents) if needed and return it."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def store_dirs(root: Union[str, Path]) -> Dict[str, Path]:
    """Create the store sections under `root` and return {section: directory}."""
    root = ensure_dir(root)
    return {section: ensure_dir(root / name) for section, name in STORE_LAYOUT.items()}
