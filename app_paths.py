"""Where the panel keeps its config and logs.

``RTORRENT_PANEL_HOME`` overrides everything; otherwise the per-user data
directory is used (APPDATA on Windows, XDG data home elsewhere).
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

APP_DIR_NAME = "rtorrent-panel"
HOME_ENV_VAR = "RTORRENT_PANEL_HOME"

_CACHED_DATA_DIR: Optional[str] = None


def get_user_data_base_dir() -> str:
    if sys.platform == "win32":
        base = os.environ.get("APPDATA") or os.environ.get("LOCALAPPDATA")
        if base:
            return base

    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return xdg

    return os.path.join(os.path.expanduser("~"), ".local", "share")


def get_data_dir() -> str:
    global _CACHED_DATA_DIR
    if _CACHED_DATA_DIR:
        return _CACHED_DATA_DIR

    override = os.environ.get(HOME_ENV_VAR)
    data_dir = override or os.path.join(get_user_data_base_dir(), APP_DIR_NAME)
    Path(data_dir).mkdir(parents=True, exist_ok=True)
    _CACHED_DATA_DIR = data_dir
    return _CACHED_DATA_DIR


def reset_cache() -> None:
    global _CACHED_DATA_DIR
    _CACHED_DATA_DIR = None


def ensure_dir(path: str) -> str:
    Path(path).mkdir(parents=True, exist_ok=True)
    return path


def get_config_path() -> str:
    return os.path.join(get_data_dir(), "config.json")


def get_logs_dir() -> str:
    return ensure_dir(os.path.join(get_data_dir(), "logs"))


def get_log_path(filename: str = "panel.log") -> str:
    return os.path.join(get_logs_dir(), filename)
