"""Config management for the rTorrent panel.

Goals:
- Store connection profiles and RPC preferences in a JSON file in the data directory.
- Survive a corrupt or partial file by falling back to defaults.
- Keep a stable, minimal API used by the CLI.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import uuid
from typing import Any, Dict, Optional

from app_paths import get_config_path

logger = logging.getLogger(__name__)


def _read_json(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _write_json(path: str, data: Dict[str, Any]) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=4)


DEFAULT_PREFERENCES: Dict[str, Any] = {
    "timeout": 10,  # seconds, per round trip
    "verify_ssl": True,
    "view": "default",
    "log_level": "INFO",
}

DEFAULT_CONFIG: Dict[str, Any] = {
    "default_profile": "",
    "profiles": {},  # uuid -> profile_dict
    "preferences": DEFAULT_PREFERENCES,
}


class ConfigManager:
    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or get_config_path()
        self.config: Dict[str, Any] = self.load_config()

    def _normalize(self, cfg: Dict[str, Any]) -> Dict[str, Any]:
        # Ensure preferences exist and contain all required keys.
        prefs = cfg.get("preferences")
        if not isinstance(prefs, dict):
            prefs = {}
        for k, v in DEFAULT_PREFERENCES.items():
            prefs.setdefault(k, v)
        cfg["preferences"] = prefs

        profiles = cfg.get("profiles")
        if not isinstance(profiles, dict):
            cfg["profiles"] = {}

        cfg.setdefault("default_profile", "")
        return cfg

    def load_config(self) -> Dict[str, Any]:
        if os.path.exists(self.path):
            try:
                return self._normalize(_read_json(self.path))
            except (OSError, ValueError) as e:
                logger.warning("Ignoring unreadable config %s: %s", self.path, e)
                return copy.deepcopy(DEFAULT_CONFIG)

        # First run: create a default config.
        cfg = copy.deepcopy(DEFAULT_CONFIG)
        try:
            _write_json(self.path, cfg)
        except OSError as e:
            logger.warning("Could not write default config %s: %s", self.path, e)
        return cfg

    def save_config(self) -> None:
        _write_json(self.path, self.config)

    def get_preferences(self) -> Dict[str, Any]:
        return dict(self.config.get("preferences", DEFAULT_PREFERENCES))

    def set_preferences(self, prefs: Dict[str, Any]) -> None:
        self.config["preferences"] = dict(prefs)
        self.save_config()

    def transport_options(self) -> Dict[str, Any]:
        prefs = self.get_preferences()
        return {"timeout": prefs["timeout"], "verify_ssl": prefs["verify_ssl"]}

    def get_profiles(self) -> Dict[str, Any]:
        profiles = self.config.get("profiles", {})
        return profiles if isinstance(profiles, dict) else {}

    def add_profile(self, name: str, url: str, user: str = "", password: str = "") -> str:
        pid = str(uuid.uuid4())
        self.config.setdefault("profiles", {})[pid] = {
            "name": name,
            "url": url,
            "user": user,
            "password": password,
        }
        if not self.get_default_profile_id():
            self.config["default_profile"] = pid
        self.save_config()
        return pid

    def update_profile(self, pid: str, **fields: Any) -> None:
        if pid in self.get_profiles():
            self.config["profiles"][pid].update(fields)
            self.save_config()

    def delete_profile(self, pid: str) -> None:
        if pid in self.get_profiles():
            del self.config["profiles"][pid]
            if self.config.get("default_profile") == pid:
                self.config["default_profile"] = ""
            self.save_config()

    def get_default_profile_id(self) -> str:
        return str(self.config.get("default_profile", ""))

    def set_default_profile_id(self, pid: str) -> None:
        self.config["default_profile"] = pid
        self.save_config()

    def get_profile(self, pid: Optional[str] = None) -> Optional[Dict[str, Any]]:
        return self.get_profiles().get(pid or self.get_default_profile_id())
