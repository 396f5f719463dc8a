import logging
import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import app_paths
from logging_config import setup_logging


@pytest.fixture
def data_home(tmp_path, monkeypatch):
    monkeypatch.setenv(app_paths.HOME_ENV_VAR, str(tmp_path / "home"))
    app_paths.reset_cache()
    yield tmp_path / "home"
    app_paths.reset_cache()


def test_env_override_wins(data_home):
    assert app_paths.get_data_dir() == str(data_home)
    assert data_home.is_dir()
    assert app_paths.get_config_path() == os.path.join(str(data_home), "config.json")
    assert app_paths.get_log_path() == os.path.join(str(data_home), "logs", "panel.log")


def test_xdg_data_home(tmp_path, monkeypatch):
    monkeypatch.delenv(app_paths.HOME_ENV_VAR, raising=False)
    monkeypatch.setattr(app_paths.sys, "platform", "linux")
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
    app_paths.reset_cache()
    try:
        assert app_paths.get_data_dir() == os.path.join(str(tmp_path), app_paths.APP_DIR_NAME)
    finally:
        app_paths.reset_cache()


def test_setup_logging_writes_log_file(data_home):
    root = logging.getLogger()
    saved = (root.level, list(root.handlers))
    try:
        setup_logging("WARNING")
        logging.getLogger("rtorrent_rpc").debug("RPC call d.name (1 params)")
        for handler in root.handlers:
            handler.flush()
        log_text = open(app_paths.get_log_path(), encoding="utf-8").read()
        assert "RPC call d.name" in log_text
    finally:
        for handler in root.handlers:
            if handler not in saved[1]:
                handler.close()
        root.handlers[:] = saved[1]
        root.setLevel(saved[0])
