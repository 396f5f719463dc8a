"""Logging setup for the panel's command-line entry points.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed here, once, by whoever runs the program.
"""

from __future__ import annotations

import logging
import logging.config
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from app_paths import get_log_path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", log_file: Optional[str] = None, to_file: bool = True) -> None:
    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "simple": {"format": LOG_FORMAT, "datefmt": DATE_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level.upper(),
                "formatter": "simple",
                "stream": sys.stderr,
            },
        },
        "root": {
            "level": level.upper(),
            "handlers": ["console"],
        },
    }

    if to_file:
        path = Path(log_file or get_log_path())
        path.parent.mkdir(parents=True, exist_ok=True)
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "simple",
            "filename": str(path),
            "maxBytes": 1024 * 1024,
            "backupCount": 3,
            "encoding": "utf-8",
        }
        config["root"]["handlers"].append("file")
        # The file keeps debug detail even when the console is quieter.
        config["root"]["level"] = "DEBUG"

    logging.config.dictConfig(config)
    # urllib3 chatter is not interesting at debug level.
    logging.getLogger("urllib3").setLevel(logging.WARNING)
