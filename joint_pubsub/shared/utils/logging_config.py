"""Logging setup for the joint publisher and subscriber services.

Each service logs to stderr and to a rotating ``<log_dir>/<server_name>.log``.
``log_dir`` defaults to ``./logs`` under the working directory at the time of
the call. Calling again reconfigures the root logger, so a later
``debug=True`` takes effect.

Usage:
    from joint_pubsub.shared.utils.logging_config import setup_logging

    setup_logging(server_name="joint_publisher")
    setup_logging(server_name="joint_subscriber", log_dir="/var/log/joint_pubsub", debug=True)
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DIR_NAME = "logs"
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3


def log_path(server_name: str, log_dir: str | Path | None = None) -> Path:
    """Where ``server_name`` writes its log file."""
    base = Path(log_dir) if log_dir else Path.cwd() / LOG_DIR_NAME
    return base / f"{server_name}.log"


def setup_logging(*, server_name: str, log_dir: str | Path | None = None, debug: bool = False) -> Path:
    """Configure the root logger for one service; returns the log file path."""
    path = log_path(server_name, log_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS)
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr), file_handler],
        force=True,
    )
    logging.getLogger(__name__).info("%s logging to %s", server_name, path)
    return path
