# transit_checkin/utils/logger.py
"""
Logging setup shared by the API, the views and the scripts.

Console always; rotating file under LOG_DIR unless LOG_TO_FILE is off
(the test-suite turns it off). Size and retention come from settings.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from transit_checkin.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_FILE = "checkin.log"

# httpx and httpcore log every request at INFO/DEBUG; the store streams make that a flood
QUIET_LOGGERS = ("httpx", "httpcore")

_installed: list = []


def _log_dir(log_dir: Optional[str]) -> str:
    path = log_dir or settings.LOG_DIR
    if not os.path.isabs(path):
        project_root = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
        path = os.path.join(project_root, path)
    return path


def configure_logging(
    level: Optional[str] = None,
    log_dir: Optional[str] = None,
    to_file: Optional[bool] = None,
    force: bool = False,
):
    """Install the handlers on the root logger once; force=True replaces them."""
    if _installed and not force:
        return
    root = logging.getLogger()
    for handler in _installed:
        root.removeHandler(handler)
        handler.close()
    _installed.clear()

    level = (level or settings.LOG_LEVEL).upper()
    to_file = settings.LOG_TO_FILE if to_file is None else to_file
    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console = logging.StreamHandler()
    console.setFormatter(fmt)
    _installed.append(console)

    if to_file:
        directory = _log_dir(log_dir)
        os.makedirs(directory, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=os.path.join(directory, LOG_FILE),
            maxBytes=settings.LOG_MAX_MB * 1024 * 1024,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(fmt)
        _installed.append(file_handler)

    for handler in _installed:
        handler.setLevel(level)
        root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)
