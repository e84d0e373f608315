from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from opsforge.config import SETTINGS, PROJECT_ROOT

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_installed: list[logging.Handler] = []


def setup_logging(level: str | None = None, log_dir: Path | None = None) -> list[logging.Handler]:
    """Attach the opsforge file and console handlers to the root logger.

    Each cron-triggered run calls this once; calling it again replaces the
    handlers from the previous call instead of stacking duplicates.
    """
    log_dir = log_dir or PROJECT_ROOT / SETTINGS.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    file_handler = RotatingFileHandler(log_dir / "opsforge.log", maxBytes=2_000_000, backupCount=3)
    console_handler = logging.StreamHandler()
    for handler in (file_handler, console_handler):
        handler.setFormatter(formatter)

    root = logging.getLogger()
    while _installed:
        old = _installed.pop()
        root.removeHandler(old)
        old.close()
    for handler in (file_handler, console_handler):
        root.addHandler(handler)
        _installed.append(handler)
    root.setLevel((level or SETTINGS.log_level).upper())

    # keep SQL statements out of the job log
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    return list(_installed)
