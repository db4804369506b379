# region_prep/pipeline/logger.py
from __future__ import annotations

import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)


def log_file_path(log_dir: Path, prefix: str, when: Optional[datetime] = None) -> Path:
    """Timestamped log file name inside `log_dir`."""
    stamp = (when or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return log_dir / f"{prefix}_{stamp}.log"


def setup_logger(
    log_dir: str | Path,
    *,
    level: int = logging.INFO,
    filename_prefix: str = "region_splits",
    console: bool = False,
    rotate: bool = False,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 3,
    force: bool = False,
) -> Path:
    """
    Send root logging to a timestamped file in `log_dir`.

    The directory is created when missing and is always used as given,
    whatever its name looks like. With `force`, existing root handlers are
    closed and replaced; otherwise the new handlers are added alongside.

    Returns the path to the log file.

    Raises:
        NotADirectoryError: `log_dir` exists and is not a directory
    """
    directory = Path(log_dir).expanduser()
    if directory.exists() and not directory.is_dir():
        raise NotADirectoryError(f"Log directory is a file: {directory}")
    directory.mkdir(parents=True, exist_ok=True)
    log_path = log_file_path(directory, filename_prefix)

    root = logging.getLogger()
    if force:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

    handlers: List[logging.Handler] = []
    if rotate:
        handlers.append(RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        ))
    else:
        handlers.append(logging.FileHandler(log_path, mode="w", encoding="utf-8"))
    if console:
        handlers.append(logging.StreamHandler(sys.stderr))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level)

    logger.info("Logging to: %s", log_path)
    return log_path
