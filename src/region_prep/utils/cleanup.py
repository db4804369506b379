# region_prep/utils/cleanup.py
from __future__ import annotations

import logging
import shutil
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

__all__ = ["safe_rmtree", "scratch_dir"]


def safe_rmtree(
    path: PathLike,
    max_retries: int = 3,
    delay_seconds: float = 0.5,
    backoff: float = 2.0,
) -> bool:
    """
    Remove a directory tree, retrying transient OS errors.

    Behavior
    --------
    - If the path doesn't exist: returns True (idempotent no-op).
    - If the path exists but isn't a directory: raises ValueError.
    - Returns False after the last failed attempt instead of raising.
    """
    path = Path(path).expanduser()

    if not path.exists():
        return True
    if not path.is_dir():
        raise ValueError(f"{path!s} exists but is not a directory")

    delay = delay_seconds
    for attempt in range(1, max_retries + 1):
        try:
            shutil.rmtree(path)
            logger.debug("Removed %s (attempt %d)", path, attempt)
            return True
        except OSError as exc:
            if attempt == max_retries:
                logger.error(
                    "Failed to remove %s after %d attempts: %s", path, max_retries, exc
                )
                return False

            logger.warning(
                "Cleanup attempt %d/%d for %s failed: %s", attempt, max_retries, path, exc
            )
            time.sleep(delay)
            delay *= backoff

    return False


@contextmanager
def scratch_dir(parent: Optional[PathLike] = None, prefix: str = "region-prep-") -> Iterator[Path]:
    """A private temporary directory removed on every exit path."""
    if parent is not None:
        Path(parent).expanduser().mkdir(parents=True, exist_ok=True)
    path = Path(tempfile.mkdtemp(prefix=prefix, dir=None if parent is None else str(parent)))
    logger.debug("Created scratch directory %s", path)
    try:
        yield path
    finally:
        if not safe_rmtree(path):
            logger.warning("Scratch directory left behind: %s", path)
