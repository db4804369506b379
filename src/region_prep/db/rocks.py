# region_prep/db/rocks.py
from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from rocksdict import AccessType, Options, Rdict

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

__all__ = ["make_default_options", "open_rocksdb", "open_db", "range_scan"]


def make_default_options(
    *,
    create_if_missing: bool = True,
    background_jobs: Optional[int] = None,
    write_buffer_size: int = 64 * 1024 * 1024,
) -> Options:
    """
    Raw-mode options: keys and values are stored as plain bytes, so byte
    order on disk is the row key order.
    """
    opts = Options(raw_mode=True)
    if create_if_missing:
        opts.create_if_missing(True)

    if background_jobs is None:
        # Heuristic: at least 2, else scale with cores
        background_jobs = max(2, (os.cpu_count() or 2) // 2)
    opts.set_max_background_jobs(int(background_jobs))

    opts.set_write_buffer_size(write_buffer_size)
    return opts


def open_rocksdb(
    db_path: PathLike,
    *,
    read_only: bool = False,
    options: Optional[Options] = None,
    retries: int = 1,
    delay_seconds: float = 0.2,
    backoff: float = 2.0,
) -> Rdict:
    """
    Open a RocksDB at `db_path`, creating parents as needed.

    Retries only on lock-related errors (common after crashed processes).

    Parameters
    ----------
    db_path : str | Path
        Directory for the RocksDB instance.
    read_only : bool
        Open with a read-only access type; the database must exist.
    options : rocksdict.Options | None
        If None, uses `make_default_options()`.
    retries : int
        Additional attempts after the first (total tries = retries + 1).
    delay_seconds : float
        Initial sleep between retries.
    backoff : float
        Multiplicative backoff factor for subsequent sleeps.
    """
    path = Path(db_path).expanduser()
    if read_only:
        if not path.is_dir():
            raise FileNotFoundError(f"No RocksDB database at {path}")
    else:
        path.parent.mkdir(parents=True, exist_ok=True)

    opts = options or make_default_options(create_if_missing=not read_only)
    access = AccessType.read_only() if read_only else AccessType.read_write()

    attempt = 1
    delay = delay_seconds
    while True:
        try:
            db = Rdict(str(path), opts, access_type=access)
            logger.info("Opened RocksDB at %s (attempt %d)", path, attempt)
            return db
        except Exception as exc:
            msg = str(exc).lower()
            lock_issue = "lock" in msg
            if not lock_issue or attempt > retries:
                logger.error("Failed to open RocksDB at %s: %s", path, exc)
                raise

            logger.warning(
                "RocksDB lock issue opening %s (attempt %d/%d): %s",
                path,
                attempt,
                retries + 1,
                exc,
            )
            time.sleep(delay)
            delay *= backoff
            attempt += 1


@contextmanager
def open_db(db_path: PathLike, *, read_only: bool = False, **kwargs) -> Iterator[Rdict]:
    """Open a RocksDB database and close it on every exit path."""
    db = open_rocksdb(db_path, read_only=read_only, **kwargs)
    try:
        yield db
    finally:
        db.close()


def range_scan(
    db: Rdict,
    lower: Optional[bytes] = None,
    upper_exclusive: Optional[bytes] = None,
) -> Iterator[bytes]:
    """
    Yield keys in [lower, upper_exclusive) in byte order.

    Args:
        db: Raw-mode rocksdict handle
        lower: Inclusive lower bound (None scans from the start)
        upper_exclusive: Exclusive upper bound (None scans to the end)
    """
    it = db.iter()
    try:
        if lower is None:
            it.seek_to_first()
        else:
            it.seek(lower)
        while it.valid():
            k = it.key()
            if upper_exclusive is not None and k >= upper_exclusive:
                break
            yield k
            it.next()
    finally:
        del it
