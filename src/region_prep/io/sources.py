# region_prep/io/sources.py
"""Key sources: a key set exposed as independently readable splits."""
from __future__ import annotations

import gzip
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from region_prep.db.rocks import open_db, range_scan
from region_prep.encoding import KeyLike, to_key, to_keys

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

__all__ = [
    "KeySplit",
    "KeySource",
    "SequenceSplit",
    "SequenceSource",
    "TextFileSplit",
    "TextFileSource",
    "RocksDBRangeSplit",
    "RocksDBSource",
    "uniform_key_ranges",
    "as_source",
]


class KeySplit(ABC):
    """One slice of a key set, read by a single worker.

    Splits are shipped to worker processes, so implementations must be
    picklable and must not hold open handles.
    """

    @abstractmethod
    def iter_keys(self) -> Iterator[bytes]:
        """Stream the split's keys as bytes, in any order."""

    def describe(self) -> str:
        return type(self).__name__


class KeySource(ABC):
    """A key set that is never materialized in one place."""

    @abstractmethod
    def splits(self) -> List[KeySplit]:
        """Return the splits that together cover the key set."""

    def describe(self) -> str:
        return type(self).__name__


# ---------------------------------------------------------------------------
# In-memory keys
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SequenceSplit(KeySplit):
    keys: Tuple[bytes, ...]

    def iter_keys(self) -> Iterator[bytes]:
        return iter(self.keys)

    def describe(self) -> str:
        return f"sequence[{len(self.keys)}]"


class SequenceSource(KeySource):
    """An in-memory collection of keys chunked into contiguous splits."""

    def __init__(self, keys: Iterable[KeyLike], num_splits: int = 8):
        if num_splits < 1:
            raise ValueError(f"num_splits must be >= 1, got {num_splits}")
        self._keys: Tuple[bytes, ...] = tuple(to_keys(keys))
        self.num_splits = num_splits

    def __len__(self) -> int:
        return len(self._keys)

    def splits(self) -> List[KeySplit]:
        n = len(self._keys)
        if n == 0:
            return []
        count = min(self.num_splits, n)
        step = n / count
        out: List[KeySplit] = []
        for i in range(count):
            lo = int(i * step)
            hi = n if i == count - 1 else int((i + 1) * step)
            out.append(SequenceSplit(self._keys[lo:hi]))
        return out

    def describe(self) -> str:
        return f"in-memory sequence ({len(self._keys):,} keys)"


# ---------------------------------------------------------------------------
# Text files
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextFileSplit(KeySplit):
    """A newline-delimited key file; gzip-compressed when named *.gz."""

    path: Path

    def iter_keys(self) -> Iterator[bytes]:
        opener = gzip.open if self.path.suffix == ".gz" else open
        with opener(self.path, "rb") as handle:
            for line in handle:
                line = line.rstrip(b"\n\r")
                if not line:
                    continue
                yield to_key(line)

    def describe(self) -> str:
        return str(self.path)


class TextFileSource(KeySource):
    """One split per file."""

    def __init__(self, paths: Sequence[PathLike]):
        self.paths = [Path(p).expanduser() for p in paths]
        missing = [p for p in self.paths if not p.is_file()]
        if missing:
            raise FileNotFoundError(f"Key files not found: {', '.join(map(str, missing))}")

    def splits(self) -> List[KeySplit]:
        return [TextFileSplit(p) for p in self.paths]

    def describe(self) -> str:
        return f"{len(self.paths)} text file(s)"


# ---------------------------------------------------------------------------
# RocksDB
# ---------------------------------------------------------------------------


def uniform_key_ranges(num_ranges: int) -> List[Tuple[Optional[bytes], Optional[bytes]]]:
    """
    Divide the byte keyspace into ranges of equal first-byte coverage.

    The first range starts at None (beginning of keyspace) and the last ends
    at None (end of keyspace):

        >>> uniform_key_ranges(4)
        [(None, b'@'), (b'@', b'\\x80'), (b'\\x80', b'\\xc0'), (b'\\xc0', None)]
    """
    if num_ranges < 1:
        raise ValueError(f"num_ranges must be >= 1, got {num_ranges}")
    if num_ranges > 256:
        raise ValueError(f"num_ranges must be <= 256, got {num_ranges}")

    # Use 256 (not 255) so the last range ends at None
    step = 256 / num_ranges
    ranges = []
    for i in range(num_ranges):
        start = None if i == 0 else bytes([int(i * step)])
        end = None if i == num_ranges - 1 else bytes([int((i + 1) * step)])
        ranges.append((start, end))
    return ranges


@dataclass(frozen=True)
class RocksDBRangeSplit(KeySplit):
    """Keys of a RocksDB database in [start_key, end_key)."""

    db_path: Path
    start_key: Optional[bytes]
    end_key: Optional[bytes]

    def iter_keys(self) -> Iterator[bytes]:
        with open_db(self.db_path, read_only=True) as db:
            yield from range_scan(db, self.start_key, self.end_key)

    def describe(self) -> str:
        start = self.start_key.hex() if self.start_key else "<start>"
        end = self.end_key.hex() if self.end_key else "<end>"
        return f"{self.db_path.name}[{start} → {end}]"


class RocksDBSource(KeySource):
    """Row keys of a raw-mode RocksDB database, scanned as uniform byte ranges."""

    def __init__(self, db_path: PathLike, num_splits: int = 16):
        self.db_path = Path(db_path).expanduser()
        if not self.db_path.is_dir():
            raise FileNotFoundError(f"No RocksDB database at {self.db_path}")
        self.num_splits = num_splits

    def splits(self) -> List[KeySplit]:
        return [
            RocksDBRangeSplit(self.db_path, start, end)
            for start, end in uniform_key_ranges(self.num_splits)
        ]

    def describe(self) -> str:
        return f"RocksDB {self.db_path} ({self.num_splits} ranges)"


def as_source(keys: Union[KeySource, Iterable[KeyLike]]) -> KeySource:
    """Pass a KeySource through; wrap any other iterable of keys."""
    if isinstance(keys, KeySource):
        return keys
    if isinstance(keys, (str, bytes, bytearray, memoryview)):
        raise TypeError("expected a collection of keys, got a single key")
    return SequenceSource(keys)
