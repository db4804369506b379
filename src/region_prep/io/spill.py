# region_prep/io/spill.py
"""Shuffle spill files: length-prefixed key records grouped by partition."""
from __future__ import annotations

import logging
import struct
from pathlib import Path
from typing import Dict, Iterator, List

logger = logging.getLogger(__name__)

# 4-byte big-endian length prefix per record.
_LEN = struct.Struct(">I")

# 1MB buffer for efficient I/O.
BUFFER_SIZE = 1024 * 1024

__all__ = ["SpillWriter", "iter_spill_file", "partition_dir", "spill_files"]


def partition_dir(spill_dir: Path, partition_id: int) -> Path:
    return spill_dir / f"part-{partition_id:05d}"


def spill_files(spill_dir: Path, partition_id: int) -> List[Path]:
    """All map outputs written for a partition (empty if none)."""
    pdir = partition_dir(spill_dir, partition_id)
    if not pdir.is_dir():
        return []
    return sorted(pdir.glob("map-*.bin"))


class SpillWriter:
    """
    Buffers records per partition and appends them to this map task's file
    for that partition.

    Memory is bounded by `buffer_bytes` across all partitions; when the bound
    is reached every buffer is flushed. Files are opened only while flushing,
    so open handles never exceed one.
    """

    def __init__(self, spill_dir: Path, map_id: int, buffer_bytes: int = 4 * 1024 * 1024):
        self.spill_dir = Path(spill_dir)
        self.map_id = map_id
        self.buffer_bytes = buffer_bytes
        self._buffers: Dict[int, bytearray] = {}
        self._buffered = 0
        self.records_written = 0
        self.flushes = 0

    def path_for(self, partition_id: int) -> Path:
        return partition_dir(self.spill_dir, partition_id) / f"map-{self.map_id:05d}.bin"

    def write(self, partition_id: int, key: bytes) -> None:
        buf = self._buffers.get(partition_id)
        if buf is None:
            buf = self._buffers[partition_id] = bytearray()
        buf += _LEN.pack(len(key))
        buf += key
        self._buffered += _LEN.size + len(key)
        self.records_written += 1
        if self._buffered >= self.buffer_bytes:
            self.flush()

    def flush(self) -> None:
        if not self._buffered:
            return
        for partition_id, buf in self._buffers.items():
            if not buf:
                continue
            path = self.path_for(partition_id)
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "ab", buffering=BUFFER_SIZE) as handle:
                handle.write(buf)
            buf.clear()
        self._buffered = 0
        self.flushes += 1

    def close(self) -> None:
        self.flush()
        self._buffers.clear()

    def __enter__(self) -> "SpillWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            # Partial output of a failed map task is never read.
            self._buffers.clear()


def iter_spill_file(path: Path) -> Iterator[bytes]:
    """Stream the keys of one spill file."""
    with open(path, "rb", buffering=BUFFER_SIZE) as handle:
        while True:
            header = handle.read(_LEN.size)
            if not header:
                return
            if len(header) < _LEN.size:
                raise ValueError(f"Truncated record header in {path}")
            (length,) = _LEN.unpack(header)
            key = handle.read(length)
            if len(key) < length:
                raise ValueError(f"Truncated record in {path}")
            yield key
