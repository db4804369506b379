"""Key sources and shuffle spill files."""

from .sources import (
    KeySource,
    KeySplit,
    RocksDBRangeSplit,
    RocksDBSource,
    SequenceSource,
    SequenceSplit,
    TextFileSource,
    TextFileSplit,
    as_source,
    uniform_key_ranges,
)
from .spill import SpillWriter, iter_spill_file, partition_dir

__all__ = [
    "KeySource",
    "KeySplit",
    "RocksDBRangeSplit",
    "RocksDBSource",
    "SequenceSource",
    "SequenceSplit",
    "TextFileSource",
    "TextFileSplit",
    "as_source",
    "uniform_key_ranges",
    "SpillWriter",
    "iter_spill_file",
    "partition_dir",
]
