"""Pre-split planning for range-partitioned tables."""

from region_prep.config import SplitConfig
from region_prep.encoding import to_key
from region_prep.io.sources import RocksDBSource, SequenceSource, TextFileSource
from region_prep.splits.driver import compute_splits, run_split_job

__all__ = [
    "SplitConfig",
    "to_key",
    "RocksDBSource",
    "SequenceSource",
    "TextFileSource",
    "compute_splits",
    "run_split_job",
]
