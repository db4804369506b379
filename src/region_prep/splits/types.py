# splits/types.py
"""Shared types for the split-key stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

__all__ = ["SampleResult", "MapOutput", "PartitionMinimum", "SplitJobResult"]


@dataclass
class SampleResult:
    """Sample drawn from one split."""

    split_index: int
    samples: List[bytes]
    num_keys: int
    """Keys seen in the split (exact, the sampler scans the whole split)"""

    fraction: Optional[float] = None
    """Bernoulli fraction for re-sampled splits, None for reservoir samples"""


@dataclass
class MapOutput:
    """Result of routing one split's keys to partitions."""

    map_id: int
    partition_counts: Dict[int, int] = field(default_factory=dict)
    records_spilled: int = 0

    @property
    def num_keys(self) -> int:
        return sum(self.partition_counts.values())


@dataclass
class PartitionMinimum:
    """Smallest key of one partition, None when the partition is empty."""

    partition_id: int
    min_key: Optional[bytes]
    records_scanned: int = 0


@dataclass
class SplitJobResult:
    """Split keys plus statistics from one run."""

    split_keys: List[bytes]
    regions_count: int
    bounds: Tuple[bytes, ...] = ()
    partition_sizes: List[int] = field(default_factory=list)
    total_keys: Optional[int] = None  # None when no key was read (regions_count == 1)
    sample_size: int = 0
    num_splits: int = 0
    resampled_splits: int = 0
    elapsed_s: float = 0.0

    @property
    def num_regions(self) -> int:
        return len(self.split_keys) + 1
