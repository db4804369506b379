# splits/partitioner.py
"""Range partitioning over sampled boundary keys."""

from __future__ import annotations

import logging
from bisect import bisect_left
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from region_prep.splits.sampling import Candidate

logger = logging.getLogger(__name__)

__all__ = ["determine_bounds", "RangePartitioner"]


def determine_bounds(candidates: Sequence[Candidate], partitions: int) -> Tuple[bytes, ...]:
    """
    Pick at most `partitions - 1` strictly increasing bounds from weighted
    candidates so that each range holds roughly equal total weight.

    Candidates are walked in key order while accumulating weight; a
    candidate becomes a bound whenever the running weight reaches the next
    multiple of `total_weight / partitions`. A candidate equal to the
    previous bound is skipped, so heavy duplicates yield fewer bounds
    rather than empty ranges.

    Args:
        candidates: (key, weight) pairs, in any order
        partitions: Desired number of ranges

    Returns:
        Tuple of bound keys; bound i is the inclusive upper edge of range i
    """
    if partitions < 1:
        raise ValueError(f"partitions must be >= 1, got {partitions}")
    if partitions == 1 or not candidates:
        return ()

    ordered = sorted(candidates, key=lambda c: c[0])
    total_weight = sum(weight for _, weight in ordered)
    step = total_weight / partitions

    bounds = []
    cum_weight = 0.0
    target = step
    previous: Optional[bytes] = None

    for key, weight in ordered:
        if len(bounds) >= partitions - 1:
            break
        cum_weight += weight
        if cum_weight >= target:
            # Skip duplicate candidates equal to the last bound
            if previous is None or key > previous:
                bounds.append(key)
                target += step
                previous = key

    return tuple(bounds)


@dataclass(frozen=True)
class RangePartitioner:
    """Assigns keys to ranges: key k goes to partition bisect_left(bounds, k).

    Ranges concatenated in index order are totally ordered: every key in
    partition i is <= bounds[i] < every key in partition i + 1.
    """

    bounds: Tuple[bytes, ...] = ()

    def __post_init__(self) -> None:
        for lo, hi in zip(self.bounds, self.bounds[1:]):
            if not lo < hi:
                raise ValueError("range bounds must be strictly increasing")

    @classmethod
    def from_candidates(cls, candidates: Sequence[Candidate], partitions: int) -> "RangePartitioner":
        bounds = determine_bounds(candidates, partitions)
        if len(bounds) < partitions - 1:
            logger.info(
                "Sample supports %d of %d requested ranges", len(bounds) + 1, partitions
            )
        return cls(bounds)

    @property
    def num_partitions(self) -> int:
        return len(self.bounds) + 1

    def partition_for(self, key: bytes) -> int:
        return bisect_left(self.bounds, key)
