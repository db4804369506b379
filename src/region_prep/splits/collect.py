# splits/collect.py
"""Assemble split keys from per-partition minima."""

from __future__ import annotations

from typing import List, Sequence

from region_prep.splits.types import PartitionMinimum

__all__ = ["collect_split_keys"]


def collect_split_keys(minima: Sequence[PartitionMinimum]) -> List[bytes]:
    """
    Return the first key of every non-empty partition except the first one.

    The first non-empty partition starts at the global minimum, which does
    not split anything. Partition order equals key order, so the result is
    non-decreasing.

    Example:
        >>> collect_split_keys([
        ...     PartitionMinimum(0, b"a"),
        ...     PartitionMinimum(1, None),
        ...     PartitionMinimum(2, b"m"),
        ... ])
        [b'm']
    """
    ordered = sorted(minima, key=lambda m: m.partition_id)
    firsts = [m.min_key for m in ordered if m.min_key is not None]
    return firsts[1:]
