"""Distributed approximate-quantile split-key computation."""

from .collect import collect_split_keys
from .driver import compute_splits, run_split_job, validate_regions_count
from .partitioner import RangePartitioner, determine_bounds
from .types import MapOutput, PartitionMinimum, SampleResult, SplitJobResult

__all__ = [
    "collect_split_keys",
    "compute_splits",
    "run_split_job",
    "validate_regions_count",
    "RangePartitioner",
    "determine_bounds",
    "MapOutput",
    "PartitionMinimum",
    "SampleResult",
    "SplitJobResult",
]
