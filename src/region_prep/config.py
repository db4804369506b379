# region_prep/config.py
"""Configuration for split-key computation."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional, Union

ExecutorKind = Literal["processes", "threads", "serial"]

__all__ = ["ExecutorKind", "SplitConfig", "default_workers"]


def default_workers() -> int:
    """Worker count used when none is configured."""
    cpu = os.cpu_count() or 4
    return min(40, cpu)


@dataclass(frozen=True)
class SplitConfig:
    """Settings for one split-key computation.

    Executor options:
        - "processes": ProcessPoolExecutor (CPU-bound scans, default)
        - "threads": ThreadPoolExecutor
        - "serial": run every task inline in the driver
    """

    # Parallelism
    num_workers: Optional[int] = None  # If None, defaults to default_workers()
    executor: ExecutorKind = "processes"

    # Sampling
    samples_per_partition: int = 20
    max_sample_size: int = 1_000_000
    oversample_factor: float = 3.0  # Reservoir size per split = factor * sample_size / splits
    seed: Optional[int] = None  # Fixed seed reproduces boundaries

    # Shuffle
    combine: bool = True  # Keep one running minimum per partition in each map task
    spill_buffer_bytes: int = 4 * 1024 * 1024  # Per map task, across all partitions
    tmp_dir: Optional[Union[str, Path]] = None  # Parent for scratch spill directories

    # Progress reporting
    show_progress: bool = True

    def __post_init__(self) -> None:
        if self.num_workers is not None and self.num_workers < 1:
            raise ValueError(f"num_workers must be >= 1, got {self.num_workers}")
        if self.executor not in ("processes", "threads", "serial"):
            raise ValueError(f"Unknown executor kind: {self.executor!r}")
        if self.samples_per_partition < 1:
            raise ValueError(
                f"samples_per_partition must be >= 1, got {self.samples_per_partition}"
            )
        if self.max_sample_size < 1:
            raise ValueError(f"max_sample_size must be >= 1, got {self.max_sample_size}")
        if self.oversample_factor <= 0:
            raise ValueError(
                f"oversample_factor must be > 0, got {self.oversample_factor}"
            )
        if self.spill_buffer_bytes < 1:
            raise ValueError(
                f"spill_buffer_bytes must be >= 1, got {self.spill_buffer_bytes}"
            )

    @property
    def workers(self) -> int:
        return self.num_workers if self.num_workers is not None else default_workers()
