# region_prep/pipeline/report.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from region_prep.encoding import display_key

logger = logging.getLogger(__name__)


def _abbrev(s: str, width: int = 96) -> str:
    """Return s truncated with an ellipsis if it exceeds width."""
    return s if len(s) <= width else (s[: max(0, width - 1)] + "…")


def format_run_summary(
    *,
    source: str,
    regions_count: int,
    num_splits: int,
    workers: int,
    executor_name: str,
    sample_size: int,
    per_split_sample: int,
    combine: bool,
    start_time: datetime,
    seed: Optional[int] = None,
    color: bool = True,
) -> str:
    """
    Build a formatted, human-readable summary of the planned run.
    """
    heading = f"Start Time: {start_time:%Y-%m-%d %H:%M:%S}"
    if color:
        heading = f"\033[31m{heading}\033[0m"

    lines = [
        heading,
        ("\033[4mSplit Key Computation\033[0m" if color
         else "Split Key Computation"),
        f"Key source:                 {_abbrev(source)}",
        f"Input splits:               {num_splits}",
        f"Regions requested:          {regions_count}",
        f"Target sample size:         {sample_size:,}",
        f"Reservoir per split:        {per_split_sample:,}",
        f"Map-side combine:           {combine}",
    ]

    if seed is not None:
        lines.append(f"Sampling seed:              {seed}")

    lines.append(f"Worker processes/threads:   {workers} ({executor_name})")
    return "\n".join(lines) + "\n"


def format_split_summary(
    *,
    split_keys: Sequence[bytes],
    partition_sizes: Sequence[int],
    elapsed_s: float,
    hex_keys: bool = False,
    max_keys: int = 10,
) -> str:
    """Summarize a finished run: region sizes and the leading split keys."""
    total = sum(partition_sizes)
    lines = [
        f"Regions produced:           {len(split_keys) + 1}",
        f"Keys partitioned:           {total:,}",
    ]
    if partition_sizes:
        ideal = total / len(partition_sizes)
        largest = max(partition_sizes)
        skew = (largest / ideal) if ideal else 0.0
        lines.append(f"Largest region:             {largest:,} ({skew:.2f}x ideal)")
    for key in split_keys[:max_keys]:
        lines.append(f"  split: {_abbrev(display_key(key, hex_output=hex_keys), 80)}")
    if len(split_keys) > max_keys:
        lines.append(f"  ... {len(split_keys) - max_keys} more")
    lines.append(f"Elapsed:                    {elapsed_s:.2f}s")
    return "\n".join(lines) + "\n"


def log_run_summary(*, color: bool = False, **kwargs) -> None:
    """Log the run summary at INFO level (pipelines using logging)."""
    summary = format_run_summary(color=color, **kwargs)
    for line in summary.rstrip("\n").splitlines():
        logger.info(line)
