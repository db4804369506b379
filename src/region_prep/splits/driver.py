# splits/driver.py
"""Split-key computation: sample, range-partition, shuffle, reduce, collect."""

from __future__ import annotations

import logging
import random
import time
from datetime import datetime
from typing import Iterable, List, Optional, Union

from region_prep.config import SplitConfig
from region_prep.encoding import KeyLike
from region_prep.io.sources import KeySource, as_source
from region_prep.pipeline.report import log_run_summary
from region_prep.splits.collect import collect_split_keys
from region_prep.splits.execution import run_tasks
from region_prep.splits.partitioner import RangePartitioner
from region_prep.splits.sampling import (
    per_split_sample_size,
    resample_split,
    sample_size_for,
    sample_split,
    weigh_resamples,
    weigh_samples,
)
from region_prep.splits.shuffle import reduce_partition, shuffle_split
from region_prep.splits.types import SplitJobResult
from region_prep.utils.cleanup import scratch_dir

logger = logging.getLogger(__name__)

Keys = Union[KeySource, Iterable[KeyLike]]

__all__ = ["validate_regions_count", "run_split_job", "compute_splits"]


def validate_regions_count(regions_count: int) -> None:
    """Reject anything but a positive int before any work is scheduled."""
    if isinstance(regions_count, bool) or not isinstance(regions_count, int):
        raise ValueError(
            f"regions_count must be an int, got {type(regions_count).__name__}"
        )
    if regions_count < 1:
        raise ValueError(f"regions_count must be >= 1, got {regions_count}")


def compute_splits(
    keys: Keys,
    regions_count: int,
    config: Optional[SplitConfig] = None,
) -> List[bytes]:
    """
    Compute the start keys of regions 2..regions_count for a key set.

    Given the row keys of a table and the number of requested regions,
    returns the ordered keys at which the table should be split. The
    result has at most ``regions_count - 1`` entries, since the start key
    of the first region does not determine a split.

    Degenerate input is not an error: fewer keys than regions, or many
    duplicates, produce fewer split keys.

    Args:
        keys: A KeySource, or any iterable of str/bytes row keys
        regions_count: Number of regions (>= 1)
        config: Execution and sampling settings

    Returns:
        Non-decreasing list of split keys as bytes

    Raises:
        ValueError: regions_count is not a positive int (raised before the
            key set is read)
    """
    return run_split_job(keys, regions_count, config).split_keys


def run_split_job(
    keys: Keys,
    regions_count: int,
    config: Optional[SplitConfig] = None,
) -> SplitJobResult:
    """Like compute_splits, but also return partition sizes and run stats."""
    validate_regions_count(regions_count)
    config = config or SplitConfig()
    started = time.perf_counter()

    if regions_count == 1:
        logger.info("One region requested; no split keys needed")
        return SplitJobResult(split_keys=[], regions_count=1)

    source = as_source(keys)
    splits = source.splits()
    workers = config.workers

    def _done(result: SplitJobResult) -> SplitJobResult:
        result.elapsed_s = time.perf_counter() - started
        logger.info(
            "Computed %d split keys for %d requested regions in %.2fs",
            len(result.split_keys), regions_count, result.elapsed_s,
        )
        return result

    if not splits:
        logger.warning("Key source %s has no splits; no split keys", source.describe())
        return _done(SplitJobResult(split_keys=[], regions_count=regions_count, total_keys=0))

    seed = config.seed if config.seed is not None else random.randrange(2**32)
    sample_size = sample_size_for(
        regions_count, config.samples_per_partition, config.max_sample_size
    )
    per_split = per_split_sample_size(sample_size, len(splits), config.oversample_factor)

    log_run_summary(
        source=source.describe(),
        regions_count=regions_count,
        num_splits=len(splits),
        workers=workers,
        executor_name=config.executor,
        sample_size=sample_size,
        per_split_sample=per_split,
        combine=config.combine,
        start_time=datetime.now(),
        seed=config.seed,
    )

    def _run(fn, task_args, desc):
        return run_tasks(
            fn,
            task_args,
            executor=config.executor,
            workers=workers,
            desc=desc,
            show_progress=config.show_progress,
        )

    # 1) Sample every split
    samples = _run(
        sample_split,
        [(i, split, per_split, seed) for i, split in enumerate(splits)],
        "Sampling",
    )
    total_keys = sum(s.num_keys for s in samples)
    if total_keys == 0:
        logger.warning("Key source %s is empty; no split keys", source.describe())
        return _done(SplitJobResult(
            split_keys=[], regions_count=regions_count, total_keys=0,
            num_splits=len(splits),
        ))

    candidates, imbalanced, fraction = weigh_samples(samples, sample_size, per_split)
    if imbalanced:
        logger.info(
            "Re-sampling %d oversized split(s) at fraction %.6f", len(imbalanced), fraction
        )
        resamples = _run(
            resample_split,
            [(i, splits[i], fraction, seed) for i in imbalanced],
            "Re-sampling",
        )
        candidates.extend(weigh_resamples(resamples))

    # 2) Range boundaries from the weighted sample
    partitioner = RangePartitioner.from_candidates(candidates, regions_count)
    num_partitions = partitioner.num_partitions
    logger.info(
        "Estimated %d range bounds from %d candidates over %d keys",
        len(partitioner.bounds), len(candidates), total_keys,
    )

    result = SplitJobResult(
        split_keys=[],
        regions_count=regions_count,
        bounds=partitioner.bounds,
        total_keys=total_keys,
        sample_size=len(candidates),
        num_splits=len(splits),
        resampled_splits=len(imbalanced),
    )

    if num_partitions == 1:
        result.partition_sizes = [total_keys]
        return _done(result)

    # 3) Shuffle by range, then 4) one minimum per partition
    with scratch_dir(config.tmp_dir) as spill_dir:
        map_outputs = _run(
            shuffle_split,
            [
                (i, split, partitioner, spill_dir, config.combine, config.spill_buffer_bytes)
                for i, split in enumerate(splits)
            ],
            "Shuffling",
        )
        minima = _run(
            reduce_partition,
            [(p, spill_dir) for p in range(num_partitions)],
            "Reducing",
        )

    sizes = [0] * num_partitions
    for out in map_outputs:
        for p, count in out.partition_counts.items():
            sizes[p] += count

    # 5) Gather boundaries in partition order
    result.split_keys = collect_split_keys(minima)
    result.partition_sizes = sizes
    result.total_keys = sum(sizes)
    return _done(result)
