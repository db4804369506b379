# splits/shuffle.py
"""Map-side key routing and per-partition minimum reduction."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

from region_prep.io.sources import KeySplit
from region_prep.io.spill import SpillWriter, iter_spill_file, spill_files
from region_prep.splits.execution import label_worker
from region_prep.splits.partitioner import RangePartitioner
from region_prep.splits.types import MapOutput, PartitionMinimum

logger = logging.getLogger(__name__)

__all__ = ["shuffle_split", "reduce_partition"]


def shuffle_split(
    map_id: int,
    split: KeySplit,
    partitioner: RangePartitioner,
    spill_dir: Path,
    combine: bool = True,
    buffer_bytes: int = 4 * 1024 * 1024,
) -> MapOutput:
    """
    Route every key of a split to its range partition's spill file.

    With combine=True only the running minimum of each partition is kept
    (memory O(partitions)) and spilled once at the end; otherwise every key
    is spilled through bounded write buffers.
    """
    label_worker(f"rp:map[{map_id:03d}]")
    partition_for = partitioner.partition_for
    counts: Dict[int, int] = {}
    output = MapOutput(map_id=map_id, partition_counts=counts)

    with SpillWriter(spill_dir, map_id, buffer_bytes) as writer:
        if combine:
            minima: Dict[int, bytes] = {}
            for key in split.iter_keys():
                p = partition_for(key)
                counts[p] = counts.get(p, 0) + 1
                current = minima.get(p)
                if current is None or key < current:
                    minima[p] = key
            for p, key in minima.items():
                writer.write(p, key)
        else:
            for key in split.iter_keys():
                p = partition_for(key)
                counts[p] = counts.get(p, 0) + 1
                writer.write(p, key)
        output.records_spilled = writer.records_written

    logger.debug(
        "Map %d (%s): %d keys into %d partitions, %d records spilled",
        map_id, split.describe(), output.num_keys, len(counts), output.records_spilled,
    )
    return output


def reduce_partition(partition_id: int, spill_dir: Path) -> PartitionMinimum:
    """Single linear scan over a partition's spill files keeping the minimum."""
    label_worker(f"rp:reduce[{partition_id:05d}]")
    smallest: Optional[bytes] = None
    scanned = 0
    for path in spill_files(Path(spill_dir), partition_id):
        for key in iter_spill_file(path):
            scanned += 1
            if smallest is None or key < smallest:
                smallest = key
    return PartitionMinimum(partition_id=partition_id, min_key=smallest, records_scanned=scanned)
