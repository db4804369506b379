# splits/sampling.py
"""Weighted keyspace sampling for range boundary estimation."""

from __future__ import annotations

import logging
import math
import random
from typing import Iterable, List, Sequence, Tuple

from region_prep.io.sources import KeySplit
from region_prep.splits.execution import label_worker
from region_prep.splits.types import SampleResult

logger = logging.getLogger(__name__)

Candidate = Tuple[bytes, float]

__all__ = [
    "reservoir_sample",
    "bernoulli_sample",
    "sample_size_for",
    "per_split_sample_size",
    "sample_split",
    "resample_split",
    "weigh_samples",
    "weigh_resamples",
]


def reservoir_sample(
    keys: Iterable[bytes],
    k: int,
    rng: random.Random,
) -> Tuple[List[bytes], int]:
    """
    Reservoir sample k keys from a stream of unknown length.

    Uses Algorithm R (Vitter, 1985) to uniformly sample k keys using O(k)
    memory.

    Returns:
        (samples, total_keys_seen)
    """
    reservoir: List[bytes] = []
    n = 0  # Total keys processed

    for key in keys:
        n += 1
        if len(reservoir) < k:
            # Fill reservoir
            reservoir.append(key)
        else:
            # Randomly replace elements with decreasing probability
            j = rng.randint(0, n - 1)
            if j < k:
                reservoir[j] = key

    return reservoir, n


def bernoulli_sample(
    keys: Iterable[bytes],
    fraction: float,
    rng: random.Random,
) -> Tuple[List[bytes], int]:
    """Keep each key independently with probability `fraction`."""
    kept: List[bytes] = []
    n = 0
    for key in keys:
        n += 1
        if rng.random() < fraction:
            kept.append(key)
    return kept, n


def sample_size_for(regions_count: int, samples_per_partition: int, max_sample_size: int) -> int:
    """Total sample size: proportional to regions, capped independent of key count."""
    return min(samples_per_partition * regions_count, max_sample_size)


def per_split_sample_size(sample_size: int, num_splits: int, oversample_factor: float) -> int:
    """Reservoir size per split, oversampled since splits may be unequal."""
    return max(1, math.ceil(oversample_factor * sample_size / max(1, num_splits)))


def sample_split(split_index: int, split: KeySplit, k: int, seed: int) -> SampleResult:
    """Worker: reservoir sample one split."""
    label_worker(f"rp:sample[{split_index:03d}]")
    rng = random.Random(seed + split_index)
    samples, n = reservoir_sample(split.iter_keys(), k, rng)
    logger.debug("Sampled split %d (%s): %d of %d keys", split_index, split.describe(), len(samples), n)
    return SampleResult(split_index=split_index, samples=samples, num_keys=n)


def resample_split(split_index: int, split: KeySplit, fraction: float, seed: int) -> SampleResult:
    """Worker: Bernoulli re-sample of a split that the reservoir under-represented."""
    label_worker(f"rp:resample[{split_index:03d}]")
    rng = random.Random(seed + split_index)
    samples, n = bernoulli_sample(split.iter_keys(), fraction, rng)
    logger.debug(
        "Re-sampled split %d (%s) at %.6f: %d of %d keys",
        split_index, split.describe(), fraction, len(samples), n,
    )
    return SampleResult(split_index=split_index, samples=samples, num_keys=n, fraction=fraction)


def weigh_samples(
    results: Sequence[SampleResult],
    sample_size: int,
    per_split: int,
) -> Tuple[List[Candidate], List[int], float]:
    """
    Turn per-split samples into weighted boundary candidates.

    Each sampled key stands for `num_keys / len(samples)` keys of its split.
    Splits so large that a uniform `fraction` of them would exceed their
    reservoir are returned for re-sampling instead of being weighted here.

    Returns:
        (candidates, split indices to re-sample, fraction)
    """
    total = sum(r.num_keys for r in results)
    if total == 0:
        return [], [], 1.0

    fraction = min(sample_size / total, 1.0)
    candidates: List[Candidate] = []
    imbalanced: List[int] = []

    for r in results:
        if fraction * r.num_keys > per_split:
            imbalanced.append(r.split_index)
            continue
        if not r.samples:
            continue
        weight = r.num_keys / len(r.samples)
        candidates.extend((key, weight) for key in r.samples)

    return candidates, imbalanced, fraction


def weigh_resamples(results: Sequence[SampleResult]) -> List[Candidate]:
    """Candidates from Bernoulli re-samples carry weight 1 / fraction."""
    candidates: List[Candidate] = []
    for r in results:
        if not r.samples or not r.fraction:
            continue
        weight = 1.0 / r.fraction
        candidates.extend((key, weight) for key in r.samples)
    return candidates
