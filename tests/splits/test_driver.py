# tests/splits/test_driver.py
from __future__ import annotations

import random
from bisect import bisect_right
from typing import Iterator, List

import pytest

from region_prep.config import SplitConfig
from region_prep.io.sources import KeySource, KeySplit, SequenceSource, SequenceSplit
from region_prep.splits.driver import compute_splits, run_split_job


def _config(**overrides) -> SplitConfig:
    base = dict(executor="serial", show_progress=False, seed=7)
    base.update(overrides)
    return SplitConfig(**base)


def _region_sizes(keys: List[bytes], split_keys: List[bytes]) -> List[int]:
    """Count keys per region when the key space is cut at split_keys."""
    sizes = [0] * (len(split_keys) + 1)
    for k in keys:
        sizes[bisect_right(split_keys, k)] += 1
    return sizes


def _assert_well_formed(split_keys: List[bytes]) -> None:
    assert all(isinstance(k, bytes) for k in split_keys)
    assert split_keys == sorted(split_keys)


# --- Fakes ------------------------------------------------------------------ #

class ExplodingSource(KeySource):
    """Fails the test if anything asks for its splits."""

    def splits(self):
        raise AssertionError("key source must not be read")


class ListSource(KeySource):
    def __init__(self, splits: List[KeySplit]):
        self._splits = splits

    def splits(self):
        return list(self._splits)


class FlakySplit(KeySplit):
    """Reads fine once (sampling), then fails (shuffle)."""

    def __init__(self, keys: List[bytes]):
        self.keys = keys
        self.reads = 0

    def iter_keys(self) -> Iterator[bytes]:
        self.reads += 1
        if self.reads > 1:
            raise RuntimeError("worker lost")
        return iter(self.keys)


# --- Boundary scenarios ----------------------------------------------------- #

def test_eight_keys_four_regions_splits_evenly():
    keys = ["a", "b", "c", "d", "e", "f", "g", "h"]
    split_keys = compute_splits(keys, 4, _config())

    assert split_keys == [b"c", b"e", b"g"]
    assert _region_sizes([k.encode() for k in keys], split_keys) == [2, 2, 2, 2]


@pytest.mark.parametrize("executor", ["serial", "threads", "processes"])
def test_executors_agree(executor):
    source = SequenceSource(["h", "g", "f", "e", "d", "c", "b", "a"], num_splits=3)
    split_keys = compute_splits(source, 4, _config(executor=executor, num_workers=2))
    assert split_keys == [b"c", b"e", b"g"]


def test_one_region_needs_no_work():
    assert compute_splits(ExplodingSource(), 1, _config()) == []
    result = run_split_job(ExplodingSource(), 1, _config())
    assert result.split_keys == []
    assert result.total_keys is None


@pytest.mark.parametrize("bad", [0, -1, -100])
def test_nonpositive_regions_rejected_before_reading(bad):
    with pytest.raises(ValueError, match="regions_count"):
        compute_splits(ExplodingSource(), bad, _config())


def test_regions_must_be_an_int():
    def untouchable():
        raise AssertionError("key set must not be read")
        yield b"x"  # pragma: no cover

    for bad in (True, 2.0, "4", None):
        with pytest.raises(ValueError):
            compute_splits(untouchable(), bad, _config())


def test_single_distinct_key_does_not_fail():
    assert compute_splits(["x"], 5, _config()) == []

    repeated = compute_splits(["x"] * 500, 5, _config())
    assert len(repeated) <= 4
    assert all(k == b"x" for k in repeated)


def test_fewer_keys_than_regions():
    result = run_split_job(["c", "a", "b"], 10, _config())
    assert result.split_keys == [b"b", b"c"]
    assert len(result.split_keys) <= 9
    non_empty = [s for s in result.partition_sizes if s]
    assert len(result.split_keys) == len(non_empty) - 1


def test_empty_key_set():
    result = run_split_job([], 4, _config())
    assert result.split_keys == []
    assert result.total_keys == 0


def test_bytes_and_text_keys_share_one_encoding():
    text = compute_splits(["k1", "k2", "k3", "k4"], 2, _config())
    raw = compute_splits([b"k1", bytearray(b"k2"), memoryview(b"k3"), b"k4"], 2, _config())
    assert text == raw


# --- Properties ------------------------------------------------------------- #

@pytest.mark.parametrize("regions", [2, 3, 5, 7, 10, 16])
def test_small_key_set_properties(regions):
    rng = random.Random(regions)
    keys = [bytes(rng.getrandbits(8) for _ in range(4)) for _ in range(10)]
    result = run_split_job(SequenceSource(keys, num_splits=3), regions, _config())

    _assert_well_formed(result.split_keys)
    non_empty = [s for s in result.partition_sizes if s]
    assert len(result.split_keys) == min(regions - 1, len(non_empty) - 1)
    assert set(result.split_keys) <= set(keys)
    assert _region_sizes(keys, result.split_keys) == non_empty


def test_split_keys_strictly_increase_with_heavy_duplicates():
    keys = ["a"] * 50 + ["b"] * 3 + ["c"] * 50 + ["d"]
    split_keys = compute_splits(keys, 6, _config())
    assert split_keys == sorted(set(split_keys))
    assert len(split_keys) <= 3


def test_full_shuffle_matches_combined_shuffle():
    rng = random.Random(11)
    keys = [b"%06d" % rng.randrange(1_000_000) for _ in range(5_000)]
    combined = compute_splits(SequenceSource(keys, 4), 8, _config(combine=True))
    spilled = compute_splits(
        SequenceSource(keys, 4), 8, _config(combine=False, spill_buffer_bytes=1024)
    )
    assert combined == spilled
    assert len(combined) == 7


def test_reruns_with_new_seeds_keep_length_and_balance():
    rng = random.Random(3)
    keys = [b"user%07d" % rng.randrange(10_000_000) for _ in range(10_000)]
    distinct = len(set(keys))
    ideal = distinct / 8

    first = compute_splits(SequenceSource(keys, 4), 8, _config(seed=1))
    second = compute_splits(SequenceSource(keys, 4), 8, _config(seed=2))

    for split_keys in (first, second):
        _assert_well_formed(split_keys)
        assert len(split_keys) == 7
        sizes = _region_sizes(keys, split_keys)
        assert max(sizes) < 2.0 * ideal


def test_same_seed_reproduces_split_keys():
    keys = [b"%05d" % i for i in range(2_000)]
    a = compute_splits(SequenceSource(keys, 5), 9, _config(seed=42))
    b = compute_splits(SequenceSource(keys, 5), 9, _config(seed=42))
    assert a == b


def test_million_keys_without_central_sort():
    n = 10**6
    keys = [b"%08d" % i for i in range(n)]
    random.Random(0).shuffle(keys)

    result = run_split_job(SequenceSource(keys, num_splits=8), 16, _config())

    assert result.total_keys == n
    assert len(result.split_keys) == 15
    _assert_well_formed(result.split_keys)
    # Keys are 0..n-1, so a split key's value is the count of keys below it.
    cuts = [0] + [int(k) for k in result.split_keys] + [n]
    sizes = [hi - lo for lo, hi in zip(cuts, cuts[1:])]
    assert sizes == result.partition_sizes
    assert max(sizes) < 2 * n / 16


def test_oversized_split_is_resampled():
    big = SequenceSplit(tuple(b"b%05d" % i for i in range(10_000)))
    small = SequenceSplit(tuple(b"a%02d" % i for i in range(10)))
    config = _config(samples_per_partition=5, oversample_factor=0.5)

    result = run_split_job(ListSource([small, big]), 4, config)

    assert result.resampled_splits == 1
    assert 1 <= len(result.split_keys) <= 3
    _assert_well_formed(result.split_keys)
    assert sum(result.partition_sizes) == 10_010


# --- Failures --------------------------------------------------------------- #

def test_worker_failure_propagates_and_cleans_scratch(tmp_path):
    scratch = tmp_path / "scratch"
    flaky = FlakySplit([b"k%03d" % i for i in range(100)])
    config = _config(tmp_dir=scratch)

    with pytest.raises(RuntimeError, match="worker lost"):
        run_split_job(ListSource([flaky]), 4, config)

    assert flaky.reads == 2  # failed in the shuffle, after sampling
    assert list(scratch.iterdir()) == []


def test_worker_failure_propagates_from_thread_pool():
    class BrokenSplit(KeySplit):
        def iter_keys(self):
            raise OSError("disk unreadable")

    source = ListSource([SequenceSplit((b"a", b"b")), BrokenSplit()])
    with pytest.raises(OSError, match="disk unreadable"):
        compute_splits(source, 3, _config(executor="threads", num_workers=2))
