# tests/splits/test_shuffle.py
from __future__ import annotations

from region_prep.io.sources import SequenceSplit
from region_prep.io.spill import iter_spill_file, spill_files
from region_prep.splits.partitioner import RangePartitioner
from region_prep.splits.shuffle import reduce_partition, shuffle_split


PARTITIONER = RangePartitioner((b"f", b"p"))


def _split(*keys: str) -> SequenceSplit:
    return SequenceSplit(tuple(k.encode() for k in keys))


def test_combined_map_spills_one_minimum_per_partition(tmp_path):
    out = shuffle_split(0, _split("q", "a", "g", "c", "z", "h"), PARTITIONER, tmp_path, combine=True)

    assert out.partition_counts == {0: 2, 1: 2, 2: 2}
    assert out.num_keys == 6
    assert out.records_spilled == 3
    spilled = {p: [list(iter_spill_file(f)) for f in spill_files(tmp_path, p)] for p in range(3)}
    assert spilled == {0: [[b"a"]], 1: [[b"g"]], 2: [[b"q"]]}


def test_full_map_spills_every_key(tmp_path):
    out = shuffle_split(
        1, _split("q", "a", "g", "c"), PARTITIONER, tmp_path, combine=False, buffer_bytes=8
    )
    assert out.records_spilled == 4
    (p0,) = spill_files(tmp_path, 0)
    assert p0.name == "map-00001.bin"
    assert sorted(iter_spill_file(p0)) == [b"a", b"c"]


def test_reduce_takes_minimum_across_maps(tmp_path):
    shuffle_split(0, _split("m", "k", "t"), PARTITIONER, tmp_path, combine=False)
    shuffle_split(1, _split("i", "x"), PARTITIONER, tmp_path, combine=False)

    mid = reduce_partition(1, tmp_path)
    assert mid.min_key == b"i"
    assert mid.records_scanned == 3

    high = reduce_partition(2, tmp_path)
    assert high.min_key == b"t"


def test_reduce_empty_partition(tmp_path):
    shuffle_split(0, _split("z"), PARTITIONER, tmp_path)
    empty = reduce_partition(0, tmp_path)
    assert empty.min_key is None
    assert empty.records_scanned == 0
