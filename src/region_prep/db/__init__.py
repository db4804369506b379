"""RocksDB access through rocksdict."""

from .rocks import make_default_options, open_db, open_rocksdb, range_scan

__all__ = ["make_default_options", "open_db", "open_rocksdb", "range_scan"]
