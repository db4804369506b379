#!/usr/bin/env python3
"""
compute_splits.py

Compute region split keys for a set of row keys and print one per line.

Examples:
  ./compute_splits.py keys-00.txt keys-01.txt.gz --regions 32
  ./compute_splits.py --rocksdb /path/to/db --regions 64 --hex
  ./compute_splits.py keys.txt --regions 8 --create-table events --family d --admin-root /srv/tables
"""

from __future__ import annotations

import argparse
import logging
import sys

from region_prep.admin import AdminConfig, open_admin
from region_prep.config import SplitConfig
from region_prep.encoding import display_key
from region_prep.io.sources import RocksDBSource, TextFileSource
from region_prep.pipeline.logger import setup_logger
from region_prep.pipeline.report import format_split_summary
from region_prep.splits.driver import run_split_job, validate_regions_count


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="compute_splits",
        description="Compute split keys dividing row keys into equal regions.",
    )
    parser.add_argument("files", nargs="*", help="Key files, one key per line (.gz allowed)")
    parser.add_argument("--rocksdb", help="Read keys from a raw-mode RocksDB directory")
    parser.add_argument("--rocksdb-splits", type=int, default=16,
                        help="Byte ranges to scan the RocksDB in parallel (default: 16)")
    parser.add_argument("--regions", type=int, required=True, help="Number of regions")
    parser.add_argument("--workers", type=int, default=None, help="Worker count")
    parser.add_argument("--executor", choices=["processes", "threads", "serial"],
                        default="processes")
    parser.add_argument("--seed", type=int, default=None, help="Sampling seed")
    parser.add_argument("--no-combine", action="store_true",
                        help="Spill every key instead of per-partition minima")
    parser.add_argument("--tmp-dir", default=None, help="Parent directory for spill files")
    parser.add_argument("--hex", action="store_true", help="Print split keys as hex")
    parser.add_argument("--create-table", metavar="TABLE",
                        help="Also create TABLE pre-split at the computed keys")
    parser.add_argument("--family", action="append", default=[],
                        help="Column family for --create-table (repeatable)")
    parser.add_argument("--admin-root", help="Admin root directory for --create-table")
    parser.add_argument("--log-dir", help="Write a log file to this directory")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        default="WARNING")
    return parser


def main(argv=None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    level = getattr(logging, args.log_level)
    if args.log_dir:
        setup_logger(args.log_dir, level=level)
    else:
        logging.basicConfig(level=level, format="%(levelname)s: %(message)s", stream=sys.stderr)

    if bool(args.files) == bool(args.rocksdb):
        parser.error("give key files or --rocksdb, not both")
    if args.create_table and not (args.family and args.admin_root):
        parser.error("--create-table needs --family and --admin-root")

    source = (
        RocksDBSource(args.rocksdb, num_splits=args.rocksdb_splits)
        if args.rocksdb
        else TextFileSource(args.files)
    )

    try:
        validate_regions_count(args.regions)
        config = SplitConfig(
            num_workers=args.workers,
            executor=args.executor,
            seed=args.seed,
            combine=not args.no_combine,
            tmp_dir=args.tmp_dir,
        )
    except ValueError as exc:
        parser.error(str(exc))

    result = run_split_job(source, args.regions, config)

    for key in result.split_keys:
        print(display_key(key, hex_output=args.hex))

    print(
        format_split_summary(
            split_keys=result.split_keys,
            partition_sizes=result.partition_sizes,
            elapsed_s=result.elapsed_s,
            hex_keys=args.hex,
        ),
        end="",
        file=sys.stderr,
    )

    if args.create_table:
        with open_admin(AdminConfig(args.admin_root)) as admin:
            admin.create_table(args.create_table, args.family, result.split_keys)
        print(f"Table {args.create_table}: {result.num_regions} regions", file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
