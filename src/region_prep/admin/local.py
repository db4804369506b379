# admin/local.py
"""Table admin backed by local RocksDB databases."""
from __future__ import annotations

import json
import logging
import re
import shutil
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Union

from rocksdict import Options, Rdict

from region_prep.admin.config import AdminConfig
from region_prep.db.rocks import make_default_options, open_rocksdb
from region_prep.encoding import KeyLike, to_key
from region_prep.utils.cleanup import safe_rmtree

logger = logging.getLogger(__name__)

TABLE_PREFIX = b"table/"
_NAME_RE = re.compile(r"^[A-Za-z0-9_.\-]+$")

Families = Union[str, Iterable[str]]

__all__ = [
    "ColumnFamilyMissingError",
    "TableNotFoundError",
    "TableAdmin",
    "LocalTableAdmin",
    "open_admin",
]


class ColumnFamilyMissingError(ValueError):
    """A table exists but lacks a required column family."""


class TableNotFoundError(LookupError):
    """Operation on a table that does not exist."""


class TableAdmin(ABC):
    """Operations a table-management service exposes to this package."""

    @abstractmethod
    def table_exists(self, table: str, families: Families) -> bool: ...

    @abstractmethod
    def create_table(
        self, table: str, families: Families, split_keys: Sequence[KeyLike] = ()
    ) -> "TableAdmin": ...

    @abstractmethod
    def snapshot(self, table: str, name: Optional[str] = None) -> "TableAdmin": ...

    @abstractmethod
    def close(self) -> None: ...

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _as_families(families: Families) -> List[str]:
    if isinstance(families, str):
        families = [families]
    out = sorted(set(families))
    for family in out:
        if not family or "/" in family:
            raise ValueError(f"Invalid column family name: {family!r}")
    return out


def _check_name(kind: str, name: str) -> str:
    if not _NAME_RE.match(name or "") or not name.strip("."):
        raise ValueError(f"Invalid {kind} name: {name!r}")
    return name


def _prepare_split_keys(split_keys: Sequence[KeyLike]) -> List[bytes]:
    """Encode, sort and validate split keys the way a region server expects."""
    keys = sorted(to_key(k) for k in split_keys)
    for prev, key in zip(keys, keys[1:]):
        if prev == key:
            raise ValueError(f"Split key occurs twice: {key!r}")
    if keys and keys[0] == b"":
        raise ValueError("Empty split key must not be passed")
    return keys


class LocalTableAdmin(TableAdmin):
    """
    Admin over a directory of RocksDB tables.

    Layout under ``config.root``:
        catalog/            RocksDB: table name -> JSON (families, split keys)
        tables/<name>/      one RocksDB per table, one column family per family
        snapshots/<name>/   copied table data plus a manifest.json

    The catalog handle is the connection: it is opened on construction and
    released by close().
    """

    def __init__(self, config: AdminConfig):
        self.config = config
        config.tables_path.mkdir(parents=True, exist_ok=True)
        config.snapshots_path.mkdir(parents=True, exist_ok=True)
        self._catalog: Optional[Rdict] = open_rocksdb(
            config.catalog_path,
            retries=config.lock_retries,
            delay_seconds=config.lock_delay_s,
            backoff=config.lock_backoff,
        )
        logger.info("Admin connected to %s", config.root_path)

    # -- connection ---------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._catalog is None

    def close(self) -> None:
        """Release the catalog. Calling close() twice is a no-op."""
        if self._catalog is None:
            return
        self._catalog.close()
        self._catalog = None
        logger.info("Admin connection to %s closed", self.config.root_path)

    def _db(self) -> Rdict:
        if self._catalog is None:
            raise RuntimeError("admin connection is closed")
        return self._catalog

    # -- catalog ------------------------------------------------------------

    def _entry(self, table: str) -> Optional[Dict[str, Any]]:
        raw = self._db().get(TABLE_PREFIX + table.encode("utf-8"))
        if raw is None:
            return None
        return json.loads(raw.decode("utf-8"))

    def _table_path(self, table: str) -> Path:
        return self.config.tables_path / table

    def list_tables(self) -> List[str]:
        db = self._db()
        names = []
        for key in db.keys():
            if key.startswith(TABLE_PREFIX):
                names.append(key[len(TABLE_PREFIX):].decode("utf-8"))
        return sorted(names)

    # -- operations ---------------------------------------------------------

    def table_exists(self, table: str, families: Families) -> bool:
        """
        Check if table exists, and require that it has the given families.

        Args:
            table: Name of the table
            families: One column family name, or a collection of names

        Returns:
            True if the table exists, False otherwise

        Raises:
            ColumnFamilyMissingError: the table exists but a family is missing
        """
        wanted = _as_families(families)
        entry = self._entry(_check_name("table", table))
        if entry is None:
            return False
        present = set(entry["families"])
        for family in wanted:
            if family not in present:
                raise ColumnFamilyMissingError(
                    f"Table [{table}] exists but column family [{family}] is missing"
                )
        return True

    def create_table(
        self,
        table: str,
        families: Families,
        split_keys: Sequence[KeyLike] = (),
    ) -> "LocalTableAdmin":
        """
        Create a table with one or more column families and
        ``len(split_keys) + 1`` regions, unless it already exists.

        The table becomes visible only once fully built; a failure leaves no
        table behind.
        """
        _check_name("table", table)
        if self._entry(table) is not None:
            logger.info("Table %s already exists; create is a no-op", table)
            return self

        family_names = _as_families(families)
        if not family_names:
            raise ValueError("A table needs at least one column family")
        keys = _prepare_split_keys(split_keys)

        final_path = self._table_path(table)
        if final_path.exists():
            raise FileExistsError(f"Uncatalogued table data at {final_path}")
        build_path = self.config.tables_path / f".build-{table}-{uuid.uuid4().hex}"

        try:
            db = Rdict(str(build_path), make_default_options())
            try:
                for family in family_names:
                    cf = db.create_column_family(f"f:{family}", Options(raw_mode=True))
                    del cf
            finally:
                db.close()
            build_path.rename(final_path)

            entry = {
                "families": family_names,
                "split_keys": [k.hex() for k in keys],
                "created": datetime.now().isoformat(timespec="seconds"),
            }
            self._db()[TABLE_PREFIX + table.encode("utf-8")] = json.dumps(entry).encode("utf-8")
        except BaseException:
            logger.exception("Creating table %s failed; removing partial data", table)
            safe_rmtree(build_path)
            if self._entry(table) is None:
                safe_rmtree(final_path)
            raise

        logger.info(
            "Created table %s with families %s and %d regions",
            table, ",".join(family_names), len(keys) + 1,
        )
        return self

    def snapshot(self, table: str, name: Optional[str] = None) -> "LocalTableAdmin":
        """
        Take a snapshot of the table.

        The default snapshot name has format "tableName_yyyyMMddHHmmss".
        """
        entry = self._entry(_check_name("table", table))
        if entry is None:
            raise TableNotFoundError(f"Table [{table}] does not exist")

        if name is None:
            name = f"{table}_{datetime.now():%Y%m%d%H%M%S}"
        dest = self.config.snapshots_path / _check_name("snapshot", name)
        if dest.exists():
            raise FileExistsError(f"Snapshot [{name}] already exists")

        try:
            shutil.copytree(self._table_path(table), dest / "data")
            manifest = dict(entry, table=table, snapshot=name,
                            taken=datetime.now().isoformat(timespec="seconds"))
            (dest / "manifest.json").write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        except BaseException:
            safe_rmtree(dest)
            raise

        logger.info("Snapshot %s taken of table %s", name, table)
        return self

    # -- introspection ------------------------------------------------------

    def region_split_keys(self, table: str) -> List[bytes]:
        """Split keys the table was created with (empty for one region)."""
        entry = self._entry(_check_name("table", table))
        if entry is None:
            raise TableNotFoundError(f"Table [{table}] does not exist")
        return [bytes.fromhex(k) for k in entry["split_keys"]]

    def list_snapshots(self) -> List[str]:
        self._db()
        return sorted(
            p.name for p in self.config.snapshots_path.iterdir()
            if (p / "manifest.json").is_file()
        )


@contextmanager
def open_admin(config: AdminConfig) -> Iterator[LocalTableAdmin]:
    """Connect, yield the admin, and close it on every exit path."""
    admin = LocalTableAdmin(config)
    try:
        yield admin
    finally:
        admin.close()
