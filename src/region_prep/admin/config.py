# admin/config.py
"""Connection settings for the table admin."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union


@dataclass(frozen=True)
class AdminConfig:
    """Where the admin keeps its catalog, tables and snapshots."""

    root: Union[str, Path]

    # Catalog open retries (lock contention after crashed processes)
    lock_retries: int = 2
    lock_delay_s: float = 0.2
    lock_backoff: float = 2.0

    @property
    def root_path(self) -> Path:
        return Path(self.root).expanduser()

    @property
    def catalog_path(self) -> Path:
        return self.root_path / "catalog"

    @property
    def tables_path(self) -> Path:
        return self.root_path / "tables"

    @property
    def snapshots_path(self) -> Path:
        return self.root_path / "snapshots"
