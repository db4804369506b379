"""Table-management collaborator: contract and local RocksDB implementation."""

from .config import AdminConfig
from .local import (
    ColumnFamilyMissingError,
    LocalTableAdmin,
    TableAdmin,
    TableNotFoundError,
    open_admin,
)

__all__ = [
    "AdminConfig",
    "ColumnFamilyMissingError",
    "LocalTableAdmin",
    "TableAdmin",
    "TableNotFoundError",
    "open_admin",
]
