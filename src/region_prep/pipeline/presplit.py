# region_prep/pipeline/presplit.py
from __future__ import annotations

import logging
from typing import Optional

from region_prep.admin.local import Families, TableAdmin
from region_prep.config import SplitConfig
from region_prep.splits.driver import Keys, run_split_job
from region_prep.splits.types import SplitJobResult

logger = logging.getLogger(__name__)

__all__ = ["create_presplit_table"]


def create_presplit_table(
    admin: TableAdmin,
    table: str,
    families: Families,
    keys: Keys,
    regions_count: int,
    config: Optional[SplitConfig] = None,
) -> SplitJobResult:
    """
    Create `table` pre-split into roughly equal regions for `keys`.

    Split keys are computed in full before the admin is called, so a failed
    computation never creates or mutates a table. If the table already
    exists the admin leaves it untouched.
    """
    result = run_split_job(keys, regions_count, config)
    logger.info(
        "Creating table %s with %d regions (%d requested)",
        table, result.num_regions, regions_count,
    )
    admin.create_table(table, families, result.split_keys)
    return result
