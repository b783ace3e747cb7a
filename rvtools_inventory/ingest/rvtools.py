"""
Ingestion of RVTools spreadsheet exports.

Each contract table with a sheet name is read with DuckDB's excel reader into
a temporary staging table (all values as text), then copied into the contract
table with typed casts. Only columns present in the sheet are copied.
"""

import logging
from pathlib import Path

from rvtools_inventory.ingest.base import Ingestor, staging_name
from rvtools_inventory.store.tables import TABLES, TableSpec, quote_identifier

logger = logging.getLogger(__name__)

SPREADSHEET_SUFFIXES = (".xlsx",)


class RvtoolsIngestor(Ingestor):
    """Loads the vInfo, vCPU, vMemory, vDisk, vNetwork, vHost, vDatastore and dvPort sheets."""

    extension = "excel"

    def tables(self) -> tuple[TableSpec, ...]:
        return tuple(t for t in TABLES if t.sheet is not None)

    def stage_table(self, path: Path, table: TableSpec) -> str:
        staging = staging_name(table)
        self.con.execute(self.builder.stage_sheet_sql(str(path), table.sheet, staging))
        return quote_identifier(staging)

    def release_table(self, table: TableSpec) -> None:
        self.con.execute(f"DROP TABLE IF EXISTS {quote_identifier(staging_name(table))}")
