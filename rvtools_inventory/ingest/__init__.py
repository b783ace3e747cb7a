"""
Ingestion of inventory exports into the contract tables.

Supported sources:
- RVTools spreadsheet exports (.xlsx)
- Relational exports following the same table naming (.db, .sqlite, .sqlite3)
"""

from pathlib import Path

import duckdb

from rvtools_inventory.exceptions import UnsupportedSourceError
from rvtools_inventory.ingest.base import IngestReport, Ingestor
from rvtools_inventory.ingest.rvtools import SPREADSHEET_SUFFIXES, RvtoolsIngestor
from rvtools_inventory.ingest.sqlite import SQLITE_SUFFIXES, SqliteIngestor

__all__ = [
    "IngestReport",
    "Ingestor",
    "RvtoolsIngestor",
    "SqliteIngestor",
    "get_ingestor",
]


def get_ingestor(path: Path, con: duckdb.DuckDBPyConnection, **kwargs) -> Ingestor:
    """
    Pick the ingestor for a source file by its suffix.

    Raises:
        UnsupportedSourceError: If the suffix is not recognized
    """
    suffix = Path(path).suffix.lower()
    if suffix in SPREADSHEET_SUFFIXES:
        return RvtoolsIngestor(con, **kwargs)
    if suffix in SQLITE_SUFFIXES:
        return SqliteIngestor(con, **kwargs)
    raise UnsupportedSourceError(str(path))
