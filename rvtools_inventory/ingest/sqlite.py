"""
Ingestion of relational (SQLite) exports.

The export is attached read-only and every contract table it contains is
copied, including a precomputed concerns table when present.
"""

import logging
from pathlib import Path

from rvtools_inventory.ingest.base import Ingestor
from rvtools_inventory.store.tables import TableSpec, quote_identifier

logger = logging.getLogger(__name__)

SQLITE_SUFFIXES = (".db", ".sqlite", ".sqlite3")

SOURCE_ALIAS = "rvtools_source"


class SqliteIngestor(Ingestor):
    """Copies contract tables out of an attached SQLite database."""

    extension = "sqlite"

    def __init__(self, *args, alias: str = SOURCE_ALIAS, **kwargs):
        super().__init__(*args, **kwargs)
        self.alias = alias
        self._attached = False

    def open_source(self, path: Path) -> None:
        self.con.execute(self.builder.attach_database_sql(str(path), self.alias))
        self._attached = True
        logger.debug(f"attached {path} as {self.alias}")

    def close_source(self) -> None:
        if self._attached:
            self.con.execute(f"DETACH {quote_identifier(self.alias)}")
            self._attached = False

    def stage_table(self, path: Path, table: TableSpec) -> str:
        return f"{quote_identifier(self.alias)}.{quote_identifier(table.name)}"
