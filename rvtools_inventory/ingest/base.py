"""
Abstract base class for inventory ingestors.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import NamedTuple

import duckdb

from rvtools_inventory.exceptions import (
    ExtensionLoadError,
    IngestionError,
    RequiredSheetError,
    SourceFileNotFoundError,
)
from rvtools_inventory.query.builder import QueryBuilder
from rvtools_inventory.store.connection import execute_script
from rvtools_inventory.store.tables import TABLES, TableSpec

logger = logging.getLogger(__name__)


@dataclass
class IngestReport:
    """Which contract tables were loaded from a source and which were skipped."""

    source: str
    loaded: dict[str, int] = field(default_factory=dict)
    skipped: dict[str, str] = field(default_factory=dict)

    @property
    def total_rows(self) -> int:
        return sum(self.loaded.values())

    def to_dict(self) -> dict:
        return {"source": self.source, "loaded": dict(self.loaded), "skipped": dict(self.skipped)}


class StagedTable(NamedTuple):
    """A contract table whose source rows are ready to copy."""

    table: TableSpec
    source: str
    present: set[str]


class Ingestor(ABC):
    """
    Loads an inventory export into the contract tables.

    Subclasses say how one table is read from the source. The base class
    decides what a failure means: a required table that cannot be loaded
    aborts ingestion, an optional one is skipped with a warning.
    """

    extension: str = ""

    def __init__(
        self,
        con: duckdb.DuckDBPyConnection,
        builder: QueryBuilder | None = None,
        autoinstall: bool = True,
    ):
        """
        Initialize ingestor.

        Args:
            con: Store connection; the contract tables must already exist
            builder: Query builder used to render ingestion statements
            autoinstall: Run INSTALL for the reader extension before LOAD
        """
        self.con = con
        self.builder = builder or QueryBuilder()
        self.autoinstall = autoinstall

    def ingest(self, path: Path) -> IngestReport:
        """
        Replace the stored inventory with every contract table available in ``path``.

        Source tables are read first. The contract tables are then emptied
        and refilled in one transaction, so loading the same export twice
        stores it once and a failed load keeps the previous inventory.
        Stored concerns are cleared as well.

        Raises:
            SourceFileNotFoundError: If ``path`` does not exist
            ExtensionLoadError: If the reader extension cannot be loaded
            RequiredSheetError: If a required table cannot be read
            IngestionError: If copying into the store fails
        """
        path = Path(path)
        if not path.exists():
            raise SourceFileNotFoundError(str(path))

        self.load_extension()
        report = IngestReport(source=str(path))

        self.open_source(path)
        try:
            staged = self.stage_all(path, report)
            self.replace_tables(path, staged, report)
        finally:
            for table in self.tables():
                self.release_table(table)
            self.close_source()

        logger.info(
            f"Ingested {path.name}: {len(report.loaded)} table(s), {report.total_rows} row(s), "
            f"{len(report.skipped)} skipped"
        )
        return report

    def stage_all(self, path: Path, report: IngestReport) -> list[StagedTable]:
        staged = []
        for table in self.tables():
            try:
                source = self.stage_table(path, table)
                present = self.source_columns(source)
            except duckdb.Error as e:
                if table.required:
                    logger.error(f"Required table {table.name} failed to load: {e}")
                    raise RequiredSheetError(table.sheet or table.name, str(e)) from e
                logger.warning(f"Skipping optional table {table.name}: {e}")
                report.skipped[table.name] = str(e)
                continue
            staged.append(StagedTable(table, source, present))
        return staged

    def replace_tables(
        self, path: Path, staged: list[StagedTable], report: IngestReport
    ) -> None:
        """Empty every contract table and copy the staged sources in, atomically."""
        self.con.begin()
        try:
            execute_script(self.con, self.builder.clear_tables_sql())
            for item in staged:
                rows = self.copy_columns(item.table, item.source, item.present)
                report.loaded[item.table.name] = rows
                logger.debug(f"loaded {rows} row(s) into {item.table.name}")
        except duckdb.Error as e:
            self.con.rollback()
            logger.error(f"Loading {path.name} failed, previous inventory kept: {e}")
            raise IngestionError(f"Failed to load {path.name} into the store: {e}") from e
        except Exception:
            self.con.rollback()
            raise
        self.con.commit()

    def load_extension(self) -> None:
        if not self.extension:
            return
        try:
            if self.autoinstall:
                self.con.execute(f"INSTALL {self.extension}")
            self.con.execute(f"LOAD {self.extension}")
        except duckdb.Error as e:
            raise ExtensionLoadError(self.extension, str(e)) from e

    def tables(self) -> tuple[TableSpec, ...]:
        """Contract tables this source can provide."""
        return TABLES

    def open_source(self, path: Path) -> None:
        """Hook run once before tables are read."""
        pass

    def close_source(self) -> None:
        """Hook run once after tables are loaded, even on failure."""
        pass

    def release_table(self, table: TableSpec) -> None:
        """Hook run for every table after loading, even on failure."""
        pass

    @abstractmethod
    def stage_table(self, path: Path, table: TableSpec) -> str:
        """
        Make one source table readable from the store.

        Returns:
            SQL relation (quoted) the table's rows can be selected from

        Raises:
            duckdb.Error: If the source table cannot be read
        """
        pass

    def copy_columns(self, table: TableSpec, source: str, present: set[str]) -> int:
        """
        Insert the contract columns found in ``present`` from ``source`` into ``table``.

        Columns the source lacks stay NULL. A source with none of the
        contract columns copies nothing.
        """
        columns = tuple(c for c in table.columns if c.name in present)
        if not columns:
            logger.warning(f"{source} has none of the {table.name} columns, nothing copied")
            return 0

        missing = [c.name for c in table.columns if c.name not in present]
        if missing:
            logger.debug(f"{table.name}: {len(missing)} column(s) missing in source")

        self.con.execute(self.builder.ingest_table_sql(table, columns, source))
        row = self.con.execute(f"SELECT COUNT(*) FROM {source}").fetchone()
        return int(row[0]) if row else 0

    def source_columns(self, source: str) -> set[str]:
        cursor = self.con.execute(f"SELECT * FROM {source} LIMIT 0")
        return {d[0] for d in cursor.description}


def staging_name(table: TableSpec | str) -> str:
    name = table.name if isinstance(table, TableSpec) else table
    return f"stage_{name}"

