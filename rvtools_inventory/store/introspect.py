"""
Schema introspection for the ingested store.

The introspection result only decides which query variant to build and which
validation checks can run; it never drives business logic directly.
"""

import logging
from dataclasses import dataclass, field

import duckdb

logger = logging.getLogger(__name__)

_CATALOG_QUERY = """
SELECT t.table_name, c.column_name
FROM information_schema.tables t
LEFT JOIN information_schema.columns c
    ON c.table_catalog = t.table_catalog
    AND c.table_schema = t.table_schema
    AND c.table_name = t.table_name
WHERE t.table_schema = ?
    AND t.table_catalog = current_database()
ORDER BY t.table_name, c.ordinal_position
"""


@dataclass(frozen=True)
class SchemaInfo:
    """
    Tables present in the store and the columns of each.

    Table names are matched case-insensitively, like the engine does.
    Asking about an absent table yields an empty column set.
    """

    tables: dict[str, frozenset[str]] = field(default_factory=dict)

    def has_table(self, name: str) -> bool:
        return name.lower() in self.tables

    def columns(self, table: str) -> frozenset[str]:
        return self.tables.get(table.lower(), frozenset())

    def has_column(self, table: str, column: str) -> bool:
        return column in self.columns(table)

    @property
    def table_names(self) -> list[str]:
        return sorted(self.tables)

    @property
    def is_empty(self) -> bool:
        return not self.tables


class SchemaIntrospector:
    """Reads the store catalog to learn which tables and columns exist."""

    def __init__(self, con: duckdb.DuckDBPyConnection, schema: str = "main"):
        self.con = con
        self.schema = schema

    def inspect(self) -> SchemaInfo:
        """
        Return the current catalog state.

        A store with no tables at all (first run, failed ingestion) yields an
        empty SchemaInfo rather than an error.
        """
        rows = self.con.execute(_CATALOG_QUERY, [self.schema]).fetchall()

        columns: dict[str, set[str]] = {}
        for table_name, column_name in rows:
            table_columns = columns.setdefault(str(table_name).lower(), set())
            if column_name is not None:
                table_columns.add(str(column_name))

        info = SchemaInfo({name: frozenset(cols) for name, cols in columns.items()})
        logger.debug(f"introspected tables: {', '.join(info.table_names) or '<none>'}")
        return info
