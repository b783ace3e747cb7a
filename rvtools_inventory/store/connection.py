"""
Opening and configuring the embedded DuckDB store.
"""

import logging
import re

import duckdb

from rvtools_inventory.exceptions import StoreConnectionError
from rvtools_inventory.store.tables import quote_literal

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"

_STATEMENT_END = re.compile(r";\s*$", re.MULTILINE)


def open_connection(
    db_path: str = MEMORY_DB,
    threads: int | None = None,
    memory_limit: str | None = None,
) -> duckdb.DuckDBPyConnection:
    """
    Open a DuckDB connection and apply resource settings.

    Args:
        db_path: Database file path, or ":memory:" for an in-memory store
        threads: Worker threads for the engine (engine default if None)
        memory_limit: Memory limit such as "4GB" (engine default if None)

    Returns:
        Open DuckDB connection

    Raises:
        StoreConnectionError: If the database cannot be opened or configured
    """
    try:
        con = duckdb.connect(db_path)
    except duckdb.Error as e:
        raise StoreConnectionError(db_path, str(e)) from e

    try:
        if threads is not None:
            con.execute(f"SET threads TO {int(threads)}")
            logger.debug(f"DuckDB threads set to {threads}")
        if memory_limit is not None:
            con.execute(f"SET memory_limit = {quote_literal(memory_limit)}")
            logger.debug(f"DuckDB memory_limit set to {memory_limit}")
    except duckdb.Error as e:
        con.close()
        raise StoreConnectionError(db_path, str(e)) from e

    return con


def split_statements(script: str) -> list[str]:
    """
    Split a rendered SQL script into individual statements.

    Statements are expected to end with a semicolon at the end of a line.
    """
    return [stmt.strip() for stmt in _STATEMENT_END.split(script) if stmt.strip()]


def execute_script(con: duckdb.DuckDBPyConnection, script: str) -> int:
    """
    Execute every statement of a script, stopping at the first failure.

    Returns:
        Number of statements executed
    """
    statements = split_statements(script)
    for stmt in statements:
        logger.debug(f"executing statement: {stmt.splitlines()[0]}")
        con.execute(stmt)
    return len(statements)
