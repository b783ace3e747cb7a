"""
Tests for utility modules.
"""

import logging

import pytest
from rich.console import Console
from rich.logging import RichHandler

from rvtools_inventory.exceptions import QueryBuildError, StoreConnectionError
from rvtools_inventory.store.connection import execute_script, open_connection, split_statements
from rvtools_inventory.store.tables import quote_identifier, quote_literal
from rvtools_inventory.util.logging import PACKAGE_LOGGER, configure_logging
from rvtools_inventory.util.progress import operation_status
from rvtools_inventory.util.templates import PACKAGE_TEMPLATES, TemplateLoader


class TestQuoting:
    """Tests for SQL quoting helpers."""

    def test_identifier(self):
        """Test identifiers are double-quoted with quotes doubled."""
        assert quote_identifier("VM ID") == '"VM ID"'
        assert quote_identifier('a"b') == '"a""b"'

    def test_literal(self):
        """Test literals are single-quoted with quotes doubled."""
        assert quote_literal("it's") == "'it''s'"


class TestConnection:
    """Tests for opening the store."""

    def test_in_memory(self):
        """Test the default store is in memory and usable."""
        con = open_connection()
        try:
            assert con.execute("SELECT 1").fetchone() == (1,)
        finally:
            con.close()

    def test_settings_applied(self):
        """Test thread and memory settings reach the engine."""
        con = open_connection(threads=2, memory_limit="1GB")
        try:
            threads = con.execute("SELECT current_setting('threads')").fetchone()[0]
            assert int(threads) == 2
        finally:
            con.close()

    def test_bad_setting(self):
        """Test an unusable setting raises a store error."""
        with pytest.raises(StoreConnectionError):
            open_connection(memory_limit="not-a-size")

    def test_unopenable_path(self, tmp_path):
        """Test a path inside a missing directory fails cleanly."""
        with pytest.raises(StoreConnectionError):
            open_connection(str(tmp_path / "missing" / "dir" / "inventory.duckdb"))


class TestScripts:
    """Tests for multi-statement scripts."""

    def test_split_statements(self):
        """Test statements split on line-ending semicolons."""
        script = "CREATE TABLE a (x INTEGER);\n\nINSERT INTO a VALUES (1);\n"

        assert split_statements(script) == [
            "CREATE TABLE a (x INTEGER)",
            "INSERT INTO a VALUES (1)",
        ]

    def test_semicolon_inside_value_kept(self):
        """Test semicolons not at the end of a line stay inside the statement."""
        assert split_statements("SELECT 'a;b';") == ["SELECT 'a;b'"]

    def test_execute_script(self, con):
        """Test every statement runs in order."""
        count = execute_script(con, "CREATE TABLE a (x INTEGER);\nINSERT INTO a VALUES (1);")

        assert count == 2
        assert con.execute("SELECT x FROM a").fetchall() == [(1,)]


class TestLogging:
    """Tests for logging configuration."""

    def test_configure_logging(self):
        """Test a single rich handler is installed on the package logger."""
        console = Console(file=None, stderr=True)

        configure_logging("DEBUG", console)
        logger = configure_logging("WARNING", console)

        handlers = [h for h in logger.handlers if isinstance(h, RichHandler)]
        assert logger.name == PACKAGE_LOGGER
        assert len(handlers) == 1
        assert logger.level == logging.WARNING
        assert logger.propagate is False

    def test_level_case_insensitive(self):
        """Test level names are accepted in any case."""
        assert configure_logging("debug").level == logging.DEBUG


class TestOperationStatus:
    """Tests for the operation status context manager."""

    def test_reraises(self):
        """Test failures inside the block propagate."""
        with pytest.raises(ValueError):
            with operation_status("Working"):
                raise ValueError("boom")


class TestTemplateLoader:
    """Tests for the packaged SQL template loader."""

    def test_renders_packaged_templates(self):
        """Test templates load from the package and are cached."""
        loader = TemplateLoader()

        assert loader.template_dir == PACKAGE_TEMPLATES
        assert loader.load_template("sql/clear_tables.sql.j2") is loader.load_template(
            "sql/clear_tables.sql.j2"
        )

    def test_undefined_variable_fails(self):
        """Test a missing template variable is a build error, not partial SQL."""
        with pytest.raises(QueryBuildError):
            TemplateLoader().render("sql/clear_tables.sql.j2")
