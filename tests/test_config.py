"""
Tests for configuration loading.
"""

import pytest
import yaml

from rvtools_inventory.config import (
    CONFIG_FILENAME,
    ENV_DB_MEMORY_LIMIT,
    ENV_DB_THREADS,
    InventoryConfig,
)
from rvtools_inventory.exceptions import InvalidConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv(ENV_DB_THREADS, raising=False)
    monkeypatch.delenv(ENV_DB_MEMORY_LIMIT, raising=False)


def _write(tmp_path, data):
    path = tmp_path / CONFIG_FILENAME
    path.write_text(yaml.dump(data))
    return InventoryConfig(path)


class TestDefaults:
    """Tests for the default configuration."""

    def test_missing_file_uses_defaults(self, tmp_path):
        """Test a missing file gives an in-memory store and default settings."""
        config = InventoryConfig(tmp_path / CONFIG_FILENAME)

        assert config.db_path == ":memory:"
        assert config.db_threads is None
        assert config.db_memory_limit is None
        assert config.extensions_autoinstall is True
        assert config.concern_batch_size == 500
        assert config.log_level == "INFO"

    def test_initialize_writes_defaults(self, tmp_path):
        """Test init writes a file that loads back to the defaults."""
        config = InventoryConfig(tmp_path / "sub" / CONFIG_FILENAME)
        config.initialize()

        assert config.path.exists()
        assert InventoryConfig(config.path).load() == InventoryConfig.DEFAULT_CONFIG

    def test_defaults_not_shared(self, tmp_path):
        """Test loaded config does not alias the class defaults."""
        config = InventoryConfig(tmp_path / CONFIG_FILENAME)
        config.load()["database"]["path"] = "changed.duckdb"

        assert InventoryConfig.DEFAULT_CONFIG["database"]["path"] == ":memory:"


class TestFileLoading:
    """Tests for values read from the file."""

    def test_sections_merge_over_defaults(self, tmp_path):
        """Test partial sections keep the other defaults."""
        config = _write(tmp_path, {"database": {"path": "inv.duckdb", "threads": 4}})

        assert config.db_path == "inv.duckdb"
        assert config.db_threads == 4
        assert config.db_memory_limit is None
        assert config.log_level == "INFO"

    def test_empty_file(self, tmp_path):
        """Test an empty file gives the defaults."""
        path = tmp_path / CONFIG_FILENAME
        path.write_text("")

        assert InventoryConfig(path).db_path == ":memory:"

    def test_cached(self, tmp_path):
        """Test the file is read once."""
        config = _write(tmp_path, {"logging": {"level": "DEBUG"}})
        first = config.load()
        config.path.write_text(yaml.dump({"logging": {"level": "ERROR"}}))

        assert config.load() is first
        assert config.log_level == "DEBUG"

    @pytest.mark.parametrize(
        "data",
        [
            {"database": {"threads": 0}},
            {"database": {"memory_limit": "lots"}},
            {"ingest": {"concern_batch_size": 0}},
            {"logging": {"level": "LOUD"}},
            {"unknown": {}},
            {"database": {"port": 5432}},
        ],
    )
    def test_schema_violations(self, tmp_path, data):
        """Test values outside the schema are rejected."""
        with pytest.raises(InvalidConfigError):
            _write(tmp_path, data).load()

    def test_not_a_mapping(self, tmp_path):
        """Test a list document is rejected."""
        path = tmp_path / CONFIG_FILENAME
        path.write_text("- a\n")

        with pytest.raises(InvalidConfigError, match="expected a mapping"):
            InventoryConfig(path).load()

    def test_invalid_yaml(self, tmp_path):
        """Test YAML syntax errors are reported."""
        path = tmp_path / CONFIG_FILENAME
        path.write_text("database: [unclosed\n")

        with pytest.raises(InvalidConfigError):
            InventoryConfig(path).load()

    def test_error_names_the_field(self, tmp_path):
        """Test schema errors point at the offending key."""
        with pytest.raises(InvalidConfigError, match="database.threads"):
            _write(tmp_path, {"database": {"threads": "many"}}).load()


class TestEnvironmentOverrides:
    """Tests for environment variable overrides."""

    def test_threads_and_memory(self, tmp_path, monkeypatch):
        """Test environment values win over the file."""
        monkeypatch.setenv(ENV_DB_THREADS, "2")
        monkeypatch.setenv(ENV_DB_MEMORY_LIMIT, "1GB")
        config = _write(tmp_path, {"database": {"threads": 8}})

        assert config.db_threads == 2
        assert config.db_memory_limit == "1GB"

    def test_bad_threads(self, tmp_path, monkeypatch):
        """Test a non-integer thread count is rejected."""
        monkeypatch.setenv(ENV_DB_THREADS, "lots")

        with pytest.raises(InvalidConfigError, match=ENV_DB_THREADS):
            InventoryConfig(tmp_path / CONFIG_FILENAME).load()
