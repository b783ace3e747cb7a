"""
Tests for CLI commands.
"""

import json

import pytest
import yaml
from typer.testing import CliRunner

from rvtools_inventory.cli import app
from rvtools_inventory.service import InventoryService
from rvtools_inventory.store.connection import execute_script, open_connection

runner = CliRunner()


def _write_config(tmp_path, db_path):
    config_path = tmp_path / "rvtools-inventory.yaml"
    config_path.write_text(
        yaml.dump({"database": {"path": str(db_path)}, "logging": {"level": "ERROR"}})
    )
    return config_path


@pytest.fixture
def empty_db(tmp_path):
    """Database file with the contract tables but no rows."""
    db_path = tmp_path / "empty.duckdb"
    with InventoryService(open_connection(str(db_path))) as service:
        service.init()
    return db_path


@pytest.fixture
def scenario_db(tmp_path, fixtures_dir, concern_validator):
    """Database file holding the three-VM inventory with concerns."""
    db_path = tmp_path / "inventory.duckdb"
    with InventoryService(open_connection(str(db_path))) as service:
        service.init()
        execute_script(service.con, (fixtures_dir / "inventory.sql").read_text())
        service.write_concerns(concern_validator)
    return db_path


@pytest.fixture
def config_path(tmp_path, scenario_db):
    return _write_config(tmp_path, scenario_db)


class TestInitConfig:
    """Tests for init-config command."""

    def test_writes_config(self, tmp_path):
        """Test that init-config writes a loadable configuration."""
        result = runner.invoke(app, ["init-config", str(tmp_path)])

        assert result.exit_code == 0
        written = yaml.safe_load((tmp_path / "rvtools-inventory.yaml").read_text())
        assert written["database"]["path"] == ":memory:"


class TestSummary:
    """Tests for summary command."""

    def test_summary_json(self, config_path):
        """Test JSON summary carries counts and breakdowns."""
        result = runner.invoke(app, ["summary", "--json", "-c", str(config_path)])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["vmCount"] == 3
        assert data["powerStates"] == {"poweredOff": 1, "poweredOn": 2}
        assert data["migration"] == {
            "migratable": 2,
            "migratableWithWarnings": 1,
            "notMigratable": 1,
        }
        assert data["resources"]["cpuCores"]["totalForMigratable"] == 5
        assert data["resources"]["ramGB"]["totalForNotMigratable"] == 4

    def test_summary_filtered(self, config_path):
        """Test filters narrow the summary."""
        result = runner.invoke(
            app, ["summary", "--json", "--os", "Windows", "-c", str(config_path)]
        )

        data = json.loads(result.stdout)
        assert data["vmCount"] == 1
        assert data["migration"]["notMigratable"] == 1

    def test_summary_table(self, config_path):
        """Test the human-readable summary."""
        result = runner.invoke(app, ["summary", "-c", str(config_path)])

        assert result.exit_code == 0
        assert "Migratable" in result.stdout
        assert "CPU cores" in result.stdout


class TestVms:
    """Tests for vms command."""

    def test_vms_json_paged(self, config_path):
        """Test pagination options reach the query."""
        result = runner.invoke(
            app, ["vms", "--json", "--limit", "2", "--offset", "1", "-c", str(config_path)]
        )

        assert result.exit_code == 0
        assert [vm["id"] for vm in json.loads(result.stdout)] == ["vm-002", "vm-003"]

    def test_vms_json_nested(self, config_path):
        """Test nested records are serialised."""
        result = runner.invoke(app, ["vms", "--json", "-c", str(config_path)])

        vm = json.loads(result.stdout)[0]
        assert len(vm["disks"]) == 2
        assert vm["concerns"][0]["category"] == "Warning"

    def test_vms_negative_limit(self, config_path):
        """Test negative pagination is refused."""
        result = runner.invoke(app, ["vms", "--limit", "-1", "-c", str(config_path)])

        assert result.exit_code != 0

    def test_vms_table(self, config_path):
        """Test the human-readable listing."""
        result = runner.invoke(app, ["vms", "-c", str(config_path)])

        assert result.exit_code == 0
        assert "VMs (3)" in result.stdout


class TestIssues:
    """Tests for issues command."""

    def test_issues_by_category(self, config_path):
        """Test issues filtered by category."""
        result = runner.invoke(
            app, ["issues", "--json", "--category", "Warning", "-c", str(config_path)]
        )

        assert result.exit_code == 0
        assert json.loads(result.stdout) == [
            {"label": "Changed Block Tracking is disabled", "category": "Warning", "count": 1}
        ]

    def test_no_issues(self, config_path):
        """Test the message shown when nothing matches."""
        result = runner.invoke(app, ["issues", "--cluster", "Nowhere", "-c", str(config_path)])

        assert result.exit_code == 0
        assert "No migration issues found" in result.stdout


class TestInventory:
    """Tests for inventory command."""

    def test_inventory_json(self, config_path):
        """Test the grouped inventory is printed as JSON."""
        result = runner.invoke(app, ["inventory", "-c", str(config_path)])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["vcenterId"] == "vcenter-uuid-001"
        assert list(data["clusters"]) == ["TestCluster"]


class TestValidate:
    """Tests for validate command."""

    def test_valid_inventory(self, config_path):
        """Test a populated database validates."""
        result = runner.invoke(app, ["validate", "--json", "-c", str(config_path)])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["valid"] is True

    def test_empty_inventory(self, tmp_path, empty_db):
        """Test an empty database fails validation."""
        config = _write_config(tmp_path, empty_db)

        result = runner.invoke(app, ["validate", "-c", str(config)])

        assert result.exit_code == 1
        assert "NO_VMS" in result.stdout

    def test_db_option_overrides_config(self, tmp_path, config_path, empty_db):
        """Test --db takes precedence over database.path."""
        result = runner.invoke(
            app, ["validate", "-c", str(config_path), "--db", str(empty_db)]
        )

        assert result.exit_code == 1


class TestIngest:
    """Tests for ingest command."""

    def test_unsupported_source(self, config_path, tmp_path):
        """Test an unknown export type is rejected."""
        result = runner.invoke(
            app, ["ingest", str(tmp_path / "export.csv"), "-c", str(config_path)]
        )

        assert result.exit_code == 1
        assert "Unsupported inventory source" in result.stdout

    def test_missing_source(self, config_path, tmp_path):
        """Test a missing export is reported."""
        result = runner.invoke(
            app, ["ingest", str(tmp_path / "missing.xlsx"), "-c", str(config_path)]
        )

        assert result.exit_code == 1
        assert "File not found" in result.stdout

    def test_in_memory_target_refused(self, tmp_path):
        """Test ingesting without a database file fails before reading the export."""
        config = tmp_path / "rvtools-inventory.yaml"
        config.write_text(yaml.dump({"logging": {"level": "ERROR"}}))
        source = tmp_path / "export.xlsx"
        source.write_text("")

        result = runner.invoke(app, ["ingest", str(source), "-c", str(config)])

        assert result.exit_code == 1
        assert "Refusing to ingest" in result.stdout
        assert "--db" in result.stdout

    def test_explicit_memory_db_refused(self, config_path, tmp_path):
        """Test --db :memory: is refused as well."""
        source = tmp_path / "export.xlsx"
        source.write_text("")

        result = runner.invoke(
            app, ["ingest", str(source), "-c", str(config_path), "--db", ":memory:"]
        )

        assert result.exit_code == 1
        assert "Refusing to ingest" in result.stdout


class TestErrors:
    """Tests for configuration errors."""

    def test_invalid_config(self, tmp_path):
        """Test an invalid config file is reported with a suggestion."""
        config = tmp_path / "rvtools-inventory.yaml"
        config.write_text(yaml.dump({"logging": {"level": "LOUD"}}))

        result = runner.invoke(app, ["summary", "-c", str(config)])

        assert result.exit_code == 1
        assert "Invalid configuration file" in result.stdout
