"""
Pytest configuration and shared fixtures.
"""

from pathlib import Path

import pytest

from rvtools_inventory.service import InventoryService
from rvtools_inventory.store.connection import execute_script, open_connection
from rvtools_inventory.validation.concerns import StaticConcernValidator


@pytest.fixture
def fixtures_dir():
    """Return path to test fixtures directory."""
    return Path(__file__).parent / "fixtures" / "inventory"


@pytest.fixture
def con():
    """In-memory DuckDB connection."""
    connection = open_connection()
    yield connection
    connection.close()


@pytest.fixture
def service(con):
    """Service over an empty store with the contract schema created."""
    svc = InventoryService(con)
    svc.init()
    return svc


@pytest.fixture
def loaded_service(service, fixtures_dir):
    """Service over the three-VM TestCluster inventory, without concerns."""
    execute_script(service.con, (fixtures_dir / "inventory.sql").read_text())
    return service


@pytest.fixture
def concern_validator(fixtures_dir):
    """Concerns: vm-001 Warning (+ Information), vm-002 Critical, vm-003 none."""
    return StaticConcernValidator.from_file(fixtures_dir / "concerns.yaml")


@pytest.fixture
def scenario_service(loaded_service, concern_validator):
    """Loaded inventory with concerns written."""
    loaded_service.write_concerns(concern_validator)
    return loaded_service
