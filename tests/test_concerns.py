"""
Tests for concern sources and the concern writer.
"""

import pytest

from rvtools_inventory.exceptions import ConcernWriteError, InvalidConfigError
from rvtools_inventory.models.inventory import VM, Concern
from rvtools_inventory.validation.concerns import (
    ConcernBatch,
    ConcernValidator,
    ConcernWriter,
    StaticConcernValidator,
)

CBT = Concern("cbt-disabled", "Changed Block Tracking is disabled", "Warning", "Enable CBT")
FT = Concern("fault-tolerance-enabled", "Fault tolerance is enabled", "Critical")


def _stored(con):
    return con.execute(
        'SELECT "VM_ID", "Concern_ID", "Category" FROM concerns ORDER BY "VM_ID", "Concern_ID"'
    ).fetchall()


class PoweredOffValidator(ConcernValidator):
    def validate(self, vm):
        if vm.power_state == "poweredOn":
            return []
        return [Concern("powered-off", "VM is powered off", "Information")]


class TestConcernBatch:
    """Tests for ConcernBatch."""

    def test_append_flattens_rows(self):
        """Test each concern becomes one row keyed by VM ID."""
        batch = ConcernBatch().append("vm-1", CBT, FT)

        assert len(batch) == 2
        assert batch.rows[0] == ("vm-1", "cbt-disabled", CBT.label, "Warning", "Enable CBT")

    def test_append_without_concerns(self):
        """Test appending no concerns leaves the batch empty."""
        assert len(ConcernBatch().append("vm-1")) == 0


class TestConcernWriter:
    """Tests for ConcernWriter."""

    def test_write(self, service):
        """Test a batch is persisted verbatim."""
        written = ConcernWriter(service.con).write(ConcernBatch().append("vm-1", CBT, FT))

        assert written == 2
        assert _stored(service.con) == [
            ("vm-1", "cbt-disabled", "Warning"),
            ("vm-1", "fault-tolerance-enabled", "Critical"),
        ]

    def test_empty_batch_rejected(self, service):
        """Test an empty batch is an error, not a no-op."""
        with pytest.raises(ConcernWriteError, match="no values provided"):
            ConcernWriter(service.con).write(ConcernBatch())

    def test_missing_table(self, con):
        """Test a failed insert is wrapped."""
        with pytest.raises(ConcernWriteError):
            ConcernWriter(con).write(ConcernBatch().append("vm-1", CBT))

    def test_invalid_batch_size(self, con):
        """Test batch size must be positive."""
        with pytest.raises(ValueError):
            ConcernWriter(con, batch_size=0)

    def test_write_all_flushes_in_batches(self, service):
        """Test rows are flushed every batch_size rows and none are lost."""
        writer = ConcernWriter(service.con, batch_size=1)

        written = writer.write_all([("vm-1", [CBT, FT]), ("vm-2", []), ("vm-3", [CBT])])

        assert written == 3
        assert len(_stored(service.con)) == 3

    def test_write_all_nothing_to_write(self, service):
        """Test VMs without concerns write nothing and do not fail."""
        assert ConcernWriter(service.con).write_all([("vm-1", [])]) == 0

    def test_apply(self, loaded_service):
        """Test a validator is run over every VM."""
        written = ConcernWriter(loaded_service.con).apply(
            PoweredOffValidator(), loaded_service.vms()
        )

        assert written == 1
        assert _stored(loaded_service.con) == [("vm-002", "powered-off", "Information")]

    def test_apply_replaces_previous_concerns(self, loaded_service):
        """Test running a validator again does not duplicate concerns."""
        writer = ConcernWriter(loaded_service.con)
        writer.write(ConcernBatch().append("vm-001", CBT))

        writer.apply(PoweredOffValidator(), loaded_service.vms())
        writer.apply(PoweredOffValidator(), loaded_service.vms())

        assert _stored(loaded_service.con) == [("vm-002", "powered-off", "Information")]
        assert loaded_service.migratable_with_warnings_vm_count() == 0

    def test_apply_failure_keeps_stored_concerns(self, loaded_service):
        """Test a validator error leaves the stored concerns in place."""

        class BrokenValidator(ConcernValidator):
            def validate(self, vm):
                raise RuntimeError("validator unavailable")

        writer = ConcernWriter(loaded_service.con)
        writer.write(ConcernBatch().append("vm-001", CBT))

        with pytest.raises(RuntimeError):
            writer.apply(BrokenValidator(), loaded_service.vms())

        assert _stored(loaded_service.con) == [("vm-001", "cbt-disabled", "Warning")]


class TestStaticConcernValidator:
    """Tests for concerns loaded from a file."""

    def test_from_file(self, concern_validator):
        """Test concerns are keyed by VM ID."""
        concerns = concern_validator.validate(VM(id="vm-001", name="web-01"))

        assert [c.id for c in concerns] == ["cbt-disabled", "vm-tools-old"]
        assert concerns[0].category == "Warning"

    def test_unknown_vm(self, concern_validator):
        """Test VMs without an entry have no concerns."""
        assert concern_validator.validate(VM(id="vm-999", name="x")) == []

    def test_name(self, concern_validator):
        """Test the validator name defaults to the class name."""
        assert concern_validator.name == "StaticConcernValidator"

    def test_not_a_mapping(self, tmp_path):
        """Test a list document is rejected."""
        path = tmp_path / "concerns.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(InvalidConfigError):
            StaticConcernValidator.from_file(path)

    def test_entries_not_a_list(self, tmp_path):
        """Test per-VM entries must be lists."""
        path = tmp_path / "concerns.yaml"
        path.write_text("vm-1: not-a-list\n")

        with pytest.raises(InvalidConfigError, match="vm-1"):
            StaticConcernValidator.from_file(path)

    def test_malformed_yaml(self, tmp_path):
        """Test YAML syntax errors are reported as configuration errors."""
        path = tmp_path / "concerns.yaml"
        path.write_text("vm-1: [unclosed\n")

        with pytest.raises(InvalidConfigError):
            StaticConcernValidator.from_file(path)

    def test_empty_file(self, tmp_path):
        """Test an empty file yields no concerns."""
        path = tmp_path / "concerns.yaml"
        path.write_text("")

        assert StaticConcernValidator.from_file(path).concerns == {}
