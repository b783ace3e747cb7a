"""
Tests for migration readiness classification and resource aggregation.
"""

from dataclasses import FrozenInstanceError

import pytest

from rvtools_inventory.migration.classify import (
    MigrationCounts,
    MigrationStatus,
    ResourceBreakdown,
    ResourceBreakdowns,
    ResourceKind,
    VmResources,
    breakdown_resources,
    classify_concerns,
    classify_vm,
    count_by_status,
)
from rvtools_inventory.models.inventory import VM, Concern

SCENARIO = [
    VmResources("vm-001", 4, 8192, 2, 153600, 1, ("Warning", "Information")),
    VmResources("vm-002", 2, 4096, 1, 40960, 1, ("Critical",)),
    VmResources("vm-003", 1, 2048, 1, 20480, 1, ()),
]


class TestMigrationStatus:
    """Tests for the MigrationStatus enum."""

    def test_enum_values(self):
        """Test status enum has the expected values."""
        assert MigrationStatus.MIGRATABLE.value == "Migratable"
        assert MigrationStatus.MIGRATABLE_WITH_WARNINGS.value == "MigratableWithWarnings"
        assert MigrationStatus.NOT_MIGRATABLE.value == "NotMigratable"

    def test_str(self):
        """Test string conversion returns the value."""
        assert str(MigrationStatus.NOT_MIGRATABLE) == "NotMigratable"

    def test_severity_ordering(self):
        """Test severity increases with how problematic the class is."""
        assert (
            MigrationStatus.MIGRATABLE.severity
            < MigrationStatus.MIGRATABLE_WITH_WARNINGS.severity
            < MigrationStatus.NOT_MIGRATABLE.severity
        )

    def test_is_migratable(self):
        """Test VMs with warnings still count as migratable."""
        assert MigrationStatus.MIGRATABLE.is_migratable
        assert MigrationStatus.MIGRATABLE_WITH_WARNINGS.is_migratable
        assert not MigrationStatus.NOT_MIGRATABLE.is_migratable


class TestClassifyConcerns:
    """Tests for classification rules."""

    @pytest.mark.parametrize(
        "categories,expected",
        [
            ([], MigrationStatus.MIGRATABLE),
            (["Information"], MigrationStatus.MIGRATABLE),
            (["Warning"], MigrationStatus.MIGRATABLE_WITH_WARNINGS),
            (["Information", "Warning"], MigrationStatus.MIGRATABLE_WITH_WARNINGS),
            (["Critical"], MigrationStatus.NOT_MIGRATABLE),
            (["Warning", "Critical"], MigrationStatus.NOT_MIGRATABLE),
        ],
    )
    def test_rules(self, categories, expected):
        """Test Critical wins over Warning, which wins over everything else."""
        assert classify_concerns(categories) is expected

    def test_matching_is_case_sensitive(self):
        """Test categories in another case do not classify."""
        assert classify_concerns(["critical", "WARNING"]) is MigrationStatus.MIGRATABLE

    def test_unknown_categories_are_ignored(self):
        """Test unrecognised categories leave the VM migratable."""
        assert classify_concerns(["Advisory"]) is MigrationStatus.MIGRATABLE

    def test_classify_vm(self):
        """Test a VM record is classified from its concerns."""
        vm = VM(id="vm-1", name="a", concerns=[Concern("x", "X", "Warning")])
        assert classify_vm(vm) is MigrationStatus.MIGRATABLE_WITH_WARNINGS


class TestVmResources:
    """Tests for per-VM resource conversions."""

    def test_gib_conversion_truncates(self):
        """Test memory and disk sizes truncate to whole GiB."""
        vm = VmResources("vm-1", memory_mb=3000, disk_mib=2047)

        assert vm.ram_gb == 2
        assert vm.disk_gb == 1

    def test_status(self):
        """Test status is derived from concern categories."""
        assert SCENARIO[1].status is MigrationStatus.NOT_MIGRATABLE


class TestResourceBreakdown:
    """Tests for ResourceBreakdown."""

    def test_add_migratable(self):
        """Test a clean VM adds to total and migratable only."""
        b = ResourceBreakdown().add(4, MigrationStatus.MIGRATABLE)
        assert (b.total, b.total_for_migratable, b.total_for_migratable_with_warnings) == (4, 4, 0)
        assert b.total_for_not_migratable == 0

    def test_add_with_warnings(self):
        """Test a VM with warnings adds to migratable and with-warnings."""
        b = ResourceBreakdown().add(4, MigrationStatus.MIGRATABLE_WITH_WARNINGS)
        assert b.total_for_migratable == 4
        assert b.total_for_migratable_with_warnings == 4
        assert b.total_for_migratable_without_warnings == 0

    def test_add_not_migratable(self):
        """Test a blocked VM adds to total and not-migratable only."""
        b = ResourceBreakdown().add(2, MigrationStatus.NOT_MIGRATABLE)
        assert (b.total, b.total_for_migratable, b.total_for_not_migratable) == (2, 0, 2)

    def test_add_returns_new_value(self):
        """Test add leaves the original untouched."""
        original = ResourceBreakdown()
        original.add(1, MigrationStatus.MIGRATABLE)

        assert original.total == 0
        with pytest.raises(FrozenInstanceError):
            original.total = 5

    def test_to_dict(self):
        """Test camelCase keys."""
        assert ResourceBreakdown(7, 5, 4, 2).to_dict() == {
            "total": 7,
            "totalForMigratable": 5,
            "totalForMigratableWithWarnings": 4,
            "totalForNotMigratable": 2,
        }


class TestAggregation:
    """Tests for folding VMs into counts and breakdowns."""

    def test_count_by_status(self):
        """Test migratable includes warnings; the classes partition the VMs."""
        counts = count_by_status(SCENARIO)

        assert counts == MigrationCounts(migratable=2, migratable_with_warnings=1, not_migratable=1)
        assert counts.total == len(SCENARIO)

    def test_breakdowns(self):
        """Test CPU and RAM breakdowns for the three-VM scenario."""
        breakdowns = breakdown_resources(SCENARIO)

        assert breakdowns.cpu_cores == ResourceBreakdown(7, 5, 4, 2)
        assert breakdowns.ram_gb == ResourceBreakdown(14, 10, 8, 4)
        assert breakdowns.disk_gb.total == 210
        assert breakdowns.get(ResourceKind.NIC_COUNT).total == 3

    def test_partition_invariant(self):
        """Test migratable plus not migratable equals total for every kind."""
        breakdowns = breakdown_resources(SCENARIO)

        for kind in ResourceKind:
            b = breakdowns.get(kind)
            assert b.total_for_migratable + b.total_for_not_migratable == b.total

    def test_empty_population(self):
        """Test no VMs yields zeroes."""
        assert breakdown_resources([]) == ResourceBreakdowns()
        assert count_by_status([]) == MigrationCounts()

    def test_totals(self):
        """Test totals mirror the breakdown totals."""
        totals = breakdown_resources(SCENARIO).totals

        assert totals.cpu_cores == 7
        assert totals.to_dict()["ramGB"] == 14
