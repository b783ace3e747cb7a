"""
Migration readiness classification and resource aggregation.

Each VM falls into exactly one class, derived from the categories of its
concerns:

- NOT_MIGRATABLE if any concern is "Critical"
- MIGRATABLE_WITH_WARNINGS if any concern is "Warning"
- MIGRATABLE otherwise (no concerns, or informational ones only)

Category matching is case-sensitive.

Aggregates report "migratable" as every VM that is not NOT_MIGRATABLE, so a
VM with warnings counts both as migratable and as migratable with warnings.
``total_for_migratable + total_for_not_migratable == total`` always holds;
``total_for_migratable_without_warnings`` gives the exclusive clean share.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from functools import reduce
from typing import Any, NamedTuple

from rvtools_inventory.models.inventory import VM

CATEGORY_CRITICAL = "Critical"
CATEGORY_WARNING = "Warning"

MIB_PER_GIB = 1024


class MigrationStatus(Enum):
    """
    Migration readiness class of a single VM.

    Examples:
        >>> MigrationStatus.MIGRATABLE.value
        'Migratable'
        >>> classify_concerns(["Warning", "Critical"])
        <MigrationStatus.NOT_MIGRATABLE: 'NotMigratable'>
    """

    MIGRATABLE = "Migratable"
    MIGRATABLE_WITH_WARNINGS = "MigratableWithWarnings"
    NOT_MIGRATABLE = "NotMigratable"

    def __str__(self) -> str:
        return self.value

    @property
    def severity(self) -> int:
        """Numeric severity for sorting (higher = more problematic)."""
        return {
            "Migratable": 0,
            "MigratableWithWarnings": 1,
            "NotMigratable": 2,
        }[self.value]

    @property
    def is_migratable(self) -> bool:
        return self is not MigrationStatus.NOT_MIGRATABLE


def classify_concerns(categories: Iterable[str]) -> MigrationStatus:
    """Classify a VM from the categories of its concerns."""
    seen = set(categories)
    if CATEGORY_CRITICAL in seen:
        return MigrationStatus.NOT_MIGRATABLE
    if CATEGORY_WARNING in seen:
        return MigrationStatus.MIGRATABLE_WITH_WARNINGS
    return MigrationStatus.MIGRATABLE


def classify_vm(vm: VM) -> MigrationStatus:
    return classify_concerns(c.category for c in vm.concerns)


class VmResources(NamedTuple):
    """Per-VM resource figures and concern categories, as read from the store."""

    id: str
    cpu_cores: int = 0
    memory_mb: int = 0
    disk_count: int = 0
    disk_mib: int = 0
    nic_count: int = 0
    concern_categories: tuple[str, ...] = ()

    @property
    def ram_gb(self) -> int:
        return self.memory_mb // MIB_PER_GIB

    @property
    def disk_gb(self) -> int:
        return self.disk_mib // MIB_PER_GIB

    @property
    def status(self) -> MigrationStatus:
        return classify_concerns(self.concern_categories)


class ResourceKind(Enum):
    """Resource kinds reported in breakdowns."""

    CPU_CORES = "cpu_cores"
    RAM_GB = "ram_gb"
    DISK_COUNT = "disk_count"
    DISK_GB = "disk_gb"
    NIC_COUNT = "nic_count"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ResourceBreakdown:
    """Totals of one resource kind, partitioned by migration class."""

    total: int = 0
    total_for_migratable: int = 0
    total_for_migratable_with_warnings: int = 0
    total_for_not_migratable: int = 0

    @property
    def total_for_migratable_without_warnings(self) -> int:
        return self.total_for_migratable - self.total_for_migratable_with_warnings

    def add(self, amount: int, status: MigrationStatus) -> "ResourceBreakdown":
        """Return a new breakdown with ``amount`` attributed to ``status``."""
        return ResourceBreakdown(
            total=self.total + amount,
            total_for_migratable=self.total_for_migratable
            + (amount if status.is_migratable else 0),
            total_for_migratable_with_warnings=self.total_for_migratable_with_warnings
            + (amount if status is MigrationStatus.MIGRATABLE_WITH_WARNINGS else 0),
            total_for_not_migratable=self.total_for_not_migratable
            + (amount if status is MigrationStatus.NOT_MIGRATABLE else 0),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "totalForMigratable": self.total_for_migratable,
            "totalForMigratableWithWarnings": self.total_for_migratable_with_warnings,
            "totalForNotMigratable": self.total_for_not_migratable,
        }


class TotalResources(NamedTuple):
    """Unpartitioned resource totals for a filtered VM population."""

    cpu_cores: int = 0
    ram_gb: int = 0
    disk_count: int = 0
    disk_gb: int = 0
    nic_count: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "cpuCores": self.cpu_cores,
            "ramGB": self.ram_gb,
            "diskCount": self.disk_count,
            "diskGB": self.disk_gb,
            "nicCount": self.nic_count,
        }


@dataclass(frozen=True)
class ResourceBreakdowns:
    """Breakdowns for every resource kind."""

    cpu_cores: ResourceBreakdown = field(default_factory=ResourceBreakdown)
    ram_gb: ResourceBreakdown = field(default_factory=ResourceBreakdown)
    disk_count: ResourceBreakdown = field(default_factory=ResourceBreakdown)
    disk_gb: ResourceBreakdown = field(default_factory=ResourceBreakdown)
    nic_count: ResourceBreakdown = field(default_factory=ResourceBreakdown)

    def add(self, vm: VmResources) -> "ResourceBreakdowns":
        status = vm.status
        return ResourceBreakdowns(
            cpu_cores=self.cpu_cores.add(vm.cpu_cores, status),
            ram_gb=self.ram_gb.add(vm.ram_gb, status),
            disk_count=self.disk_count.add(vm.disk_count, status),
            disk_gb=self.disk_gb.add(vm.disk_gb, status),
            nic_count=self.nic_count.add(vm.nic_count, status),
        )

    def get(self, kind: ResourceKind) -> ResourceBreakdown:
        return getattr(self, kind.value)

    @property
    def totals(self) -> TotalResources:
        return TotalResources(
            cpu_cores=self.cpu_cores.total,
            ram_gb=self.ram_gb.total,
            disk_count=self.disk_count.total,
            disk_gb=self.disk_gb.total,
            nic_count=self.nic_count.total,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "cpuCores": self.cpu_cores.to_dict(),
            "ramGB": self.ram_gb.to_dict(),
            "diskCount": self.disk_count.to_dict(),
            "diskGB": self.disk_gb.to_dict(),
            "nicCount": self.nic_count.to_dict(),
        }


@dataclass(frozen=True)
class MigrationCounts:
    """VM counts per class. ``migratable`` includes VMs with warnings."""

    migratable: int = 0
    migratable_with_warnings: int = 0
    not_migratable: int = 0

    @property
    def total(self) -> int:
        return self.migratable + self.not_migratable

    def add(self, status: MigrationStatus) -> "MigrationCounts":
        return MigrationCounts(
            migratable=self.migratable + (1 if status.is_migratable else 0),
            migratable_with_warnings=self.migratable_with_warnings
            + (1 if status is MigrationStatus.MIGRATABLE_WITH_WARNINGS else 0),
            not_migratable=self.not_migratable
            + (1 if status is MigrationStatus.NOT_MIGRATABLE else 0),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "migratable": self.migratable,
            "migratableWithWarnings": self.migratable_with_warnings,
            "notMigratable": self.not_migratable,
        }


def count_by_status(vms: Iterable[VmResources]) -> MigrationCounts:
    return reduce(lambda acc, vm: acc.add(vm.status), vms, MigrationCounts())


def breakdown_resources(vms: Iterable[VmResources]) -> ResourceBreakdowns:
    return reduce(lambda acc, vm: acc.add(vm), vms, ResourceBreakdowns())


@dataclass(frozen=True)
class MigrationIssue:
    """A labeled concern and the number of distinct VMs exhibiting it."""

    label: str
    category: str
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "category": self.category, "count": self.count}
