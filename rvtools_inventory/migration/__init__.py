"""
Migration readiness classification and resource aggregation.
"""

from rvtools_inventory.migration.classify import (
    MigrationCounts,
    MigrationIssue,
    MigrationStatus,
    ResourceBreakdown,
    ResourceBreakdowns,
    ResourceKind,
    TotalResources,
    VmResources,
    breakdown_resources,
    classify_concerns,
    classify_vm,
    count_by_status,
)

__all__ = [
    "MigrationCounts",
    "MigrationIssue",
    "MigrationStatus",
    "ResourceBreakdown",
    "ResourceBreakdowns",
    "ResourceKind",
    "TotalResources",
    "VmResources",
    "breakdown_resources",
    "classify_concerns",
    "classify_vm",
    "count_by_status",
]
