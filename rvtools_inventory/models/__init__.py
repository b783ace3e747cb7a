"""
Data models for rvtools-inventory.

This package contains the typed inventory records returned by queries and
the per-call filter/pagination parameters.
"""

from rvtools_inventory.models.inventory import (
    NIC,
    NOT_AVAILABLE,
    VM,
    Concern,
    Datastore,
    Disk,
    Host,
    Infra,
    Inventory,
    InventoryData,
    Network,
    OsInfo,
)
from rvtools_inventory.models.query import Filters, Options

__all__ = [
    "NIC",
    "NOT_AVAILABLE",
    "VM",
    "Concern",
    "Datastore",
    "Disk",
    "Filters",
    "Host",
    "Infra",
    "Inventory",
    "InventoryData",
    "Network",
    "Options",
    "OsInfo",
]
