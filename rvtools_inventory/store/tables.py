"""
Table and column contract of the ingested inventory store.

Every ingestion path (spreadsheet or relational export) produces these tables.
Optional tables may be absent or empty; the query builder and the schema
validator adapt to what is actually present.
"""

from typing import NamedTuple

# Number of "Network #N" columns carried by the vInfo sheet.
VM_NETWORK_COLUMNS = 25


class ColumnSpec(NamedTuple):
    """A column of a contract table."""

    name: str
    type: str = "VARCHAR"


class TableSpec(NamedTuple):
    """
    A contract table.

    Attributes:
        name: Table name in the store
        sheet: Source sheet name in an RVTools spreadsheet (None if not ingested)
        columns: Column definitions in creation order
        required: True if the inventory is unusable without this table
    """

    name: str
    sheet: str | None
    columns: tuple[ColumnSpec, ...]
    required: bool = False

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.columns)


VINFO = "vinfo"
VCPU = "vcpu"
VMEMORY = "vmemory"
VDISK = "vdisk"
VNETWORK = "vnetwork"
VHOST = "vhost"
VDATASTORE = "vdatastore"
DVPORT = "dvport"
CONCERNS = "concerns"

VM_ID = "VM ID"

CONCERN_VM_ID = "VM_ID"
CONCERN_ID = "Concern_ID"
CONCERN_LABEL = "Label"
CONCERN_CATEGORY = "Category"
CONCERN_ASSESSMENT = "Assessment"


def _network_columns() -> tuple[ColumnSpec, ...]:
    return tuple(ColumnSpec(f"Network #{i}") for i in range(1, VM_NETWORK_COLUMNS + 1))


TABLES: tuple[TableSpec, ...] = (
    TableSpec(
        name=VINFO,
        sheet="vInfo",
        required=True,
        columns=(
            ColumnSpec(VM_ID),
            ColumnSpec("VM"),
            ColumnSpec("Folder ID"),
            ColumnSpec("Host"),
            ColumnSpec("SMBIOS UUID"),
            ColumnSpec("Firmware"),
            ColumnSpec("Powerstate"),
            ColumnSpec("Connection state"),
            ColumnSpec("FT State"),
            ColumnSpec("CPUs", "INTEGER"),
            ColumnSpec("Memory", "INTEGER"),
            ColumnSpec("OS according to the configuration file"),
            ColumnSpec("OS according to the VMware Tools"),
            ColumnSpec("DNS Name"),
            ColumnSpec("Primary IP Address"),
            ColumnSpec("In Use MiB", "BIGINT"),
            ColumnSpec("Template", "BOOLEAN"),
            ColumnSpec("CBT", "BOOLEAN"),
            ColumnSpec("EnableUUID", "BOOLEAN"),
            ColumnSpec("Datacenter"),
            ColumnSpec("Cluster"),
            ColumnSpec("HW version"),
            ColumnSpec("Total disk capacity MiB", "BIGINT"),
            ColumnSpec("Provisioned MiB", "BIGINT"),
            ColumnSpec("Resource pool"),
            ColumnSpec("VI SDK UUID"),
        )
        + _network_columns(),
    ),
    TableSpec(
        name=VCPU,
        sheet="vCPU",
        columns=(
            ColumnSpec(VM_ID),
            ColumnSpec("Sockets", "INTEGER"),
            ColumnSpec("Cores p/s", "INTEGER"),
            ColumnSpec("Hot Add", "BOOLEAN"),
            ColumnSpec("Hot Remove", "BOOLEAN"),
        ),
    ),
    TableSpec(
        name=VMEMORY,
        sheet="vMemory",
        columns=(
            ColumnSpec(VM_ID),
            ColumnSpec("Hot Add", "BOOLEAN"),
            ColumnSpec("Ballooned", "BIGINT"),
        ),
    ),
    TableSpec(
        name=VDISK,
        sheet="vDisk",
        columns=(
            ColumnSpec(VM_ID),
            ColumnSpec("Disk Key"),
            ColumnSpec("Unit #"),
            ColumnSpec("Path"),
            ColumnSpec("Capacity MiB", "BIGINT"),
            ColumnSpec("Sharing mode"),
            ColumnSpec("Raw", "BOOLEAN"),
            ColumnSpec("Shared Bus"),
            ColumnSpec("Disk Mode"),
            ColumnSpec("Disk UUID"),
            ColumnSpec("Thin"),
            ColumnSpec("Controller"),
            ColumnSpec("Label"),
            ColumnSpec("SCSI Unit #"),
        ),
    ),
    TableSpec(
        name=VNETWORK,
        sheet="vNetwork",
        columns=(
            ColumnSpec(VM_ID),
            ColumnSpec("Cluster"),
            ColumnSpec("Network"),
            ColumnSpec("Mac Address"),
            ColumnSpec("NIC label"),
            ColumnSpec("Adapter"),
            ColumnSpec("Switch"),
            ColumnSpec("Connected", "BOOLEAN"),
            ColumnSpec("Starts Connected", "BOOLEAN"),
            ColumnSpec("Type"),
            ColumnSpec("IPv4 Address"),
            ColumnSpec("IPv6 Address"),
        ),
    ),
    TableSpec(
        name=VHOST,
        sheet="vHost",
        columns=(
            ColumnSpec("Host"),
            ColumnSpec("Datacenter"),
            ColumnSpec("Cluster"),
            ColumnSpec("# CPU", "INTEGER"),
            ColumnSpec("# Cores", "INTEGER"),
            ColumnSpec("# Memory", "INTEGER"),
            ColumnSpec("Model"),
            ColumnSpec("Vendor"),
            ColumnSpec("Object ID"),
        ),
    ),
    TableSpec(
        name=VDATASTORE,
        sheet="vDatastore",
        columns=(
            ColumnSpec("Name"),
            ColumnSpec("Cluster name"),
            ColumnSpec("Type"),
            ColumnSpec("Capacity MiB", "BIGINT"),
            ColumnSpec("Free MiB", "BIGINT"),
            ColumnSpec("MHA", "BOOLEAN"),
            ColumnSpec("Hosts"),
        ),
    ),
    TableSpec(
        name=DVPORT,
        sheet="dvPort",
        columns=(
            ColumnSpec("Port"),
            ColumnSpec("Switch"),
            ColumnSpec("VLAN"),
        ),
    ),
    TableSpec(
        name=CONCERNS,
        sheet=None,
        columns=(
            ColumnSpec(CONCERN_VM_ID),
            ColumnSpec(CONCERN_ID),
            ColumnSpec(CONCERN_LABEL),
            ColumnSpec(CONCERN_CATEGORY),
            ColumnSpec(CONCERN_ASSESSMENT),
        ),
    ),
)

TABLES_BY_NAME: dict[str, TableSpec] = {t.name: t for t in TABLES}


def get_table(name: str) -> TableSpec:
    """Return the contract table with the given name."""
    try:
        return TABLES_BY_NAME[name]
    except KeyError:
        raise KeyError(f"Unknown inventory table: {name}") from None


def quote_identifier(name: str) -> str:
    """Quote a column or table name for the store's SQL dialect."""
    return '"' + name.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    """Quote a string literal (used only where the engine cannot bind parameters)."""
    return "'" + value.replace("'", "''") + "'"
