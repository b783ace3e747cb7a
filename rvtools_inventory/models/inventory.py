"""Inventory record dataclasses.

These are the typed results returned by the inventory query service. Records
are built once from query rows and never mutated by the service afterwards.
Field names follow Python conventions; ``to_dict()`` produces the camelCase
keys used by the JSON reports.
"""

from dataclasses import asdict, dataclass, field
from typing import Any

NOT_AVAILABLE = "N/A"


@dataclass
class Concern:
    """A migration finding attached to one VM by an external validator."""

    id: str
    label: str
    category: str  # Information | Warning | Critical
    assessment: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Disk:
    """A virtual disk from the vdisk table."""

    key: str = ""
    unit_number: str = ""
    file: str = ""
    capacity: int = 0  # MiB
    shared: bool = False
    rdm: bool = False
    bus: str = ""
    mode: str = ""
    serial: str = ""
    thin: str = ""
    controller: str = ""
    label: str = ""
    scsi_unit: str = ""


@dataclass
class NIC:
    """A network interface from the vnetwork table."""

    network: str = ""
    mac: str = ""
    label: str = ""
    adapter: str = ""
    switch: str = ""
    connected: bool = False
    starts_connected: bool = False
    type: str = ""
    ipv4_address: str = ""
    ipv6_address: str = ""


@dataclass
class VM:
    """
    One virtual machine with its satellite data folded into a single record.

    Disks, NICs and concerns are always lists (possibly empty), never None.
    """

    id: str
    name: str
    folder: str = ""
    host: str = ""
    uuid: str = ""
    firmware: str = ""
    power_state: str = ""
    connection_state: str = ""
    fault_tolerance_enabled: bool = False
    cpu_count: int = 0
    memory_mb: int = 0
    guest_name: str = ""
    guest_name_from_vmware_tools: str = ""
    host_name: str = ""
    ip_address: str = ""
    storage_used: int = 0
    is_template: bool = False
    change_tracking_enabled: bool = False
    disk_enable_uuid: bool = False
    datacenter: str = ""
    cluster: str = ""
    hw_version: str = ""
    total_disk_capacity_mib: int = 0
    provisioned_mib: int = 0
    resource_pool: str = ""
    cpu_hot_add_enabled: bool = False
    cpu_hot_remove_enabled: bool = False
    cpu_sockets: int = 0
    cores_per_socket: int = 0
    memory_hot_add_enabled: bool = False
    ballooned_memory: int = 0
    disks: list[Disk] = field(default_factory=list)
    nics: list[NIC] = field(default_factory=list)
    networks: list[str] = field(default_factory=list)
    concerns: list[Concern] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Host:
    """An ESXi host."""

    cluster: str
    cpu_cores: int
    cpu_sockets: int
    id: str
    memory_mb: int
    model: str = NOT_AVAILABLE
    vendor: str = NOT_AVAILABLE

    def to_dict(self) -> dict[str, Any]:
        return {
            "cpuCores": self.cpu_cores,
            "cpuSockets": self.cpu_sockets,
            "id": self.id,
            "memoryMB": self.memory_mb,
            "model": self.model,
            "vendor": self.vendor,
        }


@dataclass
class Datastore:
    """A datastore, with the hosts that mount it when they can be resolved."""

    cluster: str
    disk_id: str
    free_capacity_gb: float
    hardware_accelerated_move: bool
    host_id: str
    model: str
    protocol_type: str
    total_capacity_gb: float
    type: str
    vendor: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "diskId": self.disk_id,
            "freeCapacityGB": self.free_capacity_gb,
            "hardwareAcceleratedMove": self.hardware_accelerated_move,
            "hostId": self.host_id,
            "model": self.model,
            "protocolType": self.protocol_type,
            "totalCapacityGB": self.total_capacity_gb,
            "type": self.type,
            "vendor": self.vendor,
        }


@dataclass
class Network:
    """A port group on a (distributed) switch, with the number of NICs attached."""

    cluster: str
    dvswitch: str
    name: str
    type: str
    vlan_id: str
    vms_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "dvswitch": self.dvswitch,
            "name": self.name,
            "type": self.type,
            "vlanId": self.vlan_id,
            "vmsCount": self.vms_count,
        }


@dataclass
class OsInfo:
    """Number of VMs running a given guest OS."""

    name: str
    count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Infra:
    """Infrastructure records of one cluster."""

    hosts: tuple[Host, ...] = ()
    datastores: tuple[Datastore, ...] = ()
    networks: tuple[Network, ...] = ()

    @property
    def total_hosts(self) -> int:
        return len(self.hosts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "hosts": [h.to_dict() for h in self.hosts],
            "datastores": [d.to_dict() for d in self.datastores],
            "networks": [n.to_dict() for n in self.networks],
            "totalHosts": self.total_hosts,
        }


@dataclass(frozen=True)
class InventoryData:
    """Per-cluster inventory: infrastructure plus the VMs placed on it."""

    infra: Infra = field(default_factory=Infra)
    vms: tuple[VM, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"infra": self.infra.to_dict(), "vms": [vm.to_dict() for vm in self.vms]}


@dataclass(frozen=True)
class Inventory:
    """Whole vCenter inventory grouped by cluster name."""

    vcenter_id: str
    clusters: dict[str, InventoryData] = field(default_factory=dict)
    os_summary: tuple[OsInfo, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "vcenterId": self.vcenter_id,
            "clusters": {name: data.to_dict() for name, data in self.clusters.items()},
            "osSummary": [os_info.to_dict() for os_info in self.os_summary],
        }
