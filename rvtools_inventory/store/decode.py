"""
Decoding of engine rows into typed inventory records.

Each record type has a fixed table mapping result keys to attributes and
coercers. Missing or mistyped values fall back to defaults: strings to "",
numbers to 0, booleans to False. List-of-struct columns (disks, NICs,
concerns) decode element by element with the same tables.
"""

from collections.abc import Callable, Iterable, Sequence
from typing import Any, NamedTuple, TypeVar

from rvtools_inventory.models.inventory import (
    NIC,
    VM,
    Concern,
    Datastore,
    Disk,
    Host,
    Network,
    OsInfo,
)

T = TypeVar("T")

_TRUE_STRINGS = frozenset({"true", "1", "yes", "y"})


def as_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return str(value)
    return ""


def as_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            try:
                return int(float(text))
            except ValueError:
                return 0
    return 0


def as_float(value: Any) -> float:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return 0.0
    return 0.0


def as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


class FieldSpec(NamedTuple):
    """Maps one result key onto a record attribute."""

    attr: str
    key: str
    coerce: Callable[[Any], Any]


def _same(attr: str, coerce: Callable[[Any], Any]) -> FieldSpec:
    return FieldSpec(attr, attr, coerce)


DISK_FIELDS: tuple[FieldSpec, ...] = (
    _same("key", as_str),
    _same("unit_number", as_str),
    _same("file", as_str),
    _same("capacity", as_int),
    _same("shared", as_bool),
    _same("rdm", as_bool),
    _same("bus", as_str),
    _same("mode", as_str),
    _same("serial", as_str),
    _same("thin", as_str),
    _same("controller", as_str),
    _same("label", as_str),
    _same("scsi_unit", as_str),
)

NIC_FIELDS: tuple[FieldSpec, ...] = (
    _same("network", as_str),
    _same("mac", as_str),
    _same("label", as_str),
    _same("adapter", as_str),
    _same("switch", as_str),
    _same("connected", as_bool),
    _same("starts_connected", as_bool),
    _same("type", as_str),
    _same("ipv4_address", as_str),
    _same("ipv6_address", as_str),
)

CONCERN_FIELDS: tuple[FieldSpec, ...] = (
    _same("id", as_str),
    _same("label", as_str),
    _same("category", as_str),
    _same("assessment", as_str),
)

VM_FIELDS: tuple[FieldSpec, ...] = (
    _same("id", as_str),
    _same("name", as_str),
    _same("folder", as_str),
    _same("host", as_str),
    _same("uuid", as_str),
    _same("firmware", as_str),
    _same("power_state", as_str),
    _same("connection_state", as_str),
    _same("fault_tolerance_enabled", as_bool),
    _same("cpu_count", as_int),
    _same("memory_mb", as_int),
    _same("guest_name", as_str),
    _same("guest_name_from_vmware_tools", as_str),
    _same("host_name", as_str),
    _same("ip_address", as_str),
    _same("storage_used", as_int),
    _same("is_template", as_bool),
    _same("change_tracking_enabled", as_bool),
    _same("disk_enable_uuid", as_bool),
    _same("datacenter", as_str),
    _same("cluster", as_str),
    _same("hw_version", as_str),
    _same("total_disk_capacity_mib", as_int),
    _same("provisioned_mib", as_int),
    _same("resource_pool", as_str),
    _same("cpu_hot_add_enabled", as_bool),
    _same("cpu_hot_remove_enabled", as_bool),
    _same("cpu_sockets", as_int),
    _same("cores_per_socket", as_int),
    _same("memory_hot_add_enabled", as_bool),
    _same("ballooned_memory", as_int),
)

HOST_FIELDS: tuple[FieldSpec, ...] = (
    _same("cluster", as_str),
    _same("cpu_cores", as_int),
    _same("cpu_sockets", as_int),
    _same("id", as_str),
    _same("memory_mb", as_int),
    _same("model", as_str),
    _same("vendor", as_str),
)

DATASTORE_FIELDS: tuple[FieldSpec, ...] = (
    _same("cluster", as_str),
    _same("disk_id", as_str),
    _same("free_capacity_gb", as_float),
    _same("hardware_accelerated_move", as_bool),
    _same("host_id", as_str),
    _same("model", as_str),
    _same("protocol_type", as_str),
    _same("total_capacity_gb", as_float),
    _same("type", as_str),
    _same("vendor", as_str),
)

NETWORK_FIELDS: tuple[FieldSpec, ...] = (
    _same("cluster", as_str),
    _same("dvswitch", as_str),
    _same("name", as_str),
    _same("type", as_str),
    _same("vlan_id", as_str),
    _same("vms_count", as_int),
)

OS_FIELDS: tuple[FieldSpec, ...] = (
    _same("name", as_str),
    _same("count", as_int),
)


def decode_record(raw: Any, fields: Sequence[FieldSpec], factory: Callable[..., T]) -> T:
    """
    Build a record from a mapping using a field table.

    Keys absent from ``raw`` (or a ``raw`` that is not a mapping at all)
    produce the coercer's default.
    """
    source = raw if isinstance(raw, dict) else {}
    return factory(**{f.attr: f.coerce(source.get(f.key)) for f in fields})


def decode_list(value: Any, fields: Sequence[FieldSpec], factory: Callable[..., T]) -> list[T]:
    """
    Decode a list-of-struct column.

    NULL decodes to an empty list. Elements that are not structs are skipped.

    Raises:
        TypeError: If the value is neither NULL nor a list
    """
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise TypeError(f"expected a list column, got {type(value).__name__}")
    return [decode_record(item, fields, factory) for item in value if isinstance(item, dict)]


def decode_string_list(value: Any) -> list[str]:
    """Decode a list-of-string column, dropping empty entries."""
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise TypeError(f"expected a list column, got {type(value).__name__}")
    return [s for s in (as_str(item) for item in value) if s]


def decode_vm(row: dict[str, Any]) -> VM:
    """Decode one VM row, including its nested disks, NICs, networks and concerns."""
    vm = decode_record(row, VM_FIELDS, VM)
    vm.disks = decode_list(row.get("disks"), DISK_FIELDS, Disk)
    vm.nics = decode_list(row.get("nics"), NIC_FIELDS, NIC)
    vm.networks = decode_string_list(row.get("networks"))
    vm.concerns = decode_list(row.get("concerns"), CONCERN_FIELDS, Concern)
    return vm


def decode_host(row: dict[str, Any]) -> Host:
    return decode_record(row, HOST_FIELDS, Host)


def decode_datastore(row: dict[str, Any]) -> Datastore:
    return decode_record(row, DATASTORE_FIELDS, Datastore)


def decode_network(row: dict[str, Any]) -> Network:
    return decode_record(row, NETWORK_FIELDS, Network)


def decode_os(row: dict[str, Any]) -> OsInfo:
    return decode_record(row, OS_FIELDS, OsInfo)


def rows_as_dicts(description: Iterable[Sequence[Any]], rows: Iterable[Sequence[Any]]):
    """Pair each result row with the column names from a cursor description."""
    names = [d[0] for d in description]
    return [dict(zip(names, row)) for row in rows]
