"""
Cluster-grouped inventory assembly.

Records are bucketed by cluster name in one pass, then each bucket is frozen
into an immutable accumulator. Cluster names are trimmed; records whose
cluster is empty or whitespace are left out.
"""

from collections.abc import Iterable
from dataclasses import dataclass, replace

from rvtools_inventory.models.inventory import (
    VM,
    Datastore,
    Host,
    Infra,
    Inventory,
    InventoryData,
    Network,
    OsInfo,
)

Record = Host | Datastore | Network | VM

_RECORD_FIELDS = ((Host, "hosts"), (Datastore, "datastores"), (Network, "networks"), (VM, "vms"))


def _field_for(record: Record) -> str:
    for kind, name in _RECORD_FIELDS:
        if isinstance(record, kind):
            return name
    raise TypeError(f"cannot group {type(record).__name__} by cluster")


@dataclass(frozen=True)
class ClusterAccumulator:
    """Records collected for one cluster."""

    hosts: tuple[Host, ...] = ()
    datastores: tuple[Datastore, ...] = ()
    networks: tuple[Network, ...] = ()
    vms: tuple[VM, ...] = ()

    @classmethod
    def of(cls, records: Iterable[Record]) -> "ClusterAccumulator":
        """Freeze ``records`` into an accumulator, keeping their order per kind."""
        buckets: dict[str, list[Record]] = {name: [] for _, name in _RECORD_FIELDS}
        for record in records:
            buckets[_field_for(record)].append(record)
        return cls(**{name: tuple(items) for name, items in buckets.items()})

    def add(self, record: Record) -> "ClusterAccumulator":
        name = _field_for(record)
        return replace(self, **{name: getattr(self, name) + (record,)})

    def build(self) -> InventoryData:
        return InventoryData(
            infra=Infra(hosts=self.hosts, datastores=self.datastores, networks=self.networks),
            vms=self.vms,
        )


def cluster_key(record: Record) -> str:
    return record.cluster.strip()


def group_by_cluster(records: Iterable[Record]) -> dict[str, InventoryData]:
    """Group records into per-cluster inventory data, in time linear in the input."""
    buckets: dict[str, list[Record]] = {}
    for record in records:
        name = cluster_key(record)
        if name:
            buckets.setdefault(name, []).append(record)
    return {name: ClusterAccumulator.of(items).build() for name, items in buckets.items()}


def build_inventory(
    vcenter_id: str,
    datastores: Iterable[Datastore],
    hosts: Iterable[Host],
    networks: Iterable[Network],
    vms: Iterable[VM],
    os_summary: Iterable[OsInfo],
) -> Inventory:
    """
    Assemble the whole inventory.

    Record order within a cluster follows the order of the inputs.
    """
    records: list[Record] = [*datastores, *hosts, *networks, *vms]
    return Inventory(
        vcenter_id=vcenter_id,
        clusters=group_by_cluster(records),
        os_summary=tuple(os_summary),
    )
