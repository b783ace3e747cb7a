"""
Schema-aware query construction.

Queries are built as ``Query`` objects (projection, joins, predicates,
grouping, ordering, pagination) rather than interpolated text. Filter values
are always bound as parameters; only static SQL fragments and validated
integers end up in the rendered text.

Which variant of a query is built depends on the optional tables that the
introspector found. The mapping from (entity, presence flags) to the function
that builds the query is the strategy table ``_STRATEGIES``.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from rvtools_inventory.exceptions import QueryBuildError
from rvtools_inventory.models.query import Filters, Options
from rvtools_inventory.store.introspect import SchemaInfo
from rvtools_inventory.store.tables import (
    CONCERN_CATEGORY,
    CONCERN_ID,
    CONCERN_LABEL,
    CONCERN_VM_ID,
    CONCERNS,
    DVPORT,
    TABLES,
    VDATASTORE,
    VDISK,
    VHOST,
    VINFO,
    VM_NETWORK_COLUMNS,
    VNETWORK,
    ColumnSpec,
    TableSpec,
    quote_identifier,
)
from rvtools_inventory.util.templates import TemplateLoader

logger = logging.getLogger(__name__)


class Entity(Enum):
    """
    Kinds of queries the builder can produce.

    VM, HOST, DATASTORE, NETWORK, OS and VCENTER are the listing entities.
    The remaining members are aggregates used by the query service.
    """

    VM = "vm"
    HOST = "host"
    DATASTORE = "datastore"
    NETWORK = "network"
    OS = "os"
    VCENTER = "vcenter"
    VM_COUNT = "vm_count"
    CLUSTERS = "clusters"
    POWER_STATES = "power_states"
    VM_RESOURCES = "vm_resources"
    MIGRATION_ISSUES = "migration_issues"

    def __str__(self) -> str:
        return self.value


LISTING_ENTITIES = (
    Entity.VM,
    Entity.DATASTORE,
    Entity.NETWORK,
    Entity.HOST,
    Entity.OS,
    Entity.VCENTER,
)


@dataclass(frozen=True)
class Join:
    """A join step of a query plan. ``source`` is a table or a static subquery."""

    source: str
    alias: str
    on: str
    kind: str = "LEFT"


@dataclass(frozen=True)
class Predicate:
    """A WHERE condition with ``?`` placeholders and their bound values."""

    sql: str
    params: tuple[Any, ...] = ()


@dataclass(frozen=True)
class Query:
    """A fully specified query, renderable to SQL text plus bound parameters."""

    entity: Entity
    projection: tuple[str, ...]
    source: str
    joins: tuple[Join, ...] = ()
    predicates: tuple[Predicate, ...] = ()
    group_by: tuple[str, ...] = ()
    order_by: tuple[str, ...] = ()
    limit: int = 0
    offset: int = 0
    distinct: bool = False
    variant: str = "default"

    def to_sql(self) -> str:
        """Render the query text. Pagination values are validated integers."""
        lines = ["SELECT DISTINCT" if self.distinct else "SELECT"]
        lines.append(",\n".join(f"    {expr}" for expr in self.projection))
        lines.append(f"FROM {self.source}")
        for join in self.joins:
            lines.append(f"{join.kind} JOIN {join.source} {join.alias} ON {join.on}")
        if self.predicates:
            lines.append("WHERE " + "\n    AND ".join(p.sql for p in self.predicates))
        if self.group_by:
            lines.append("GROUP BY " + ", ".join(self.group_by))
        if self.order_by:
            lines.append("ORDER BY " + ", ".join(self.order_by))
        if self.limit:
            lines.append(f"LIMIT {self.limit}")
        if self.offset:
            lines.append(f"OFFSET {self.offset}")
        return "\n".join(lines)

    @property
    def params(self) -> list[Any]:
        return [value for p in self.predicates for value in p.params]

    def with_predicates(self, *predicates: Predicate) -> "Query":
        return Query(
            entity=self.entity,
            projection=self.projection,
            source=self.source,
            joins=self.joins,
            predicates=self.predicates + predicates,
            group_by=self.group_by,
            order_by=self.order_by,
            limit=self.limit,
            offset=self.offset,
            distinct=self.distinct,
            variant=self.variant,
        )


@dataclass(frozen=True)
class BuildContext:
    """Everything a strategy function needs to build one query."""

    schema: SchemaInfo
    filters: Filters = field(default_factory=Filters)
    options: Options = field(default_factory=Options)
    category: str = ""


def _ident(name: str) -> str:
    return quote_identifier(name)


def _col(alias: str, name: str) -> str:
    return f"{alias}.{_ident(name)}"


def _vm_predicates(filters: Filters, alias: str = "i") -> tuple[Predicate, ...]:
    """Translate filters into predicates on the VM table; empty filters are omitted."""
    predicates = []
    if filters.cluster:
        predicates.append(Predicate(f"{_col(alias, 'Cluster')} = ?", (filters.cluster,)))
    if filters.os:
        predicates.append(
            Predicate(
                f"contains({_col(alias, 'OS according to the configuration file')}, ?)",
                (filters.os,),
            )
        )
    if filters.power_state:
        predicates.append(Predicate(f"{_col(alias, 'Powerstate')} = ?", (filters.power_state,)))
    return tuple(predicates)


def _cluster_predicates(filters: Filters, column: str) -> tuple[Predicate, ...]:
    """Infrastructure records only carry a cluster; OS and power state do not apply."""
    if filters.cluster:
        return (Predicate(f"{column} = ?", (filters.cluster,)),)
    return ()


# ---------------------------------------------------------------------------
# VM
# ---------------------------------------------------------------------------

_VM_SCALARS = (
    ("VM ID", "id"),
    ("VM", "name"),
    ("Folder ID", "folder"),
    ("Host", "host"),
    ("SMBIOS UUID", "uuid"),
    ("Firmware", "firmware"),
    ("Powerstate", "power_state"),
    ("Connection state", "connection_state"),
    ("CPUs", "cpu_count"),
    ("Memory", "memory_mb"),
    ("OS according to the configuration file", "guest_name"),
    ("OS according to the VMware Tools", "guest_name_from_vmware_tools"),
    ("DNS Name", "host_name"),
    ("Primary IP Address", "ip_address"),
    ("In Use MiB", "storage_used"),
    ("Template", "is_template"),
    ("CBT", "change_tracking_enabled"),
    ("EnableUUID", "disk_enable_uuid"),
    ("Datacenter", "datacenter"),
    ("Cluster", "cluster"),
    ("HW version", "hw_version"),
    ("Total disk capacity MiB", "total_disk_capacity_mib"),
    ("Provisioned MiB", "provisioned_mib"),
    ("Resource pool", "resource_pool"),
)

_CPU_SUBQUERY = """(
        SELECT "VM ID" AS vm_id,
            bool_or("Hot Add") AS hot_add,
            bool_or("Hot Remove") AS hot_remove,
            max("Sockets") AS sockets,
            max("Cores p/s") AS cores_per_socket
        FROM vcpu
        GROUP BY "VM ID"
    )"""

_MEMORY_SUBQUERY = """(
        SELECT "VM ID" AS vm_id,
            bool_or("Hot Add") AS hot_add,
            max("Ballooned") AS ballooned
        FROM vmemory
        GROUP BY "VM ID"
    )"""

_DISK_SUBQUERY = """(
        SELECT "VM ID" AS vm_id,
            list({
                'key': "Disk Key",
                'unit_number': "Unit #",
                'file': "Path",
                'capacity': "Capacity MiB",
                'shared': COALESCE("Sharing mode", 'sharingNone') <> 'sharingNone',
                'rdm': "Raw",
                'bus': "Shared Bus",
                'mode': "Disk Mode",
                'serial': "Disk UUID",
                'thin': "Thin",
                'controller': "Controller",
                'label': "Label",
                'scsi_unit': "SCSI Unit #"
            } ORDER BY "Disk Key", "Path") AS disks
        FROM vdisk
        GROUP BY "VM ID"
    )"""

_NIC_SUBQUERY = """(
        SELECT "VM ID" AS vm_id,
            list({
                'network': "Network",
                'mac': "Mac Address",
                'label': "NIC label",
                'adapter': "Adapter",
                'switch': "Switch",
                'connected': "Connected",
                'starts_connected': "Starts Connected",
                'type': "Type",
                'ipv4_address': "IPv4 Address",
                'ipv6_address': "IPv6 Address"
            } ORDER BY "NIC label", "Mac Address") AS nics
        FROM vnetwork
        GROUP BY "VM ID"
    )"""

_CONCERN_SUBQUERY = """(
        SELECT "VM_ID" AS vm_id,
            list({
                'id': "Concern_ID",
                'label': "Label",
                'category': "Category",
                'assessment': "Assessment"
            } ORDER BY "Concern_ID", "Label") AS concerns
        FROM concerns
        GROUP BY "VM_ID"
    )"""

_VM_ORDER = (_col("i", "VM ID"), _col("i", "VM"))


def _vm_network_list(schema: SchemaInfo) -> str:
    """Legacy flat network list from the "Network #N" columns that exist."""
    present = [
        _col("i", f"Network #{n}")
        for n in range(1, VM_NETWORK_COLUMNS + 1)
        if schema.has_column(VINFO, f"Network #{n}")
    ]
    if not present:
        return "NULL AS networks"
    return f"[{', '.join(present)}] AS networks"


def _vm_query(ctx: BuildContext, with_concerns: bool) -> Query:
    projection = [f"{_col('i', column)} AS {alias}" for column, alias in _VM_SCALARS]
    projection.insert(
        8,
        f"COALESCE({_col('i', 'FT State')}, '') NOT IN ('', 'notConfigured')"
        " AS fault_tolerance_enabled",
    )
    projection += [
        "c.hot_add AS cpu_hot_add_enabled",
        "c.hot_remove AS cpu_hot_remove_enabled",
        "c.sockets AS cpu_sockets",
        "c.cores_per_socket AS cores_per_socket",
        "m.hot_add AS memory_hot_add_enabled",
        "m.ballooned AS ballooned_memory",
        "d.disks AS disks",
        "n.nics AS nics",
        _vm_network_list(ctx.schema),
        "k.concerns AS concerns" if with_concerns else "NULL AS concerns",
    ]

    vm_id = _col("i", "VM ID")
    joins = [
        Join(_CPU_SUBQUERY, "c", f"c.vm_id = {vm_id}"),
        Join(_MEMORY_SUBQUERY, "m", f"m.vm_id = {vm_id}"),
        Join(_DISK_SUBQUERY, "d", f"d.vm_id = {vm_id}"),
        Join(_NIC_SUBQUERY, "n", f"n.vm_id = {vm_id}"),
    ]
    if with_concerns:
        joins.append(Join(_CONCERN_SUBQUERY, "k", f"k.vm_id = {vm_id}"))

    return Query(
        entity=Entity.VM,
        projection=tuple(projection),
        source=f"{VINFO} i",
        joins=tuple(joins),
        predicates=_vm_predicates(ctx.filters),
        order_by=_VM_ORDER,
        limit=ctx.options.limit,
        offset=ctx.options.offset,
        variant="with_concerns" if with_concerns else "without_concerns",
    )


# ---------------------------------------------------------------------------
# Datastore
# ---------------------------------------------------------------------------

_DATASTORE_HOSTS_SUBQUERY = """(
        SELECT e.name,
            NULLIF(array_to_string(list_sort(list_distinct(list(h."Object ID"))), ', '), '')
                AS host_ids
        FROM (
            SELECT "Name" AS name, trim(unnest(string_split("Hosts", ','))) AS host
            FROM vdatastore
        ) e
        JOIN vhost h ON h."Host" = e.host
        GROUP BY e.name
    )"""


def _datastore_query(ctx: BuildContext, with_hosts: bool) -> Query:
    host_id = "COALESCE(r.host_ids, 'N/A') AS host_id" if with_hosts else "'N/A' AS host_id"
    projection = (
        f"{_col('d', 'Cluster name')} AS cluster",
        f"{_col('d', 'Name')} AS disk_id",
        f"CAST({_col('d', 'Free MiB')}::DOUBLE / 1024 AS INTEGER) AS free_capacity_gb",
        f"COALESCE({_col('d', 'MHA')}, false) AS hardware_accelerated_move",
        host_id,
        "'N/A' AS model",
        "'N/A' AS protocol_type",
        f"CAST({_col('d', 'Capacity MiB')}::DOUBLE / 1024 AS INTEGER) AS total_capacity_gb",
        f"COALESCE({_col('d', 'Type')}, 'N/A') AS type",
        "'N/A' AS vendor",
    )
    joins = ()
    if with_hosts:
        joins = (Join(_DATASTORE_HOSTS_SUBQUERY, "r", f"r.name = {_col('d', 'Name')}"),)

    cluster = _col("d", "Cluster name")
    return Query(
        entity=Entity.DATASTORE,
        projection=projection,
        source=f"{VDATASTORE} d",
        joins=joins,
        predicates=(Predicate(f"{cluster} IS NOT NULL"),)
        + _cluster_predicates(ctx.filters, cluster),
        order_by=(cluster, _col("d", "Name")),
        limit=ctx.options.limit,
        offset=ctx.options.offset,
        variant="with_hosts" if with_hosts else "without_hosts",
    )


# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------

_VLAN_SUBQUERY = """(
        SELECT "Port" AS port, min("VLAN") AS vlan
        FROM dvport
        GROUP BY "Port"
    )"""


def _network_query(ctx: BuildContext, with_vlans: bool) -> Query:
    cluster = _col("n", "Cluster")
    switch = _col("n", "Switch")
    network = _col("n", "Network")

    projection = (
        f"{cluster} AS cluster",
        f"COALESCE({switch}, '') AS dvswitch",
        f"{network} AS name",
        "'distributed' AS type",
        "COALESCE(p.vlan, '') AS vlan_id" if with_vlans else "'' AS vlan_id",
        "CAST(COUNT(*) AS INTEGER) AS vms_count",
    )
    group_by = (cluster, switch, network)
    joins = ()
    if with_vlans:
        joins = (Join(_VLAN_SUBQUERY, "p", f"p.port = {network}"),)
        group_by += ("p.vlan",)

    return Query(
        entity=Entity.NETWORK,
        projection=projection,
        source=f"{VNETWORK} n",
        joins=joins,
        predicates=(Predicate(f"{cluster} IS NOT NULL"),)
        + _cluster_predicates(ctx.filters, cluster),
        group_by=group_by,
        order_by=("cluster", "dvswitch", "name", "vlan_id"),
        limit=ctx.options.limit,
        offset=ctx.options.offset,
        variant="with_vlans" if with_vlans else "without_vlans",
    )


# ---------------------------------------------------------------------------
# Host, OS, vCenter
# ---------------------------------------------------------------------------


def _host_query(ctx: BuildContext) -> Query:
    cluster = _col("h", "Cluster")
    projection = (
        f"{cluster} AS cluster",
        f"{_col('h', '# Cores')} AS cpu_cores",
        f"{_col('h', '# CPU')} AS cpu_sockets",
        f"COALESCE({_col('h', 'Object ID')}, {_col('h', 'Host')}, 'N/A') AS id",
        f"{_col('h', '# Memory')} AS memory_mb",
        f"COALESCE({_col('h', 'Model')}, 'N/A') AS model",
        f"COALESCE({_col('h', 'Vendor')}, 'N/A') AS vendor",
    )
    return Query(
        entity=Entity.HOST,
        projection=projection,
        source=f"{VHOST} h",
        predicates=(Predicate(f"{cluster} IS NOT NULL"),)
        + _cluster_predicates(ctx.filters, cluster),
        order_by=("cluster", "id"),
        limit=ctx.options.limit,
        offset=ctx.options.offset,
    )


def _os_query(ctx: BuildContext) -> Query:
    guest = _col("i", "OS according to the configuration file")
    return Query(
        entity=Entity.OS,
        projection=(f"{guest} AS name", "CAST(COUNT(*) AS INTEGER) AS count"),
        source=f"{VINFO} i",
        predicates=(Predicate(f"{guest} IS NOT NULL"), Predicate(f"{guest} <> ''"))
        + _vm_predicates(ctx.filters),
        group_by=(guest,),
        order_by=("count DESC", "name"),
    )


def _vcenter_query(ctx: BuildContext) -> Query:
    uuid = _col("i", "VI SDK UUID")
    return Query(
        entity=Entity.VCENTER,
        projection=(f"{uuid} AS vcenter_id",),
        source=f"{VINFO} i",
        predicates=(Predicate(f"{uuid} IS NOT NULL"), Predicate(f"{uuid} <> ''")),
        order_by=(uuid,),
        limit=1,
    )


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


def _vm_count_query(ctx: BuildContext) -> Query:
    return Query(
        entity=Entity.VM_COUNT,
        projection=("CAST(COUNT(*) AS INTEGER) AS count",),
        source=f"{VINFO} i",
        predicates=_vm_predicates(ctx.filters),
    )


def _clusters_query(ctx: BuildContext) -> Query:
    cluster = _col("i", "Cluster")
    return Query(
        entity=Entity.CLUSTERS,
        projection=(f"trim({cluster}) AS cluster",),
        source=f"{VINFO} i",
        predicates=(Predicate(f"{cluster} IS NOT NULL"), Predicate(f"trim({cluster}) <> ''")),
        order_by=("cluster",),
        distinct=True,
    )


def _power_states_query(ctx: BuildContext) -> Query:
    state = f"COALESCE({_col('i', 'Powerstate')}, '')"
    return Query(
        entity=Entity.POWER_STATES,
        projection=(f"{state} AS power_state", "CAST(COUNT(*) AS INTEGER) AS count"),
        source=f"{VINFO} i",
        predicates=_vm_predicates(ctx.filters),
        group_by=(state,),
        order_by=("power_state",),
    )


_DISK_TOTALS_SUBQUERY = """(
        SELECT "VM ID" AS vm_id,
            COUNT(*) AS disk_count,
            COALESCE(SUM("Capacity MiB"), 0) AS disk_mib
        FROM vdisk
        GROUP BY "VM ID"
    )"""

_NIC_TOTALS_SUBQUERY = """(
        SELECT "VM ID" AS vm_id, COUNT(*) AS nic_count
        FROM vnetwork
        GROUP BY "VM ID"
    )"""

_CONCERN_CATEGORIES_SUBQUERY = """(
        SELECT "VM_ID" AS vm_id, list("Category" ORDER BY "Category") AS categories
        FROM concerns
        GROUP BY "VM_ID"
    )"""


def _vm_resources_query(ctx: BuildContext, with_concerns: bool) -> Query:
    vm_id = _col("i", "VM ID")
    projection = (
        f"{vm_id} AS id",
        f"COALESCE({_col('i', 'CPUs')}, 0) AS cpu_cores",
        f"COALESCE({_col('i', 'Memory')}, 0) AS memory_mb",
        "COALESCE(d.disk_count, 0) AS disk_count",
        "COALESCE(d.disk_mib, 0) AS disk_mib",
        "COALESCE(n.nic_count, 0) AS nic_count",
        "k.categories AS concern_categories" if with_concerns else "NULL AS concern_categories",
    )
    joins = [
        Join(_DISK_TOTALS_SUBQUERY, "d", f"d.vm_id = {vm_id}"),
        Join(_NIC_TOTALS_SUBQUERY, "n", f"n.vm_id = {vm_id}"),
    ]
    if with_concerns:
        joins.append(Join(_CONCERN_CATEGORIES_SUBQUERY, "k", f"k.vm_id = {vm_id}"))
    return Query(
        entity=Entity.VM_RESOURCES,
        projection=projection,
        source=f"{VINFO} i",
        joins=tuple(joins),
        predicates=_vm_predicates(ctx.filters),
        order_by=_VM_ORDER,
        variant="with_concerns" if with_concerns else "without_concerns",
    )


def _migration_issues_query(ctx: BuildContext, with_concerns: bool) -> Query:
    if not with_concerns:
        return Query(
            entity=Entity.MIGRATION_ISSUES,
            projection=(
                "CAST(NULL AS VARCHAR) AS label",
                "CAST(NULL AS VARCHAR) AS category",
                "0 AS count",
            ),
            source=f"{VINFO} i",
            predicates=(Predicate("false"),),
            variant="without_concerns",
        )

    label = _col("k", CONCERN_LABEL)
    category = _col("k", CONCERN_CATEGORY)
    predicates: tuple[Predicate, ...] = ()
    if ctx.category:
        predicates = (Predicate(f"{category} = ?", (ctx.category,)),)
    return Query(
        entity=Entity.MIGRATION_ISSUES,
        projection=(
            f"{label} AS label",
            f"{category} AS category",
            f"CAST(COUNT(DISTINCT {_col('k', CONCERN_VM_ID)}) AS INTEGER) AS count",
        ),
        source=f"{CONCERNS} k",
        joins=(Join(f"{VINFO}", "i", f"{_col('i', 'VM ID')} = {_col('k', CONCERN_VM_ID)}", "INNER"),),
        predicates=predicates + _vm_predicates(ctx.filters),
        group_by=(label, category),
        order_by=("count DESC", "label", "category"),
        variant="with_concerns",
    )


# ---------------------------------------------------------------------------
# Strategy table
# ---------------------------------------------------------------------------

# Optional tables (and the columns the richer variant joins on) per entity.
# The presence flags derived from these, in order, select the strategy.
OPTIONAL_JOINS: dict[Entity, tuple[tuple[str, tuple[str, ...]], ...]] = {
    Entity.VM: ((CONCERNS, (CONCERN_VM_ID, CONCERN_ID, CONCERN_LABEL, CONCERN_CATEGORY)),),
    Entity.DATASTORE: ((VHOST, ("Host", "Object ID")),),
    Entity.NETWORK: ((DVPORT, ("Port", "VLAN")),),
    Entity.VM_RESOURCES: ((CONCERNS, (CONCERN_VM_ID, CONCERN_CATEGORY)),),
    Entity.MIGRATION_ISSUES: ((CONCERNS, (CONCERN_VM_ID, CONCERN_LABEL, CONCERN_CATEGORY)),),
}

Strategy = Callable[[BuildContext], Query]

_STRATEGIES: dict[tuple[Entity, tuple[bool, ...]], Strategy] = {
    (Entity.VM, (True,)): lambda ctx: _vm_query(ctx, with_concerns=True),
    (Entity.VM, (False,)): lambda ctx: _vm_query(ctx, with_concerns=False),
    (Entity.DATASTORE, (True,)): lambda ctx: _datastore_query(ctx, with_hosts=True),
    (Entity.DATASTORE, (False,)): lambda ctx: _datastore_query(ctx, with_hosts=False),
    (Entity.NETWORK, (True,)): lambda ctx: _network_query(ctx, with_vlans=True),
    (Entity.NETWORK, (False,)): lambda ctx: _network_query(ctx, with_vlans=False),
    (Entity.HOST, ()): _host_query,
    (Entity.OS, ()): _os_query,
    (Entity.VCENTER, ()): _vcenter_query,
    (Entity.VM_COUNT, ()): _vm_count_query,
    (Entity.CLUSTERS, ()): _clusters_query,
    (Entity.POWER_STATES, ()): _power_states_query,
    (Entity.VM_RESOURCES, (True,)): lambda ctx: _vm_resources_query(ctx, with_concerns=True),
    (Entity.VM_RESOURCES, (False,)): lambda ctx: _vm_resources_query(ctx, with_concerns=False),
    (Entity.MIGRATION_ISSUES, (True,)): lambda ctx: _migration_issues_query(ctx, True),
    (Entity.MIGRATION_ISSUES, (False,)): lambda ctx: _migration_issues_query(ctx, False),
}


def presence_flags(entity: Entity, schema: SchemaInfo) -> tuple[bool, ...]:
    """Return, for each optional join of ``entity``, whether it can be used."""
    return tuple(
        schema.has_table(table) and all(schema.has_column(table, c) for c in columns)
        for table, columns in OPTIONAL_JOINS.get(entity, ())
    )


def _validate(entity: Entity, filters: Filters, options: Options, category: str) -> None:
    for name in ("cluster", "os", "power_state"):
        value = getattr(filters, name)
        if not isinstance(value, str):
            raise QueryBuildError(
                str(entity), f"filter '{name}' must be a string, got {type(value).__name__}"
            )
    for name in ("limit", "offset"):
        value = getattr(options, name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise QueryBuildError(
                str(entity), f"option '{name}' must be an integer, got {type(value).__name__}"
            )
        if value < 0:
            raise QueryBuildError(str(entity), f"option '{name}' must not be negative: {value}")
    if not isinstance(category, str):
        raise QueryBuildError(
            str(entity), f"category must be a string, got {type(category).__name__}"
        )


class QueryBuilder:
    """
    Builds queries for the inventory store.

    Read queries are selected from the strategy table according to which
    optional tables exist. Schema creation and ingestion statements are
    rendered from the packaged SQL templates.

    Example:
        >>> builder = QueryBuilder()
        >>> query = builder.build(Entity.NETWORK, schema, Filters(cluster="prod"))
        >>> con.execute(query.to_sql(), query.params).fetchall()
    """

    def __init__(self, templates: TemplateLoader | None = None):
        self.templates = templates or TemplateLoader()

    def build(
        self,
        entity: Entity,
        schema: SchemaInfo,
        filters: Filters | None = None,
        options: Options | None = None,
        category: str = "",
    ) -> Query:
        """
        Build the query for ``entity`` against the given schema.

        Args:
            entity: What to query
            schema: Introspection result deciding the variant
            filters: Optional predicates (cluster, OS substring, power state)
            options: Pagination (limit 0 means unbounded)
            category: Concern category for migration issue queries ("" = all)

        Returns:
            Query object ready to execute

        Raises:
            QueryBuildError: On malformed parameters or an unknown entity/variant
        """
        filters = filters if filters is not None else Filters()
        options = options if options is not None else Options()
        if not isinstance(entity, Entity):
            raise QueryBuildError(str(entity), "unknown entity")
        _validate(entity, filters, options, category)

        flags = presence_flags(entity, schema)
        strategy = _STRATEGIES.get((entity, flags))
        if strategy is None:
            raise QueryBuildError(str(entity), f"no query variant for presence flags {flags}")

        query = strategy(BuildContext(schema, filters, options, category))
        logger.debug(f"built {entity} query (variant: {query.variant})")
        return query

    def build_all(self, schema: SchemaInfo) -> dict[Entity, Query]:
        """Build unfiltered queries for every listing entity."""
        return {entity: self.build(entity, schema) for entity in LISTING_ENTITIES}

    def create_schema_sql(self, tables: tuple[TableSpec, ...] = TABLES) -> str:
        """Return statements creating every contract table that does not exist yet."""
        return self.templates.render("sql/create_schema.sql.j2", tables=tables)

    def clear_tables_sql(self, tables: tuple[TableSpec, ...] = TABLES) -> str:
        """Return statements deleting every row of ``tables``."""
        return self.templates.render("sql/clear_tables.sql.j2", tables=tables)

    def stage_sheet_sql(self, file_path: str, sheet: str, staging: str) -> str:
        """Return a statement loading one spreadsheet sheet into a temporary table."""
        return self.templates.render(
            "sql/stage_sheet.sql.j2", file_path=file_path, sheet=sheet, staging=staging
        )

    def attach_database_sql(self, file_path: str, alias: str) -> str:
        """Return a statement attaching a relational export read-only."""
        return self.templates.render(
            "sql/attach_database.sql.j2", file_path=file_path, alias=alias
        )

    def ingest_table_sql(
        self, table: TableSpec, columns: tuple[ColumnSpec, ...], source: str
    ) -> str:
        """
        Return an INSERT copying ``columns`` from ``source`` into ``table``.

        Values are cast with TRY_CAST so a malformed cell becomes NULL instead
        of failing the whole sheet.
        """
        if not columns:
            raise QueryBuildError(f"ingest {table.name}", "no columns to copy")
        return self.templates.render(
            "sql/ingest_table.sql.j2", table=table, columns=columns, source=source
        )
