"""
Inventory query service.

The service is the one entry point callers need: it creates the store
schema, runs ingestion and validation, persists concerns, and answers every
read (listings, counts, classification aggregates) by building a
schema-aware query, executing it and decoding the rows.

Reads never mutate inventory rows and each one uses its own cursor, so they
may be issued concurrently once ingestion and concern writing are done.
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import duckdb

from rvtools_inventory.config import InventoryConfig
from rvtools_inventory.exceptions import QueryExecutionError, VCenterIdNotFoundError
from rvtools_inventory.ingest import IngestReport, Ingestor, get_ingestor
from rvtools_inventory.ingest.rvtools import RvtoolsIngestor
from rvtools_inventory.ingest.sqlite import SqliteIngestor
from rvtools_inventory.inventory import build_inventory
from rvtools_inventory.migration.classify import (
    MigrationCounts,
    MigrationIssue,
    ResourceBreakdowns,
    TotalResources,
    VmResources,
    breakdown_resources,
    count_by_status,
)
from rvtools_inventory.models.inventory import VM, Datastore, Host, Inventory, Network, OsInfo
from rvtools_inventory.models.query import Filters, Options
from rvtools_inventory.query.builder import Entity, Query, QueryBuilder
from rvtools_inventory.store.connection import execute_script, open_connection
from rvtools_inventory.store.decode import (
    as_int,
    as_str,
    decode_datastore,
    decode_host,
    decode_network,
    decode_os,
    decode_string_list,
    decode_vm,
    rows_as_dicts,
)
from rvtools_inventory.store.introspect import SchemaInfo, SchemaIntrospector
from rvtools_inventory.validation.concerns import (
    DEFAULT_BATCH_SIZE,
    ConcernValidator,
    ConcernWriter,
)
from rvtools_inventory.validation.schema import SchemaValidator, ValidationResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _decode_vm_resources(row: dict[str, Any]) -> VmResources:
    return VmResources(
        id=as_str(row.get("id")),
        cpu_cores=as_int(row.get("cpu_cores")),
        memory_mb=as_int(row.get("memory_mb")),
        disk_count=as_int(row.get("disk_count")),
        disk_mib=as_int(row.get("disk_mib")),
        nic_count=as_int(row.get("nic_count")),
        concern_categories=tuple(decode_string_list(row.get("concern_categories"))),
    )


def _decode_issue(row: dict[str, Any]) -> MigrationIssue:
    return MigrationIssue(
        label=as_str(row.get("label")),
        category=as_str(row.get("category")),
        count=as_int(row.get("count")),
    )


class InventoryService:
    """
    Facade over the inventory store.

    Phases must run in order: ``init()``, ingestion, optional validation and
    concern writing, then reads. ``ingest_rvtools``/``ingest_sqlite`` cover
    the first three in one call.

    Example:
        >>> with InventoryService.open() as service:
        ...     result = service.ingest_rvtools(Path("export.xlsx"))
        ...     if result.is_valid:
        ...         print(service.vm_count(Filters(cluster="prod")))
    """

    def __init__(
        self,
        con: duckdb.DuckDBPyConnection,
        builder: QueryBuilder | None = None,
        concern_validator: ConcernValidator | None = None,
        concern_batch_size: int = DEFAULT_BATCH_SIZE,
        extensions_autoinstall: bool = True,
    ):
        self.con = con
        self.builder = builder or QueryBuilder()
        self.concern_validator = concern_validator
        self.concern_batch_size = concern_batch_size
        self.extensions_autoinstall = extensions_autoinstall
        self.last_ingest_report: IngestReport | None = None

    @classmethod
    def open(
        cls,
        config: InventoryConfig | None = None,
        concern_validator: ConcernValidator | None = None,
        db_path: str | None = None,
    ) -> "InventoryService":
        """
        Open the store described by ``config`` (defaults: in-memory store).

        ``db_path`` overrides the configured database path.
        """
        config = config or InventoryConfig()
        con = open_connection(
            db_path or config.db_path,
            threads=config.db_threads,
            memory_limit=config.db_memory_limit,
        )
        return cls(
            con,
            concern_validator=concern_validator,
            concern_batch_size=config.concern_batch_size,
            extensions_autoinstall=config.extensions_autoinstall,
        )

    def close(self) -> None:
        self.con.close()

    def __enter__(self) -> "InventoryService":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -----------------------------------------------------------------
    # Schema, ingestion, validation
    # -----------------------------------------------------------------

    def init(self) -> None:
        """Create every contract table that does not exist yet."""
        count = execute_script(self.con, self.builder.create_schema_sql())
        logger.debug(f"schema ready ({count} statement(s))")

    def ingest(self, path: Path) -> ValidationResult:
        """Ingest a spreadsheet or relational export, chosen by file suffix."""
        return self._ingest(get_ingestor(path, self.con, **self._ingestor_options()), path)

    def ingest_rvtools(self, path: Path) -> ValidationResult:
        """Ingest an RVTools spreadsheet export and validate the result."""
        return self._ingest(RvtoolsIngestor(self.con, **self._ingestor_options()), path)

    def ingest_sqlite(self, path: Path) -> ValidationResult:
        """Ingest a relational export and validate the result."""
        return self._ingest(SqliteIngestor(self.con, **self._ingestor_options()), path)

    def _ingestor_options(self) -> dict[str, Any]:
        return {"builder": self.builder, "autoinstall": self.extensions_autoinstall}

    def _ingest(self, ingestor: Ingestor, path: Path) -> ValidationResult:
        self.init()
        self.last_ingest_report = ingestor.ingest(Path(path))
        result = self.validate_schema()
        if self.concern_validator is not None:
            if result.is_valid:
                self.write_concerns(self.concern_validator)
            else:
                logger.warning("Skipping concern collection: inventory failed validation")
        return result

    def validate_schema(self) -> ValidationResult:
        return SchemaValidator(self.con, SchemaIntrospector(self.con)).validate()

    def write_concerns(self, validator: ConcernValidator) -> int:
        """Classify every VM with ``validator`` and replace the stored concerns."""
        writer = ConcernWriter(self.con, batch_size=self.concern_batch_size)
        return writer.apply(validator, self.vms())

    def schema(self) -> SchemaInfo:
        return SchemaIntrospector(self.con).inspect()

    # -----------------------------------------------------------------
    # Query execution
    # -----------------------------------------------------------------

    def _build(
        self,
        entity: Entity,
        filters: Filters | None = None,
        options: Options | None = None,
        category: str = "",
    ) -> Query:
        try:
            schema = self.schema()
        except duckdb.Error as e:
            raise QueryExecutionError(str(entity), e) from e
        return self.builder.build(entity, schema, filters, options, category)

    def _execute(self, query: Query) -> list[dict[str, Any]]:
        cursor = self.con.cursor()
        try:
            cursor.execute(query.to_sql(), query.params)
            return rows_as_dicts(cursor.description, cursor.fetchall())
        except duckdb.Error as e:
            logger.error(f"{query.entity} query ({query.variant}) failed: {e}")
            raise QueryExecutionError(str(query.entity), e) from e
        finally:
            cursor.close()

    def _read(
        self,
        entity: Entity,
        decoder: Callable[[dict[str, Any]], T],
        filters: Filters | None = None,
        options: Options | None = None,
        category: str = "",
    ) -> list[T]:
        query = self._build(entity, filters, options, category)
        rows = self._execute(query)
        try:
            return [decoder(row) for row in rows]
        except (TypeError, ValueError) as e:
            raise QueryExecutionError(str(entity), e) from e

    # -----------------------------------------------------------------
    # Listings
    # -----------------------------------------------------------------

    def vms(self, filters: Filters | None = None, options: Options | None = None) -> list[VM]:
        """List VMs with their disks, NICs, networks and concerns, ordered by VM ID."""
        return self._read(Entity.VM, decode_vm, filters, options)

    def hosts(self, filters: Filters | None = None, options: Options | None = None) -> list[Host]:
        return self._read(Entity.HOST, decode_host, filters, options)

    def datastores(
        self, filters: Filters | None = None, options: Options | None = None
    ) -> list[Datastore]:
        return self._read(Entity.DATASTORE, decode_datastore, filters, options)

    def networks(
        self, filters: Filters | None = None, options: Options | None = None
    ) -> list[Network]:
        return self._read(Entity.NETWORK, decode_network, filters, options)

    def os_summary(self, filters: Filters | None = None) -> list[OsInfo]:
        return self._read(Entity.OS, decode_os, filters)

    def clusters(self) -> list[str]:
        """Distinct non-empty cluster names of the VM table, sorted."""
        return self._read(Entity.CLUSTERS, lambda row: as_str(row.get("cluster")))

    def vcenter_id(self) -> str:
        """
        Return the vCenter identifier.

        Raises:
            VCenterIdNotFoundError: If no VM carries one
        """
        ids = self._read(Entity.VCENTER, lambda row: as_str(row.get("vcenter_id")))
        if not ids or not ids[0]:
            raise VCenterIdNotFoundError()
        return ids[0]

    def inventory(self) -> Inventory:
        """Return the whole inventory grouped by cluster."""
        return build_inventory(
            vcenter_id=self.vcenter_id(),
            datastores=self.datastores(),
            hosts=self.hosts(),
            networks=self.networks(),
            vms=self.vms(),
            os_summary=self.os_summary(),
        )

    # -----------------------------------------------------------------
    # Counts and aggregates
    # -----------------------------------------------------------------

    def vm_count(self, filters: Filters | None = None) -> int:
        counts = self._read(Entity.VM_COUNT, lambda row: as_int(row.get("count")), filters)
        return counts[0] if counts else 0

    def power_state_counts(self, filters: Filters | None = None) -> dict[str, int]:
        """Count VMs per power state value present in the data."""
        rows = self._read(
            Entity.POWER_STATES,
            lambda row: (as_str(row.get("power_state")), as_int(row.get("count"))),
            filters,
        )
        return dict(rows)

    def vm_resources(self, filters: Filters | None = None) -> list[VmResources]:
        return self._read(Entity.VM_RESOURCES, _decode_vm_resources, filters)

    def migration_counts(self, filters: Filters | None = None) -> MigrationCounts:
        return count_by_status(self.vm_resources(filters))

    def migratable_vm_count(self, filters: Filters | None = None) -> int:
        """VMs without critical concerns, including those with warnings."""
        return self.migration_counts(filters).migratable

    def migratable_with_warnings_vm_count(self, filters: Filters | None = None) -> int:
        return self.migration_counts(filters).migratable_with_warnings

    def not_migratable_vm_count(self, filters: Filters | None = None) -> int:
        return self.migration_counts(filters).not_migratable

    def migration_issues(
        self, filters: Filters | None = None, category: str = ""
    ) -> list[MigrationIssue]:
        """
        Group concerns by label and category.

        Args:
            filters: VM filters applied before grouping
            category: Only this concern category ("" for all)

        Returns:
            Issues with the number of distinct VMs showing each, most common first
        """
        return self._read(Entity.MIGRATION_ISSUES, _decode_issue, filters, category=category)

    def resource_breakdowns(self, filters: Filters | None = None) -> ResourceBreakdowns:
        return breakdown_resources(self.vm_resources(filters))

    def total_resources(self, filters: Filters | None = None) -> TotalResources:
        return self.resource_breakdowns(filters).totals
