"""
Validation of the ingested store before any query work is trusted.

The validator runs a fixed battery of checks:

1. The VM table must have at least one row (error ``NO_VMS``).
2. Among existing VM rows, at least one must carry a VM ID and one a VM name
   (errors ``MISSING_VM_ID`` / ``MISSING_VM_NAME``). Not evaluated when there
   are no rows at all.
3. Optional tables must not be empty (warnings ``EMPTY_*``). Warnings never
   block usage.

An absent table counts as an empty one.
"""

import logging
from dataclasses import dataclass, field
from typing import NamedTuple

import duckdb

from rvtools_inventory.exceptions import SchemaValidationError
from rvtools_inventory.store.introspect import SchemaInfo, SchemaIntrospector
from rvtools_inventory.store.tables import (
    VCPU,
    VDATASTORE,
    VDISK,
    VHOST,
    VINFO,
    VM_ID,
    VMEMORY,
    VNETWORK,
    quote_identifier,
)

logger = logging.getLogger(__name__)

CODE_NO_VMS = "NO_VMS"
CODE_MISSING_VM_ID = "MISSING_VM_ID"
CODE_MISSING_VM_NAME = "MISSING_VM_NAME"
CODE_EMPTY_HOSTS = "EMPTY_HOSTS"
CODE_EMPTY_DATASTORES = "EMPTY_DATASTORES"
CODE_EMPTY_NETWORKS = "EMPTY_NETWORKS"
CODE_EMPTY_CPU = "EMPTY_CPU"
CODE_EMPTY_MEMORY = "EMPTY_MEMORY"
CODE_EMPTY_DISKS = "EMPTY_DISKS"
CODE_EMPTY_NICS = "EMPTY_NICS"


@dataclass(frozen=True)
class ValidationIssue:
    """A single validation finding."""

    code: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


@dataclass
class ValidationResult:
    """
    Outcome of a validation run.

    Errors and warnings are independent; a result can carry both. The result
    is valid exactly when it has no errors.
    """

    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def error_codes(self) -> list[str]:
        return [e.code for e in self.errors]

    @property
    def warning_codes(self) -> list[str]:
        return [w.code for w in self.warnings]

    def error(self) -> SchemaValidationError | None:
        """
        Return an exception describing every error, or None when valid.

        The exception is returned, not raised, so callers decide whether an
        invalid inventory is fatal for them.
        """
        if self.is_valid:
            return None
        return SchemaValidationError([(e.code, e.message) for e in self.errors])

    def to_dict(self) -> dict:
        return {
            "valid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }


class PopulationCheck(NamedTuple):
    """
    An optional-table check: warn with ``code`` when ``table`` has no rows.

    When ``column`` is set, only rows with a non-empty value in that column count.
    """

    code: str
    table: str
    message: str
    column: str | None = None


OPTIONAL_CHECKS: tuple[PopulationCheck, ...] = (
    PopulationCheck(CODE_EMPTY_HOSTS, VHOST, "No hosts found in vHost"),
    PopulationCheck(CODE_EMPTY_DATASTORES, VDATASTORE, "No datastores found in vDatastore"),
    PopulationCheck(
        CODE_EMPTY_NETWORKS, VNETWORK, "No networks found in vNetwork", column="Network"
    ),
    PopulationCheck(CODE_EMPTY_CPU, VCPU, "No CPU details found in vCPU"),
    PopulationCheck(CODE_EMPTY_MEMORY, VMEMORY, "No memory details found in vMemory"),
    PopulationCheck(CODE_EMPTY_DISKS, VDISK, "No disks found in vDisk"),
    PopulationCheck(CODE_EMPTY_NICS, VNETWORK, "No network interfaces found in vNetwork"),
)


class SchemaValidator:
    """
    Runs the validation battery against a populated store.

    Example:
        >>> result = SchemaValidator(con).validate()
        >>> if not result.is_valid:
        ...     raise result.error()
    """

    def __init__(
        self,
        con: duckdb.DuckDBPyConnection,
        introspector: SchemaIntrospector | None = None,
    ):
        self.con = con
        self.introspector = introspector or SchemaIntrospector(con)

    def validate(self) -> ValidationResult:
        """Run every check and return a fresh result."""
        schema = self.introspector.inspect()
        result = ValidationResult()

        vm_rows = self._count_rows(schema, VINFO)
        if vm_rows == 0:
            result.errors.append(ValidationIssue(CODE_NO_VMS, "No VMs found in vInfo"))
        else:
            if self._count_rows(schema, VINFO, VM_ID) == 0:
                result.errors.append(
                    ValidationIssue(CODE_MISSING_VM_ID, "No VM has a VM ID in vInfo")
                )
            if self._count_rows(schema, VINFO, "VM") == 0:
                result.errors.append(
                    ValidationIssue(CODE_MISSING_VM_NAME, "No VM has a name in vInfo")
                )

        for check in OPTIONAL_CHECKS:
            if self._count_rows(schema, check.table, check.column) == 0:
                result.warnings.append(ValidationIssue(check.code, check.message))

        for issue in result.warnings:
            logger.warning(f"[{issue.code}] {issue.message}")
        if result.has_errors:
            logger.error(f"validation failed: {', '.join(result.error_codes)}")
        else:
            logger.info(f"validation passed ({vm_rows} VMs, {len(result.warnings)} warning(s))")

        return result

    def _count_rows(self, schema: SchemaInfo, table: str, column: str | None = None) -> int:
        """
        Count rows of ``table``; with ``column``, only rows where it is non-empty.

        An absent table or column counts as zero rows.
        """
        if not schema.has_table(table):
            return 0
        sql = f"SELECT COUNT(*) FROM {quote_identifier(table)}"
        if column is not None:
            if not schema.has_column(table, column):
                return 0
            col = quote_identifier(column)
            sql += f" WHERE {col} IS NOT NULL AND trim(CAST({col} AS VARCHAR)) <> ''"
        row = self.con.execute(sql).fetchone()
        return int(row[0]) if row else 0
