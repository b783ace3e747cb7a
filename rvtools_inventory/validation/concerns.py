"""
Concern sources and the concern store writer.

Concerns are decided outside this package. A ConcernValidator returns the
concerns for one VM; the writer persists them verbatim into the concerns
table so that classification queries can read them back.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path

import duckdb
import yaml

from rvtools_inventory.exceptions import ConcernWriteError, InvalidConfigError
from rvtools_inventory.models.inventory import VM, Concern
from rvtools_inventory.store.tables import (
    CONCERN_ASSESSMENT,
    CONCERN_CATEGORY,
    CONCERN_ID,
    CONCERN_LABEL,
    CONCERN_VM_ID,
    CONCERNS,
    quote_identifier,
)

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 500

_INSERT_CONCERN = (
    f"INSERT INTO {quote_identifier(CONCERNS)} ("
    + ", ".join(
        quote_identifier(c)
        for c in (CONCERN_VM_ID, CONCERN_ID, CONCERN_LABEL, CONCERN_CATEGORY, CONCERN_ASSESSMENT)
    )
    + ") VALUES (?, ?, ?, ?, ?)"
)


class ConcernValidator(ABC):
    """
    Abstract source of per-VM concerns.

    Example:
        >>> class PoweredOffValidator(ConcernValidator):
        ...     def validate(self, vm):
        ...         if vm.power_state == "poweredOn":
        ...             return []
        ...         return [Concern("powered-off", "VM is powered off", "Information")]
    """

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def validate(self, vm: VM) -> list[Concern]:
        """
        Return the concerns that apply to ``vm``.

        Args:
            vm: Fully decoded VM record

        Returns:
            Zero or more concerns; categories are used verbatim
        """
        pass


class StaticConcernValidator(ConcernValidator):
    """
    Concerns read from a YAML or JSON document keyed by VM ID.

    Expected format::

        vm-001:
          - id: cbt-disabled
            label: Changed Block Tracking is disabled
            category: Warning
            assessment: CBT should be enabled for efficient migration.
    """

    def __init__(self, concerns: dict[str, list[Concern]]):
        self.concerns = concerns

    @classmethod
    def from_file(cls, path: Path) -> "StaticConcernValidator":
        """
        Load concerns from a file.

        Raises:
            InvalidConfigError: If the file is not a mapping of VM ID to concern lists
        """
        try:
            data = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as e:
            raise InvalidConfigError(f"{path}: {e}") from e

        if not isinstance(data, dict):
            raise InvalidConfigError(f"{path}: expected a mapping of VM ID to concerns")

        concerns: dict[str, list[Concern]] = {}
        for vm_id, entries in data.items():
            if not isinstance(entries, list):
                raise InvalidConfigError(f"{path}: concerns for '{vm_id}' must be a list")
            concerns[str(vm_id)] = [
                Concern(
                    id=str(entry.get("id", "")),
                    label=str(entry.get("label", "")),
                    category=str(entry.get("category", "")),
                    assessment=str(entry.get("assessment", "")),
                )
                for entry in entries
                if isinstance(entry, dict)
            ]
        logger.info(f"Loaded concerns for {len(concerns)} VM(s) from {path}")
        return cls(concerns)

    def validate(self, vm: VM) -> list[Concern]:
        return list(self.concerns.get(vm.id, []))


class ConcernBatch:
    """Accumulates concern rows (VM ID plus concern fields) for one insert."""

    def __init__(self):
        self._rows: list[tuple[str, str, str, str, str]] = []

    def append(self, vm_id: str, *concerns: Concern) -> "ConcernBatch":
        for c in concerns:
            self._rows.append((vm_id, c.id, c.label, c.category, c.assessment))
        return self

    @property
    def rows(self) -> list[tuple[str, str, str, str, str]]:
        return list(self._rows)

    def __len__(self) -> int:
        return len(self._rows)


class ConcernWriter:
    """
    Persists concern batches into the store.

    Writing must complete before classification queries are issued; the
    writer gives no signal for writes in progress.
    """

    def __init__(self, con: duckdb.DuckDBPyConnection, batch_size: int = DEFAULT_BATCH_SIZE):
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.con = con
        self.batch_size = batch_size

    def write(self, batch: ConcernBatch) -> int:
        """
        Insert one batch.

        Returns:
            Number of rows written

        Raises:
            ConcernWriteError: If the batch is empty or the insert fails
        """
        if len(batch) == 0:
            raise ConcernWriteError("no values provided")
        try:
            self.con.executemany(_INSERT_CONCERN, batch.rows)
        except duckdb.Error as e:
            raise ConcernWriteError(f"insert concerns failed: {e}") from e
        logger.debug(f"wrote {len(batch)} concern row(s)")
        return len(batch)

    def write_all(self, items: Iterable[tuple[str, list[Concern]]]) -> int:
        """
        Insert concerns for many VMs, flushing every ``batch_size`` rows.

        VMs without concerns contribute nothing. Returns the total written.
        """
        written = 0
        batch = ConcernBatch()
        for vm_id, concerns in items:
            batch.append(vm_id, *concerns)
            if len(batch) >= self.batch_size:
                written += self.write(batch)
                batch = ConcernBatch()
        if len(batch):
            written += self.write(batch)
        return written

    def clear(self) -> None:
        """Delete every stored concern."""
        try:
            self.con.execute(f"DELETE FROM {quote_identifier(CONCERNS)}")
        except duckdb.Error as e:
            raise ConcernWriteError(f"clear concerns failed: {e}") from e

    def apply(self, validator: ConcernValidator, vms: Iterable[VM]) -> int:
        """
        Run ``validator`` on every VM and replace the stored concerns with what it returns.

        The old concerns are deleted and the new ones written in one transaction.
        """
        logger.info(f"Collecting concerns with {validator.name}")
        items = [(vm.id, validator.validate(vm)) for vm in vms]

        self.con.begin()
        try:
            self.clear()
            written = self.write_all(items)
        except Exception:
            self.con.rollback()
            raise
        self.con.commit()
        logger.info(f"Wrote {written} concern(s)")
        return written
