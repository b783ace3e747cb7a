"""
CLI entry point for rvtools-inventory.
"""

import json
import logging
from functools import wraps
from pathlib import Path

import typer
from rich.console import Console

from rvtools_inventory.config import CONFIG_FILENAME, InventoryConfig
from rvtools_inventory.exceptions import (
    InMemoryStoreError,
    RvtoolsInventoryError,
    format_error_for_cli,
)
from rvtools_inventory.models.query import Filters, Options
from rvtools_inventory.service import InventoryService
from rvtools_inventory.store.connection import MEMORY_DB
from rvtools_inventory.util.logging import configure_logging
from rvtools_inventory.util.progress import operation_status, show_summary, show_table
from rvtools_inventory.validation.concerns import StaticConcernValidator
from rvtools_inventory.validation.schema import ValidationResult

app = typer.Typer(
    name="rvtools-inventory",
    help="Query RVTools VMware inventory exports and classify VMs by migration readiness",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)


def handle_errors(func):
    """Decorator to handle exceptions in CLI commands with nice formatting."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except RvtoolsInventoryError as e:
            console.print(format_error_for_cli(e))
            raise typer.Exit(1)
        except Exception as e:
            console.print(f"[red]Unexpected error:[/red] {str(e)}")
            console.print("\n[yellow]This may be a bug. Please report it with the command you ran.[/yellow]")
            raise typer.Exit(1)

    return wrapper


def _config_option():
    return typer.Option(
        Path(CONFIG_FILENAME), "--config", "-c", help="Configuration file (optional)"
    )


def _db_option():
    return typer.Option(None, "--db", help="Database file (overrides database.path)")


def _verbose_option():
    return typer.Option(False, "--verbose", "-v", help="Show debug logging")


def _open_service(
    config_path: Path,
    db: str | None,
    verbose: bool,
    concerns: Path | None = None,
) -> InventoryService:
    config = InventoryConfig(config_path)
    configure_logging("DEBUG" if verbose else config.log_level)
    validator = StaticConcernValidator.from_file(concerns) if concerns else None
    return InventoryService.open(config, concern_validator=validator, db_path=db)


def _print_validation(result: ValidationResult) -> None:
    for issue in result.errors:
        console.print(f"[red]✗ {issue.code}[/red] {issue.message}")
    for issue in result.warnings:
        console.print(f"[yellow]⚠ {issue.code}[/yellow] {issue.message}")
    if result.is_valid:
        console.print("[green]✓ Inventory is usable[/green]")


def _echo_json(data) -> None:
    typer.echo(json.dumps(data, indent=2))


@app.command(name="init-config")
def init_config(
    directory: Path = typer.Argument(Path("."), help="Directory to write the configuration to"),
):
    """Write a default rvtools-inventory.yaml."""
    config = InventoryConfig(directory / CONFIG_FILENAME)
    config.initialize()
    console.print(f"[green]✓ Wrote configuration to {config.path}[/green]")


@app.command()
@handle_errors
def ingest(
    source: Path = typer.Argument(..., help="RVTools export (.xlsx) or relational export (.db)"),
    concerns: Path | None = typer.Option(
        None, "--concerns", help="YAML/JSON file of concerns keyed by VM ID"
    ),
    config_path: Path = _config_option(),
    db: str | None = _db_option(),
    verbose: bool = _verbose_option(),
):
    """Ingest an inventory export into a database file and validate it."""
    if (db or InventoryConfig(config_path).db_path) == MEMORY_DB:
        raise InMemoryStoreError()

    with _open_service(config_path, db, verbose, concerns) as service:
        with operation_status(f"Ingesting {source.name}"):
            result = service.ingest(source)

        report = service.last_ingest_report
        if report is not None:
            show_summary(
                "Ingestion",
                {
                    "Tables loaded": len(report.loaded),
                    "Rows": report.total_rows,
                    "Tables skipped": ", ".join(report.skipped) or "none",
                },
            )
        _print_validation(result)

    if not result.is_valid:
        raise typer.Exit(1)


@app.command()
@handle_errors
def validate(
    config_path: Path = _config_option(),
    db: str | None = _db_option(),
    verbose: bool = _verbose_option(),
    as_json: bool = typer.Option(False, "--json", help="Print JSON"),
):
    """Validate an ingested inventory database."""
    with _open_service(config_path, db, verbose) as service:
        result = service.validate_schema()

    if as_json:
        _echo_json(result.to_dict())
    else:
        _print_validation(result)

    if not result.is_valid:
        raise typer.Exit(1)


@app.command()
@handle_errors
def summary(
    cluster: str = typer.Option("", "--cluster", help="Only VMs in this cluster"),
    os_name: str = typer.Option("", "--os", help="Only VMs whose guest OS contains this"),
    power_state: str = typer.Option("", "--power-state", help="Only VMs in this power state"),
    config_path: Path = _config_option(),
    db: str | None = _db_option(),
    verbose: bool = _verbose_option(),
    as_json: bool = typer.Option(False, "--json", help="Print JSON"),
):
    """Show VM counts, migration readiness and resource breakdowns."""
    filters = Filters(cluster=cluster, os=os_name, power_state=power_state)

    with _open_service(config_path, db, verbose) as service:
        vm_count = service.vm_count(filters)
        power_states = service.power_state_counts(filters)
        counts = service.migration_counts(filters)
        breakdowns = service.resource_breakdowns(filters)

    if as_json:
        _echo_json(
            {
                "vmCount": vm_count,
                "powerStates": power_states,
                "migration": counts.to_dict(),
                "resources": breakdowns.to_dict(),
            }
        )
        return

    items: dict[str, str | int] = {"VMs": vm_count}
    items.update({f"Power state {state or '(empty)'}": n for state, n in power_states.items()})
    items["Migratable"] = counts.migratable
    items["Migratable with warnings"] = counts.migratable_with_warnings
    items["Not migratable"] = counts.not_migratable
    show_summary("Inventory", items)

    rows = []
    for label, breakdown in (
        ("CPU cores", breakdowns.cpu_cores),
        ("RAM GB", breakdowns.ram_gb),
        ("Disks", breakdowns.disk_count),
        ("Disk GB", breakdowns.disk_gb),
        ("NICs", breakdowns.nic_count),
    ):
        rows.append(
            [
                label,
                breakdown.total,
                breakdown.total_for_migratable,
                breakdown.total_for_migratable_with_warnings,
                breakdown.total_for_not_migratable,
            ]
        )
    show_table(
        "Resources",
        ["Resource", "Total", "Migratable", "With warnings", "Not migratable"],
        rows,
    )


@app.command()
@handle_errors
def vms(
    cluster: str = typer.Option("", "--cluster", help="Only VMs in this cluster"),
    os_name: str = typer.Option("", "--os", help="Only VMs whose guest OS contains this"),
    power_state: str = typer.Option("", "--power-state", help="Only VMs in this power state"),
    limit: int = typer.Option(0, "--limit", min=0, help="Maximum VMs to list (0 = all)"),
    offset: int = typer.Option(0, "--offset", min=0, help="VMs to skip"),
    config_path: Path = _config_option(),
    db: str | None = _db_option(),
    verbose: bool = _verbose_option(),
    as_json: bool = typer.Option(False, "--json", help="Print JSON"),
):
    """List VMs ordered by VM ID."""
    filters = Filters(cluster=cluster, os=os_name, power_state=power_state)

    with _open_service(config_path, db, verbose) as service:
        records = service.vms(filters, Options(limit=limit, offset=offset))

    if as_json:
        _echo_json([vm.to_dict() for vm in records])
        return

    show_table(
        f"VMs ({len(records)})",
        ["ID", "Name", "Cluster", "Power state", "CPUs", "Memory MB", "Disks", "NICs", "Concerns"],
        [
            [
                vm.id,
                vm.name,
                vm.cluster,
                vm.power_state,
                vm.cpu_count,
                vm.memory_mb,
                len(vm.disks),
                len(vm.nics),
                len(vm.concerns),
            ]
            for vm in records
        ],
    )


@app.command()
@handle_errors
def issues(
    category: str = typer.Option("", "--category", help="Only this concern category"),
    cluster: str = typer.Option("", "--cluster", help="Only VMs in this cluster"),
    os_name: str = typer.Option("", "--os", help="Only VMs whose guest OS contains this"),
    power_state: str = typer.Option("", "--power-state", help="Only VMs in this power state"),
    config_path: Path = _config_option(),
    db: str | None = _db_option(),
    verbose: bool = _verbose_option(),
    as_json: bool = typer.Option(False, "--json", help="Print JSON"),
):
    """List migration issues with the number of affected VMs."""
    filters = Filters(cluster=cluster, os=os_name, power_state=power_state)

    with _open_service(config_path, db, verbose) as service:
        found = service.migration_issues(filters, category)

    if as_json:
        _echo_json([issue.to_dict() for issue in found])
        return

    if not found:
        console.print("[green]No migration issues found[/green]")
        return

    show_table(
        "Migration issues",
        ["Label", "Category", "VMs"],
        [[issue.label, issue.category, issue.count] for issue in found],
    )


@app.command()
@handle_errors
def inventory(
    config_path: Path = _config_option(),
    db: str | None = _db_option(),
    verbose: bool = _verbose_option(),
):
    """Print the whole inventory grouped by cluster as JSON."""
    with _open_service(config_path, db, verbose) as service:
        result = service.inventory()
    _echo_json(result.to_dict())


if __name__ == "__main__":
    app()
