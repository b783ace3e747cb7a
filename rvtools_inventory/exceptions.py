"""
Custom exceptions for rvtools-inventory with helpful error messages.
"""


class RvtoolsInventoryError(Exception):
    """Base exception for rvtools-inventory errors."""

    def __init__(self, message: str, suggestion: str = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.message)

    def __str__(self):
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message


class StoreError(RvtoolsInventoryError):
    """Errors related to the embedded analytical store."""

    pass


class StoreConnectionError(StoreError):
    """The store could not be opened or configured."""

    def __init__(self, db_path: str, error_details: str):
        message = f"Could not open inventory database at {db_path}: {error_details}"
        suggestion = (
            "Check that the path is writable and not locked by another process.\n"
            "Use ':memory:' for a throw-away in-memory database."
        )
        super().__init__(message, suggestion)


class InMemoryStoreError(StoreError):
    """Ingestion targets a store that is discarded when the command exits."""

    def __init__(self):
        message = "Refusing to ingest into an in-memory database: the data would be lost on exit."
        suggestion = (
            "Pass a database file with --db inventory.duckdb,\n"
            "or set database.path in rvtools-inventory.yaml."
        )
        super().__init__(message, suggestion)


class IngestionError(RvtoolsInventoryError):
    """Errors during ingestion of an inventory export."""

    pass


class SourceFileNotFoundError(IngestionError):
    """Source export not found."""

    def __init__(self, file_path: str):
        message = f"File not found: {file_path}"
        suggestion = (
            "Check that the file path is correct and the file exists:\n" f"  ls -l {file_path}"
        )
        super().__init__(message, suggestion)


class UnsupportedSourceError(IngestionError):
    """The export is neither a spreadsheet nor a relational database."""

    def __init__(self, file_path: str):
        message = f"Unsupported inventory source: {file_path}"
        suggestion = (
            "Supported sources are:\n"
            "  - RVTools spreadsheet exports (.xlsx)\n"
            "  - relational exports (.db, .sqlite, .sqlite3)"
        )
        super().__init__(message, suggestion)


class ExtensionLoadError(IngestionError):
    """A DuckDB extension needed to read the source could not be loaded."""

    def __init__(self, extension: str, error_details: str):
        message = f"Could not load the DuckDB '{extension}' extension: {error_details}"
        suggestion = (
            "Extensions are downloaded on first use, which needs network access.\n"
            f"Install it once manually with: INSTALL {extension};\n"
            "or enable ingest.extensions_autoinstall in rvtools-inventory.yaml."
        )
        super().__init__(message, suggestion)


class RequiredSheetError(IngestionError):
    """A source sheet that the inventory cannot work without failed to load."""

    def __init__(self, sheet: str, error_details: str):
        message = f"Required sheet '{sheet}' could not be loaded: {error_details}"
        suggestion = (
            f"Make sure the export contains a '{sheet}' sheet with the VM list.\n"
            "Re-export the inventory with all tabs enabled if needed."
        )
        super().__init__(message, suggestion)


class QueryError(RvtoolsInventoryError):
    """Errors related to building or running inventory queries."""

    pass


class QueryBuildError(QueryError):
    """A query could not be built from the given parameters."""

    def __init__(self, entity: str, error_details: str):
        self.entity = entity
        message = f"Failed to build {entity} query: {error_details}"
        super().__init__(message)


class QueryExecutionError(QueryError):
    """A built query failed to execute or its rows failed to decode."""

    def __init__(self, entity: str, original_error: Exception):
        self.entity = entity
        self.original_error = original_error
        message = f"Reading {entity} failed: {original_error}"
        suggestion = (
            "The inventory database may be incomplete.\n"
            "Run the validate command to check which tables are missing or empty."
        )
        super().__init__(message, suggestion)


class VCenterIdNotFoundError(QueryError):
    """No vCenter identifier is present in the ingested VM table."""

    def __init__(self):
        message = "Failed to find the vCenter ID. It should be present in the VM table."
        suggestion = "Check that the export has a populated 'VI SDK UUID' column."
        super().__init__(message, suggestion)


class ConcernWriteError(RvtoolsInventoryError):
    """Concerns could not be persisted."""

    pass


class SchemaValidationError(RvtoolsInventoryError):
    """Ingested data failed the blocking validation checks."""

    def __init__(self, issues: list[tuple[str, str]]):
        self.issues = issues
        issue_list = "\n  - ".join(f"[{code}] {message}" for code, message in issues)
        message = f"Schema validation failed with {len(issues)} error(s):\n  - {issue_list}"
        suggestion = (
            "The export does not contain a usable VM inventory.\n"
            "Check that the vInfo sheet has VM IDs and names."
        )
        super().__init__(message, suggestion)


class ConfigurationError(RvtoolsInventoryError):
    """Configuration file errors."""

    pass


class InvalidConfigError(ConfigurationError):
    """Configuration file is invalid."""

    def __init__(self, error_details: str):
        message = f"Invalid configuration file: {error_details}"

        suggestion = (
            "Fix the rvtools-inventory.yaml file.\n"
            "You can regenerate the default configuration:\n"
            "  mv rvtools-inventory.yaml rvtools-inventory.yaml.backup\n"
            "  rvtools-inventory init-config .\n\n"
            "Then merge your settings back from the backup."
        )
        super().__init__(message, suggestion)


def format_error_for_cli(error: Exception) -> str:
    """
    Format an exception for CLI display with helpful information.

    Args:
        error: The exception to format

    Returns:
        Formatted error message string
    """
    if isinstance(error, RvtoolsInventoryError):
        output = f"[red]Error:[/red] {error.message}"
        if error.suggestion:
            output += f"\n\n[yellow]{error.suggestion}[/yellow]"
        return output
    else:
        return f"[red]Error:[/red] {str(error)}"
