"""
rvtools-inventory: query RVTools VMware inventory exports.

Loads RVTools spreadsheet exports (or relational exports with the same
tables) into an embedded DuckDB store and answers questions about the
inventory, including which VMs are ready for migration.

Main features:
- Schema-adaptive queries that degrade when optional sheets are missing
- Validation of the ingested data with blocking errors and advisory warnings
- Migratable / MigratableWithWarnings / NotMigratable classification from
  externally supplied concerns, with per-resource breakdowns
- Cluster-grouped inventory output
"""

__version__ = "0.1.0"
