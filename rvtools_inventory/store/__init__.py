"""
Embedded analytical store access.

Modules:
- tables: Table/column contract produced by ingestion
- connection: Opening and configuring DuckDB
- introspect: Catalog introspection (which tables/columns exist)
- decode: Row and nested-column decoding into typed records
"""
