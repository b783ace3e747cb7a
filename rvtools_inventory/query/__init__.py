"""
Schema-aware query construction.

See builder.py for the Query object and the strategy table that selects the
rich or degraded variant of each query.
"""

from rvtools_inventory.query.builder import (
    LISTING_ENTITIES,
    Entity,
    Join,
    Predicate,
    Query,
    QueryBuilder,
    presence_flags,
)

__all__ = [
    "LISTING_ENTITIES",
    "Entity",
    "Join",
    "Predicate",
    "Query",
    "QueryBuilder",
    "presence_flags",
]
