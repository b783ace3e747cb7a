"""
Store validation and concern persistence.

Modules:
- schema: Validation battery run against the ingested store
- concerns: Concern sources and the concern store writer
"""

from rvtools_inventory.validation.concerns import (
    ConcernBatch,
    ConcernValidator,
    ConcernWriter,
    StaticConcernValidator,
)
from rvtools_inventory.validation.schema import (
    SchemaValidator,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    "ConcernBatch",
    "ConcernValidator",
    "ConcernWriter",
    "SchemaValidator",
    "StaticConcernValidator",
    "ValidationIssue",
    "ValidationResult",
]
