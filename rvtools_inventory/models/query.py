"""Per-call query parameters: filters and pagination."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Filters:
    """
    Optional predicates applied to listing and aggregate queries.

    Present predicates combine with AND; empty ones impose no constraint.

    Attributes:
        cluster: Exact cluster name
        os: Substring of the guest OS (configuration file value)
        power_state: Exact power state (e.g. "poweredOn")
    """

    cluster: str = ""
    os: str = ""
    power_state: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.cluster or self.os or self.power_state)


@dataclass(frozen=True)
class Options:
    """
    Pagination options.

    Attributes:
        limit: Maximum rows to return (0 means unbounded)
        offset: Rows to skip
    """

    limit: int = 0
    offset: int = 0
