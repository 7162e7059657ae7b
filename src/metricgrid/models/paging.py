"""Page request/result types exchanged with the store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .metric import Metric


@dataclass(frozen=True)
class PageRequest:
    """Which partition of metrics to fetch.

    Attributes:
        where: Opaque predicate token (see WHERE_* constants)
        include_total_count: Also compute the partition's total row count
        skip: Rows to skip from the start of the partition
        top: Maximum rows to return (None for all)
    """

    where: str
    include_total_count: bool = True
    skip: int = 0
    top: int | None = None


@dataclass(frozen=True)
class PageResult:
    """One page of metrics plus the partition's total row count."""

    rows: tuple[Metric, ...] = field(default_factory=tuple)
    total_count: int = 0

    def __post_init__(self) -> None:
        if self.total_count < 0:
            raise ValueError(f"total_count must be >= 0, got {self.total_count}")
        if len(self.rows) > self.total_count:
            raise ValueError(f"Page has {len(self.rows)} rows but total_count is {self.total_count}")


@dataclass(frozen=True)
class PendingEdit:
    """A single cell change, projected straight into an UpdateEntity."""

    row_id: int
    field: str
    new_value: object
