"""Commands the grid dispatches to the metric store.

Every command is a small frozen dataclass. MetricStore.dispatch() answers
each with a CommandResult instead of returning nothing, so callers (and
tests) can see whether the store took the request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..models.metric import Metric
    from ..models.paging import PageRequest


class ResultKind(Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a dispatched command."""

    kind: ResultKind
    reason: str = ""

    @property
    def accepted(self) -> bool:
        return self.kind is ResultKind.ACCEPTED

    @classmethod
    def ok(cls) -> CommandResult:
        return cls(ResultKind.ACCEPTED)

    @classmethod
    def rejected(cls, reason: str) -> CommandResult:
        return cls(ResultKind.REJECTED, reason)


@dataclass(frozen=True)
class LoadMetrics:
    page_request: PageRequest


@dataclass(frozen=True)
class UpdateEntity:
    """Replace a pending entity with a full snapshot."""

    entity: Metric
    type: str


@dataclass(frozen=True)
class DeleteMetrics:
    metrics: tuple[Metric, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class SaveMetrics:
    pass


@dataclass(frozen=True)
class ResetChanges:
    """Drop the pending change set and the cached page."""


@dataclass(frozen=True)
class AddMetric:
    is_global: bool = False


@dataclass(frozen=True)
class LoadCostObjects:
    pass


@dataclass(frozen=True)
class LoadSessions:
    time_period_id: int


Command = (
    LoadMetrics
    | UpdateEntity
    | DeleteMetrics
    | SaveMetrics
    | ResetChanges
    | AddMetric
    | LoadCostObjects
    | LoadSessions
)
