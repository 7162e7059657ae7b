"""View configuration resolved once per grid instance."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from .constants import (
    DEFAULT_PAGE_TITLE,
    GLOBAL_SCOPE_IDENTIFIER,
    PARTITIONED_SCOPE_IDENTIFIER,
    WHERE_GLOBAL_METRICS,
    WHERE_NON_GLOBAL_METRICS,
)

if TYPE_CHECKING:
    from .metric import Scenario


@dataclass(frozen=True)
class RouteDescriptor:
    """Mode descriptor supplied by route resolution."""

    scope_kind: str = PARTITIONED_SCOPE_IDENTIFIER
    title: str = DEFAULT_PAGE_TITLE


@dataclass(frozen=True)
class ViewConfig:
    """Immutable mode flags shared by the column builder and row source.

    A change of read-only state produces a new ViewConfig (see
    with_read_only) and the column set is rebuilt from it.
    """

    is_global_scope: bool = False
    is_read_only: bool = False
    title: str = DEFAULT_PAGE_TITLE

    @classmethod
    def from_route(cls, route: RouteDescriptor | None) -> ViewConfig:
        """Resolve scope and title from a route descriptor."""
        if route is None:
            return cls()
        return cls(
            is_global_scope=route.scope_kind == GLOBAL_SCOPE_IDENTIFIER,
            title=route.title or DEFAULT_PAGE_TITLE,
        )

    @property
    def where_clause(self) -> str:
        """Predicate token selecting this view's partition."""
        return WHERE_GLOBAL_METRICS if self.is_global_scope else WHERE_NON_GLOBAL_METRICS

    def with_read_only(self, is_read_only: bool) -> ViewConfig:
        """Return a copy with a new read-only flag."""
        if is_read_only == self.is_read_only:
            return self
        return replace(self, is_read_only=is_read_only)


def resolve_cannot_modify(scenario: Scenario, has_modify_permission: bool) -> bool:
    """A grid is locked when the scenario is read-only or permission is missing."""
    return scenario.read_only or not has_modify_permission
