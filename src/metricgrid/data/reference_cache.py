"""Read-only mirror of the store's cost objects for synchronous lookups.

Column formatters run while the grid draws and cannot wait on a stream, so
the cache keeps the latest cost object list (last write wins, no merging)
and an id index. After each refresh it re-publishes the list on `changes`,
which the row source joins on so rows never render before the cache is
filled.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .streams import Stream, subscribe_present

if TYPE_CHECKING:
    from ..models.metric import CostObject
    from .streams import Lifetime


class ReferenceCache:
    """Latest known cost objects, indexed by id."""

    def __init__(self, lifetime: Lifetime):
        self._lifetime = lifetime
        self._items: list[CostObject] = []
        self._by_id: dict[int, CostObject] = {}
        self._ready = False
        self.changes: Stream[list[CostObject]] = Stream(name="reference_cache")

    def bind(self, source: Stream[list[CostObject] | None]) -> ReferenceCache:
        """Mirror a cost object stream for the lifetime of the view."""
        subscribe_present(source, self._refresh, self._lifetime)
        return self

    def _refresh(self, cost_objects: list[CostObject]) -> None:
        self._items = list(cost_objects)
        self._by_id = {co.cost_object_id: co for co in self._items}
        self._ready = True
        self.changes.emit(self._items)

    @property
    def is_ready(self) -> bool:
        """True once the source has emitted at least once."""
        return self._ready

    @property
    def items(self) -> list[CostObject]:
        return list(self._items)

    def find(self, cost_object_id: object) -> CostObject | None:
        return self._by_id.get(cost_object_id)

    def display_name_for(self, cost_object_id: object) -> object:
        """Cached name for an id, or the raw id when there is no match."""
        cost_object = self.find(cost_object_id)
        return cost_object.name if cost_object is not None else cost_object_id

    def options(self) -> list[tuple[int, str]]:
        """(id, name) pairs for a select editor."""
        return [(co.cost_object_id, co.name) for co in self._items]

    def __len__(self) -> int:
        return len(self._items)
