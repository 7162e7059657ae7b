"""Server-side row source for the metrics grid.

Each get_rows() call dispatches a fresh LoadMetrics command and then joins
three streams (page rows, total count, reference cache). The callback fires
once all three have produced a value and again on every later emission.
Requests are not deduplicated here; the store decides how to handle
repeated fetches.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from ..data.commands import CommandResult, LoadMetrics
from ..data.streams import combine_latest
from ..debug_trace import logger
from ..models.paging import PageRequest

if TYPE_CHECKING:
    from ..data.metric_store import MetricStore
    from ..data.reference_cache import ReferenceCache
    from ..data.streams import CombineLatest, Lifetime
    from ..models.metric import Metric
    from ..models.view_config import ViewConfig

RowsReadyCallback = Callable[[Sequence["Metric"], int], None]


class RowSourceAdapter:
    """Answers the grid's page requests from the store's streams.

    Each get_rows call replaces the previous join; the last one lives until
    the view's Lifetime is cancelled.
    """

    def __init__(
        self,
        store: MetricStore,
        reference_cache: ReferenceCache,
        config: ViewConfig,
        lifetime: Lifetime,
    ):
        self._store = store
        self._reference_cache = reference_cache
        self._where = config.where_clause
        self._lifetime = lifetime
        self._last_request: PageRequest | None = None
        self._join: CombineLatest | None = None

    @property
    def last_request(self) -> PageRequest | None:
        return self._last_request

    def build_request(self, start_row: int = 0, end_row: int | None = None) -> PageRequest:
        top = None if end_row is None else max(end_row - start_row, 0)
        return PageRequest(
            where=self._where,
            include_total_count=True,
            skip=start_row,
            top=top,
        )

    def get_rows(
        self,
        on_rows_ready: RowsReadyCallback,
        start_row: int = 0,
        end_row: int | None = None,
    ) -> CommandResult:
        """Request a page; on_rows_ready(rows, total_count) fires asynchronously.

        Args:
            on_rows_ready: Receives each combined (rows, total_count) result
            start_row: First row of the page
            end_row: Row after the last row of the page (None for all)

        Returns:
            The store's answer to the fetch command
        """
        # Only the latest page request keeps delivering
        if self._join is not None:
            self._join.unsubscribe()
            self._join = None

        request = self.build_request(start_row, end_row)
        self._last_request = request
        result = self._store.dispatch(LoadMetrics(request))

        if self._lifetime.is_cancelled:
            logger.debug("get_rows called after teardown; not subscribing")
            return result

        def deliver(values: tuple) -> None:
            rows, total_count, _cost_objects = values
            on_rows_ready(rows, total_count)

        self._join = combine_latest(
            (self._store.metrics, self._store.total_count, self._reference_cache.changes),
            deliver,
            self._lifetime,
        )
        return result

    def refresh(self) -> CommandResult | None:
        """Re-issue the last page request (after the page cache was dropped).

        The current get_rows subscription receives the fresh page.
        """
        if self._last_request is None:
            return None
        return self._store.dispatch(LoadMetrics(self._last_request))
