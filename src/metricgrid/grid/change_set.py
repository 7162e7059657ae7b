"""Commit, discard, delete and create against the store's pending change set.

The controller only dispatches. Outcomes show up on the store's streams
(has_no_changes, metrics, last_error); the returned CommandResult lets a
caller see whether the store accepted the request.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from ..data.commands import AddMetric, DeleteMetrics, ResetChanges, SaveMetrics

if TYPE_CHECKING:
    from ..data.commands import Command, CommandResult
    from ..models.metric import Metric
    from ..models.view_config import ViewConfig
    from .row_source import RowSourceAdapter


class ChangeSetController:
    """Dispatches change-set operations for one grid."""

    def __init__(
        self,
        dispatch: Callable[[Command], CommandResult],
        row_source: RowSourceAdapter,
        config: ViewConfig,
    ):
        self._dispatch = dispatch
        self._row_source = row_source
        self._config = config

    def commit(self) -> CommandResult:
        """Persist all pending creates, updates and deletes."""
        return self._dispatch(SaveMetrics())

    def discard(self) -> CommandResult:
        """Drop pending changes and the cached page, then refetch the page."""
        result = self._dispatch(ResetChanges())
        if result.accepted:
            self._row_source.refresh()
        return result

    def delete_selected(self, selected_rows: Iterable[Metric]) -> CommandResult:
        """Mark the grid's selected rows for deletion.

        The selection is read, never modified.
        """
        return self._dispatch(DeleteMetrics(tuple(selected_rows)))

    def create_new(self) -> CommandResult:
        """Append an unsaved metric of the active scope."""
        return self._dispatch(AddMetric(is_global=self._config.is_global_scope))
