"""Controller wiring one metrics grid to the metric store.

Resolves the view configuration from the route, keeps the column set in
step with the scenario lock and the user's permission, and owns the single
Lifetime every subscription of the view is tied to.

Usage:
    controller = MetricsController(store, RouteDescriptor("global", "Global Metrics"))
    controller.on_columns_changed = grid.set_columns
    controller.init()
    controller.row_source.get_rows(grid.set_rows)
    ...
    controller.destroy()
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from ..data.commands import LoadCostObjects, LoadSessions
from ..data.reference_cache import ReferenceCache
from ..data.streams import Lifetime, Stream, combine_latest, subscribe_present
from ..debug_trace import logger
from ..models.metric import Scenario, get_row_id
from ..models.view_config import ViewConfig, resolve_cannot_modify
from .change_set import ChangeSetController
from .columns import ColumnDescriptor, build_columns
from .edit_capture import EditCapture
from .row_source import RowsReadyCallback, RowSourceAdapter

if TYPE_CHECKING:
    from ..data.commands import CommandResult
    from ..data.metric_store import MetricStore
    from ..models.metric import Metric
    from ..models.view_config import RouteDescriptor


class MetricsController:
    """Grid-facing facade: columns, row source, edit capture, change set."""

    get_row_id = staticmethod(get_row_id)

    def __init__(self, store: MetricStore, route: RouteDescriptor | None = None):
        self._store = store
        self.lifetime = Lifetime()
        self.config = ViewConfig.from_route(route)

        self.reference_cache = ReferenceCache(self.lifetime).bind(store.cost_objects)
        self.row_source = RowSourceAdapter(store, self.reference_cache, self.config, self.lifetime)
        self.edit_capture = EditCapture(store.dispatch)
        self.change_set = ChangeSetController(store.dispatch, self.row_source, self.config)

        self.columns: list[ColumnDescriptor] = build_columns(self.config, self.reference_cache)
        self.on_columns_changed: Callable[[list[ColumnDescriptor]], None] | None = None

        # Derived state for the toolbar
        self.cannot_modify: Stream[bool] = Stream(name="cannot_modify")
        self.change_buttons_disabled: Stream[bool] = Stream(name="change_buttons_disabled")

        self._active_scenario: Stream[Scenario] = Stream(name="active_scenario_present")
        self._has_no_changes = True
        self._initialized = False

    @property
    def store(self) -> MetricStore:
        return self._store

    @property
    def title(self) -> str:
        return self.config.title

    @property
    def is_read_only(self) -> bool:
        return self.config.is_read_only

    def init(self) -> None:
        """Start watching the store. Call once, after on_columns_changed is set."""
        if self._initialized:
            raise RuntimeError("Controller already initialized")
        self._initialized = True

        store = self._store
        store.dispatch(LoadCostObjects())
        self._publish_columns()
        # Select editors read the cache; republish so the grid picks up new options
        self.reference_cache.changes.subscribe(
            lambda _items: self._publish_columns(), self.lifetime, replay=False
        )

        subscribe_present(store.active_scenario, self._active_scenario.emit, self.lifetime)

        combine_latest(
            (self._active_scenario, store.has_modify_permission),
            self._on_access_changed,
            self.lifetime,
        )
        self._active_scenario.subscribe(self._on_scenario_changed, self.lifetime)
        store.has_no_changes.subscribe(self._on_has_no_changes, self.lifetime)

    def destroy(self) -> None:
        """Tear down: no callback of this view fires after this returns."""
        self.lifetime.cancel()

    # --- Store watchers ---

    def _on_access_changed(self, values: tuple) -> None:
        scenario, has_modify_permission = values
        cannot_modify = resolve_cannot_modify(scenario, has_modify_permission)
        self.cannot_modify.emit(cannot_modify)

        if cannot_modify != self.config.is_read_only:
            logger.debug(f"Grid read-only changed to {cannot_modify}")
            self.config = self.config.with_read_only(cannot_modify)
            self.columns = build_columns(self.config, self.reference_cache)
            self._publish_columns()
        self._update_change_buttons()

    def _on_scenario_changed(self, scenario: Scenario) -> None:
        self._store.dispatch(LoadSessions(scenario.time_period_id))

    def _on_has_no_changes(self, has_no_changes: bool) -> None:
        self._has_no_changes = has_no_changes
        self._update_change_buttons()

    def _update_change_buttons(self) -> None:
        self.change_buttons_disabled.emit(self._has_no_changes or self.config.is_read_only)

    def _publish_columns(self) -> None:
        if self.on_columns_changed is not None and not self.lifetime.is_cancelled:
            self.on_columns_changed(list(self.columns))

    # --- Grid operations ---

    def get_rows(
        self, on_rows_ready: RowsReadyCallback, start_row: int = 0, end_row: int | None = None
    ) -> CommandResult:
        return self.row_source.get_rows(on_rows_ready, start_row, end_row)

    def on_cell_value_changing(
        self, row: Metric, field: str, old_value: object, new_value: object
    ) -> bool:
        return self.edit_capture.on_cell_value_changing(
            get_row_id(row), field, old_value, new_value, row
        )

    def add_metric(self) -> CommandResult:
        return self.change_set.create_new()

    def delete_metrics(self, selected_rows: Iterable[Metric]) -> CommandResult:
        return self.change_set.delete_selected(selected_rows)

    def save(self) -> CommandResult:
        return self.change_set.commit()

    def undo(self) -> CommandResult:
        return self.change_set.discard()
