"""Metric store with base/overlay architecture and undo/redo support.

The store maintains three layers:
- base_state: Latest snapshot from the data source (the truth)
- user_overrides + deleted_ids: The pending change set (the intent)
- visible rows: Computed projection of base + pending changes (the view)

The grid never reads these layers directly. It dispatches commands and
listens to the store's streams (metrics page, total count, cost objects,
...), so what the grid shows is always a projection of store state.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from ..debug_trace import log_perf, logger, perf_timer
from ..models.constants import WHERE_GLOBAL_METRICS, WHERE_NON_GLOBAL_METRICS
from ..models.metric import CostObject, Metric, Scenario, Session
from ..models.paging import PageRequest, PageResult
from ..models.validation import validate_metric
from .commands import (
    AddMetric,
    Command,
    CommandResult,
    DeleteMetrics,
    LoadCostObjects,
    LoadMetrics,
    LoadSessions,
    ResetChanges,
    SaveMetrics,
    UpdateEntity,
)
from .streams import Stream
from .undo_frame import MAX_UNDO_DEPTH, UndoFrame

if TYPE_CHECKING:
    from .data_source import MetricDataSource


class MetricStore:
    """Central metric store.

    Usage:
        store = MetricStore(data_source)
        store.load_initial_data()

        store.dispatch(LoadMetrics(PageRequest(where=WHERE_NON_GLOBAL_METRICS)))
        store.metrics.subscribe(on_rows)

        store.dispatch(UpdateEntity(entity=replace(row, name="New"), type=Metric.type))
        store.undo()
        store.dispatch(SaveMetrics())
    """

    def __init__(self, data_source: MetricDataSource):
        """Initialize the metric store.

        Args:
            data_source: MetricDataSource implementation for loading/saving data
        """
        self._data_source = data_source

        # The layers
        self.base_state: dict[int, Metric] = {}
        self.user_overrides: dict[int, Metric] = {}
        self.deleted_ids: set[int] = set()

        # Undo/Redo stacks
        self.undo_stack: list[UndoFrame] = []
        self.redo_stack: list[UndoFrame] = []

        # Negative keys handed out to unsaved rows
        self._next_draft_key = -1

        # Cost objects by id, used to evaluate scope predicates
        self._cost_objects: dict[int, CostObject] = {}

        # Last page request; None once the page cache is invalidated
        self._page_request: PageRequest | None = None

        self._initialized = False
        # Set when a reload failed after the data source changed
        self._base_stale = False

        # Published state
        self.metrics: Stream[list[Metric]] = Stream(name="metrics")
        self.total_count: Stream[int] = Stream(name="total_count")
        self.cost_objects: Stream[list[CostObject]] = Stream(name="cost_objects")
        self.active_scenario: Stream[Scenario | None] = Stream(None, name="active_scenario")
        self.has_modify_permission: Stream[bool] = Stream(name="has_modify_permission")
        self.has_no_changes: Stream[bool] = Stream(True, name="has_no_changes")
        self.last_session: Stream[Session | None] = Stream(None, name="last_session")
        self.last_error: Stream[str | None] = Stream(None, name="last_error")

        self._handlers: dict[type, Callable[[Command], CommandResult]] = {
            LoadMetrics: self._load_metrics,
            UpdateEntity: self._update_entity,
            DeleteMetrics: self._delete_metrics,
            SaveMetrics: self._save_metrics,
            ResetChanges: self._reset_changes,
            AddMetric: self._add_metric,
            LoadCostObjects: self._load_cost_objects,
            LoadSessions: self._load_sessions,
        }

    @property
    def data_source(self) -> MetricDataSource:
        return self._data_source

    # --- Data Loading ---

    def load_initial_data(self) -> None:
        """Load persisted metrics and the cost object index from the data source."""
        with perf_timer("load_initial_data"):
            self.base_state = self._data_source.load_metrics()
            self._cost_objects = {
                co.cost_object_id: co for co in self._data_source.load_cost_objects()
            }
        self._initialized = True
        logger.debug(
            f"Loaded {len(self.base_state)} metrics, {len(self._cost_objects)} cost objects"
        )

    def is_initialized(self) -> bool:
        return self._initialized

    # --- Host-owned state ---

    def set_active_scenario(self, scenario: Scenario | None) -> None:
        self.active_scenario.emit(scenario)

    def set_modify_permission(self, has_permission: bool) -> None:
        self.has_modify_permission.emit(has_permission)

    # --- Dispatch ---

    def dispatch(self, command: Command) -> CommandResult:
        """Run a command against the store.

        Raises:
            TypeError: If the command type is unknown
        """
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Unknown command: {command!r}")

        logger.debug(f"Dispatch {type(command).__name__}")
        result = handler(command)
        if not result.accepted:
            logger.warning(f"{type(command).__name__} rejected: {result.reason}")
        return result

    # --- Projection ---

    def get_visible_row(self, key: int) -> Metric | None:
        """Get the visible row for a tracking key (metric_id or draft key)."""
        if key in self.deleted_ids:
            return None
        if key in self.user_overrides:
            return self.user_overrides[key]
        return self.base_state.get(key)

    def visible_rows(self) -> list[Metric]:
        """All visible rows: persisted rows by id, then drafts in creation order."""
        rows = [
            self.user_overrides.get(metric_id, metric)
            for metric_id, metric in sorted(self.base_state.items())
            if metric_id not in self.deleted_ids
        ]
        drafts = sorted(
            (row for key, row in self.user_overrides.items() if key < 0),
            key=lambda row: -row.draft_key,
        )
        return rows + drafts

    def is_global_metric(self, metric: Metric) -> bool:
        cost_object = self._cost_objects.get(metric.cost_object_id)
        return cost_object is not None and cost_object.is_globals

    def _predicate_for(self, where: str) -> Callable[[Metric], bool] | None:
        if where == WHERE_GLOBAL_METRICS:
            return self.is_global_metric
        if where == WHERE_NON_GLOBAL_METRICS:
            return lambda metric: not self.is_global_metric(metric)
        return None

    def query_page(self, request: PageRequest) -> PageResult | None:
        """Compute a page from the visible rows, or None for an unknown predicate."""
        predicate = self._predicate_for(request.where)
        if predicate is None:
            return None

        matching = [row for row in self.visible_rows() if predicate(row)]
        end = None if request.top is None else request.skip + request.top
        return PageResult(rows=tuple(matching[request.skip : end]), total_count=len(matching))

    def _publish_page(self, request: PageRequest, result: PageResult) -> None:
        """Emit rows and count.

        Emission order keeps the rows published alongside a count no longer
        than that count.
        """
        rows = list(result.rows)
        if not request.include_total_count:
            self.metrics.emit(rows)
            return

        previous = self.total_count.value
        if previous is None or result.total_count >= previous:
            self.total_count.emit(result.total_count)
            self.metrics.emit(rows)
        else:
            self.metrics.emit(rows)
            self.total_count.emit(result.total_count)

    def _refresh_page(self) -> None:
        """Re-publish the cached page after the store's state changed."""
        if self._page_request is None:
            return
        result = self.query_page(self._page_request)
        if result is not None:
            self._publish_page(self._page_request, result)

    def _after_change(self) -> None:
        self.has_no_changes.emit(not self.has_unsaved_changes())
        self._refresh_page()

    # --- Undo/Redo ---

    def _snapshot(self, description: str) -> UndoFrame:
        return UndoFrame(
            overrides=dict(self.user_overrides),
            deleted_ids=frozenset(self.deleted_ids),
            description=description,
        )

    def _push_undo(self, description: str) -> None:
        """Push undo frame BEFORE making changes."""
        self.undo_stack.append(self._snapshot(description))
        while len(self.undo_stack) > MAX_UNDO_DEPTH:
            self.undo_stack.pop(0)
        # New edit invalidates redo history
        self.redo_stack.clear()

    def _restore(self, frame: UndoFrame) -> None:
        self.user_overrides = dict(frame.overrides)
        self.deleted_ids = set(frame.deleted_ids)

    def undo(self) -> bool:
        """Restore the previous pending change set.

        Returns:
            True if undo was performed
        """
        if not self.undo_stack:
            return False

        frame = self.undo_stack.pop()
        self.redo_stack.append(self._snapshot(frame.description))
        self._restore(frame)
        self._after_change()
        return True

    def redo(self) -> bool:
        """Re-apply an undone change.

        Returns:
            True if redo was performed
        """
        if not self.redo_stack:
            return False

        frame = self.redo_stack.pop()
        self.undo_stack.append(self._snapshot(frame.description))
        self._restore(frame)
        self._after_change()
        return True

    def get_undo_description(self) -> str | None:
        if self.undo_stack:
            return self.undo_stack[-1].description
        return None

    def get_redo_description(self) -> str | None:
        if self.redo_stack:
            return self.redo_stack[-1].description
        return None

    def can_undo(self) -> bool:
        return len(self.undo_stack) > 0

    def can_redo(self) -> bool:
        return len(self.redo_stack) > 0

    # --- Dirty State Queries ---

    def is_dirty(self, key: int) -> bool:
        """Check if a row has pending modifications (including deletion)."""
        return key in self.user_overrides or key in self.deleted_ids

    def get_dirty_keys(self) -> set[int]:
        return set(self.user_overrides) | self.deleted_ids

    def has_unsaved_changes(self) -> bool:
        return bool(self.user_overrides or self.deleted_ids)

    def get_total_modified_count(self) -> int:
        return len(self.get_dirty_keys())

    def is_duplicate_column_name(self, column_name: str, exclude_key: int) -> bool:
        """Check if a column name is used by another visible row (case-insensitive)."""
        lowered = column_name.lower()
        return any(
            row.tracking_key != exclude_key and row.column_name.lower() == lowered
            for row in self.visible_rows()
            if row.column_name
        )

    def validate_pending(self) -> tuple[bool, str]:
        """Validate every pending row, returning the first failure."""
        for key in sorted(self.user_overrides):
            row = self.user_overrides[key]
            is_valid, error = validate_metric(row, self.is_duplicate_column_name)
            if not is_valid:
                label = row.name or ("New metric" if row.is_new else f"Metric {row.metric_id}")
                return False, f"{label}: {error}"
        return True, ""

    # --- Command handlers ---

    def _load_metrics(self, command: LoadMetrics) -> CommandResult:
        request = command.page_request
        if self._base_stale:
            self._reload_base()
        with perf_timer("load_metrics"):
            result = self.query_page(request)
        if result is None:
            return CommandResult.rejected(f"Unknown filter: {request.where}")

        self._page_request = request
        self._publish_page(request, result)
        return CommandResult.ok()

    def _update_entity(self, command: UpdateEntity) -> CommandResult:
        if command.type != Metric.type:
            return CommandResult.rejected(f"Unsupported entity type: {command.type}")

        entity = command.entity
        key = entity.tracking_key
        current = self.get_visible_row(key) if key else None
        if current is None:
            return CommandResult.rejected(f"Unknown row: {key}")

        if entity == current:
            return CommandResult.ok()

        self._push_undo("Edit metric")

        base = self.base_state.get(key)
        if base is not None and entity == base:
            # Edited back to the saved value
            self.user_overrides.pop(key, None)
        else:
            self.user_overrides[key] = entity

        self._after_change()
        return CommandResult.ok()

    def _delete_metrics(self, command: DeleteMetrics) -> CommandResult:
        targets = [
            metric.tracking_key
            for metric in command.metrics
            if metric.tracking_key and self.get_visible_row(metric.tracking_key) is not None
        ]
        if not targets:
            return CommandResult.rejected("Nothing to delete")

        count = len(targets)
        self._push_undo(f"Delete {count} metric{'s' if count != 1 else ''}")

        for key in targets:
            self.user_overrides.pop(key, None)
            if key > 0:
                self.deleted_ids.add(key)

        self._after_change()
        return CommandResult.ok()

    def _add_metric(self, command: AddMetric) -> CommandResult:
        cost_object_id = None
        if command.is_global:
            global_ids = sorted(
                co.cost_object_id for co in self._cost_objects.values() if co.is_globals
            )
            if not global_ids:
                return CommandResult.rejected("No global cost object to attach the metric to")
            cost_object_id = global_ids[0]

        self._push_undo("Add metric")

        draft_key = self._next_draft_key
        self._next_draft_key -= 1
        self.user_overrides[draft_key] = Metric(draft_key=draft_key, cost_object_id=cost_object_id)

        self._after_change()
        return CommandResult.ok()

    @log_perf
    def _save_metrics(self, command: SaveMetrics) -> CommandResult:
        if not self.has_unsaved_changes():
            return CommandResult.ok()

        if self._data_source.is_read_only:
            return self._fail("Data source is read-only")

        is_valid, error = self.validate_pending()
        if not is_valid:
            return self._fail(error)

        rows = [self.user_overrides[key] for key in sorted(self.user_overrides)]
        try:
            count = self._data_source.save_changes(rows, sorted(self.deleted_ids))
        except Exception as e:
            logger.exception("Saving metrics failed")
            return self._fail(f"Save failed: {e}")

        # The data source holds the changes now; never send them again
        logger.debug(f"Saved {count} metric changes")
        self._clear_pending()
        if self._reload_base():
            self.last_error.emit(None)
        else:
            self.last_error.emit("Saved, but reloading metrics failed")
        self._after_change()
        return CommandResult.ok()

    def _reset_changes(self, command: ResetChanges) -> CommandResult:
        self._clear_pending()
        # Pending changes are dropped either way; a failed reload keeps the last known base
        self._reload_base()

        # Invalidate the cached page; the grid refetches
        self._page_request = None
        self.has_no_changes.emit(True)
        return CommandResult.ok()

    def _load_cost_objects(self, command: LoadCostObjects) -> CommandResult:
        try:
            cost_objects = self._data_source.load_cost_objects()
        except Exception as e:
            logger.exception("Loading cost objects failed")
            return self._fail(f"Loading cost objects failed: {e}")

        self._cost_objects = {co.cost_object_id: co for co in cost_objects}
        self.cost_objects.emit(list(cost_objects))
        # Scope membership depends on cost objects
        self._refresh_page()
        return CommandResult.ok()

    def _load_sessions(self, command: LoadSessions) -> CommandResult:
        try:
            sessions = self._data_source.load_sessions(command.time_period_id)
        except Exception as e:
            logger.exception("Loading sessions failed")
            return self._fail(f"Loading sessions failed: {e}")

        self.last_session.emit(sessions[-1] if sessions else None)
        return CommandResult.ok()

    # --- Helpers ---

    def _reload_base(self) -> bool:
        """Replace base_state from the data source.

        On failure the last known base is kept and marked stale, so the next
        page load retries.
        """
        try:
            self.base_state = self._data_source.load_metrics()
        except Exception:
            logger.exception("Reloading metrics failed")
            self._base_stale = True
            return False
        self._base_stale = False
        return True

    def _clear_pending(self) -> None:
        self.user_overrides.clear()
        self.deleted_ids.clear()
        self.undo_stack.clear()
        self.redo_stack.clear()

    def _fail(self, reason: str) -> CommandResult:
        self.last_error.emit(reason)
        return CommandResult.rejected(reason)
