"""Tests for ChangeSetController."""

from unittest.mock import MagicMock

import pytest

from metricgrid.data.commands import (
    AddMetric,
    CommandResult,
    DeleteMetrics,
    LoadCostObjects,
    ResetChanges,
    SaveMetrics,
)
from metricgrid.data.reference_cache import ReferenceCache
from metricgrid.data.streams import Lifetime
from metricgrid.grid.change_set import ChangeSetController
from metricgrid.grid.row_source import RowSourceAdapter
from metricgrid.models.metric import Metric
from metricgrid.models.view_config import ViewConfig


class TestDispatchedCommands:
    """Each operation dispatches exactly one command."""

    def _controller(self, config=None, result=None):
        dispatch = MagicMock(return_value=result or CommandResult.ok())
        row_source = MagicMock()
        controller = ChangeSetController(dispatch, row_source, config or ViewConfig())
        return controller, dispatch, row_source

    def test_commit(self):
        controller, dispatch, _ = self._controller()

        controller.commit()

        dispatch.assert_called_once_with(SaveMetrics())

    def test_create_new_uses_scope(self):
        controller, dispatch, _ = self._controller(ViewConfig(is_global_scope=True))

        controller.create_new()

        dispatch.assert_called_once_with(AddMetric(is_global=True))

    def test_delete_selected_passes_rows(self):
        controller, dispatch, _ = self._controller()
        selection = [Metric(metric_id=1), Metric(metric_id=2)]

        controller.delete_selected(selection)

        dispatch.assert_called_once_with(DeleteMetrics((selection[0], selection[1])))
        assert len(selection) == 2

    def test_discard_refreshes_rows(self):
        controller, dispatch, row_source = self._controller()

        controller.discard()

        dispatch.assert_called_once_with(ResetChanges())
        row_source.refresh.assert_called_once()

    def test_rejected_discard_does_not_refresh(self):
        controller, _, row_source = self._controller(result=CommandResult.rejected("no"))

        result = controller.discard()

        assert not result.accepted
        row_source.refresh.assert_not_called()


class TestAgainstStore:
    """ChangeSetController driving a real MetricStore."""

    @pytest.fixture
    def wired(self, store):
        lifetime = Lifetime()
        cache = ReferenceCache(lifetime).bind(store.cost_objects)
        row_source = RowSourceAdapter(store, cache, ViewConfig(), lifetime)
        controller = ChangeSetController(store.dispatch, row_source, ViewConfig())
        store.dispatch(LoadCostObjects())
        return controller, row_source

    def test_discard_then_page_has_no_drafts(self, store, wired):
        controller, row_source = wired
        callback = MagicMock()
        row_source.get_rows(callback)
        controller.create_new()
        assert any(row.is_new for row in callback.call_args.args[0])

        controller.discard()

        rows, count = callback.call_args.args
        assert not any(row.is_new for row in rows)
        assert count == 2
        assert store.has_no_changes.value is True

    def test_commit_failure_reported(self, store, wired):
        controller, _ = wired
        controller.create_new()

        result = controller.commit()

        assert not result.accepted
        assert store.last_error.value == result.reason
