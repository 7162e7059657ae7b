"""Tests for RowSourceAdapter."""

from unittest.mock import MagicMock

import pytest

from metricgrid.data.commands import AddMetric, LoadCostObjects, LoadMetrics
from metricgrid.data.reference_cache import ReferenceCache
from metricgrid.data.streams import Lifetime
from metricgrid.grid.row_source import RowSourceAdapter
from metricgrid.models.constants import WHERE_GLOBAL_METRICS, WHERE_NON_GLOBAL_METRICS
from metricgrid.models.view_config import ViewConfig


@pytest.fixture
def lifetime():
    return Lifetime()


@pytest.fixture
def cache(store, lifetime):
    return ReferenceCache(lifetime).bind(store.cost_objects)


@pytest.fixture
def row_source(store, cache, lifetime):
    return RowSourceAdapter(store, cache, ViewConfig(), lifetime)


class TestBuildRequest:
    """Tests for page request construction."""

    def test_window_from_row_bounds(self, row_source):
        request = row_source.build_request(100, 150)

        assert request.where == WHERE_NON_GLOBAL_METRICS
        assert request.include_total_count is True
        assert request.skip == 100
        assert request.top == 50

    def test_open_ended_request(self, row_source):
        assert row_source.build_request().top is None

    def test_global_scope_filter(self, store, cache, lifetime):
        source = RowSourceAdapter(store, cache, ViewConfig(is_global_scope=True), lifetime)

        assert source.build_request().where == WHERE_GLOBAL_METRICS


class TestGetRows:
    """Tests for get_rows() joining rows, count and reference cache."""

    def test_no_callback_until_cache_ready(self, store, row_source):
        callback = MagicMock()

        result = row_source.get_rows(callback)

        assert result.accepted
        # Rows and count are published, cost objects are not
        callback.assert_not_called()

        store.dispatch(LoadCostObjects())

        rows, count = callback.call_args.args
        assert [m.metric_id for m in rows] == [1, 2]
        assert count == 2

    def test_refires_on_store_changes(self, store, row_source):
        store.dispatch(LoadCostObjects())
        callback = MagicMock()
        row_source.get_rows(callback)
        calls_before = callback.call_count

        store.dispatch(AddMetric())

        assert callback.call_count > calls_before
        rows, count = callback.call_args.args
        assert len(rows) == 3
        assert count == 3

    def test_nothing_after_cancel(self, store, row_source, lifetime):
        store.dispatch(LoadCostObjects())
        callback = MagicMock()
        row_source.get_rows(callback)
        callback.reset_mock()

        lifetime.cancel()
        store.dispatch(AddMetric())

        callback.assert_not_called()

    def test_get_rows_after_cancel_does_not_subscribe(self, store, row_source, lifetime):
        lifetime.cancel()
        callback = MagicMock()
        count_before = store.metrics.subscriber_count

        row_source.get_rows(callback)
        store.dispatch(LoadCostObjects())

        callback.assert_not_called()
        assert store.metrics.subscriber_count == count_before

    def test_each_call_fetches(self, store, cache, lifetime):
        dispatched = []
        original = store.dispatch

        def spy(command):
            dispatched.append(command)
            return original(command)

        store.dispatch = spy
        source = RowSourceAdapter(store, cache, ViewConfig(), lifetime)

        source.get_rows(MagicMock(), 0, 10)
        source.get_rows(MagicMock(), 0, 10)

        assert [type(c) for c in dispatched] == [LoadMetrics, LoadMetrics]
        assert source.last_request.top == 10

    def test_new_page_request_replaces_previous_join(self, store, row_source):
        store.dispatch(LoadCostObjects())
        first, second = MagicMock(), MagicMock()
        row_source.get_rows(first, 0, 1)
        subscribers = store.metrics.subscriber_count
        first.reset_mock()

        row_source.get_rows(second, 1, 2)
        store.dispatch(AddMetric())

        first.assert_not_called()
        second.assert_called()
        assert store.metrics.subscriber_count == subscribers

    def test_paging_does_not_accumulate_subscribers(self, store, row_source, lifetime):
        store.dispatch(LoadCostObjects())
        callback = MagicMock()
        row_source.get_rows(callback, 0, 1)
        subscribers = store.metrics.subscriber_count

        for page in range(50):
            row_source.get_rows(callback, page, page + 1)
        callback.reset_mock()
        store.dispatch(AddMetric())

        assert store.metrics.subscriber_count == subscribers
        assert len(lifetime) <= 4
        # Count grows first, then rows: one delivery each
        assert callback.call_count == 2

    def test_refresh_without_request(self, row_source):
        assert row_source.refresh() is None
