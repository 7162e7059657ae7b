"""Shared fixtures: an in-memory data source and stores built on it."""

from dataclasses import replace

import pytest

from metricgrid.data.data_source import MetricDataSource
from metricgrid.data.metric_store import MetricStore
from metricgrid.models.metric import CostObject, Metric, Session

GLOBALS = CostObject(cost_object_id=1, name="Globals", is_globals=True)
MARKETING = CostObject(cost_object_id=7, name="Marketing")
SALES = CostObject(cost_object_id=8, name="Sales")


class MockDataSource(MetricDataSource):
    """In-memory data source that applies saves like the CSV backend."""

    def __init__(self, metrics=None, cost_objects=None, sessions=None, read_only=False):
        self._metrics = dict(metrics or {})
        self._cost_objects = list(cost_objects or [])
        self._sessions = list(sessions or [])
        self._read_only = read_only
        self.fail_on_save = False
        self.fail_on_load = False
        self.save_calls = []
        self.session_requests = []

    @property
    def file_path(self):
        return "memory"

    @property
    def is_read_only(self):
        return self._read_only

    def load_metrics(self):
        if self.fail_on_load:
            raise OSError("disk gone")
        return dict(self._metrics)

    def load_cost_objects(self):
        return list(self._cost_objects)

    def load_sessions(self, time_period_id):
        self.session_requests.append(time_period_id)
        return [s for s in self._sessions if s.time_period_id == time_period_id]

    def save_changes(self, rows, deleted_ids):
        self.save_calls.append((list(rows), list(deleted_ids)))
        if self.fail_on_save:
            raise OSError("disk full")

        for metric_id in deleted_ids:
            self._metrics.pop(metric_id, None)
        next_id = max(self._metrics, default=0) + 1
        for row in rows:
            if row.is_new:
                self._metrics[next_id] = replace(row, metric_id=next_id, draft_key=0)
                next_id += 1
            else:
                self._metrics[row.metric_id] = row
        return len(rows) + len(deleted_ids)


def sample_metrics():
    return {
        1: Metric(
            metric_id=1,
            name="Revenue",
            data_type="Currency",
            size=18,
            column_name="revenue",
            cost_object_id=MARKETING.cost_object_id,
        ),
        2: Metric(
            metric_id=2,
            name="Headcount",
            data_type="Integer",
            column_name="headcount",
            cost_object_id=SALES.cost_object_id,
        ),
        3: Metric(
            metric_id=3,
            name="Global Rate",
            data_type="Percentage",
            column_name="global_rate",
            cost_object_id=GLOBALS.cost_object_id,
        ),
    }


@pytest.fixture
def data_source():
    return MockDataSource(
        metrics=sample_metrics(),
        cost_objects=[GLOBALS, MARKETING, SALES],
        sessions=[
            Session(session_id=10, time_period_id=4, name="Q1 load", started_at="2024-01-02"),
            Session(session_id=11, time_period_id=4, name="Q1 reload", started_at="2024-01-09"),
            Session(session_id=12, time_period_id=5, name="Q2 load", started_at="2024-04-01"),
        ],
    )


@pytest.fixture
def store(data_source):
    """Store loaded from the sample data source."""
    s = MetricStore(data_source)
    s.load_initial_data()
    return s


@pytest.fixture
def empty_store():
    s = MetricStore(MockDataSource())
    s.load_initial_data()
    return s
