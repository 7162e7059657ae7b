"""Tests for the CSV data source."""

import csv

import pytest

from metricgrid.data.data_source import (
    COST_OBJECTS_FILE,
    METRIC_COLUMNS,
    METRICS_FILE,
    SESSIONS_FILE,
    CsvMetricDataSource,
    metric_from_record,
)
from metricgrid.models.metric import Metric


def _write_csv(path, header, rows):
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        writer.writerows(rows)


@pytest.fixture
def data_dir(tmp_path):
    _write_csv(
        tmp_path / METRICS_FILE,
        METRIC_COLUMNS,
        [
            ["1", "Revenue", "Currency", "18", "Top line", "revenue", "7"],
            ["2", "Headcount", "Integer", "", "", "headcount", "8"],
            ["", "Orphan", "Text", "", "", "", ""],
        ],
    )
    _write_csv(
        tmp_path / COST_OBJECTS_FILE,
        ["CostObjectId", "Name", "IsGlobals"],
        [["1", "Globals", "True"], ["7", "Marketing", "0"], ["8", "Sales", ""]],
    )
    _write_csv(
        tmp_path / SESSIONS_FILE,
        ["SessionId", "TimePeriodId", "Name", "StartedAt"],
        [
            ["11", "4", "Q1 reload", "2024-01-09"],
            ["10", "4", "Q1 load", "2024-01-02"],
            ["12", "5", "Q2 load", "2024-04-01"],
        ],
    )
    return tmp_path


class TestMetricFromRecord:
    def test_blank_cells(self):
        metric = metric_from_record({"MetricId": "3", "Name": " Rate ", "DataType": "", "Size": "x"})

        assert metric == Metric(metric_id=3, name="Rate", data_type="Decimal", size=None)

    def test_missing_id(self):
        assert metric_from_record({"MetricId": "", "Name": "Orphan"}) is None


class TestCsvLoad:
    """Tests for loading from CSV files."""

    def test_load_metrics(self, data_dir):
        metrics = CsvMetricDataSource(data_dir).load_metrics()

        assert sorted(metrics) == [1, 2]
        assert metrics[1].size == 18
        assert metrics[2].size is None
        assert metrics[1].cost_object_id == 7

    def test_load_cost_objects(self, data_dir):
        cost_objects = CsvMetricDataSource(data_dir).load_cost_objects()

        assert [(c.cost_object_id, c.is_globals) for c in cost_objects] == [
            (1, True),
            (7, False),
            (8, False),
        ]

    def test_load_sessions_filtered_and_sorted(self, data_dir):
        sessions = CsvMetricDataSource(data_dir).load_sessions(4)

        assert [s.session_id for s in sessions] == [10, 11]

    def test_missing_files_read_as_empty(self, tmp_path):
        source = CsvMetricDataSource(tmp_path)

        assert source.load_metrics() == {}
        assert source.load_cost_objects() == []
        assert source.load_sessions(1) == []


class TestCsvSave:
    """Tests for save_changes() rewriting metrics.csv."""

    def test_update_insert_delete(self, data_dir):
        source = CsvMetricDataSource(data_dir)
        metrics = source.load_metrics()

        modified = source.save_changes(
            [
                Metric(metric_id=1, name="Net Revenue", data_type="Currency", cost_object_id=7),
                Metric(name="Margin", column_name="margin", draft_key=-1),
            ],
            [2],
        )

        reloaded = source.load_metrics()
        assert modified == 3
        assert sorted(reloaded) == [1, 3]
        assert reloaded[1].name == "Net Revenue"
        assert reloaded[3].name == "Margin"
        assert reloaded[3].column_name == "margin"
        assert metrics[2].name == "Headcount"

    def test_no_temp_file_left(self, data_dir):
        CsvMetricDataSource(data_dir).save_changes([], [1])

        assert not (data_dir / "metrics.tmp").exists()

    def test_read_only_refuses_save(self, data_dir):
        source = CsvMetricDataSource(data_dir, read_only=True)

        assert source.is_read_only
        with pytest.raises(RuntimeError):
            source.save_changes([], [1])
        assert sorted(source.load_metrics()) == [1, 2]


class TestMdbSource:
    """Tests for the Access data source that need no ODBC driver."""

    def test_missing_database(self, tmp_path):
        pytest.importorskip("pyodbc")
        from metricgrid.data.mdb_source import MdbMetricDataSource

        with pytest.raises(FileNotFoundError):
            MdbMetricDataSource(tmp_path / "missing.mdb")
