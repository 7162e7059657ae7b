"""Tests for the command-line entry point that need no display."""

import pytest

pytest.importorskip("tkinter")

from metricgrid import app  # noqa: E402
from metricgrid.data.data_source import CsvMetricDataSource  # noqa: E402


class TestParser:
    def test_defaults(self):
        args = app.build_parser().parse_args(["data"])

        assert args.data == "data"
        assert args.scope == "partitioned"
        assert args.locked is False
        assert args.no_modify_permission is False

    def test_global_locked(self):
        args = app.build_parser().parse_args(
            ["data", "--scope", "global", "--locked", "--time-period", "4"]
        )

        assert args.scope == "global"
        assert args.locked is True
        assert args.time_period == 4


class TestMain:
    def test_missing_data_path(self, monkeypatch, capsys):
        monkeypatch.delenv("METRICGRID_DATA", raising=False)

        assert app.main([]) == 2
        assert "No data path" in capsys.readouterr().err

    def test_csv_directory_opens_csv_source(self, tmp_path):
        source = app.open_data_source(str(tmp_path))

        assert isinstance(source, CsvMetricDataSource)
        assert source.file_path == str(tmp_path)
