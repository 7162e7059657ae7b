"""Tests for GridSettings and logging setup."""

import logging

from metricgrid.debug_trace import logger, setup_debug_logging
from metricgrid.settings import GridSettings


class TestFromEnv:
    """Tests for GridSettings.from_env()."""

    def test_defaults(self):
        settings = GridSettings.from_env({})

        assert settings.data_path == ""
        assert settings.page_size == 100
        assert settings.debug is False

    def test_reads_variables(self):
        settings = GridSettings.from_env(
            {"METRICGRID_DATA": " /data ", "METRICGRID_PAGE_SIZE": "25", "METRICGRID_DEBUG": "yes"}
        )

        assert settings.data_path == "/data"
        assert settings.page_size == 25
        assert settings.debug is True

    def test_bad_page_size_ignored(self):
        assert GridSettings.from_env({"METRICGRID_PAGE_SIZE": "0"}).page_size == 100
        assert GridSettings.from_env({"METRICGRID_PAGE_SIZE": "lots"}).page_size == 100


class TestPaging:
    def test_page_bounds(self):
        settings = GridSettings(page_size=50)

        assert settings.page_bounds(0) == (0, 50)
        assert settings.page_bounds(2) == (100, 150)
        assert settings.page_bounds(-1) == (0, 50)

    def test_page_count(self):
        settings = GridSettings(page_size=50)

        assert settings.page_count(0) == 1
        assert settings.page_count(50) == 1
        assert settings.page_count(51) == 2


class TestLogging:
    def test_debug_level_toggles(self):
        setup_debug_logging(True)
        assert logger.level == logging.DEBUG

        setup_debug_logging(False)
        assert logger.level == logging.WARNING
