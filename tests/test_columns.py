"""Tests for the metrics grid column policy."""

import pytest

from metricgrid.data.reference_cache import ReferenceCache
from metricgrid.data.streams import Lifetime, Stream
from metricgrid.grid.columns import (
    EditorKind,
    build_columns,
    format_data_type,
    make_business_dimension_formatter,
)
from metricgrid.models.constants import (
    HEADER_BUSINESS_DIMENSION,
    HEADER_COLUMN_NAME,
    HEADER_DATA_SIZE,
    HEADER_DATA_TYPE,
    HEADER_DESCRIPTION,
    HEADER_NAME,
)
from metricgrid.models.metric import CostObject, Metric
from metricgrid.models.view_config import ViewConfig


@pytest.fixture
def cache():
    return ReferenceCache(Lifetime()).bind(Stream([CostObject(cost_object_id=7, name="Marketing")]))


class TestBuildColumns:
    """Tests for build_columns() across the four mode combinations."""

    @pytest.mark.parametrize("is_read_only", [False, True])
    def test_partitioned_scope_has_business_dimension(self, cache, is_read_only):
        config = ViewConfig(is_global_scope=False, is_read_only=is_read_only)

        columns = build_columns(config, cache)

        assert [c.header for c in columns] == [
            "",
            HEADER_NAME,
            HEADER_DATA_TYPE,
            HEADER_DATA_SIZE,
            HEADER_DESCRIPTION,
            HEADER_COLUMN_NAME,
            HEADER_BUSINESS_DIMENSION,
        ]

    @pytest.mark.parametrize("is_read_only", [False, True])
    def test_global_scope_has_no_business_dimension(self, cache, is_read_only):
        config = ViewConfig(is_global_scope=True, is_read_only=is_read_only)

        columns = build_columns(config, cache)

        assert len(columns) == 6
        assert HEADER_BUSINESS_DIMENSION not in [c.header for c in columns]

    @pytest.mark.parametrize("is_global_scope", [False, True])
    @pytest.mark.parametrize("is_read_only", [False, True])
    def test_data_columns_editable_unless_read_only(self, cache, is_global_scope, is_read_only):
        config = ViewConfig(is_global_scope=is_global_scope, is_read_only=is_read_only)

        data_columns = [c for c in build_columns(config, cache) if c.is_data_column]

        assert all(c.editable is (not is_read_only) for c in data_columns)

    def test_selection_column_first(self, cache):
        selection = build_columns(ViewConfig(), cache)[0]

        assert selection.checkbox_selection
        assert not selection.is_data_column
        assert not selection.editable

    def test_select_editors(self, cache):
        columns = {c.header: c for c in build_columns(ViewConfig(), cache)}

        data_type = columns[HEADER_DATA_TYPE]
        assert data_type.editor_kind is EditorKind.SELECT
        assert ("Currency", "Currency") in data_type.editor_options()

        dimension = columns[HEADER_BUSINESS_DIMENSION]
        assert dimension.editor_kind is EditorKind.SELECT
        assert dimension.editor_options() == [(7, "Marketing")]

    def test_build_is_pure(self, cache):
        config = ViewConfig(is_read_only=True)
        first = build_columns(config, cache)
        second = build_columns(config, cache)

        assert [(c.header, c.editable) for c in first] == [(c.header, c.editable) for c in second]


class TestFormatters:
    """Tests for cell formatters."""

    def test_data_type_label(self):
        assert format_data_type("Currency") == "Currency"
        assert format_data_type("Boolean") == "Yes/No"

    def test_data_type_missing_key(self):
        assert format_data_type("Blob") is None

    def test_business_dimension_resolves_name(self, cache):
        formatter = make_business_dimension_formatter(cache)
        row = Metric(metric_id=1, cost_object_id=7)

        assert formatter(7, row) == "Marketing"

    def test_business_dimension_falls_back_to_raw_id(self):
        cache = ReferenceCache(Lifetime()).bind(Stream([]))
        formatter = make_business_dimension_formatter(cache)
        row = Metric(metric_id=1, cost_object_id=7)

        assert formatter(7, row) == 7

    def test_business_dimension_without_row(self, cache):
        formatter = make_business_dimension_formatter(cache)

        assert formatter("raw", None) == "raw"

    def test_column_format_uses_formatter(self, cache):
        columns = {c.header: c for c in build_columns(ViewConfig(), cache)}
        row = Metric(metric_id=1, data_type="Integer", cost_object_id=7)

        assert columns[HEADER_DATA_TYPE].format("Integer", row) == "Whole Number"
        assert columns[HEADER_BUSINESS_DIMENSION].format(7, row) == "Marketing"
        assert columns[HEADER_NAME].format("Revenue", row) == "Revenue"
