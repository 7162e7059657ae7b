"""Column policy for the metrics grid.

build_columns() is a pure function of the view configuration (global vs
partitioned scope, read-only vs editable) plus the reference cache the
Business Dimension column reads from. When the configuration changes the
caller builds a new column list and replaces the grid's columns.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ..models.constants import (
    DATA_TYPE_KEY_VALUES,
    DATA_TYPE_NAMES,
    FIELD_BUSINESS_DIMENSION,
    FIELD_COLUMN_NAME,
    FIELD_DATA_SIZE,
    FIELD_DATA_TYPE,
    FIELD_DESCRIPTION,
    FIELD_NAME,
    HEADER_BUSINESS_DIMENSION,
    HEADER_COLUMN_NAME,
    HEADER_DATA_SIZE,
    HEADER_DATA_TYPE,
    HEADER_DESCRIPTION,
    HEADER_NAME,
    SELECTION_COLUMN_WIDTH,
)

if TYPE_CHECKING:
    from ..data.reference_cache import ReferenceCache
    from ..models.metric import Metric
    from ..models.view_config import ViewConfig

# (value, row) -> display value; row may be None for placeholder rows
Formatter = Callable[[object, "Metric | None"], object]
OptionsProvider = Callable[[], list[tuple[object, str]]]


class EditorKind(Enum):
    TEXT = "text"
    SELECT = "select"


@dataclass(frozen=True)
class ColumnDescriptor:
    """One grid column and its capabilities.

    Attributes:
        header: Header text ("" for the selection column)
        field: Metric attribute shown, or None for the selection column
        editable: Whether the cell editor opens
        editor_kind: TEXT or SELECT
        editor_options: For SELECT, returns (value, label) pairs at edit time
        formatter: Maps the stored value to the displayed value
        checkbox_selection: Selection column marker
        width: Fixed width in pixels, or None to auto-size
    """

    header: str
    field: str | None
    editable: bool
    editor_kind: EditorKind = EditorKind.TEXT
    editor_options: OptionsProvider | None = None
    formatter: Formatter | None = None
    checkbox_selection: bool = False
    width: int | None = None

    @property
    def is_data_column(self) -> bool:
        return self.field is not None

    def format(self, value: object, row: Metric | None = None) -> object:
        """Display value for a cell."""
        if self.formatter is None:
            return value
        return self.formatter(value, row)


def format_data_type(value: object, row: Metric | None = None) -> str | None:
    """Label for a data type key; None for keys missing from the table."""
    return DATA_TYPE_NAMES.get(value)


def make_business_dimension_formatter(reference_cache: ReferenceCache) -> Formatter:
    """Formatter resolving cost_object_id to the cached cost object name.

    Falls back to the raw id when the cache has no match, and to the cell
    value when there is no row.
    """

    def format_business_dimension(value: object, row: Metric | None = None) -> object:
        if row is None:
            return value
        return reference_cache.display_name_for(row.cost_object_id)

    return format_business_dimension


def _data_type_options() -> list[tuple[object, str]]:
    return list(DATA_TYPE_KEY_VALUES)


def build_selection_column() -> ColumnDescriptor:
    return ColumnDescriptor(
        header="",
        field=None,
        editable=False,
        checkbox_selection=True,
        width=SELECTION_COLUMN_WIDTH,
    )


def build_business_dimension_column(
    reference_cache: ReferenceCache, editable: bool
) -> ColumnDescriptor:
    return ColumnDescriptor(
        header=HEADER_BUSINESS_DIMENSION,
        field=FIELD_BUSINESS_DIMENSION,
        editable=editable,
        editor_kind=EditorKind.SELECT,
        editor_options=reference_cache.options,
        formatter=make_business_dimension_formatter(reference_cache),
    )


def build_columns(config: ViewConfig, reference_cache: ReferenceCache) -> list[ColumnDescriptor]:
    """Ordered columns for a view configuration.

    Selection, Name, Data Type, Data Size, Description, Column Name, and
    for partitioned scope a trailing Business Dimension column. Every data
    column is editable exactly when the view is not read-only.
    """
    editable = not config.is_read_only

    columns = [
        build_selection_column(),
        ColumnDescriptor(header=HEADER_NAME, field=FIELD_NAME, editable=editable),
        ColumnDescriptor(
            header=HEADER_DATA_TYPE,
            field=FIELD_DATA_TYPE,
            editable=editable,
            editor_kind=EditorKind.SELECT,
            editor_options=_data_type_options,
            formatter=format_data_type,
        ),
        ColumnDescriptor(header=HEADER_DATA_SIZE, field=FIELD_DATA_SIZE, editable=editable),
        ColumnDescriptor(header=HEADER_DESCRIPTION, field=FIELD_DESCRIPTION, editable=editable),
        ColumnDescriptor(header=HEADER_COLUMN_NAME, field=FIELD_COLUMN_NAME, editable=editable),
    ]

    if not config.is_global_scope:
        columns.append(build_business_dimension_column(reference_cache, editable))

    return columns
