"""Turns a single cell edit into an UpdateEntity command.

The grid never applies an edit to its own copy of the row. A changed value
is projected into a full Metric snapshot and sent to the store; the new
value shows up once the store re-publishes the page.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from typing import TYPE_CHECKING

from ..data.commands import UpdateEntity
from ..debug_trace import logger
from ..models.constants import EDITABLE_FIELDS
from ..models.metric import Metric, coerce_field_value
from ..models.paging import PendingEdit

if TYPE_CHECKING:
    from ..data.commands import Command, CommandResult


class EditCapture:
    """Intercepts cell value changes before the grid applies them."""

    def __init__(self, dispatch: Callable[[Command], CommandResult]):
        """Initialize edit capture.

        Args:
            dispatch: Sends a command to the store (MetricStore.dispatch)
        """
        self._dispatch = dispatch
        self.last_result: CommandResult | None = None

    def on_cell_value_changing(
        self,
        row_id: int,
        field: str,
        old_value: object,
        new_value: object,
        row: Metric,
    ) -> bool:
        """Handle an attempted cell edit.

        Args:
            row_id: Grid row identity (0 for unsaved rows)
            field: Metric attribute being edited
            old_value: Value the cell showed
            new_value: Value the editor produced
            row: Full row snapshot the cell belongs to

        Returns:
            Always False: the grid must not apply the value locally
        """
        if field not in EDITABLE_FIELDS:
            logger.warning(f"Ignoring edit of non-editable field {field!r}")
            return False

        new_value = coerce_field_value(field, new_value)
        if coerce_field_value(field, old_value) == new_value:
            return False

        edit = PendingEdit(row_id=row_id, field=field, new_value=new_value)
        self.last_result = self._dispatch(self.to_update(edit, row))
        return False

    @staticmethod
    def to_update(edit: PendingEdit, row: Metric) -> UpdateEntity:
        """Project a pending edit onto its row as an UpdateEntity command."""
        return UpdateEntity(entity=replace(row, **{edit.field: edit.new_value}), type=Metric.type)
