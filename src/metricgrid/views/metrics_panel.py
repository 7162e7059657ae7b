"""Panel widget showing one metrics grid.

Uses tksheet for table display. The sheet never keeps its own edits: every
edit goes through the controller's edit capture and is rejected locally;
the store re-publishes the page and the panel redraws from it.
"""

from __future__ import annotations

import tkinter as tk
from collections.abc import Sequence
from tkinter import messagebox, ttk
from typing import TYPE_CHECKING

from tksheet import Sheet, num2alpha

from ..debug_trace import logger, perf_timer
from ..grid.columns import ColumnDescriptor, EditorKind

if TYPE_CHECKING:
    from ..data.commands import CommandResult
    from ..grid.controller import MetricsController
    from ..models.metric import Metric
    from ..settings import GridSettings

DEFAULT_COLUMN_WIDTH = 160
ROW_INDEX_WIDTH = 50


def _display(value: object) -> str:
    return "" if value is None else str(value)


class MetricsPanel(ttk.Frame):
    """Toolbar, sheet and status line for a MetricsController."""

    def _data_columns(self) -> list[ColumnDescriptor]:
        # The selection column is the sheet's row index
        return [col for col in self.columns if col.is_data_column]

    def _on_columns_changed(self, columns: list[ColumnDescriptor]) -> None:
        self.columns = columns
        self._build_sheet()
        self._render()

    def _build_sheet(self) -> None:
        """(Re)create the sheet for the current column set."""
        if self.sheet is not None:
            self.sheet.destroy()

        data_columns = self._data_columns()
        self.sheet = Sheet(
            self.sheet_frame,
            headers=[col.header for col in data_columns],
            show_row_index=True,
            height=400,
            width=900,
        )
        self.sheet.pack(fill=tk.BOTH, expand=True)

        self.sheet.enable_bindings()
        self.sheet.disable_bindings(
            "column_drag_and_drop",
            "row_drag_and_drop",
            "rc_select_column",
            "rc_insert_column",
            "rc_delete_column",
            "rc_insert_row",
            "rc_delete_row",
            "sort_cells",
            "sort_row",
            "sort_column",
            "sort_rows",
            "sort_columns",
            "undo",
        )
        self.sheet.row_index(ROW_INDEX_WIDTH)
        self.sheet.set_column_widths([col.width or DEFAULT_COLUMN_WIDTH for col in data_columns])

        readonly = [idx for idx, col in enumerate(data_columns) if not col.editable]
        if readonly:
            self.sheet.readonly_columns(readonly)

        for idx, col in enumerate(data_columns):
            if col.editable and col.editor_kind is EditorKind.SELECT and col.editor_options:
                self.sheet.dropdown(
                    self.sheet.span(num2alpha(idx)),
                    values=[label for _value, label in col.editor_options()],
                )

        self.sheet.edit_validation(self._validate_edit)

    def _render(self) -> None:
        """Populate the sheet from the last rows delivered by the row source."""
        if self.sheet is None:
            return

        data_columns = self._data_columns()
        with perf_timer("render_metrics", row_count=len(self.rows)):
            data = [
                [_display(col.format(row.get_field(col.field), row)) for col in data_columns]
                for row in self.rows
            ]
            self.sheet.set_sheet_data(data, reset_col_positions=False)
        self._update_status()

    def _on_rows_ready(self, rows: Sequence[Metric], total_count: int) -> None:
        self.rows = list(rows)
        self.total_count = total_count
        # Streams may fire inside a sheet edit callback; draw once it has finished
        if self._render_after_id is None:
            self._render_after_id = self.after_idle(self._render_pending)

    def _render_pending(self) -> None:
        self._render_after_id = None
        self._render()

    def _validate_edit(self, event) -> None:
        """Forward an edit to the controller and reject it locally.

        Returns:
            None, so the sheet keeps showing the store's value
        """
        row_idx, col_idx = event.row, event.column
        data_columns = self._data_columns()
        if row_idx >= len(self.rows) or col_idx >= len(data_columns):
            return None

        column = data_columns[col_idx]
        row = self.rows[row_idx]
        new_value = event.value

        if column.editor_kind is EditorKind.SELECT and column.editor_options:
            by_label = {label: value for value, label in column.editor_options()}
            new_value = by_label.get(new_value, new_value)

        self.controller.on_cell_value_changing(
            row, column.field, row.get_field(column.field), new_value
        )
        return None

    def _selected_metrics(self) -> list[Metric]:
        selected = sorted(self.sheet.get_selected_rows())
        return [self.rows[idx] for idx in selected if idx < len(self.rows)]

    def _update_status(self) -> None:
        first = self.page_index * self.settings.page_size + 1 if self.rows else 0
        last = first + len(self.rows) - 1 if self.rows else 0
        modified = self.store.get_total_modified_count()
        text = f"Rows {first}-{last} of {self.total_count} | Modified: {modified}"
        error = self.store.last_error.value
        if error:
            text += f" | {error}"
        self.status_label.config(text=text)

    def _report(self, result: CommandResult) -> None:
        if not result.accepted:
            logger.warning(f"Command rejected: {result.reason}")
            messagebox.showwarning(self.controller.title, result.reason, parent=self)

    # --- Toolbar actions ---

    def _on_add(self) -> None:
        self._report(self.controller.add_metric())

    def _on_delete(self) -> None:
        selected = self._selected_metrics()
        if not selected:
            return
        self._report(self.controller.delete_metrics(selected))

    def _on_save(self) -> None:
        self._report(self.controller.save())

    def _on_undo(self) -> None:
        self._report(self.controller.undo())

    def _request_page(self) -> None:
        start, end = self.settings.page_bounds(self.page_index)
        self.controller.get_rows(self._on_rows_ready, start, end)

    def _on_prev_page(self) -> None:
        if self.page_index > 0:
            self.page_index -= 1
            self._request_page()

    def _on_next_page(self) -> None:
        if self.page_index + 1 < self.settings.page_count(self.total_count):
            self.page_index += 1
            self._request_page()

    def _set_button_states(self) -> None:
        cannot_modify = bool(self.controller.cannot_modify.value)
        changes_disabled = self.controller.change_buttons_disabled.value is not False
        self.add_button.config(state=tk.DISABLED if cannot_modify else tk.NORMAL)
        self.delete_button.config(state=tk.DISABLED if cannot_modify else tk.NORMAL)
        self.save_button.config(state=tk.DISABLED if changes_disabled else tk.NORMAL)
        self.undo_button.config(state=tk.DISABLED if changes_disabled else tk.NORMAL)

    def _create_widgets(self) -> None:
        """Create all panel widgets."""
        toolbar = ttk.Frame(self)
        toolbar.pack(fill=tk.X, padx=5, pady=(5, 2))

        ttk.Label(toolbar, text=self.controller.title, style="Title.TLabel").pack(side=tk.LEFT)

        self.undo_button = ttk.Button(toolbar, text="Undo", command=self._on_undo)
        self.undo_button.pack(side=tk.RIGHT, padx=2)
        self.save_button = ttk.Button(toolbar, text="Save", command=self._on_save)
        self.save_button.pack(side=tk.RIGHT, padx=2)
        self.delete_button = ttk.Button(toolbar, text="Delete", command=self._on_delete)
        self.delete_button.pack(side=tk.RIGHT, padx=2)
        self.add_button = ttk.Button(toolbar, text="Add", command=self._on_add)
        self.add_button.pack(side=tk.RIGHT, padx=2)

        self.sheet_frame = ttk.Frame(self)
        self.sheet_frame.pack(fill=tk.BOTH, expand=True, padx=5, pady=2)

        footer = ttk.Frame(self)
        footer.pack(fill=tk.X, padx=5, pady=(2, 5))

        self.status_label = ttk.Label(footer, text="")
        self.status_label.pack(side=tk.LEFT)
        ttk.Button(footer, text=">", width=3, command=self._on_next_page).pack(side=tk.RIGHT)
        ttk.Button(footer, text="<", width=3, command=self._on_prev_page).pack(side=tk.RIGHT)

    def _on_destroy(self, event) -> None:
        # Only handle destruction of this widget, not children
        if event.widget == self:
            if self._render_after_id is not None:
                self.after_cancel(self._render_after_id)
                self._render_after_id = None
            self.controller.destroy()

    def __init__(
        self,
        parent: tk.Widget,
        controller: MetricsController,
        settings: GridSettings,
    ):
        """Initialize the metrics panel.

        Args:
            parent: Parent widget
            controller: Controller the panel renders (not yet initialized)
            settings: Page size and layout settings
        """
        super().__init__(parent)

        self.controller = controller
        self.store = controller.store
        self.settings = settings

        self.columns: list[ColumnDescriptor] = list(controller.columns)
        self.rows: list[Metric] = []
        self.total_count = 0
        self.page_index = 0
        self.sheet: Sheet | None = None
        self._render_after_id: str | None = None

        self._create_widgets()
        self._build_sheet()

        controller.on_columns_changed = self._on_columns_changed
        controller.cannot_modify.subscribe(lambda _v: self._set_button_states(), controller.lifetime)
        controller.change_buttons_disabled.subscribe(
            lambda _v: self._set_button_states(), controller.lifetime
        )
        controller.init()
        self._set_button_states()
        self._request_page()

        # Cancel every subscription when the panel goes away
        self.bind("<Destroy>", self._on_destroy)
