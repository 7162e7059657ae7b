"""Stand-alone metrics editor window."""

from __future__ import annotations

import argparse
import sys
import tkinter as tk
from pathlib import Path
from tkinter import messagebox, ttk

from .data.data_source import ACCESS_SUFFIXES, CsvMetricDataSource, MetricDataSource
from .data.metric_store import MetricStore
from .debug_trace import logger, setup_debug_logging
from .grid.controller import MetricsController
from .models.constants import (
    DEFAULT_PAGE_TITLE,
    GLOBAL_SCOPE_IDENTIFIER,
    PARTITIONED_SCOPE_IDENTIFIER,
)
from .models.metric import Scenario
from .models.view_config import RouteDescriptor
from .settings import GridSettings
from .views.metrics_panel import MetricsPanel


def get_version():
    """Get version from package metadata."""
    try:
        from importlib.metadata import version

        return version("metricgrid")
    except Exception:
        return "Development"


def open_data_source(path: str, read_only: bool = False) -> MetricDataSource:
    """CSV directory, or an Access database for .mdb/.accdb paths."""
    if Path(path).suffix.lower() in ACCESS_SUFFIXES:
        # pyodbc is only needed for Access files
        from .data.mdb_source import MdbMetricDataSource

        return MdbMetricDataSource(path, read_only=read_only)
    return CsvMetricDataSource(path, read_only=read_only)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="metricgrid", description="Edit metrics in a grid.")
    parser.add_argument("data", nargs="?", help="CSV directory or .mdb/.accdb file")
    parser.add_argument(
        "--scope",
        choices=[PARTITIONED_SCOPE_IDENTIFIER, GLOBAL_SCOPE_IDENTIFIER],
        default=PARTITIONED_SCOPE_IDENTIFIER,
        help="Metric subset to edit",
    )
    parser.add_argument("--title", default=None, help="Window and page title")
    parser.add_argument("--time-period", type=int, default=0, help="Active time period id")
    parser.add_argument(
        "--locked", action="store_true", help="Open the scenario as read-only"
    )
    parser.add_argument(
        "--no-modify-permission",
        action="store_true",
        help="Open as a user without modify permission",
    )
    parser.add_argument("--page-size", type=int, default=None)
    parser.add_argument("--debug", action="store_true", help="Log to the console")
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")
    return parser


class MetricsApp:
    """Main window hosting one MetricsPanel."""

    def _setup_styles(self) -> None:
        style = ttk.Style()
        style.configure("TButton", padding=6)
        style.configure("Title.TLabel", font=("TkDefaultFont", 12, "bold"))

    def _on_close(self) -> None:
        if self.store.has_unsaved_changes():
            result = messagebox.askyesnocancel(
                "Unsaved Changes",
                "You have unsaved changes. Save before closing?",
                parent=self.root,
            )
            if result is None:
                return
            if result and not self.panel.controller.save().accepted:
                messagebox.showerror(
                    "Save Error",
                    "Failed to save changes. The window will remain open.",
                    parent=self.root,
                )
                return
        self.root.destroy()

    def __init__(self, settings: GridSettings, route: RouteDescriptor, scenario: Scenario,
                 has_modify_permission: bool, data_source: MetricDataSource):
        self.settings = settings
        self.root = tk.Tk()
        self.root.title(f"{route.title} - metricgrid {get_version()}")
        self._setup_styles()

        self.store = MetricStore(data_source)
        self.store.load_initial_data()
        self.store.set_active_scenario(scenario)
        self.store.set_modify_permission(has_modify_permission)

        controller = MetricsController(self.store, route)
        self.panel = MetricsPanel(self.root, controller, settings)
        self.panel.pack(fill=tk.BOTH, expand=True)

        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

    def run(self) -> None:
        self.root.mainloop()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    settings = GridSettings.from_env()
    if args.data:
        settings.data_path = args.data
    if args.page_size:
        settings.page_size = args.page_size
    settings.debug = settings.debug or args.debug
    setup_debug_logging(settings.debug)

    if not settings.data_path:
        print("No data path given (argument or METRICGRID_DATA)", file=sys.stderr)
        return 2

    title = args.title or DEFAULT_PAGE_TITLE
    route = RouteDescriptor(scope_kind=args.scope, title=title)
    scenario = Scenario(scenario_id=1, name=title, read_only=args.locked,
                        time_period_id=args.time_period)

    try:
        data_source = open_data_source(settings.data_path)
        app = MetricsApp(settings, route, scenario, not args.no_modify_permission, data_source)
    except (OSError, RuntimeError) as e:
        logger.error(f"Could not open {settings.data_path}: {e}")
        print(f"Could not open {settings.data_path}: {e}", file=sys.stderr)
        return 1

    app.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
