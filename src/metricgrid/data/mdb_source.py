"""Data source backed by an Access database through pyodbc."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from ..utils.mdb_operations import (
    MdbConnection,
    has_access_driver,
    load_cost_objects,
    load_metrics,
    load_sessions,
    save_changes,
)
from .data_source import MetricDataSource

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..models.metric import CostObject, Metric, Session


class MdbMetricDataSource(MetricDataSource):
    """Data source backed by the Metric, CostObject and Session tables.

    Opens a short-lived connection per operation.
    """

    def __init__(self, db_path: str | Path, read_only: bool = False):
        """Initialize MDB data source.

        Raises:
            FileNotFoundError: If the database file does not exist
            RuntimeError: If no Access ODBC driver is installed
        """
        db_path = Path(db_path)
        if not db_path.exists():
            raise FileNotFoundError(f"Database not found: {db_path}")
        if not has_access_driver():
            raise RuntimeError("No Microsoft Access ODBC driver installed")
        self._db_path = str(db_path)
        self._read_only = read_only

    @property
    def file_path(self) -> str:
        return self._db_path

    @property
    def is_read_only(self) -> bool:
        return self._read_only

    def load_metrics(self) -> dict[int, Metric]:
        with MdbConnection(self._db_path) as conn:
            return load_metrics(conn)

    def load_cost_objects(self) -> list[CostObject]:
        with MdbConnection(self._db_path) as conn:
            return load_cost_objects(conn)

    def load_sessions(self, time_period_id: int) -> list[Session]:
        with MdbConnection(self._db_path) as conn:
            return load_sessions(conn, time_period_id)

    def save_changes(self, rows: Sequence[Metric], deleted_ids: Sequence[int]) -> int:
        if self._read_only:
            raise RuntimeError("Data source is read-only")
        if not rows and not deleted_ids:
            return 0

        with MdbConnection(self._db_path) as conn:
            return save_changes(conn, rows, deleted_ids)
