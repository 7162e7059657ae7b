"""Access database operations for the metric store.

Provides driver discovery, connection management and the metric/cost
object/session queries against an Access (.mdb/.accdb) file.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pyodbc

from ..debug_trace import logger
from ..models.constants import DEFAULT_DATA_TYPE
from ..models.metric import CostObject, Metric, Session

if TYPE_CHECKING:
    from collections.abc import Sequence

PREFERRED_ACCESS_DRIVERS = [
    "Microsoft Access Driver (*.mdb, *.accdb)",
    "Microsoft Access Driver (*.mdb)",
    "Microsoft Access Driver",
]


def get_available_access_drivers() -> list[str]:
    """Get list of available Microsoft Access ODBC drivers."""
    try:
        return [driver for driver in pyodbc.drivers() if "Access" in driver]
    except pyodbc.Error as e:
        logger.warning(f"Error checking ODBC drivers: {e}")
        return []


def has_access_driver() -> bool:
    """Check if any Microsoft Access ODBC driver is available."""
    return len(get_available_access_drivers()) > 0


def create_access_connection(db_path: str | Path) -> pyodbc.Connection:
    """Create ODBC connection to Access database with driver fallback.

    Tries drivers in order of preference until one succeeds.

    Args:
        db_path: Path to the Access database file

    Returns:
        Active pyodbc Connection

    Raises:
        RuntimeError: If no drivers available or all fail to connect
    """
    available_drivers = get_available_access_drivers()

    if not available_drivers:
        raise RuntimeError("No Microsoft Access ODBC drivers available")

    driver_errors = []
    drivers_to_try = [d for d in PREFERRED_ACCESS_DRIVERS if d in available_drivers] + [
        d for d in available_drivers if d not in PREFERRED_ACCESS_DRIVERS
    ]

    for driver in drivers_to_try:
        try:
            conn = pyodbc.connect(f"DRIVER={{{driver}}};DBQ={db_path};")
            logger.debug(f"Connected to {db_path} using driver: {driver}")
            return conn
        except pyodbc.Error as e:
            driver_errors.append(f"Driver '{driver}' failed: {e}")

    raise RuntimeError("Failed to connect with any Access driver:\n" + "\n".join(driver_errors))


class MdbConnection:
    """Wrapper for metric database operations."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn: pyodbc.Connection | None = None

    def connect(self) -> None:
        """Establish database connection.

        Raises:
            RuntimeError: If no Access drivers are available or connection fails
        """
        self._conn = create_access_connection(self.db_path)

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    def cursor(self) -> pyodbc.Cursor:
        if not self._conn:
            raise RuntimeError("Not connected to database")
        return self._conn.cursor()

    def commit(self) -> None:
        if self._conn:
            self._conn.commit()

    def rollback(self) -> None:
        if self._conn:
            self._conn.rollback()

    def __enter__(self) -> MdbConnection:
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def load_metrics(conn: MdbConnection) -> dict[int, Metric]:
    """Load all metrics, keyed by MetricId."""
    cursor = conn.cursor()
    try:
        cursor.execute(
            """
            SELECT MetricId, Name, DataType, Size, Description, ColumnName, CostObjectId
            FROM Metric
            ORDER BY MetricId
        """
        )
        result: dict[int, Metric] = {}
        for metric_id, name, data_type, size, description, column_name, cost_object_id in (
            cursor.fetchall()
        ):
            result[int(metric_id)] = Metric(
                metric_id=int(metric_id),
                name=name or "",
                data_type=data_type or DEFAULT_DATA_TYPE,
                size=None if size is None else int(size),
                description=description or "",
                column_name=column_name or "",
                cost_object_id=None if cost_object_id is None else int(cost_object_id),
            )
        return result
    finally:
        cursor.close()


def load_cost_objects(conn: MdbConnection) -> list[CostObject]:
    cursor = conn.cursor()
    try:
        cursor.execute("SELECT CostObjectId, Name, IsGlobals FROM CostObject ORDER BY Name")
        return [
            CostObject(cost_object_id=int(cid), name=name or "", is_globals=bool(is_globals))
            for cid, name, is_globals in cursor.fetchall()
        ]
    finally:
        cursor.close()


def load_sessions(conn: MdbConnection, time_period_id: int) -> list[Session]:
    cursor = conn.cursor()
    try:
        cursor.execute(
            """
            SELECT SessionId, Name, StartedAt FROM Session
            WHERE TimePeriodId = ?
            ORDER BY StartedAt, SessionId
        """,
            (time_period_id,),
        )
        return [
            Session(
                session_id=int(session_id),
                time_period_id=time_period_id,
                name=name or "",
                started_at="" if started_at is None else str(started_at),
            )
            for session_id, name, started_at in cursor.fetchall()
        ]
    finally:
        cursor.close()


def save_changes(conn: MdbConnection, rows: Sequence[Metric], deleted_ids: Sequence[int]) -> int:
    """Insert, update and delete metrics in one transaction.

    Returns:
        Number of rows modified

    Raises:
        RuntimeError: If not connected
        pyodbc.Error: If any statement fails (transaction rolled back)
    """
    cursor = conn.cursor()
    modified_count = 0

    try:
        for metric_id in deleted_ids:
            cursor.execute("DELETE FROM Metric WHERE MetricId = ?", (metric_id,))
            modified_count += 1

        for row in rows:
            values = (
                row.name,
                row.data_type,
                row.size,
                row.description,
                row.column_name,
                row.cost_object_id,
            )
            if row.is_new:
                # MetricId is an AutoNumber column
                cursor.execute(
                    """
                    INSERT INTO Metric (Name, DataType, Size, Description, ColumnName, CostObjectId)
                    VALUES (?, ?, ?, ?, ?, ?)
                """,
                    values,
                )
            else:
                cursor.execute(
                    """
                    UPDATE Metric SET Name = ?, DataType = ?, Size = ?, Description = ?,
                        ColumnName = ?, CostObjectId = ?
                    WHERE MetricId = ?
                """,
                    (*values, row.metric_id),
                )
            modified_count += 1

        conn.commit()
        return modified_count

    except Exception:
        conn.rollback()
        raise
    finally:
        cursor.close()
