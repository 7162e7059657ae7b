"""Data source abstraction for the metric store.

Provides the abstract base class and a CSV implementation for loading and
saving metrics, cost objects and sessions. The Access implementation lives
in mdb_source.py so pyodbc is only imported when it is used.
"""

from __future__ import annotations

import csv
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from ..debug_trace import logger
from ..models.constants import DEFAULT_DATA_TYPE
from ..models.metric import CostObject, Metric, Session

if TYPE_CHECKING:
    from collections.abc import Sequence

METRICS_FILE = "metrics.csv"
COST_OBJECTS_FILE = "cost_objects.csv"
SESSIONS_FILE = "sessions.csv"

METRIC_COLUMNS = [
    "MetricId",
    "Name",
    "DataType",
    "Size",
    "Description",
    "ColumnName",
    "CostObjectId",
]
COST_OBJECT_COLUMNS = ["CostObjectId", "Name", "IsGlobals"]
SESSION_COLUMNS = ["SessionId", "TimePeriodId", "Name", "StartedAt"]

TRUE_STRINGS = frozenset({"1", "true", "yes"})

# Paths with these suffixes open through MdbMetricDataSource
ACCESS_SUFFIXES = frozenset({".mdb", ".accdb"})


def _parse_optional_int(text: str | None) -> int | None:
    """Parse an int column, returning None for blank or malformed cells."""
    text = (text or "").strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def _format_optional_int(value: int | None) -> str:
    return "" if value is None else str(value)


def metric_from_record(record: dict[str, str]) -> Metric | None:
    """Build a Metric from a CSV record, or None if it has no usable id."""
    metric_id = _parse_optional_int(record.get("MetricId"))
    if not metric_id:
        return None

    return Metric(
        metric_id=metric_id,
        name=(record.get("Name") or "").strip(),
        data_type=(record.get("DataType") or "").strip() or DEFAULT_DATA_TYPE,
        size=_parse_optional_int(record.get("Size")),
        description=(record.get("Description") or "").strip(),
        column_name=(record.get("ColumnName") or "").strip(),
        cost_object_id=_parse_optional_int(record.get("CostObjectId")),
    )


def metric_to_record(metric: Metric) -> dict[str, str]:
    return {
        "MetricId": str(metric.metric_id),
        "Name": metric.name,
        "DataType": metric.data_type,
        "Size": _format_optional_int(metric.size),
        "Description": metric.description,
        "ColumnName": metric.column_name,
        "CostObjectId": _format_optional_int(metric.cost_object_id),
    }


class MetricDataSource(ABC):
    """Abstract base class for metric data sources."""

    @property
    @abstractmethod
    def file_path(self) -> str:
        """Return the path of the underlying file or directory."""

    @abstractmethod
    def load_metrics(self) -> dict[int, Metric]:
        """Load all persisted metrics.

        Returns:
            Dict mapping metric_id to Metric
        """

    @abstractmethod
    def load_cost_objects(self) -> list[CostObject]:
        """Load all cost objects (business dimensions)."""

    @abstractmethod
    def load_sessions(self, time_period_id: int) -> list[Session]:
        """Load sessions recorded for a time period, oldest first."""

    @abstractmethod
    def save_changes(self, rows: Sequence[Metric], deleted_ids: Sequence[int]) -> int:
        """Persist pending rows and deletions.

        Rows with metric_id 0 are inserted and get a new id; others update
        in place. Implementations either apply everything or nothing.

        Args:
            rows: New and updated metrics
            deleted_ids: metric_ids to remove

        Returns:
            Number of rows modified
        """

    @property
    def is_read_only(self) -> bool:
        """Return True if this data source cannot be saved to."""
        return False


class CsvMetricDataSource(MetricDataSource):
    """Data source backed by a directory of CSV files.

    Expects metrics.csv, cost_objects.csv and (optionally) sessions.csv.
    Saving rewrites metrics.csv in full.
    """

    def __init__(self, directory: str | Path, read_only: bool = False):
        """Initialize CSV data source.

        Args:
            directory: Directory holding the CSV files
            read_only: Refuse saves
        """
        self._directory = Path(directory)
        self._read_only = read_only

    @property
    def file_path(self) -> str:
        return str(self._directory)

    @property
    def is_read_only(self) -> bool:
        return self._read_only

    def _read_records(self, filename: str) -> list[dict[str, str]]:
        """Read a CSV file as dicts; a missing or unreadable file reads as empty."""
        path = self._directory / filename
        if not path.exists():
            return []

        try:
            with open(path, newline="", encoding="utf-8") as csvfile:
                return list(csv.DictReader(csvfile))
        except (OSError, csv.Error) as e:
            logger.warning(f"Could not read {path}: {e}")
            return []

    def load_metrics(self) -> dict[int, Metric]:
        result: dict[int, Metric] = {}
        for record in self._read_records(METRICS_FILE):
            metric = metric_from_record(record)
            if metric is not None:
                result[metric.metric_id] = metric
        return result

    def load_cost_objects(self) -> list[CostObject]:
        result: list[CostObject] = []
        for record in self._read_records(COST_OBJECTS_FILE):
            cost_object_id = _parse_optional_int(record.get("CostObjectId"))
            if cost_object_id is None:
                continue
            result.append(
                CostObject(
                    cost_object_id=cost_object_id,
                    name=(record.get("Name") or "").strip(),
                    is_globals=(record.get("IsGlobals") or "").strip().lower() in TRUE_STRINGS,
                )
            )
        return result

    def load_sessions(self, time_period_id: int) -> list[Session]:
        result: list[Session] = []
        for record in self._read_records(SESSIONS_FILE):
            session_id = _parse_optional_int(record.get("SessionId"))
            if session_id is None:
                continue
            if _parse_optional_int(record.get("TimePeriodId")) != time_period_id:
                continue
            result.append(
                Session(
                    session_id=session_id,
                    time_period_id=time_period_id,
                    name=(record.get("Name") or "").strip(),
                    started_at=(record.get("StartedAt") or "").strip(),
                )
            )
        result.sort(key=lambda s: (s.started_at, s.session_id))
        return result

    def save_changes(self, rows: Sequence[Metric], deleted_ids: Sequence[int]) -> int:
        """Apply changes to the current file contents and rewrite metrics.csv."""
        if self._read_only:
            raise RuntimeError("Data source is read-only")

        metrics = self.load_metrics()
        next_id = max(metrics, default=0) + 1
        modified = 0

        for metric_id in deleted_ids:
            if metrics.pop(metric_id, None) is not None:
                modified += 1

        for row in rows:
            if row.is_new:
                metrics[next_id] = Metric(
                    metric_id=next_id,
                    name=row.name,
                    data_type=row.data_type,
                    size=row.size,
                    description=row.description,
                    column_name=row.column_name,
                    cost_object_id=row.cost_object_id,
                )
                next_id += 1
            else:
                metrics[row.metric_id] = row
            modified += 1

        path = self._directory / METRICS_FILE
        # Write to a sibling file first so a failed write leaves the old data intact
        tmp_path = path.with_suffix(".tmp")
        with open(tmp_path, "w", newline="", encoding="utf-8") as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=METRIC_COLUMNS)
            writer.writeheader()
            for metric_id in sorted(metrics):
                writer.writerow(metric_to_record(metrics[metric_id]))
        tmp_path.replace(path)

        return modified
