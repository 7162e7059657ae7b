"""Data model for the Metrics grid.

Contains the Metric row entity, the CostObject reference entity, and the
scenario/session descriptors consumed from the store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from .constants import DEFAULT_DATA_TYPE, INTEGER_FIELDS


def coerce_field_value(field_name: str, value: object) -> object:
    """Normalize a value coming back from a grid editor.

    Integer fields accept digit strings ("12" -> 12) and blank strings
    (-> None). Anything else that cannot be parsed is returned unchanged so
    validation can flag it.

    Args:
        field_name: Metric attribute being written
        value: Raw editor value

    Returns:
        The normalized value
    """
    if field_name not in INTEGER_FIELDS or not isinstance(value, str):
        return value

    text = value.strip()
    if text == "":
        return None
    try:
        return int(text)
    except ValueError:
        return value


@dataclass(frozen=True)
class Metric:
    """Immutable metric row.

    Being frozen, edits produce new instances via dataclasses.replace().
    A metric_id of 0 marks a row the store has not persisted yet; such rows
    are tracked by a negative draft_key instead.

    Usage:
        metric = Metric(metric_id=3, name="Revenue", data_type="Currency")
        renamed = replace(metric, name="Net Revenue")
    """

    type: ClassVar[str] = "Metric"

    # --- Identity ---
    metric_id: int = 0

    # --- Content (user-editable) ---
    name: str = ""
    data_type: str = DEFAULT_DATA_TYPE
    size: int | None = None
    description: str = ""
    column_name: str = ""
    cost_object_id: int | None = None

    # Tracking key for unsaved rows (not part of the entity's value)
    draft_key: int = field(default=0, compare=False)

    @property
    def is_new(self) -> bool:
        """True if the row has never been persisted."""
        return not self.metric_id

    @property
    def tracking_key(self) -> int:
        """Key the store uses for this row: metric_id, or draft_key if unsaved."""
        return self.metric_id or self.draft_key

    def get_field(self, field_name: str) -> object:
        """Get a field value by attribute name."""
        return getattr(self, field_name)


def get_row_id(metric: Metric) -> int:
    """Row identity handed to the grid (0 for unsaved rows)."""
    return metric.metric_id or 0


@dataclass(frozen=True)
class CostObject:
    """Business dimension a metric belongs to (foreign-key target)."""

    cost_object_id: int
    name: str
    is_globals: bool = False


@dataclass(frozen=True)
class Scenario:
    """Active scenario; read_only locks the grid."""

    scenario_id: int
    name: str = ""
    read_only: bool = False
    time_period_id: int = 0


@dataclass(frozen=True)
class Session:
    """Load session recorded for a time period."""

    session_id: int
    time_period_id: int
    name: str = ""
    started_at: str = ""
