"""Undo frame for storing snapshots of the pending change set.

A single UndoFrame captures the overlay (pending creates/updates and
deletions) before a change, allowing undo/redo to restore it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..models.metric import Metric

# Maximum number of undo frames to retain
MAX_UNDO_DEPTH = 50


@dataclass
class UndoFrame:
    """Snapshot of the pending change set before a change.

    Attributes:
        overrides: Dict mapping tracking key to the pending Metric at that point.
        deleted_ids: metric_ids marked for deletion at that point.
        description: Human-readable description of the change (for menu display).
    """

    overrides: dict[int, Metric] = field(default_factory=dict)
    deleted_ids: frozenset[int] = frozenset()
    description: str = ""

    def __repr__(self) -> str:
        return (
            f"UndoFrame({self.description!r}, {len(self.overrides)} overrides, "
            f"{len(self.deleted_ids)} deletions)"
        )
