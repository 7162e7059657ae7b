"""Grid core: column policy, row source, edit capture and change-set control."""

from .change_set import ChangeSetController
from .columns import ColumnDescriptor, EditorKind, build_columns
from .controller import MetricsController
from .edit_capture import EditCapture
from .row_source import RowSourceAdapter

__all__ = [
    "ChangeSetController",
    "ColumnDescriptor",
    "EditCapture",
    "EditorKind",
    "MetricsController",
    "RowSourceAdapter",
    "build_columns",
]
