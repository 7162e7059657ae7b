from .metric import CostObject, Metric, Scenario, Session, coerce_field_value, get_row_id
from .paging import PageRequest, PageResult, PendingEdit
from .view_config import RouteDescriptor, ViewConfig, resolve_cannot_modify

__all__ = [
    "CostObject",
    "Metric",
    "PageRequest",
    "PageResult",
    "PendingEdit",
    "RouteDescriptor",
    "Scenario",
    "Session",
    "ViewConfig",
    "coerce_field_value",
    "get_row_id",
    "resolve_cannot_modify",
]
