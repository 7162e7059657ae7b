"""Store layer: streams, commands, the metric store and its data sources.

- Stream / Lifetime / CombineLatest: observable state and cancellation
- MetricStore: base/overlay store answering grid commands
- ReferenceCache: synchronous mirror of the store's cost objects
- CsvMetricDataSource: CSV directory backend (MdbMetricDataSource in mdb_source)
"""

from .commands import CommandResult, ResultKind
from .data_source import CsvMetricDataSource, MetricDataSource
from .metric_store import MetricStore
from .reference_cache import ReferenceCache
from .streams import CombineLatest, Lifetime, Stream, Subscription, combine_latest

__all__ = [
    "CombineLatest",
    "CommandResult",
    "CsvMetricDataSource",
    "Lifetime",
    "MetricDataSource",
    "MetricStore",
    "ReferenceCache",
    "ResultKind",
    "Stream",
    "Subscription",
    "combine_latest",
]
