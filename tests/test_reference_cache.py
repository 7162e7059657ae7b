"""Tests for ReferenceCache."""

from unittest.mock import MagicMock

from metricgrid.data.reference_cache import ReferenceCache
from metricgrid.data.streams import Lifetime, Stream
from metricgrid.models.metric import CostObject

MARKETING = CostObject(cost_object_id=7, name="Marketing")
SALES = CostObject(cost_object_id=8, name="Sales")


class TestReferenceCache:
    """Tests for mirroring a cost object stream."""

    def test_not_ready_until_source_emits(self):
        source = Stream()
        cache = ReferenceCache(Lifetime()).bind(source)

        assert not cache.is_ready
        assert len(cache) == 0
        assert not cache.changes.has_value

    def test_ignores_none(self):
        source = Stream(None)
        cache = ReferenceCache(Lifetime()).bind(source)

        assert not cache.is_ready

    def test_refresh_indexes_items(self):
        source = Stream([MARKETING, SALES])
        cache = ReferenceCache(Lifetime()).bind(source)

        assert cache.is_ready
        assert cache.find(7) is MARKETING
        assert cache.display_name_for(8) == "Sales"
        assert cache.options() == [(7, "Marketing"), (8, "Sales")]

    def test_unknown_id_falls_back_to_raw_value(self):
        cache = ReferenceCache(Lifetime()).bind(Stream([MARKETING]))

        assert cache.display_name_for(99) == 99
        assert cache.display_name_for(None) is None

    def test_last_write_wins(self):
        source = Stream([MARKETING, SALES])
        cache = ReferenceCache(Lifetime()).bind(source)

        source.emit([SALES])

        assert cache.items == [SALES]
        assert cache.find(7) is None

    def test_changes_republished_after_refresh(self):
        source = Stream()
        cache = ReferenceCache(Lifetime()).bind(source)
        listener = MagicMock()
        cache.changes.subscribe(listener)

        source.emit([MARKETING])

        listener.assert_called_once_with([MARKETING])

    def test_stops_after_cancel(self):
        lifetime = Lifetime()
        source = Stream([MARKETING])
        cache = ReferenceCache(lifetime).bind(source)

        lifetime.cancel()
        source.emit([SALES])

        assert cache.items == [MARKETING]
