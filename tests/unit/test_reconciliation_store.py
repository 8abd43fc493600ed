"""
Unit tests for ReconciliationStore.

Run: pytest tests/unit/test_reconciliation_store.py -v
"""

import pytest

from exceptions import ReconciledItemNotFoundError, ValidationError
from models.reconciliation import FilterType, MarginStatus
from services.margin_engine import calculate_margin, get_margin_status
from services.reconciliation_store import ReconciliationStore
from tests.factories import ItemFactory


@pytest.fixture
def store():
    """Three items: 20% (good), 3% (medium), -10% (negative) at threshold 5."""
    items = [
        ItemFactory.create(variant_id="good", price=12.0, new_cost=10.0),
        ItemFactory.create(variant_id="medium", price=10.3, new_cost=10.0),
        ItemFactory.create(variant_id="negative", price=9.0, new_cost=10.0),
    ]
    return ReconciliationStore(items, threshold=5.0)


def _assert_consistent(store: ReconciliationStore):
    for item in store.items:
        margin = calculate_margin(item.price, item.new_cost)
        assert item.margin_percent == pytest.approx(margin)
        assert item.margin_status == get_margin_status(margin, store.threshold)


class TestReconciliationStoreLoad:
    """Tests for load() and get()"""

    def test_load_classifies_items(self, store):
        assert [i.margin_status for i in store.items] == [
            MarginStatus.GOOD, MarginStatus.MEDIUM, MarginStatus.NEGATIVE
        ]
        _assert_consistent(store)

    def test_get_unknown_raises(self, store):
        with pytest.raises(ReconciledItemNotFoundError):
            store.get("missing")

    def test_clear_empties_store(self, store):
        store.set_filter(FilterType.NEGATIVE)

        store.clear()

        assert store.items == []
        assert store.filter == FilterType.ALL


class TestReconciliationStoreMutations:
    """Tests for set_price(), toggle_include(), set_included_set(), set_threshold()"""

    def test_set_price_recomputes_margin_and_status(self, store):
        item = store.set_price("negative", 15.0)

        assert item.price == 15.0
        assert item.margin_percent == pytest.approx(50.0)
        assert item.margin_status == MarginStatus.GOOD
        _assert_consistent(store)

    def test_set_price_leaves_current_price(self, store):
        item = store.set_price("good", 30.0)

        assert item.current_price == 12.0

    def test_negative_price_rejected(self, store):
        with pytest.raises(ValidationError) as exc_info:
            store.set_price("good", -1.0)

        assert exc_info.value.code == "INVALID_PRICE"

    def test_toggle_include_twice_restores(self, store):
        store.toggle_include("good")
        assert store.get("good").include_in_update is False

        store.toggle_include("good")
        assert store.get("good").include_in_update is True

    def test_included_set_is_exact(self, store):
        count = store.set_included_set(["medium", "unknown"])

        assert count == 1
        assert [i.variant_id for i in store.items_to_update()] == ["medium"]
        assert {i.variant_id for i in store.excluded_items()} == {"good", "negative"}

    def test_threshold_reclassifies_without_changing_margins(self, store):
        margins = [i.margin_percent for i in store.items]

        store.set_threshold(25.0)

        assert [i.margin_percent for i in store.items] == margins
        assert store.get("good").margin_status == MarginStatus.MEDIUM
        _assert_consistent(store)

    def test_zero_threshold(self, store):
        store.set_threshold(0.0)

        assert store.get("medium").margin_status == MarginStatus.GOOD

    def test_negative_threshold_rejected(self, store):
        with pytest.raises(ValidationError):
            store.set_threshold(-1.0)


class TestReconciliationStoreViews:
    """Tests for filtered_view() and stats()"""

    def test_filter_all(self, store):
        assert len(store.filtered_view(FilterType.ALL)) == 3

    def test_filter_medium_and_negative(self, store):
        assert [i.variant_id for i in store.filtered_view(FilterType.MEDIUM)] == ["medium"]
        assert [i.variant_id for i in store.filtered_view(FilterType.NEGATIVE)] == ["negative"]

    def test_current_filter_used_by_default(self, store):
        store.set_filter(FilterType.NEGATIVE)

        assert [i.variant_id for i in store.filtered_view()] == ["negative"]

    def test_view_follows_price_edits(self, store):
        store.set_filter(FilterType.NEGATIVE)
        store.set_price("negative", 20.0)

        assert store.filtered_view() == []

    def test_stats(self, store):
        store.toggle_include("good")

        stats = store.stats()

        assert (stats.total, stats.good, stats.medium, stats.negative, stats.to_update) == (3, 1, 1, 1, 2)

    def test_stats_counts_add_up_after_edits(self, store):
        store.set_price("good", 1.0)
        store.set_threshold(1.0)

        stats = store.stats()

        assert stats.good + stats.medium + stats.negative == stats.total
