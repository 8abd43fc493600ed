"""
In-memory store of reconciled items for the preview stage.

Filtered views and stats are computed from current item state on every
read, so no mutation can leave them stale.
"""

from typing import Iterable, Optional
import structlog

from exceptions import ReconciledItemNotFoundError, ValidationError
from models.reconciliation import (
    FilterType,
    MarginStatus,
    ReconciledItem,
    ReconciliationStats,
)
from services.margin_engine import calculate_margin, get_margin_status

logger = structlog.get_logger(__name__)

DEFAULT_THRESHOLD = 5.0


class ReconciliationStore:
    """
    Holds reconciled items, the preview filter and the margin threshold.

    margin_status of every item is kept equal to
    get_margin_status(calculate_margin(price, new_cost), threshold).
    """

    def __init__(self, items: Optional[list[ReconciledItem]] = None, threshold: float = DEFAULT_THRESHOLD):
        self._threshold = threshold
        self.filter = FilterType.ALL
        self.items: list[ReconciledItem] = []
        self.load(items or [])

    # ===================
    # LOADING
    # ===================

    def load(self, items: list[ReconciledItem]) -> None:
        """Replace all items, classifying them against the current threshold."""
        self.items = list(items)
        for item in self.items:
            item.margin_percent = calculate_margin(item.price, item.new_cost)
            item.margin_status = get_margin_status(item.margin_percent, self._threshold)
        logger.info("reconciliation_items_loaded", count=len(self.items))

    def clear(self) -> None:
        self.items = []
        self.filter = FilterType.ALL

    def get(self, variant_id: str) -> ReconciledItem:
        """
        Raises:
            ReconciledItemNotFoundError: If no item has this variant id
        """
        for item in self.items:
            if item.variant_id == variant_id:
                return item
        raise ReconciledItemNotFoundError(variant_id)

    # ===================
    # MUTATIONS
    # ===================

    def set_price(self, variant_id: str, new_price: float) -> ReconciledItem:
        """Change one item's price and recompute its margin and status."""
        if new_price < 0:
            raise ValidationError(
                message="Price cannot be negative",
                code="INVALID_PRICE",
                details={"variant_id": variant_id, "price": new_price}
            )

        item = self.get(variant_id)
        item.price = new_price
        item.margin_percent = calculate_margin(new_price, item.new_cost)
        item.margin_status = get_margin_status(item.margin_percent, self._threshold)

        logger.debug(
            "item_price_set",
            variant_id=variant_id,
            price=new_price,
            margin=round(item.margin_percent, 2)
        )
        return item

    def toggle_include(self, variant_id: str) -> ReconciledItem:
        item = self.get(variant_id)
        item.include_in_update = not item.include_in_update
        return item

    def set_included_set(self, variant_ids: Iterable[str]) -> int:
        """
        Include exactly the given variants and exclude all others.

        Returns:
            Number of items now included
        """
        selected = set(variant_ids)
        for item in self.items:
            item.include_in_update = item.variant_id in selected
        included = sum(1 for item in self.items if item.include_in_update)
        logger.debug("included_set_replaced", requested=len(selected), included=included)
        return included

    @property
    def threshold(self) -> float:
        return self._threshold

    def set_threshold(self, value: float) -> None:
        """
        Store a new threshold and reclassify every item.

        Margins do not depend on the threshold, only statuses change.
        """
        if value < 0:
            raise ValidationError(
                message="Margin threshold cannot be negative",
                code="INVALID_THRESHOLD",
                details={"threshold": value}
            )
        self._threshold = value
        for item in self.items:
            item.margin_status = get_margin_status(item.margin_percent, value)
        logger.info("margin_threshold_set", threshold=value, items=len(self.items))

    def set_filter(self, value: FilterType) -> None:
        self.filter = FilterType(value)

    # ===================
    # DERIVED VIEWS
    # ===================

    def filtered_view(self, filter_type: Optional[FilterType] = None) -> list[ReconciledItem]:
        """Items matching the given filter (defaults to the current one)."""
        active = FilterType(filter_type or self.filter)
        if active == FilterType.MEDIUM:
            return [i for i in self.items if i.margin_status == MarginStatus.MEDIUM]
        if active == FilterType.NEGATIVE:
            return [i for i in self.items if i.margin_status == MarginStatus.NEGATIVE]
        return list(self.items)

    def items_to_update(self) -> list[ReconciledItem]:
        return [i for i in self.items if i.include_in_update]

    def excluded_items(self) -> list[ReconciledItem]:
        return [i for i in self.items if not i.include_in_update]

    def stats(self) -> ReconciliationStats:
        return ReconciliationStats(
            total=len(self.items),
            good=sum(1 for i in self.items if i.margin_status == MarginStatus.GOOD),
            medium=sum(1 for i in self.items if i.margin_status == MarginStatus.MEDIUM),
            negative=sum(1 for i in self.items if i.margin_status == MarginStatus.NEGATIVE),
            to_update=sum(1 for i in self.items if i.include_in_update),
        )
