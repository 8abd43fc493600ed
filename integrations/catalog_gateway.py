"""Abstract catalog gateway consumed by the reconciliation core."""

from abc import ABC, abstractmethod
from typing import Optional

from models.catalog import (
    CatalogProduct,
    CostUpdateResult,
    InventoryAdjustResult,
    InventoryChange,
    Location,
    VariantPriceInput,
    VariantsUpdateResult,
)

INVENTORY_REASON = "correction"
INVENTORY_STATE = "available"


class CatalogGateway(ABC):
    """
    Remote commerce catalog operations.

    Every call is request/response. A transport failure (network, timeout,
    unusable response) raises CatalogGatewayError; an application-level
    rejection comes back as field_errors on the result.
    """

    @abstractmethod
    def lookup_products_by_sku(
        self,
        sku_query: str,
        location_id: Optional[str] = None,
    ) -> list[CatalogProduct]:
        """Products having a variant whose SKU matches the filter expression."""

    @abstractmethod
    def lookup_locations(self) -> list[Location]:
        """Inventory locations of the store."""

    @abstractmethod
    def adjust_inventory(
        self,
        changes: list[InventoryChange],
        reason: str = INVENTORY_REASON,
        state_name: str = INVENTORY_STATE,
    ) -> InventoryAdjustResult:
        """Apply signed quantity deltas in one all-or-nothing call."""

    @abstractmethod
    def bulk_update_variants(
        self,
        parent_id: str,
        variants: list[VariantPriceInput],
    ) -> VariantsUpdateResult:
        """Write price (and cost, when set) for variants of one product."""

    @abstractmethod
    def update_inventory_item_cost(
        self,
        inventory_record_id: str,
        cost: float,
    ) -> CostUpdateResult:
        """Write unit cost for a single inventory record."""
