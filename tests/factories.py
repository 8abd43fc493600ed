"""
Test data factories.

Uses factory pattern to generate consistent test data.
"""

import re
from typing import Optional

from integrations.catalog_gateway import CatalogGateway
from models.catalog import (
    CatalogProduct,
    CatalogVariant,
    CostUpdateResult,
    FieldError,
    InventoryAdjustResult,
    InventoryChange,
    Location,
    VariantPriceInput,
    VariantsUpdateResult,
)
from models.reconciliation import ReconciledItem
from models.supplier import SupplierRecord


class ItemFactory:
    """
    Factory for creating ReconciledItem instances.

    Usage:
        # Create with defaults
        item = ItemFactory.create()

        # Create with overrides
        item = ItemFactory.create(sku="TILE-1", new_quantity=12)

        # Create multiple (distinct variant ids and SKUs)
        items = ItemFactory.create_batch(5, parent_id="gid://shopify/Product/1")
    """

    _counter = 0

    @classmethod
    def _next_counter(cls) -> int:
        cls._counter += 1
        return cls._counter

    @classmethod
    def create(
        cls,
        sku: Optional[str] = None,
        variant_id: Optional[str] = None,
        parent_id: Optional[str] = None,
        inventory_record_id: Optional[str] = None,
        price: float = 20.0,
        new_cost: float = 10.0,
        current_quantity: int = 5,
        new_quantity: int = 5,
        include_in_update: bool = True,
        **overrides
    ) -> ReconciledItem:
        n = cls._next_counter()
        return ReconciledItem(
            parent_id=parent_id or f"gid://shopify/Product/{n}",
            variant_id=variant_id or f"gid://shopify/ProductVariant/{n}",
            inventory_record_id=inventory_record_id or f"gid://shopify/InventoryItem/{n}",
            sku=sku or f"SKU-{n}",
            display_name=overrides.pop("display_name", f"Product {n}"),
            current_cost=overrides.pop("current_cost", new_cost),
            current_price=overrides.pop("current_price", price),
            current_quantity=current_quantity,
            new_cost=new_cost,
            new_quantity=new_quantity,
            include_in_update=include_in_update,
            price=price,
            **overrides
        )

    @classmethod
    def create_batch(cls, count: int, **kwargs) -> list[ReconciledItem]:
        return [cls.create(**kwargs) for _ in range(count)]


class CatalogFactory:
    """
    Factory for catalog products and variants as the gateway returns them.

    Usage:
        product = CatalogFactory.product("P1", [CatalogFactory.variant("V1", "SKU-1", price=20)])
    """

    @staticmethod
    def variant(
        variant_id: str,
        sku: Optional[str],
        price: float = 20.0,
        unit_cost: Optional[float] = 8.0,
        inventory_quantity: int = 5,
        level_location_id: Optional[str] = None,
        level_available: Optional[int] = None,
    ) -> CatalogVariant:
        return CatalogVariant(
            variant_id=variant_id,
            sku=sku,
            price=price,
            unit_cost=unit_cost,
            inventory_record_id=f"inv-{variant_id}",
            inventory_quantity=inventory_quantity,
            level_location_id=level_location_id,
            level_available=level_available,
        )

    @staticmethod
    def product(product_id: str, variants: list[CatalogVariant], title: str = "") -> CatalogProduct:
        return CatalogProduct(
            product_id=product_id,
            title=title or f"Product {product_id}",
            image_url="",
            variants=variants,
        )


def supplier_record(sku: str, cost: float = 10.0, stock_on_hand: Optional[int] = None) -> SupplierRecord:
    return SupplierRecord(sku=sku, cost=cost, stock_on_hand=stock_on_hand)


SKU_TERM = re.compile(r'sku:"((?:[^"\\]|\\.)*)"')


# ===================
# FAKE CATALOG GATEWAY
# ===================

class FakeCatalogGateway(CatalogGateway):
    """
    In-memory catalog gateway that records every call.

    Write responses are scripted per method as queues; each entry is either
    a result object or an exception to raise. An empty queue means success.

    Usage:
        def test_something(fake_gateway):
            fake_gateway.products = [CatalogFactory.product(...)]
            fake_gateway.variant_responses.append(
                VariantsUpdateResult(field_errors=[FieldError(field=["price"], message="bad")])
            )
    """

    def __init__(
        self,
        products: Optional[list[CatalogProduct]] = None,
        locations: Optional[list[Location]] = None,
    ):
        self.products = products or []
        self.locations = locations if locations is not None else [
            Location(id="gid://shopify/Location/1", name="Warehouse", is_active=True),
        ]

        self.lookup_calls: list[tuple[str, Optional[str]]] = []
        self.adjust_calls: list[list[InventoryChange]] = []
        self.variant_calls: list[tuple[str, list[VariantPriceInput]]] = []
        self.cost_calls: list[tuple[str, float]] = []

        self.lookup_responses: list = []
        self.adjust_responses: list = []
        self.variant_responses: list = []
        self.cost_responses: list = []

    @staticmethod
    def _next(queue: list, default):
        if not queue:
            return default
        response = queue.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def lookup_products_by_sku(self, sku_query, location_id=None):
        self.lookup_calls.append((sku_query, location_id))
        scripted = self._next(self.lookup_responses, None)
        if scripted is not None:
            return scripted

        wanted = {
            m.replace('\\"', '"').replace("\\\\", "\\").lower()
            for m in SKU_TERM.findall(sku_query)
        }
        return [
            p for p in self.products
            if any(v.sku and v.sku.lower() in wanted for v in p.variants)
        ]

    def lookup_locations(self):
        return list(self.locations)

    def adjust_inventory(self, changes, reason="correction", state_name="available"):
        self.adjust_calls.append(list(changes))
        return self._next(
            self.adjust_responses,
            InventoryAdjustResult(applied_changes=[{"delta": c.delta} for c in changes]),
        )

    def bulk_update_variants(self, parent_id, variants):
        self.variant_calls.append((parent_id, list(variants)))
        return self._next(
            self.variant_responses,
            VariantsUpdateResult(updated_variant_ids=[v.variant_id for v in variants]),
        )

    def update_inventory_item_cost(self, inventory_record_id, cost):
        self.cost_calls.append((inventory_record_id, cost))
        return self._next(self.cost_responses, CostUpdateResult(updated=True))

    @property
    def write_call_count(self) -> int:
        return len(self.adjust_calls) + len(self.variant_calls) + len(self.cost_calls)


def field_error(message: str, *field: str) -> FieldError:
    return FieldError(field=list(field), message=message)

