"""
Catalog matching service.

Resolves supplier records against the remote catalog by case-insensitive
SKU and builds reconciled items with their margins.
"""

from typing import Optional
import structlog

from exceptions import CatalogGatewayError, CatalogLookupError
from integrations.catalog_gateway import CatalogGateway
from models.catalog import CatalogProduct, CatalogVariant
from models.reconciliation import LookupResult, ReconciledItem
from models.supplier import SupplierRecord
from services.margin_engine import calculate_margin, get_margin_status
from utils.batching import chunk_list

logger = structlog.get_logger(__name__)

DEFAULT_LOOKUP_BATCH_SIZE = 50


def escape_query_value(value: str) -> str:
    """Backslash-escape backslashes and double quotes for the search syntax."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def build_sku_query(skus: list[str]) -> str:
    """
    Build a disjunctive SKU filter.

    build_sku_query(["A1", 'B"2']) -> 'sku:"A1" OR sku:"B\\"2"'

    Blank SKUs are ignored; an empty list gives "".
    """
    return " OR ".join(
        f'sku:"{escape_query_value(sku)}"'
        for sku in (s.strip() for s in skus)
        if sku
    )


def resolve_current_quantity(variant: CatalogVariant, location_id: Optional[str]) -> int:
    """
    Current stock for a variant.

    Uses the "available" quantity of the returned inventory level when it
    belongs to the requested location (or any level when no location was
    requested); otherwise the aggregate inventory quantity.
    """
    if variant.level_available is not None:
        if not location_id or variant.level_location_id == location_id:
            return variant.level_available
    return variant.inventory_quantity


def build_reconciled_item(
    product: CatalogProduct,
    variant: CatalogVariant,
    record: SupplierRecord,
    threshold: float,
    location_id: Optional[str] = None,
) -> ReconciledItem:
    """Combine a catalog variant with its supplier record."""
    current_quantity = resolve_current_quantity(variant, location_id)
    new_quantity = record.stock_on_hand if record.stock_on_hand is not None else current_quantity
    margin = calculate_margin(variant.price, record.cost)

    return ReconciledItem(
        parent_id=product.product_id,
        variant_id=variant.variant_id,
        inventory_record_id=variant.inventory_record_id,
        sku=variant.sku or record.sku,
        display_name=product.title,
        image_url=product.image_url,
        current_cost=variant.unit_cost if variant.unit_cost is not None else 0.0,
        current_price=variant.price,
        current_quantity=current_quantity,
        new_cost=record.cost,
        new_quantity=new_quantity,
        margin_percent=margin,
        margin_status=get_margin_status(margin, threshold),
        include_in_update=True,
        price=variant.price,
    )


class CatalogMatcher:
    """
    Matches supplier records to catalog variants.

    Lookups run sequentially in SKU batches. If any batch fails the whole
    lookup fails and results from earlier batches are discarded.
    """

    def __init__(self, gateway: CatalogGateway, batch_size: int = DEFAULT_LOOKUP_BATCH_SIZE):
        self.gateway = gateway
        self.batch_size = batch_size

    def match(
        self,
        records: list[SupplierRecord],
        threshold: float,
        location_id: Optional[str] = None,
    ) -> LookupResult:
        """
        Look up every record's SKU and build reconciled items.

        Args:
            records: Extracted supplier records
            threshold: Margin threshold for the initial status
            location_id: Location whose stock counts as current quantity

        Returns:
            LookupResult with items and the SKUs that matched nothing

        Raises:
            CatalogLookupError: If a gateway call fails
        """
        # First record wins for duplicate SKUs
        by_sku: dict[str, SupplierRecord] = {}
        for record in records:
            by_sku.setdefault(record.sku.lower(), record)

        logger.info(
            "catalog_match_started",
            record_count=len(records),
            unique_skus=len(by_sku),
            location_id=location_id
        )

        items: list[ReconciledItem] = []
        seen_variants: set[str] = set()
        found: set[str] = set()

        batches = chunk_list([r.sku for r in by_sku.values()], self.batch_size)
        for index, sku_batch in enumerate(batches, start=1):
            query = build_sku_query(sku_batch)
            if not query:
                continue

            try:
                products = self.gateway.lookup_products_by_sku(query, location_id)
            except CatalogGatewayError as e:
                logger.error(
                    "catalog_lookup_batch_failed",
                    batch=index,
                    total_batches=len(batches),
                    error=e.message
                )
                raise CatalogLookupError(e.message, details={"batch": index})

            for product in products:
                for variant in product.variants:
                    if not variant.sku:
                        continue
                    key = variant.sku.lower()
                    record = by_sku.get(key)
                    if record is None or variant.variant_id in seen_variants:
                        continue

                    items.append(build_reconciled_item(product, variant, record, threshold, location_id))
                    seen_variants.add(variant.variant_id)
                    found.add(key)

            logger.debug("catalog_lookup_batch_complete", batch=index, matched=len(found))

        not_found = [record.sku for key, record in by_sku.items() if key not in found]

        logger.info(
            "catalog_match_complete",
            matched_items=len(items),
            not_found=len(not_found)
        )

        return LookupResult(items=items, not_found=not_found)
