"""
Shopify Admin GraphQL implementation of the catalog gateway.

Translates between the platform-agnostic catalog models and Shopify's
GraphQL payloads. Transport problems are raised as CatalogGatewayError
subclasses; userErrors come back as field_errors.
"""

from typing import Any, Optional
import requests
import structlog

from exceptions import GatewayResponseError, GatewayTransportError
from integrations.catalog_gateway import CatalogGateway, INVENTORY_REASON, INVENTORY_STATE
from integrations.shopify_queries import (
    GET_LOCATIONS,
    GET_PRODUCTS_BY_SKU,
    GET_PRODUCTS_BY_SKU_AT_LOCATION,
    INVENTORY_ADJUST_QUANTITIES,
    INVENTORY_ITEM_UPDATE,
    PRODUCT_VARIANTS_BULK_UPDATE,
)
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

logger = structlog.get_logger(__name__)


class ShopifyCatalogGateway(CatalogGateway):
    """Catalog gateway backed by the Shopify Admin GraphQL API."""

    def __init__(
        self,
        store_domain: str,
        access_token: str,
        api_version: str = "2025-01",
        timeout: float = 30,
    ):
        domain = store_domain.replace("https://", "").rstrip("/")
        self.url = f"https://{domain}/admin/api/{api_version}/graphql.json"
        self.access_token = access_token
        self.timeout = timeout

    # ===================
    # TRANSPORT
    # ===================

    def _execute(self, operation: str, query: str, variables: Optional[dict] = None) -> dict:
        """
        POST a GraphQL document and return the payload under data[operation].

        Raises:
            GatewayTransportError: Network, timeout or HTTP status failure
            GatewayResponseError: Invalid JSON, top-level errors or missing payload
        """
        headers = {
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": self.access_token,
        }
        payload = {"query": query, "variables": variables or {}}

        try:
            logger.debug("shopify_request", operation=operation)
            response = requests.post(self.url, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error("shopify_request_failed", operation=operation, error=str(e))
            raise GatewayTransportError(operation, f"Shopify request failed: {e}")

        try:
            body = response.json()
        except ValueError as e:
            logger.error("shopify_invalid_json", operation=operation, error=str(e))
            raise GatewayResponseError(operation, "Shopify returned invalid JSON")

        errors = body.get("errors")
        if errors:
            message = _first_message(errors)
            logger.error("shopify_graphql_errors", operation=operation, error=message)
            raise GatewayResponseError(operation, message, details={"errors": errors})

        data = (body.get("data") or {}).get(operation)
        if data is None:
            logger.error("shopify_missing_payload", operation=operation)
            raise GatewayResponseError(operation, f"{operation} returned no data")

        return data

    # ===================
    # READ OPERATIONS
    # ===================

    def lookup_products_by_sku(
        self,
        sku_query: str,
        location_id: Optional[str] = None,
    ) -> list[CatalogProduct]:
        if location_id:
            data = self._execute(
                "products",
                GET_PRODUCTS_BY_SKU_AT_LOCATION,
                {"query": sku_query, "locationId": location_id},
            )
        else:
            data = self._execute("products", GET_PRODUCTS_BY_SKU, {"query": sku_query})

        products = [_to_product(node) for node in data.get("nodes") or []]
        logger.info("shopify_products_fetched", count=len(products))
        return products

    def lookup_locations(self) -> list[Location]:
        data = self._execute("locations", GET_LOCATIONS)
        return [
            Location(id=node["id"], name=node.get("name") or "", is_active=bool(node.get("isActive")))
            for node in data.get("nodes") or []
        ]

    # ===================
    # WRITE OPERATIONS
    # ===================

    def adjust_inventory(
        self,
        changes: list[InventoryChange],
        reason: str = INVENTORY_REASON,
        state_name: str = INVENTORY_STATE,
    ) -> InventoryAdjustResult:
        variables = {
            "input": {
                "reason": reason,
                "name": state_name,
                "changes": [
                    {
                        "inventoryItemId": c.inventory_record_id,
                        "locationId": c.location_id,
                        "delta": c.delta,
                    }
                    for c in changes
                ],
            }
        }
        data = self._execute("inventoryAdjustQuantities", INVENTORY_ADJUST_QUANTITIES, variables)
        group = data.get("inventoryAdjustmentGroup") or {}
        return InventoryAdjustResult(
            applied_changes=group.get("changes") or [],
            field_errors=_field_errors(data),
        )

    def bulk_update_variants(
        self,
        parent_id: str,
        variants: list[VariantPriceInput],
    ) -> VariantsUpdateResult:
        inputs = []
        for v in variants:
            entry: dict[str, Any] = {"id": v.variant_id, "price": f"{v.price:.2f}"}
            if v.cost is not None:
                entry["inventoryItem"] = {"cost": v.cost}
            inputs.append(entry)

        data = self._execute(
            "productVariantsBulkUpdate",
            PRODUCT_VARIANTS_BULK_UPDATE,
            {"productId": parent_id, "variants": inputs},
        )
        return VariantsUpdateResult(
            updated_variant_ids=[v["id"] for v in data.get("productVariants") or []],
            field_errors=_field_errors(data),
        )

    def update_inventory_item_cost(
        self,
        inventory_record_id: str,
        cost: float,
    ) -> CostUpdateResult:
        data = self._execute(
            "inventoryItemUpdate",
            INVENTORY_ITEM_UPDATE,
            {"id": inventory_record_id, "input": {"cost": cost}},
        )
        # Success is decided by userErrors alone; inventoryItem may be null
        errors = _field_errors(data)
        return CostUpdateResult(updated=not errors, field_errors=errors)


# ===================
# PAYLOAD TRANSLATION
# ===================

def _first_message(errors: Any) -> str:
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, dict):
            return first.get("message") or "Unknown error"
        return str(first)
    return str(errors)


def _field_errors(data: dict) -> list[FieldError]:
    errors = []
    for e in data.get("userErrors") or []:
        field = e.get("field") or []
        if isinstance(field, str):
            field = [field]
        errors.append(FieldError(field=field, message=e.get("message") or "Unknown error"))
    return errors


def _to_product(node: dict) -> CatalogProduct:
    image = ((node.get("featuredMedia") or {}).get("preview") or {}).get("image") or {}
    return CatalogProduct(
        product_id=node["id"],
        title=node.get("title") or "",
        image_url=image.get("url") or "",
        variants=[_to_variant(v) for v in (node.get("variants") or {}).get("nodes") or []],
    )


def _to_variant(node: dict) -> CatalogVariant:
    item = node.get("inventoryItem") or {}
    unit_cost = item.get("unitCost")
    level = item.get("inventoryLevel") or {}
    available = next(
        (q.get("quantity") for q in level.get("quantities") or [] if q.get("name") == "available"),
        None,
    )

    try:
        price = float(node.get("price") or 0)
    except (TypeError, ValueError):
        price = 0.0

    return CatalogVariant(
        variant_id=node["id"],
        sku=node.get("sku"),
        price=price,
        unit_cost=float(unit_cost["amount"]) if unit_cost else None,
        inventory_record_id=item.get("id") or "",
        inventory_quantity=node.get("inventoryQuantity") or 0,
        level_location_id=(level.get("location") or {}).get("id"),
        level_available=available,
    )
