"""
Unit tests for ShopifyCatalogGateway.

HTTP is mocked at requests.post.

Run: pytest tests/unit/test_shopify_gateway.py -v
"""

import pytest
import requests
from unittest.mock import MagicMock, patch

from exceptions import GatewayResponseError, GatewayTransportError
from integrations.shopify_gateway import ShopifyCatalogGateway
from models.catalog import InventoryChange, VariantPriceInput


def _response(body: dict) -> MagicMock:
    response = MagicMock()
    response.json.return_value = body
    response.raise_for_status.return_value = None
    return response


@pytest.fixture
def gateway():
    return ShopifyCatalogGateway("https://test-store.myshopify.com/", "shpat_test", "2025-01", timeout=5)


class TestShopifyTransport:
    """Tests for request building and error mapping."""

    def test_builds_admin_url(self, gateway):
        assert gateway.url == "https://test-store.myshopify.com/admin/api/2025-01/graphql.json"

    @patch("integrations.shopify_gateway.requests.post")
    def test_sends_token_header(self, mock_post, gateway):
        mock_post.return_value = _response({"data": {"locations": {"nodes": []}}})

        gateway.lookup_locations()

        headers = mock_post.call_args.kwargs["headers"]
        assert headers["X-Shopify-Access-Token"] == "shpat_test"
        assert mock_post.call_args.kwargs["timeout"] == 5

    @patch("integrations.shopify_gateway.requests.post")
    def test_network_error_is_transport_error(self, mock_post, gateway):
        mock_post.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(GatewayTransportError) as exc_info:
            gateway.lookup_locations()

        assert exc_info.value.operation == "locations"

    @patch("integrations.shopify_gateway.requests.post")
    def test_http_status_is_transport_error(self, mock_post, gateway):
        response = _response({})
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("502 Bad Gateway")
        mock_post.return_value = response

        with pytest.raises(GatewayTransportError):
            gateway.lookup_locations()

    @patch("integrations.shopify_gateway.requests.post")
    def test_invalid_json_is_response_error(self, mock_post, gateway):
        response = _response({})
        response.json.side_effect = ValueError("no json")
        mock_post.return_value = response

        with pytest.raises(GatewayResponseError):
            gateway.lookup_locations()

    @patch("integrations.shopify_gateway.requests.post")
    def test_top_level_errors_are_response_error(self, mock_post, gateway):
        mock_post.return_value = _response({"errors": [{"message": "Throttled"}]})

        with pytest.raises(GatewayResponseError) as exc_info:
            gateway.lookup_locations()

        assert exc_info.value.message == "Throttled"

    @patch("integrations.shopify_gateway.requests.post")
    def test_missing_payload_is_response_error(self, mock_post, gateway):
        mock_post.return_value = _response({"data": {}})

        with pytest.raises(GatewayResponseError):
            gateway.lookup_locations()


class TestShopifyReads:
    """Tests for product and location lookups."""

    @patch("integrations.shopify_gateway.requests.post")
    def test_products_translated(self, mock_post, gateway):
        mock_post.return_value = _response({"data": {"products": {"nodes": [{
            "id": "gid://shopify/Product/1",
            "title": "White tile",
            "featuredMedia": {"preview": {"image": {"url": "https://cdn/img.png"}}},
            "variants": {"nodes": [{
                "id": "gid://shopify/ProductVariant/11",
                "sku": "TILE-001",
                "price": "24.95",
                "inventoryQuantity": 12,
                "inventoryItem": {
                    "id": "gid://shopify/InventoryItem/111",
                    "unitCost": {"amount": "10.5"},
                    "inventoryLevel": {
                        "location": {"id": "gid://shopify/Location/1"},
                        "quantities": [{"name": "available", "quantity": 7}],
                    },
                },
            }]},
        }]}}})

        products = gateway.lookup_products_by_sku('sku:"TILE-001"', "gid://shopify/Location/1")

        assert mock_post.call_args.kwargs["json"]["variables"] == {
            "query": 'sku:"TILE-001"',
            "locationId": "gid://shopify/Location/1",
        }
        product = products[0]
        assert product.title == "White tile"
        assert product.image_url == "https://cdn/img.png"
        variant = product.variants[0]
        assert variant.price == 24.95
        assert variant.unit_cost == 10.5
        assert variant.inventory_record_id == "gid://shopify/InventoryItem/111"
        assert variant.inventory_quantity == 12
        assert variant.level_available == 7

    @patch("integrations.shopify_gateway.requests.post")
    def test_variant_without_cost_or_level(self, mock_post, gateway):
        mock_post.return_value = _response({"data": {"products": {"nodes": [{
            "id": "P1",
            "title": "Tile",
            "variants": {"nodes": [{
                "id": "V1", "sku": "A1", "price": None, "inventoryQuantity": None,
                "inventoryItem": {"id": "I1", "unitCost": None},
            }]},
        }]}}})

        variant = gateway.lookup_products_by_sku('sku:"A1"')[0].variants[0]

        assert variant.price == 0.0
        assert variant.unit_cost is None
        assert variant.inventory_quantity == 0
        assert variant.level_available is None

    @patch("integrations.shopify_gateway.requests.post")
    def test_locations_translated(self, mock_post, gateway):
        mock_post.return_value = _response({"data": {"locations": {"nodes": [
            {"id": "L1", "name": "Warehouse", "isActive": True},
            {"id": "L2", "name": "Old shop", "isActive": False},
        ]}}})

        locations = gateway.lookup_locations()

        assert [(loc.id, loc.is_active) for loc in locations] == [("L1", True), ("L2", False)]


class TestShopifyWrites:
    """Tests for write mutations."""

    @patch("integrations.shopify_gateway.requests.post")
    def test_adjust_inventory_payload(self, mock_post, gateway):
        mock_post.return_value = _response({"data": {"inventoryAdjustQuantities": {
            "inventoryAdjustmentGroup": {"changes": [{"delta": -2}]},
            "userErrors": [],
        }}})

        result = gateway.adjust_inventory([InventoryChange(inventory_record_id="I1", location_id="L1", delta=-2)])

        payload = mock_post.call_args.kwargs["json"]["variables"]["input"]
        assert payload["reason"] == "correction"
        assert payload["name"] == "available"
        assert payload["changes"] == [{"inventoryItemId": "I1", "locationId": "L1", "delta": -2}]
        assert result.field_errors == []

    @patch("integrations.shopify_gateway.requests.post")
    def test_bulk_update_sends_cost_only_when_given(self, mock_post, gateway):
        mock_post.return_value = _response({"data": {"productVariantsBulkUpdate": {
            "productVariants": [{"id": "V1"}, {"id": "V2"}],
            "userErrors": [],
        }}})

        result = gateway.bulk_update_variants("P1", [
            VariantPriceInput(variant_id="V1", price=20, cost=9.5),
            VariantPriceInput(variant_id="V2", price=7.5),
        ])

        variants = mock_post.call_args.kwargs["json"]["variables"]["variants"]
        assert variants[0] == {"id": "V1", "price": "20.00", "inventoryItem": {"cost": 9.5}}
        assert variants[1] == {"id": "V2", "price": "7.50"}
        assert result.updated_variant_ids == ["V1", "V2"]

    @patch("integrations.shopify_gateway.requests.post")
    def test_user_errors_returned_not_raised(self, mock_post, gateway):
        mock_post.return_value = _response({"data": {"productVariantsBulkUpdate": {
            "productVariants": None,
            "userErrors": [{"field": ["variants", "0", "inventoryItem", "cost"], "message": "Invalid"}],
        }}})

        result = gateway.bulk_update_variants("P1", [VariantPriceInput(variant_id="V1", price=1, cost=1)])

        assert result.field_errors[0].field_path == "variants.0.inventoryItem.cost"
        assert result.updated_variant_ids == []

    @patch("integrations.shopify_gateway.requests.post")
    def test_update_cost(self, mock_post, gateway):
        mock_post.return_value = _response({"data": {"inventoryItemUpdate": {
            "inventoryItem": {"id": "I1"},
            "userErrors": [],
        }}})

        result = gateway.update_inventory_item_cost("I1", 4.2)

        assert mock_post.call_args.kwargs["json"]["variables"] == {"id": "I1", "input": {"cost": 4.2}}
        assert result.updated is True

    @patch("integrations.shopify_gateway.requests.post")
    def test_update_cost_null_item_without_errors_is_success(self, mock_post, gateway):
        mock_post.return_value = _response({"data": {"inventoryItemUpdate": {
            "inventoryItem": None,
            "userErrors": [],
        }}})

        result = gateway.update_inventory_item_cost("I1", 4.2)

        assert result.updated is True

    @patch("integrations.shopify_gateway.requests.post")
    def test_update_cost_user_error_is_not_updated(self, mock_post, gateway):
        mock_post.return_value = _response({"data": {"inventoryItemUpdate": {
            "inventoryItem": None,
            "userErrors": [{"field": ["input", "cost"], "message": "Cost must be positive"}],
        }}})

        result = gateway.update_inventory_item_cost("I1", -1)

        assert result.updated is False
        assert result.field_errors[0].message == "Cost must be positive"

    @patch("integrations.shopify_gateway.requests.post")
    def test_update_cost_missing_payload_raises(self, mock_post, gateway):
        mock_post.return_value = _response({"data": {"inventoryItemUpdate": None}})

        with pytest.raises(GatewayResponseError):
            gateway.update_inventory_item_cost("I1", 4.2)
