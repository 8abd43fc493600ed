"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest

from config.settings import Settings
from tests.factories import FakeCatalogGateway


# ===================
# FIXTURES
# ===================

@pytest.fixture
def fake_gateway() -> FakeCatalogGateway:
    return FakeCatalogGateway()


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        shopify_store_domain="test-store.myshopify.com",
        shopify_access_token="shpat_test",
        default_margin_threshold=5.0,
        lookup_batch_size=50,
        progress_batch_size=50,
        write_batch_size=100,
        require_stock_mapping=True,
        merge_stock_outcomes=True,
    )


@pytest.fixture
def location_id() -> str:
    return "gid://shopify/Location/1"


@pytest.fixture
def sample_csv() -> str:
    """Supplier file: SKU, description, cost, stock."""
    return (
        "Item Code,Description,Cost Ex GST,SOH\n"
        "TILE-001,White gloss 300x600,$12.50,40\n"
        "TILE-002,Grey matt 600x600,18.00,0\n"
        "TILE-404,Discontinued,9.99,3\n"
    )


@pytest.fixture
def test_client():
    """
    Create FastAPI test client (no catalog gateway configured).

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/health")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)


@pytest.fixture
def test_client_with_fake_gateway(fake_gateway, test_settings):
    """
    Create FastAPI test client wired to the fake gateway and a fresh session store.

    Usage:
        def test_endpoint(test_client_with_fake_gateway, fake_gateway):
            fake_gateway.products = [...]
            response = test_client_with_fake_gateway.get("/api/supplier-updates/locations")
    """
    from fastapi.testclient import TestClient
    from config.settings import get_settings
    from main import app
    from routes.supplier_updates import get_catalog_gateway, get_session_store
    from services.session_store import SessionStore

    store = SessionStore()
    app.dependency_overrides[get_catalog_gateway] = lambda: fake_gateway
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_settings] = lambda: test_settings

    yield TestClient(app)

    app.dependency_overrides.clear()
