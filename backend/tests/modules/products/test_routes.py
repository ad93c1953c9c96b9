"""Tests for the product catalog API routes."""

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from api.dependencies import get_product_repository
from tests.fakes import make_product


@pytest.fixture
def client(products) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_product_repository] = lambda: products
    return TestClient(app)


class TestListProducts:
    def test_lists_active_products_cheapest_first(self, client):
        response = client.get("/api/products")

        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == ["prod-free", "prod-pro", "prod-team"]

    def test_inactive_products_hidden(self, client, products):
        products.products["prod-legacy"] = make_product(
            id="prod-legacy", price=500, external_price_id="price_legacy", active=False
        )

        ids = [p["id"] for p in client.get("/api/products").json()]

        assert "prod-legacy" not in ids


class TestGetProduct:
    def test_returns_product(self, client):
        response = client.get("/api/products/prod-pro")

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Pro"
        assert body["price"] == 2999
        assert body["external_price_id"] == "price_pro"

    def test_unknown_product_is_404(self, client):
        response = client.get("/api/products/prod-missing")

        assert response.status_code == 404
        assert response.json()["error"] == "PRODUCT_NOT_FOUND"
