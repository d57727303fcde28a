from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.main import app


def test_health_and_root(client):
    health = client.get("/api/health").json()
    assert health["success"] is True
    assert "timestamp" in health

    assert "Welcome" in client.get("/").json()["message"]


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/v1/nothing-here")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Route not found"}


def test_unexpected_errors_become_500(monkeypatch):
    from app.api.v1 import category as category_routes

    def boom(*args, **kwargs):
        raise RuntimeError("database exploded")

    monkeypatch.setattr(category_routes, "get_all_categories", boom)

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/api/v1/categories")

    assert response.status_code == 500
    assert response.json()["message"] == "Internal Server Error"
    assert response.json()["details"] == "database exploded"


def test_category_crud_and_rules(client):
    created = client.post("/api/v1/categories", json={"name": "Snacks", "description": "Chips"})
    assert created.status_code == 201
    category = created.json()["data"]
    assert category["status"] == "Active"

    duplicate = client.post("/api/v1/categories", json={"name": "snacks"})
    assert duplicate.status_code == 400

    client.post("/api/v1/categories", json={"name": "Archived", "status": "Inactive"})
    inactive = client.get("/api/v1/categories", params={"status": "Inactive"}).json()
    assert [c["name"] for c in inactive["data"]] == ["Archived"]
    assert inactive["pagination"]["total"] == 1

    updated = client.put(f"/api/v1/categories/{category['id']}", json={"description": "Crisps"})
    assert updated.json()["data"]["description"] == "Crisps"

    client.post("/api/v1/products", json={"sku": "snk-1", "name": "Chips", "category_id": category["id"]})
    in_use = client.delete(f"/api/v1/categories/{category['id']}")
    assert in_use.status_code == 400

    assert client.get("/api/v1/categories/CAT-MISSING").status_code == 404
    assert client.delete("/api/v1/categories/CAT-MISSING").status_code == 404


def test_product_sku_is_normalized_and_unique(client, category):
    created = client.post("/api/v1/products", json={
        "sku": "  ab-12 ", "name": "Widget", "category_id": category.id, "selling_price": "9.50",
    })
    assert created.status_code == 201
    product = created.json()["data"]
    assert product["sku"] == "AB-12"
    assert product["quantity"] == 0
    assert product["category"]["name"] == category.name

    duplicate = client.post("/api/v1/products", json={"sku": "AB-12", "name": "Other", "category_id": category.id})
    assert duplicate.status_code == 400

    unknown_category = client.post("/api/v1/products", json={"sku": "x", "name": "X", "category_id": "CAT-NONE"})
    assert unknown_category.status_code == 404

    listed = client.get("/api/v1/products", params={"search": "ab-"}).json()["data"]
    assert [p["id"] for p in listed] == [product["id"]]


def test_product_with_ledger_lines_cannot_be_deleted(client, category, make_partner):
    product = client.post("/api/v1/products", json={
        "sku": "keep-1", "name": "Kept", "category_id": category.id,
    }).json()["data"]
    supplier = make_partner()
    client.post("/api/v1/transactions", json={
        "transaction_type": "purchases", "partner_id": supplier.id, "balance": 0,
        "items": [{"product_id": product["id"], "quantity": 1}],
    })

    assert client.delete(f"/api/v1/products/{product['id']}").status_code == 400
    bulk = client.post("/api/v1/products/bulk-delete", json={"ids": [product["id"]]})
    assert bulk.status_code == 400
    assert bulk.json()["details"] == {"product_ids": [product["id"]]}


@pytest.mark.parametrize("field", ["balance", "paid", "left"])
def test_partner_calculated_fields_are_rejected(client, field):
    response = client.post("/api/v1/partners", json={
        "name": "Sneaky", "phone_number": "0300", "type": "Customer", field: 100,
    })

    assert response.status_code == 400
    assert "cannot be set manually" in response.json()["details"][0]["message"]


def test_partner_listing_filters_by_type(client):
    for name, type in (("Supplier One", "Supplier"), ("Buyer One", "Customer"), ("Buyer Two", "Customer")):
        client.post("/api/v1/partners", json={"name": name, "phone_number": "0300", "type": type})

    customers = client.get("/api/v1/partners", params={"type": "Customer"}).json()
    assert customers["pagination"]["total"] == 2
    assert all(Decimal(p["balance"]) == 0 for p in customers["data"])

    found = client.get("/api/v1/partners", params={"search": "supplier"}).json()["data"]
    assert [p["name"] for p in found] == ["Supplier One"]


def test_unit_and_warehouse_crud(client):
    unit = client.post("/api/v1/units", json={"name": "Kilogram", "abbreviation": "kg"})
    assert unit.status_code == 201
    assert client.post("/api/v1/units", json={"name": "Kilo", "abbreviation": "KG"}).status_code == 400

    warehouse = client.post("/api/v1/warehouses", json={"title": "Main", "location": "Lahore", "manager": "Sara"})
    assert warehouse.status_code == 201
    assert client.post("/api/v1/warehouses", json={"title": "main", "location": "Karachi"}).status_code == 400

    found = client.get("/api/v1/warehouses", params={"search": "sara"}).json()["data"]
    assert [w["title"] for w in found] == ["Main"]

    unit_id = unit.json()["data"]["id"]
    renamed = client.put(f"/api/v1/units/{unit_id}", json={"status": "Inactive"})
    assert renamed.json()["data"]["status"] == "Inactive"

    result = client.post("/api/v1/units/bulk-delete", json={"ids": [unit_id]}).json()["data"]
    assert result == {"deleted_count": 1, "requested_count": 1}

    warehouse_id = warehouse.json()["data"]["id"]
    assert client.delete(f"/api/v1/warehouses/{warehouse_id}").json()["success"] is True
    assert client.get(f"/api/v1/warehouses/{warehouse_id}").status_code == 404


def test_expenses_default_and_stats(client):
    created = client.post("/api/v1/expenses", json={"title": "Electricity", "amount": "120.50"})
    assert created.status_code == 201
    expense = created.json()["data"]
    assert expense["category"] == "General"
    assert expense["date"]

    client.post("/api/v1/expenses", json={"title": "Rent", "amount": 1000, "category": "Rent"})
    client.post("/api/v1/expenses", json={"title": "Rent extra", "amount": 200, "category": "Rent"})

    assert client.post("/api/v1/expenses", json={"title": "Bad", "amount": -1}).status_code == 400

    stats = client.get("/api/v1/expenses/stats").json()["data"]
    assert Decimal(stats["total_amount"]) == Decimal("1320.50")
    assert stats["count"] == 3
    assert stats["by_category"][0]["category"] == "Rent"
    assert Decimal(stats["by_category"][0]["total_amount"]) == Decimal("1200")

    rent = client.get("/api/v1/expenses", params={"category": "rent"}).json()
    assert rent["pagination"]["total"] == 2

    updated = client.put(f"/api/v1/expenses/{expense['id']}", json={"category": "Utilities"})
    assert updated.json()["data"]["category"] == "Utilities"
