"""
API tests through FastAPI's TestClient
"""

import pytest
import uuid
from fastapi.testclient import TestClient
from sqlmodel import select

from restopos.core.auth import create_access_token
from restopos.core.database import get_session
from restopos.main import app
from restopos.models import OrderItem


@pytest.fixture
def client(db):
    def override_get_session():
        yield db

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(restaurant_id, role="manager"):
    token = create_access_token(user_id=uuid.uuid4(), restaurant_id=restaurant_id, role=role)
    return {"Authorization": f"Bearer {token}"}


def checkout_body(catalog, **overrides):
    body = {
        "restaurant_id": str(catalog.restaurant.id),
        "items": [{"product_id": str(catalog.burger.id), "quantity": 2}],
        "subtotal": "20.00",
        "tax": "2.00",
        "total": "22.00",
        "payment_method": "cash",
        "order_type": "takeaway",
    }
    body.update(overrides)
    return body


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_requires_token(client, catalog):
    response = client.post("/api/v1/checkout", json=checkout_body(catalog))
    assert response.status_code in (401, 403)


def test_checkout(client, catalog):
    response = client.post("/api/v1/checkout", json=checkout_body(catalog), headers=auth_headers(catalog.restaurant.id))

    assert response.status_code == 201
    data = response.json()
    assert data["order_number"].startswith("ORD-")
    assert data["status"] == "paid"
    assert data["total"] == "22.00"


def test_checkout_with_addons_and_discount(client, catalog):
    body = checkout_body(catalog, discount_code="save10", items=[{
        "product_id": str(catalog.burger.id),
        "quantity": 2,
        "addons": [{"id": str(catalog.cheese_addon.id), "quantity": 1}],
        "notes": "well done",
    }])
    response = client.post("/api/v1/checkout", json=body, headers=auth_headers(catalog.restaurant.id))

    assert response.status_code == 201
    data = response.json()
    assert data["discount_amount"] == "2.00"
    assert data["total"] == "19.80"

    order = client.get(f"/api/v1/orders/{data['order_id']}", headers=auth_headers(catalog.restaurant.id)).json()
    assert order["items"][0]["addons"][0]["name"] == "Cheese"
    assert order["payment"]["status"] == "completed"


def test_checkout_for_another_restaurant_denied(client, catalog):
    response = client.post("/api/v1/checkout", json=checkout_body(catalog), headers=auth_headers(uuid.uuid4()))

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "permission_denied"


def test_business_rule_error_envelope(client, catalog):
    response = client.post(
        "/api/v1/checkout",
        json=checkout_body(catalog, discount_code="NOPE"),
        headers=auth_headers(catalog.restaurant.id),
    )

    assert response.status_code == 422
    assert response.json() == {"error": {
        "code": "business_rule_violation",
        "message": "Invalid discount code.",
        "reason": "invalid_code",
        "retryable": False,
    }}


def test_malformed_body_uses_envelope(client, catalog):
    response = client.post(
        "/api/v1/checkout",
        json=checkout_body(catalog, items=[{"product_id": str(catalog.burger.id), "quantity": 0}]),
        headers=auth_headers(catalog.restaurant.id),
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "validation_error"


def test_apply_discount(client, catalog):
    response = client.post(
        "/api/v1/discounts/apply",
        json={"code": "SAVE10", "subtotal": "40.00"},
        headers=auth_headers(catalog.restaurant.id, role="cashier"),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["discount_amount"] == "4.00"
    assert data["code"] == "SAVE10"
    assert data["type"] == "percentage"


def test_apply_discount_not_allowed_for_waiter(client, catalog):
    response = client.post(
        "/api/v1/discounts/apply",
        json={"code": "SAVE10", "subtotal": "40.00"},
        headers=auth_headers(catalog.restaurant.id, role="waiter"),
    )
    assert response.status_code == 403


def test_stock_endpoints(client, catalog):
    headers = auth_headers(catalog.restaurant.id)
    url = f"/api/v1/stock/products/{catalog.burger.id}"

    response = client.post(f"{url}/adjust", json={"quantity_change": 5, "type": "restock", "note": "Delivery"}, headers=headers)
    assert response.status_code == 201
    assert response.json()["quantity_after"] == 25

    response = client.post(f"{url}/adjust", json={"quantity_change": 0}, headers=headers)
    assert response.status_code == 422

    response = client.post(f"{url}/adjust", json={"quantity_change": -1, "type": "sale"}, headers=headers)
    assert response.status_code == 422

    logs = client.get(f"{url}/logs", headers=headers).json()
    assert [log["quantity_change"] for log in logs] == [5]

    summary = client.get("/api/v1/stock/summary", headers=headers).json()
    assert summary == {"total_tracked": 1, "out": 0, "low": 0, "ok": 1}


def test_order_status_endpoints(client, catalog):
    headers = auth_headers(catalog.restaurant.id)
    order_id = client.post("/api/v1/checkout", json=checkout_body(catalog), headers=headers).json()["order_id"]

    queue = client.get("/api/v1/orders/kitchen/queue", headers=headers).json()
    assert [ticket["id"] for ticket in queue] == [order_id]

    response = client.patch(
        f"/api/v1/orders/{order_id}/kitchen-status",
        json={"kitchen_status": "completed"},
        headers=auth_headers(catalog.restaurant.id, role="kitchen"),
    )
    assert response.status_code == 200
    assert response.json()["completed_at"] is not None

    response = client.patch(f"/api/v1/orders/{order_id}/status", json={"status": "served"}, headers=headers)
    assert response.json()["status"] == "served"

    response = client.patch(
        f"/api/v1/orders/{order_id}/status",
        json={"status": "cancelled"},
        headers=auth_headers(catalog.restaurant.id, role="kitchen"),
    )
    assert response.status_code == 403

    assert client.get("/api/v1/orders/kitchen/queue", headers=headers).json() == []


def test_order_detail_without_addons(client, db, catalog):
    headers = auth_headers(catalog.restaurant.id)
    order_id = client.post("/api/v1/checkout", json=checkout_body(catalog), headers=headers).json()["order_id"]

    response = client.get(f"/api/v1/orders/{order_id}", headers=headers)
    assert response.status_code == 200
    assert response.json()["items"][0]["addons"] == []

    # Rows written before add-ons were always stored as a list
    item = db.exec(select(OrderItem).where(OrderItem.order_id == uuid.UUID(order_id))).one()
    item.addons = None
    db.add(item)
    db.commit()

    response = client.patch(f"/api/v1/orders/{order_id}/status", json={"status": "served"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["items"][0]["addons"] is None


def test_order_not_found(client, catalog):
    response = client.get(f"/api/v1/orders/{uuid.uuid4()}", headers=auth_headers(catalog.restaurant.id))
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "not_found"


def test_loyalty_endpoints(client, catalog):
    headers = auth_headers(catalog.restaurant.id)
    url = f"/api/v1/customers/{catalog.customer.id}/loyalty"

    response = client.post(f"{url}/adjust", json={"points": -30, "description": "Correction"}, headers=headers)
    assert response.status_code == 201
    assert response.json()["points"] == -30

    response = client.post(f"{url}/adjust", json={"points": -500}, headers=headers)
    assert response.status_code == 422
    assert response.json()["error"]["reason"] == "insufficient_points"

    data = client.get(url, headers=headers).json()
    assert data["loyalty_points"] == 70
    assert len(data["transactions"]) == 2

    response = client.post(f"{url}/adjust", json={"points": 5}, headers=auth_headers(catalog.restaurant.id, role="cashier"))
    assert response.status_code == 403
