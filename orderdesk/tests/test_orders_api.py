from fastapi.testclient import TestClient

from conftest import make_order
from orderdesk.main import app
from orderdesk.app.services.order_store import reset_store

client = TestClient(app)


def _small_book():
    reset_store([
        make_order("ORD-0001", "pending", [{"quantity": 2, "unitPrice": 8999}], name="John Smith"),
        make_order("ORD-0002", "processing", [{"quantity": 1, "unitPrice": 250000}], name="Maria Garcia",
                   email="maria@test.com"),
        make_order("ORD-0003", "delivered", [{"quantity": 1, "unitPrice": 9000}], name="Lisa Brown",
                   email="lisa@demo.com"),
        make_order("ORD-0004", "cancelled", [{"quantity": 1, "unitPrice": 500}], name="James Jones",
                   email="james@sample.com"),
    ])


def test_list_orders_default_page_shape():
    r = client.get("/api/orders")
    assert r.status_code == 200
    body = r.json()
    assert set(body.keys()) == {"data", "pageInfo", "cursors"}
    assert len(body["data"]) == 20  # default limit, 60 seeded orders
    assert body["pageInfo"]["hasNextPage"] is True
    assert body["pageInfo"]["hasPreviousPage"] is False
    assert body["cursors"]["next"] == body["pageInfo"]["endCursor"]
    first = body["data"][0]
    # camelCase wire format
    for key in ("id", "customerId", "customerName", "customerEmail", "orderDate", "status", "items", "statusHistory"):
        assert key in first
    assert {"id", "productName", "quantity", "unitPrice"} <= set(first["items"][0].keys())


def test_walk_all_pages_covers_every_order_once():
    seen = []
    cursor = None
    while True:
        params = {"limit": 25}
        if cursor:
            params["cursor"] = cursor
        body = client.get("/api/orders", params=params).json()
        seen.extend(o["id"] for o in body["data"])
        cursor = body["cursors"]["next"]
        if not cursor:
            break
    assert len(seen) == 60
    assert len(set(seen)) == 60


def test_filters_via_query_params():
    _small_book()
    r = client.get("/api/orders", params={"status": "pending"})
    assert [o["id"] for o in r.json()["data"]] == ["ORD-0001"]

    r = client.get("/api/orders", params={"search": "test.com"})
    assert [o["id"] for o in r.json()["data"]] == ["ORD-0002"]

    # subtotal bounds in cents
    r = client.get("/api/orders", params={"minAmount": 9000, "maxAmount": 20000})
    assert [o["id"] for o in r.json()["data"]] == ["ORD-0001", "ORD-0003"]

    r = client.get("/api/orders", params={"dateFrom": "2026-03-02"})
    assert r.json()["data"] == []


def test_list_rejects_bad_params():
    assert client.get("/api/orders", params={"status": "lost"}).status_code == 422
    assert client.get("/api/orders", params={"limit": 0}).status_code == 422
    assert client.get("/api/orders", params={"limit": 1000}).status_code == 422
    assert client.get("/api/orders", params={"direction": "up"}).status_code == 422
    assert client.get("/api/orders", params={"minAmount": -1}).status_code == 422

    r = client.get("/api/orders", params={"cursor": "nonsense"})
    assert r.status_code == 400
    assert "cursor" in r.json()["detail"].lower()


def test_get_order_detail_includes_totals_and_transitions():
    _small_book()
    r = client.get("/api/orders/ORD-0002")
    assert r.status_code == 200
    body = r.json()
    assert body["id"] == "ORD-0002"
    assert body["totals"] == {
        "subtotalCents": 250000,
        "discountRate": 0.15,
        "discountAmountCents": 37500,
        "subtotalAfterDiscountCents": 212500,
        "taxRate": 0.13,
        "taxAmountCents": 27625,
        "shippingCostCents": 0,
        "finalTotalCents": 240125,
    }
    assert body["allowedTransitions"] == ["shipped", "cancelled"]
    assert body["isTerminal"] is False

    r = client.get("/api/orders/ORD-0004")
    assert r.json()["isTerminal"] is True
    assert r.json()["allowedTransitions"] == []


def test_get_missing_order_404():
    r = client.get("/api/orders/ORD-9999")
    assert r.status_code == 404
    assert "ORD-9999" in r.json()["detail"]


def test_patch_status_happy_path():
    _small_book()
    r = client.patch(
        "/api/orders/ORD-0001/status",
        json={"status": "processing", "note": "picked"},
        headers={"X-Actor": "alice"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "processing"
    assert body["allowedTransitions"] == ["shipped", "cancelled"]
    head = body["statusHistory"][0]
    assert head["status"] == "processing"
    assert head["updatedBy"] == "alice"
    assert head["note"] == "picked"
    assert head["timestamp"].endswith("Z") or "+00:00" in head["timestamp"]

    # persisted
    assert client.get("/api/orders/ORD-0001").json()["status"] == "processing"


def test_patch_status_defaults_actor():
    _small_book()
    r = client.patch("/api/orders/ORD-0001/status", json={"status": "cancelled"})
    assert r.status_code == 200
    assert r.json()["statusHistory"][0]["updatedBy"] == "admin"


def test_patch_status_rejections_are_400_with_context():
    _small_book()
    r = client.patch("/api/orders/ORD-0003/status", json={"status": "shipped"})
    assert r.status_code == 400
    assert r.json() == {
        "error": "Cannot transition from Delivered to Shipped. Allowed: Cancelled",
        "reason": "not_allowed",
        "currentStatus": "delivered",
        "requestedStatus": "shipped",
    }

    r = client.patch("/api/orders/ORD-0004/status", json={"status": "pending"})
    assert r.status_code == 400
    assert r.json()["reason"] == "terminal_state"
    assert r.json()["error"] == "Cannot change status of a cancelled order"

    r = client.patch("/api/orders/ORD-0001/status", json={"status": "pending"})
    assert r.status_code == 400
    assert r.json()["error"] == "Order is already in this status"

    # nothing changed
    assert client.get("/api/orders/ORD-0003").json()["status"] == "delivered"


def test_patch_status_bad_body_and_missing_order():
    _small_book()
    assert client.patch("/api/orders/ORD-0001/status", json={"status": "refunded"}).status_code == 422
    assert client.patch("/api/orders/ORD-0001/status", json={}).status_code == 422
    assert client.patch("/api/orders/ORD-9999/status", json={"status": "processing"}).status_code == 404


def test_bulk_status_reports_per_order():
    _small_book()
    r = client.patch(
        "/api/orders/bulk-status",
        json={"orderIds": ["ORD-0001", "ORD-0002", "ORD-0004", "ORD-0404", "ORD-0001"], "status": "cancelled"},
        headers={"X-Actor": "ops"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "cancelled"
    assert body["updated"] == ["ORD-0001", "ORD-0002"]
    failed = {f["orderId"]: f for f in body["failed"]}
    assert set(failed) == {"ORD-0004", "ORD-0404"}
    assert failed["ORD-0004"]["reason"] == "same_status"
    assert failed["ORD-0404"]["reason"] == "not_found"

    assert client.get("/api/orders/ORD-0002").json()["statusHistory"][0]["updatedBy"] == "ops"


def test_bulk_status_validates_body():
    assert client.patch("/api/orders/bulk-status", json={"orderIds": [], "status": "cancelled"}).status_code == 422
    assert client.patch("/api/orders/bulk-status", json={"orderIds": ["ORD-0001"]}).status_code == 422


def test_dashboard_metrics():
    _small_book()
    r = client.get("/api/orders/metrics")
    assert r.status_code == 200
    body = r.json()
    assert body["totalOrders"] == 4
    # ORD-0003: 9000 + 1170 + 1000
    assert body["totalRevenueCents"] == 11170
    assert body["ordersByStatus"] == {"pending": 1, "processing": 1, "shipped": 0, "delivered": 1, "cancelled": 1}
    assert "ordersRequiringAttention" in body
    assert "averageOrderValueCents" in body
