import re

import pytest

from shop.data.models import UserModel


@pytest.fixture
def admin(db):
    db.add(UserModel(id=100, name="admin", user_type="admin"))
    db.commit()
    return 100


@pytest.fixture
def product_id(client, admin):
    resp = client.post(
        "/products/",
        params={"user_id": admin},
        json={"sku": "tee-001", "name": "Basic Tee", "price": "10000", "category": "top", "image": "/t.jpg", "stock": 5},
    )
    assert resp.status_code == 201
    return resp.json()["id"]


@pytest.fixture
def customer(client):
    client.post("/users/", json={"id": 1, "name": "Minji"})
    return 1


def _fill_cart(client, user_id, product_id, quantity=2):
    resp = client.post("/cart/items", params={"user_id": user_id}, json={"product_id": product_id, "quantity": quantity})
    assert resp.status_code == 200
    return resp.json()


def _order_payload(address, method="bank_transfer", **extra):
    return {"shipping_address": address, "payment_method": method, **extra}


def test_health_echoes_request_id(client):
    resp = client.get("/health", headers={"X-Request-ID": "req-42"})
    assert resp.status_code == 200
    assert resp.json()["database"] == "ok"
    assert resp.headers["X-Request-ID"] == "req-42"


def test_user_registration_is_idempotent_and_email_unique(client):
    first = client.post("/users/", json={"id": 7, "name": "Jisoo", "email": "Jisoo@Example.com"})
    assert first.status_code == 200
    assert first.json()["email"] == "jisoo@example.com"

    again = client.post("/users/", json={"id": 7, "name": "Someone else"})
    assert again.json()["name"] == "Jisoo"

    taken = client.post("/users/", json={"id": 8, "name": "Copy", "email": "JISOO@example.com"})
    assert taken.status_code == 409
    assert taken.json()["detail"]["code"] == "EMAIL_TAKEN"


def test_unknown_user_is_404(client):
    resp = client.get("/users/999")
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "USER_NOT_FOUND"


def test_product_creation_requires_admin(client, customer):
    resp = client.post(
        "/products/",
        params={"user_id": customer},
        json={"sku": "x-001", "name": "X", "price": "1", "category": "etc", "image": "/x.jpg"},
    )
    assert resp.status_code == 403


def test_sku_is_normalised_and_unique(client, admin, product_id):
    assert client.get(f"/products/{product_id}").json()["sku"] == "TEE-001"
    resp = client.post(
        "/products/",
        params={"user_id": admin},
        json={"sku": "TEE-001", "name": "Dup", "price": "1", "category": "top", "image": "/t.jpg"},
    )
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "DUPLICATE_SKU"


def test_checkout_flow(client, customer, product_id, address):
    cart = _fill_cart(client, customer, product_id)
    assert cart["total_items"] == 2

    preview = client.get("/cart/checkout/preview", params={"user_id": customer}).json()
    assert preview["is_valid"]

    resp = client.post("/orders/from-cart", params={"user_id": customer}, json=_order_payload(address))
    assert resp.status_code == 201
    order = resp.json()
    assert re.fullmatch(r"ORD\d{10}", order["order_number"])
    assert order["status"] == "pending"
    assert order["summary"]["total_items"] == 2
    assert client.get(f"/products/{product_id}").json()["stock"] == 3
    assert client.get("/cart", params={"user_id": customer}).json()["items"] == []

    listing = client.get("/orders", params={"user_id": customer}).json()
    assert [o["id"] for o in listing["orders"]] == [order["id"]]

    resp = client.delete(f"/orders/{order['id']}", params={"user_id": customer})
    assert resp.json()["status"] == "cancelled"
    assert client.get(f"/products/{product_id}").json()["stock"] == 5


def test_duplicate_submission_is_conflict(client, customer, product_id, address):
    _fill_cart(client, customer, product_id)
    first = client.post("/orders/from-cart", params={"user_id": customer}, json=_order_payload(address)).json()
    _fill_cart(client, customer, product_id)

    resp = client.post("/orders/from-cart", params={"user_id": customer}, json=_order_payload(address))

    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "DUPLICATE_ORDER"
    assert resp.json()["detail"]["order_id"] == first["id"]


def test_empty_cart_is_bad_request(client, customer, address):
    resp = client.post("/orders/from-cart", params={"user_id": customer}, json=_order_payload(address))
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "EMPTY_CART"


def test_rejected_payment_is_402(client, customer, product_id, verifier, address):
    verifier.success = False
    _fill_cart(client, customer, product_id)

    resp = client.post(
        "/orders/from-cart",
        params={"user_id": customer},
        json=_order_payload(address, "card", payment={"imp_uid": "imp-1", "merchant_uid": "mid-1"}),
    )

    assert resp.status_code == 402
    assert resp.json()["detail"]["code"] == "PAYMENT_VERIFICATION_FAILED"


def test_invalid_address_is_rejected(client, customer, product_id, address):
    _fill_cart(client, customer, product_id)
    address["address"]["zip_code"] = "123"

    resp = client.post("/orders/from-cart", params={"user_id": customer}, json=_order_payload(address))

    assert resp.status_code == 422


def test_other_users_order_is_not_found(client, customer, product_id, address):
    _fill_cart(client, customer, product_id)
    order = client.post("/orders/from-cart", params={"user_id": customer}, json=_order_payload(address)).json()

    resp = client.get(f"/orders/{order['id']}", params={"user_id": 999})

    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "ORDER_NOT_FOUND"


def test_admin_order_management(client, admin, customer, product_id, address):
    _fill_cart(client, customer, product_id)
    order = client.post("/orders/from-cart", params={"user_id": customer}, json=_order_payload(address)).json()
    base = f"/admin/orders/{order['id']}"

    assert client.get(base, params={"user_id": customer}).status_code == 403

    resp = client.put(f"{base}/status", params={"user_id": admin}, json={"status": "delivered"})
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "INVALID_STATE_TRANSITION"

    assert client.put(f"{base}/status", params={"user_id": admin}, json={"status": "confirmed"}).status_code == 200
    shipped = client.put(f"{base}/shipping", params={"user_id": admin}, json={"tracking_number": "T-1", "carrier": "CJ"})
    assert shipped.json()["status"] == "shipped"

    found = client.get("/admin/orders", params={"user_id": admin, "search": "Minji"}).json()
    assert found["pagination"]["total_items"] == 1
    assert client.get("/admin/orders", params={"user_id": admin, "search": "nobody"}).json()["orders"] == []

    stats = client.get("/admin/orders/stats", params={"user_id": admin}).json()
    assert stats["total_orders"] == 1
    assert stats["daily_stats"][0]["count"] == 1

    cancelled = client.post(f"{base}/cancel", params={"user_id": admin}, json={"reason": "out of stock"})
    assert cancelled.json()["status"] == "cancelled"
