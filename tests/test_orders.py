"""Sticker order intake and owner queries."""
import pytest
from sqlalchemy import func
from sqlmodel import select

from discfinder.core.errors import UpstreamError
from discfinder.models import ShippingAddress, StickerOrder
from discfinder.services import payments
from discfinder.services.payments import CheckoutSession

ADDRESS = {
    "name": "Sam Thrower",
    "street_address": "1 Fairway Dr",
    "city": "Emporia",
    "state": "KS",
    "postal_code": "66801",
}


@pytest.fixture
def checkout(monkeypatch):
    calls = []

    def fake_checkout(**kwargs):
        calls.append(kwargs)
        return CheckoutSession(id=f"cs_test_{kwargs['order_id']}", url=f"https://checkout.test/{kwargs['order_id']}")

    monkeypatch.setattr(payments, "create_checkout_session", fake_checkout)
    return calls


def test_create_order(client, db, auth_headers, checkout):
    r = client.post("/create-sticker-order", json={"quantity": 10, "shipping_address": ADDRESS}, headers=auth_headers)
    assert r.status_code == 200, r.text
    j = r.json()
    assert j["checkout_url"] == f"https://checkout.test/{j['order_id']}"
    assert j["order_number"].startswith("DF-")

    order = db.get(StickerOrder, j["order_id"])
    assert order.status == "pending_payment"
    assert order.quantity == 10
    assert order.total_price_cents == 10 * order.unit_price_cents
    assert order.stripe_checkout_session_id == f"cs_test_{order.id}"
    assert len(order.printer_token) >= 32
    assert checkout[0]["quantity"] == 10
    assert checkout[0]["customer_email"] == "user1@example.com"
    address = db.get(ShippingAddress, order.shipping_address_id)
    assert address.country == "US"
    assert address.user_id == "user-1"


def test_printer_tokens_are_unique(client, db, auth_headers, checkout):
    for _ in range(3):
        client.post("/create-sticker-order", json={"quantity": 1, "shipping_address": ADDRESS}, headers=auth_headers)
    tokens = db.exec(select(StickerOrder.printer_token)).all()
    assert len(tokens) == 3
    assert len(set(tokens)) == 3


def test_create_order_with_saved_address(client, db, auth_headers, checkout):
    saved = ShippingAddress(user_id="user-1", country="CA", **ADDRESS)
    db.add(saved)
    db.commit()
    db.refresh(saved)
    r = client.post("/create-sticker-order", json={"quantity": 2, "shipping_address_id": saved.id}, headers=auth_headers)
    assert r.status_code == 200
    assert db.get(StickerOrder, r.json()["order_id"]).shipping_address_id == saved.id


def test_saved_address_of_another_user(client, db, auth_headers, checkout):
    other = ShippingAddress(user_id="user-2", **ADDRESS)
    db.add(other)
    db.commit()
    db.refresh(other)
    r = client.post("/create-sticker-order", json={"quantity": 2, "shipping_address_id": other.id}, headers=auth_headers)
    assert r.status_code == 404
    assert r.json()["error"] == "Shipping address not found"


@pytest.mark.parametrize(
    "body,message",
    [
        ({"shipping_address": ADDRESS}, "Missing required field: quantity"),
        ({"quantity": 0, "shipping_address": ADDRESS}, "Quantity must be at least 1"),
        ({"quantity": 2.5, "shipping_address": ADDRESS}, "Quantity must be a whole number"),
        ({"quantity": "ten", "shipping_address": ADDRESS}, "Quantity must be a whole number"),
        ({"quantity": 1}, "Missing required field: shipping_address"),
        ({"quantity": 1, "shipping_address": {**ADDRESS, "city": ""}}, "Missing shipping address field: city"),
    ],
)
def test_create_order_validation(client, db, auth_headers, checkout, body, message):
    r = client.post("/create-sticker-order", json=body, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["error"] == message
    assert db.exec(select(func.count()).select_from(StickerOrder)).one() == 0
    assert checkout == []


def test_payments_not_configured(client, db, auth_headers):
    r = client.post("/create-sticker-order", json={"quantity": 1, "shipping_address": ADDRESS}, headers=auth_headers)
    assert r.status_code == 503
    assert r.json()["error"] == "Payments are not configured"
    assert db.exec(select(func.count()).select_from(StickerOrder)).one() == 0
    assert db.exec(select(func.count()).select_from(ShippingAddress)).one() == 0


def test_checkout_failure_removes_order(client, db, auth_headers, monkeypatch):
    def failing_checkout(**kwargs):
        raise UpstreamError("Failed to create checkout session")

    monkeypatch.setattr(payments, "create_checkout_session", failing_checkout)
    r = client.post("/create-sticker-order", json={"quantity": 1, "shipping_address": ADDRESS}, headers=auth_headers)
    assert r.status_code == 502
    assert r.json()["error"] == "Failed to create checkout session"
    assert db.exec(select(func.count()).select_from(StickerOrder)).one() == 0
    assert db.exec(select(func.count()).select_from(ShippingAddress)).one() == 0


def test_checkout_failure_keeps_saved_address(client, db, auth_headers, monkeypatch):
    saved = ShippingAddress(user_id="user-1", **ADDRESS)
    db.add(saved)
    db.commit()
    db.refresh(saved)
    saved_id = saved.id

    def failing_checkout(**kwargs):
        raise UpstreamError("Failed to create checkout session")

    monkeypatch.setattr(payments, "create_checkout_session", failing_checkout)
    r = client.post("/create-sticker-order", json={"quantity": 1, "shipping_address_id": saved_id}, headers=auth_headers)
    assert r.status_code == 502
    assert db.exec(select(func.count()).select_from(StickerOrder)).one() == 0
    db.expire_all()
    assert db.get(ShippingAddress, saved_id) is not None



def test_list_orders_newest_first(client, auth_headers, headers_for, checkout):
    first = client.post("/create-sticker-order", json={"quantity": 1, "shipping_address": ADDRESS}, headers=auth_headers)
    second = client.post("/create-sticker-order", json={"quantity": 2, "shipping_address": ADDRESS}, headers=auth_headers)
    client.post("/create-sticker-order", json={"quantity": 3, "shipping_address": ADDRESS}, headers=headers_for("user-2"))

    r = client.get("/get-sticker-orders", headers=auth_headers)
    assert r.status_code == 200
    orders = r.json()["orders"]
    assert [o["id"] for o in orders] == [second.json()["order_id"], first.json()["order_id"]]
    assert orders[0]["shipping_address"]["city"] == "Emporia"
    assert all("printer_token" not in o for o in orders)


def test_get_order_detail_with_items(client, auth_headers, make_order, make_code):
    order = make_order(user_id="user-1", quantity=2)
    make_code("ABCDEFGHJKLM", order=order)
    make_code("NPQRSTUVWXYZ", order=order)
    r = client.get("/get-sticker-order", params={"order_id": order.id}, headers=auth_headers)
    assert r.status_code == 200, r.text
    detail = r.json()["order"]
    assert detail["id"] == order.id
    assert [i["qr_code"]["short_code"] for i in detail["items"]] == ["ABCDEFGHJKLM", "NPQRSTUVWXYZ"]
    assert "printer_token" not in detail


def test_get_order_of_another_user(client, auth_headers, make_order):
    order = make_order(user_id="user-2")
    r = client.get("/get-sticker-order", params={"order_id": order.id}, headers=auth_headers)
    assert r.status_code == 403
    assert r.json()["error"] == "You do not have access to this order"


def test_get_order_requires_id(client, auth_headers):
    r = client.get("/get-sticker-order", headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "Missing order_id parameter"


def test_get_unknown_order(client, auth_headers):
    r = client.get("/get-sticker-order", params={"order_id": 999}, headers=auth_headers)
    assert r.status_code == 404
    assert r.json()["error"] == "Order not found"
