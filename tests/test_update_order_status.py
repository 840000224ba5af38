"""Print shop status updates authenticated by printer token."""
import pytest
from sqlmodel import select

from discfinder.models import AuditLog, OrderStatus


def _update(client, token, status, tracking_number=None):
    body = {"printer_token": token, "status": status}
    if tracking_number is not None:
        body["tracking_number"] = tracking_number
    return client.post("/update-order-status", json=body)


def test_full_fulfilment_path(client, db, make_order):
    order = make_order(status=OrderStatus.PROCESSING)
    r = _update(client, order.printer_token, "printed")
    assert r.status_code == 200, r.text
    assert r.json()["order"]["status"] == "printed"
    assert r.json()["order"]["printed_at"] is not None

    r = _update(client, order.printer_token, "shipped", tracking_number="1Z999AA10123456784")
    assert r.status_code == 200
    shipped = r.json()["order"]
    assert shipped["status"] == "shipped"
    assert shipped["tracking_number"] == "1Z999AA10123456784"
    assert shipped["shipped_at"] is not None

    r = _update(client, order.printer_token, "delivered")
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert r.json()["order"]["status"] == "delivered"
    assert "printer_token" not in r.json()["order"]
    events = {a.event for a in db.exec(select(AuditLog)).all()}
    assert {"order_status_printed", "order_status_shipped", "order_status_delivered"} <= events


def test_printer_may_skip_processing(client, make_order):
    order = make_order(status=OrderStatus.PAID)
    r = _update(client, order.printer_token, "printed")
    assert r.status_code == 200
    assert r.json()["order"]["status"] == "printed"


def test_shipped_requires_tracking(client, db, make_order):
    order = make_order(status=OrderStatus.PRINTED)
    r = _update(client, order.printer_token, "shipped")
    assert r.status_code == 400
    assert r.json()["error"] == "tracking_number is required when marking as shipped"
    db.refresh(order)
    assert order.status == "printed"


def test_unpaid_order_cannot_ship(client, db, make_order):
    order = make_order(status=OrderStatus.PENDING_PAYMENT)
    r = _update(client, order.printer_token, "shipped", tracking_number="1Z999")
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid status transition from pending_payment to shipped"
    db.refresh(order)
    assert order.status == "pending_payment"
    assert order.tracking_number is None


@pytest.mark.parametrize("status", ["delivered", "cancelled"])
def test_terminal_orders_stay_put(client, db, make_order, status):
    order = make_order(status=status)
    r = _update(client, order.printer_token, "processing")
    assert r.status_code == 400
    db.refresh(order)
    assert order.status == status


@pytest.mark.parametrize("status", ["paid", "cancelled", "pending_payment", "lost"])
def test_printer_cannot_set_payment_statuses(client, make_order, status):
    order = make_order(status=OrderStatus.PAID)
    r = _update(client, order.printer_token, status)
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid status"


def test_unknown_printer_token(client, make_order):
    make_order(status=OrderStatus.PAID)
    r = _update(client, "not-a-real-token", "processing")
    assert r.status_code == 404
    assert r.json()["error"] == "Order not found"


@pytest.mark.parametrize(
    "body,message",
    [
        ({"status": "printed"}, "Missing required field: printer_token"),
        ({"printer_token": "abc"}, "Missing required field: status"),
    ],
)
def test_required_fields(client, body, message):
    r = client.post("/update-order-status", json=body)
    assert r.status_code == 400
    assert r.json()["error"] == message
