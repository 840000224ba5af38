"""Sticker order state machine: transition tables and conditional status writes."""
import itertools

import pytest
from sqlmodel import Session

from discfinder.core.database import engine
from discfinder.core.errors import ValidationError
from discfinder.models import OrderStatus, StickerOrder
from discfinder.services.order_state import (
    ConcurrentTransitionError,
    InvalidTransitionError,
    TransitionActor,
    apply_transition,
    is_allowed,
    parse_status,
)

PRINTER_ALLOWED = {
    (OrderStatus.PAID, OrderStatus.PROCESSING),
    (OrderStatus.PAID, OrderStatus.PRINTED),
    (OrderStatus.PROCESSING, OrderStatus.PRINTED),
    (OrderStatus.PRINTED, OrderStatus.SHIPPED),
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
}
PAYMENT_ALLOWED = {
    (OrderStatus.PENDING_PAYMENT, OrderStatus.PAID),
    (OrderStatus.PENDING_PAYMENT, OrderStatus.CANCELLED),
    (OrderStatus.CANCELLED, OrderStatus.PAID),
}


@pytest.mark.parametrize("source,target", list(itertools.product(OrderStatus, OrderStatus)))
def test_printer_table_is_total(source, target):
    assert is_allowed(source, target, TransitionActor.PRINTER) == ((source, target) in PRINTER_ALLOWED)


@pytest.mark.parametrize("source,target", list(itertools.product(OrderStatus, OrderStatus)))
def test_payment_table_is_total(source, target):
    assert is_allowed(source, target, TransitionActor.PAYMENT) == ((source, target) in PAYMENT_ALLOWED)


def test_issuance_only_moves_paid_to_processing():
    allowed = [
        (s, t) for s, t in itertools.product(OrderStatus, OrderStatus) if is_allowed(s, t, TransitionActor.ISSUANCE)
    ]
    assert allowed == [(OrderStatus.PAID, OrderStatus.PROCESSING)]


def test_terminal_statuses_have_no_printer_exits():
    for target in OrderStatus:
        assert not is_allowed(OrderStatus.DELIVERED, target, TransitionActor.PRINTER)
        assert not is_allowed(OrderStatus.CANCELLED, target, TransitionActor.PRINTER)


def test_parse_status_rejects_unknown():
    assert parse_status("shipped") is OrderStatus.SHIPPED
    with pytest.raises(ValidationError) as exc:
        parse_status("lost")
    assert exc.value.message == "Invalid status"


def test_apply_transition_rejects_skipping_to_shipped(db, make_order):
    order = make_order(status=OrderStatus.PENDING_PAYMENT)
    with pytest.raises(InvalidTransitionError) as exc:
        apply_transition(db, order, OrderStatus.SHIPPED, TransitionActor.PRINTER, tracking_number="1Z999")
    assert exc.value.message == "Invalid status transition from pending_payment to shipped"
    db.refresh(order)
    assert order.status == "pending_payment"
    assert order.tracking_number is None


def test_apply_transition_stamps_timestamps(db, make_order):
    order = make_order(status=OrderStatus.PROCESSING)
    apply_transition(db, order, OrderStatus.PRINTED, TransitionActor.PRINTER)
    assert order.status == "printed"
    assert order.printed_at is not None
    apply_transition(db, order, OrderStatus.SHIPPED, TransitionActor.PRINTER, tracking_number=" 1Z999 ")
    assert order.status == "shipped"
    assert order.shipped_at is not None
    assert order.tracking_number == "1Z999"


def test_shipped_requires_tracking_number(db, make_order):
    order = make_order(status=OrderStatus.PRINTED)
    with pytest.raises(ValidationError) as exc:
        apply_transition(db, order, OrderStatus.SHIPPED, TransitionActor.PRINTER, tracking_number="  ")
    assert exc.value.message == "tracking_number is required when marking as shipped"
    db.refresh(order)
    assert order.status == "printed"


def test_stale_status_loses_the_race(db, make_order):
    order = make_order(status=OrderStatus.PAID)
    with Session(engine) as other:
        stale = other.get(StickerOrder, order.id)
        assert stale.status == "paid"
        apply_transition(db, order, OrderStatus.PROCESSING, TransitionActor.PRINTER)
        # The second writer still holds "paid"; its conditional update matches no row
        with pytest.raises(ConcurrentTransitionError) as exc:
            apply_transition(other, stale, OrderStatus.PRINTED, TransitionActor.PRINTER)
        assert exc.value.message == "Order status changed concurrently"
        assert exc.value.status_code == 400
        assert (exc.value.source, exc.value.target) == ("paid", "printed")
    db.refresh(order)
    assert order.status == "processing"
    assert order.printed_at is None
