"""
Sticker order state machine.

pending_payment -> paid -> [processing] -> printed -> shipped -> delivered
pending_payment -> cancelled

Transitions are grouped by who may trigger them: the print shop (printer token),
the payment processor (webhook) and the code issuance workflow. Every status
write is a conditional UPDATE on the status the caller read, so a concurrent
writer makes the second one fail instead of being overwritten.
"""
import logging
from datetime import datetime
from enum import Enum

from sqlalchemy import update
from sqlmodel import Session

from discfinder.core.errors import ConflictError, ValidationError
from discfinder.models import OrderStatus, StickerOrder

log = logging.getLogger("discfinder.orders")


class TransitionActor(str, Enum):
    PRINTER = "printer"
    PAYMENT = "payment"
    ISSUANCE = "issuance"


PRINTER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING_PAYMENT: frozenset(),
    OrderStatus.PAID: frozenset({OrderStatus.PROCESSING, OrderStatus.PRINTED}),  # printer may skip processing
    OrderStatus.PROCESSING: frozenset({OrderStatus.PRINTED}),
    OrderStatus.PRINTED: frozenset({OrderStatus.SHIPPED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# A completed payment wins over an earlier session expiry
PAYMENT_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING_PAYMENT: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
    OrderStatus.CANCELLED: frozenset({OrderStatus.PAID}),
}

ISSUANCE_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PAID: frozenset({OrderStatus.PROCESSING}),
}

_TABLES = {
    TransitionActor.PRINTER: PRINTER_TRANSITIONS,
    TransitionActor.PAYMENT: PAYMENT_TRANSITIONS,
    TransitionActor.ISSUANCE: ISSUANCE_TRANSITIONS,
}

# Statuses the print shop may request
PRINTER_SETTABLE_STATUSES = frozenset(
    {OrderStatus.PROCESSING, OrderStatus.PRINTED, OrderStatus.SHIPPED, OrderStatus.DELIVERED}
)


class InvalidTransitionError(ConflictError):
    def __init__(self, source: str, target: str):
        super().__init__(f"Invalid status transition from {source} to {target}")
        self.source = source
        self.target = target


class ConcurrentTransitionError(ConflictError):
    def __init__(self, source: str, target: str):
        super().__init__("Order status changed concurrently")
        self.source = source
        self.target = target


def parse_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError("Invalid status") from None


def is_allowed(source: OrderStatus | str, target: OrderStatus | str, actor: TransitionActor) -> bool:
    source, target = OrderStatus(source), OrderStatus(target)
    return target in _TABLES[actor].get(source, frozenset())


def transition_changes(
    target: OrderStatus,
    *,
    now: datetime,
    tracking_number: str | None = None,
    payment_intent_id: str | None = None,
) -> dict:
    """Column values written together with the new status."""
    changes: dict = {"status": target.value, "updated_at": now}
    if target == OrderStatus.PRINTED:
        changes["printed_at"] = now
    elif target == OrderStatus.SHIPPED:
        if not (tracking_number or "").strip():
            raise ValidationError("tracking_number is required when marking as shipped")
        changes["shipped_at"] = now
        changes["tracking_number"] = tracking_number.strip()
    elif target == OrderStatus.PAID and payment_intent_id:
        changes["stripe_payment_intent_id"] = payment_intent_id
    return changes


def apply_transition(
    db: Session,
    order: StickerOrder,
    target: OrderStatus | str,
    actor: TransitionActor,
    *,
    tracking_number: str | None = None,
    payment_intent_id: str | None = None,
    commit: bool = True,
) -> StickerOrder:
    """
    Moves order to target if the actor's table allows it.
    Raises InvalidTransitionError (order untouched) otherwise, or
    ConcurrentTransitionError when another writer moved the order first.
    """
    source = OrderStatus(order.status)
    target = OrderStatus(target)
    if not is_allowed(source, target, actor):
        raise InvalidTransitionError(source.value, target.value)
    changes = transition_changes(
        target,
        now=datetime.utcnow(),
        tracking_number=tracking_number,
        payment_intent_id=payment_intent_id,
    )
    result = db.exec(
        update(StickerOrder)
        .where(StickerOrder.id == order.id, StickerOrder.status == source.value)
        .values(**changes)
    )
    if result.rowcount != 1:
        db.rollback()
        db.refresh(order)
        raise ConcurrentTransitionError(source.value, target.value)
    if commit:
        db.commit()
    db.refresh(order)
    log.info("order_id=%s status %s -> %s (%s)", order.id, source.value, target.value, actor.value)
    return order
