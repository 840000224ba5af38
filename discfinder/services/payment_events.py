"""Applies verified checkout events to sticker orders."""
import logging
from datetime import datetime

from sqlalchemy import update
from sqlmodel import Session, select

from discfinder.core.errors import NotFoundError, ValidationError
from discfinder.models import AuditLog, OrderStatus, StickerOrder
from discfinder.services.order_state import TransitionActor, apply_transition, is_allowed

log = logging.getLogger("discfinder.payments")

CHECKOUT_COMPLETED = "checkout.session.completed"
CHECKOUT_EXPIRED = "checkout.session.expired"
HANDLED_EVENTS = (CHECKOUT_COMPLETED, CHECKOUT_EXPIRED)


def _session_order_id(session: dict) -> int | None:
    raw = (session.get("metadata") or {}).get("order_id")
    try:
        return int(raw) if raw not in (None, "") else None
    except (TypeError, ValueError):
        return None


def handle_checkout_completed(db: Session, session: dict) -> StickerOrder:
    """
    pending_payment (or cancelled) -> paid. The order must match both the
    metadata order id and the stored session id, so a session cannot pay for
    another order. Replays on an order that is already paid or further are no-ops.
    """
    order_id = _session_order_id(session)
    if order_id is None:
        log.error("checkout completed without order_id metadata: session=%s", session.get("id"))
        raise ValidationError("Missing order_id in metadata")
    order = db.exec(
        select(StickerOrder).where(
            StickerOrder.id == order_id,
            StickerOrder.stripe_checkout_session_id == session.get("id"),
        )
    ).first()
    if not order:
        log.error("checkout completed for unknown order: order_id=%s session=%s", order_id, session.get("id"))
        raise NotFoundError("Order not found for checkout session")
    if not is_allowed(order.status, OrderStatus.PAID, TransitionActor.PAYMENT):
        log.info("order_id=%s already %s, checkout completed replay ignored", order.id, order.status)
        return order
    payment_intent = session.get("payment_intent")
    apply_transition(
        db,
        order,
        OrderStatus.PAID,
        TransitionActor.PAYMENT,
        payment_intent_id=payment_intent if isinstance(payment_intent, str) else None,
        commit=False,
    )
    db.add(AuditLog(event="order_paid", user_id=order.user_id, subject=f"order:{order.id}"))
    db.commit()
    db.refresh(order)
    log.info("Order %s marked as paid", order.order_number)
    return order


def handle_checkout_expired(db: Session, session: dict) -> bool:
    """
    pending_payment -> cancelled, only while still pending. A paid order is left
    alone without error. Returns whether an order was cancelled.
    """
    order_id = _session_order_id(session)
    if order_id is None:
        log.warning("checkout expired without order_id metadata: session=%s", session.get("id"))
        return False
    result = db.exec(
        update(StickerOrder)
        .where(
            StickerOrder.id == order_id,
            StickerOrder.stripe_checkout_session_id == session.get("id"),
            StickerOrder.status == OrderStatus.PENDING_PAYMENT.value,
        )
        .values(status=OrderStatus.CANCELLED.value, updated_at=datetime.utcnow())
    )
    if result.rowcount != 1:
        db.rollback()
        log.info("checkout expired ignored: order_id=%s is not pending payment", order_id)
        return False
    db.add(AuditLog(event="order_cancelled", subject=f"order:{order_id}"))
    db.commit()
    log.info("order_id=%s cancelled: checkout session expired", order_id)
    return True


def handle_event(db: Session, event: dict) -> None:
    event_type = event.get("type")
    if event_type not in HANDLED_EVENTS:
        log.info("Ignoring unhandled event type: %s", event_type)
        return
    session = (event.get("data") or {}).get("object") or {}
    if event_type == CHECKOUT_COMPLETED:
        handle_checkout_completed(db, session)
    else:
        handle_checkout_expired(db, session)
