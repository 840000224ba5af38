"""
QR code issuance for paid sticker orders.

Optimistic generate-then-verify against the qr_codes table: candidates that
already exist are dropped and backfilled, with a bounded number of rounds.
Codes, order items and the paid -> processing status change land in one
transaction, so a failure anywhere leaves no partial issuance behind.
"""
import logging
from collections.abc import Callable

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from discfinder.core.errors import ConflictError, InternalError, NotFoundError
from discfinder.models import (
    AuditLog,
    OrderStatus,
    QRCode,
    QRCodeStatus,
    StickerOrder,
    StickerOrderItem,
)
from discfinder.services.order_state import TransitionActor, apply_transition
from discfinder.services.short_code import generate_short_codes

log = logging.getLogger("discfinder.issuance")

MAX_VERIFY_ROUNDS = 3
BACKFILL_FACTOR = 2  # extra candidates per missing code, collisions are rare but come in bursts


class CodePoolExhaustedError(InternalError):
    def __init__(self, requested: int, accepted: int):
        super().__init__("Failed to generate unique QR codes")
        self.requested = requested
        self.accepted = accepted


def _existing_codes(db: Session, candidates: list[str]) -> set[str]:
    if not candidates:
        return set()
    rows = db.exec(select(QRCode.short_code).where(QRCode.short_code.in_(candidates))).all()
    return set(rows)


def resolve_unique_codes(
    db: Session,
    quantity: int,
    generate: Callable[[int], list[str]] = generate_short_codes,
    max_rounds: int = MAX_VERIFY_ROUNDS,
) -> list[str]:
    """quantity distinct codes, none of which is present in qr_codes."""
    accepted: list[str] = []
    accepted_set: set[str] = set()
    taken: set[str] = set()
    candidates = generate(quantity)
    for round_no in range(1, max_rounds + 1):
        fresh = [c for c in candidates if c not in taken and c not in accepted_set]
        collisions = _existing_codes(db, fresh)
        taken |= collisions
        for code in fresh:
            if code in collisions or code in accepted_set or len(accepted) >= quantity:
                continue
            accepted.append(code)
            accepted_set.add(code)
        if len(accepted) >= quantity:
            return accepted
        shortfall = quantity - len(accepted)
        log.warning(
            "short code collisions: round=%s collisions=%s shortfall=%s", round_no, len(collisions), shortfall
        )
        if round_no == max_rounds:
            break
        candidates = generate(shortfall * BACKFILL_FACTOR)
    log.error("Failed to generate unique short codes after %s rounds (%s/%s)", max_rounds, len(accepted), quantity)
    raise CodePoolExhaustedError(quantity, len(accepted))


def order_has_items(db: Session, order_id: int) -> bool:
    count = db.exec(
        select(func.count()).select_from(StickerOrderItem).where(StickerOrderItem.order_id == order_id)
    ).one()
    return count > 0


def issue_order_codes(
    db: Session,
    order_id: int,
    generate: Callable[[int], list[str]] = generate_short_codes,
) -> list[QRCode]:
    """
    Turns a paid order into quantity generated codes held by the purchaser and
    advances it to processing. Re-invocation is rejected, never retried.
    """
    order = db.get(StickerOrder, order_id)
    if not order:
        raise NotFoundError("Order not found")
    if order.status != OrderStatus.PAID.value:
        raise ConflictError("Order must be in paid status to generate QR codes")
    if order_has_items(db, order.id):
        raise ConflictError("QR codes already generated for this order")

    short_codes = resolve_unique_codes(db, order.quantity, generate=generate)

    try:
        codes = [
            QRCode(short_code=code, status=QRCodeStatus.GENERATED.value, assigned_to=order.user_id)
            for code in short_codes
        ]
        db.add_all(codes)
        db.flush()
        db.add_all(StickerOrderItem(order_id=order.id, qr_code_id=qr.id) for qr in codes)
        db.flush()
        db.add(AuditLog(event="codes_issued", user_id=order.user_id, subject=f"order:{order.id}"))
        # Conditional paid -> processing: a concurrent issuer that got here first makes this fail
        apply_transition(db, order, OrderStatus.PROCESSING, TransitionActor.ISSUANCE, commit=False)
        db.commit()
    except ConflictError:
        db.rollback()
        log.warning("order_id=%s: concurrent code issuance detected, rolled back", order_id)
        raise ConflictError("QR codes already generated for this order") from None
    except SQLAlchemyError:
        db.rollback()
        log.exception("order_id=%s: failed to create QR codes, rolled back", order_id)
        raise InternalError("Failed to create QR codes") from None

    for qr in codes:
        db.refresh(qr)
    log.info("order_id=%s: issued %s QR codes", order.id, len(codes))
    return codes
