"""Sticker order intake, owner queries and print-shop status updates."""
import logging
import secrets
from datetime import datetime

from sqlmodel import Session, select

from discfinder.core.config import settings
from discfinder.core.errors import NotFoundError, PermissionDeniedError, ServiceError, ValidationError
from discfinder.core.security import generate_printer_token
from discfinder.models import (
    AuditLog,
    OrderStatus,
    QRCode,
    ShippingAddress,
    StickerOrder,
    StickerOrderItem,
)
from discfinder.schemas import CreateStickerOrderRequest, UpdateOrderStatusRequest
from discfinder.services import payments
from discfinder.services.order_state import (
    PRINTER_SETTABLE_STATUSES,
    TransitionActor,
    apply_transition,
    parse_status,
)

log = logging.getLogger("discfinder.orders")


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _new_order_number() -> str:
    return f"DF-{datetime.utcnow():%Y%m%d}-{secrets.token_hex(3).upper()}"


def address_to_dict(address: ShippingAddress | None) -> dict | None:
    if not address:
        return None
    return {
        "id": address.id,
        "name": address.name,
        "street_address": address.street_address,
        "city": address.city,
        "state": address.state,
        "postal_code": address.postal_code,
        "country": address.country,
    }


def order_to_dict(order: StickerOrder) -> dict:
    """Owner-facing view; the printer token is never part of it."""
    return {
        "id": order.id,
        "order_number": order.order_number,
        "quantity": order.quantity,
        "unit_price_cents": order.unit_price_cents,
        "total_price_cents": order.total_price_cents,
        "status": order.status,
        "tracking_number": order.tracking_number,
        "pdf_storage_path": order.pdf_storage_path,
        "printed_at": _iso(order.printed_at),
        "shipped_at": _iso(order.shipped_at),
        "created_at": _iso(order.created_at),
        "updated_at": _iso(order.updated_at),
    }


def _resolve_shipping_address(
    db: Session, user_id: str, body: CreateStickerOrderRequest
) -> tuple[ShippingAddress, bool]:
    """Returns the address and whether it was created for this request."""
    if body.shipping_address_id is not None:
        address = db.get(ShippingAddress, body.shipping_address_id)
        if not address or address.user_id != user_id:
            raise NotFoundError("Shipping address not found")
        return address, False
    if body.shipping_address is None:
        raise ValidationError("Missing required field: shipping_address")
    missing = body.shipping_address.missing_field()
    if missing:
        raise ValidationError(f"Missing shipping address field: {missing}")
    inline = body.shipping_address
    address = ShippingAddress(
        user_id=user_id,
        name=inline.name.strip(),
        street_address=inline.street_address.strip(),
        city=inline.city.strip(),
        state=inline.state.strip(),
        postal_code=inline.postal_code.strip(),
        country=(inline.country or "").strip().upper() or "US",
    )
    db.add(address)
    db.flush()
    return address, True


def create_sticker_order(
    db: Session,
    user_id: str,
    body: CreateStickerOrderRequest,
    customer_email: str | None = None,
) -> tuple[StickerOrder, payments.CheckoutSession]:
    if body.quantity is None:
        raise ValidationError("Missing required field: quantity")
    if body.quantity < 1:
        raise ValidationError("Quantity must be at least 1")
    address, address_created = _resolve_shipping_address(db, user_id, body)
    unit_price = settings.sticker_unit_price_cents
    order = StickerOrder(
        order_number=_new_order_number(),
        user_id=user_id,
        shipping_address_id=address.id,
        quantity=body.quantity,
        unit_price_cents=unit_price,
        total_price_cents=unit_price * body.quantity,
        status=OrderStatus.PENDING_PAYMENT.value,
        printer_token=generate_printer_token(),
    )
    db.add(order)
    db.commit()
    db.refresh(order)

    try:
        session = payments.create_checkout_session(
            order_id=order.id,
            order_number=order.order_number,
            quantity=order.quantity,
            unit_price_cents=order.unit_price_cents,
            customer_email=customer_email,
        )
    except ServiceError:
        # Never exposed to anyone: remove it rather than leave a dangling pending order
        db.delete(order)
        if address_created:
            db.flush()
            db.delete(address)
        db.commit()
        raise
    order.stripe_checkout_session_id = session.id
    order.updated_at = datetime.utcnow()
    db.add(order)
    db.commit()
    db.refresh(order)
    log.info("order %s created: user=%s quantity=%s", order.order_number, user_id, order.quantity)
    return order, session


def list_orders(db: Session, user_id: str) -> list[dict]:
    orders = db.exec(
        select(StickerOrder)
        .where(StickerOrder.user_id == user_id)
        .order_by(StickerOrder.created_at.desc(), StickerOrder.id.desc())
    ).all()
    address_ids = {o.shipping_address_id for o in orders if o.shipping_address_id}
    addresses = {}
    if address_ids:
        for a in db.exec(select(ShippingAddress).where(ShippingAddress.id.in_(address_ids))).all():
            addresses[a.id] = a
    return [
        {**order_to_dict(o), "shipping_address": address_to_dict(addresses.get(o.shipping_address_id))}
        for o in orders
    ]


def get_order_detail(db: Session, user_id: str, order_id: int | None) -> dict:
    if not order_id:
        raise ValidationError("Missing order_id parameter")
    order = db.get(StickerOrder, order_id)
    if not order:
        raise NotFoundError("Order not found")
    if order.user_id != user_id:
        raise PermissionDeniedError("You do not have access to this order")
    rows = db.exec(
        select(StickerOrderItem, QRCode)
        .join(QRCode, QRCode.id == StickerOrderItem.qr_code_id)
        .where(StickerOrderItem.order_id == order.id)
        .order_by(StickerOrderItem.id)
    ).all()
    items = [
        {
            "id": item.id,
            "qr_code": {"id": qr.id, "short_code": qr.short_code, "status": qr.status},
        }
        for item, qr in rows
    ]
    address = db.get(ShippingAddress, order.shipping_address_id) if order.shipping_address_id else None
    return {**order_to_dict(order), "shipping_address": address_to_dict(address), "items": items}


def update_status_by_printer(db: Session, body: UpdateOrderStatusRequest) -> StickerOrder:
    """Print shop advances an order; the printer token is the only credential."""
    if not (body.printer_token or "").strip():
        raise ValidationError("Missing required field: printer_token")
    if not (body.status or "").strip():
        raise ValidationError("Missing required field: status")
    target = parse_status(body.status.strip())
    if target not in PRINTER_SETTABLE_STATUSES:
        raise ValidationError("Invalid status")
    if target == OrderStatus.SHIPPED and not (body.tracking_number or "").strip():
        raise ValidationError("tracking_number is required when marking as shipped")

    order = db.exec(select(StickerOrder).where(StickerOrder.printer_token == body.printer_token.strip())).first()
    if not order:
        raise NotFoundError("Order not found")
    apply_transition(
        db,
        order,
        target,
        TransitionActor.PRINTER,
        tracking_number=body.tracking_number,
        commit=False,
    )
    db.add(AuditLog(event=f"order_status_{target.value}", subject=f"order:{order.id}"))
    db.commit()
    db.refresh(order)
    return order
