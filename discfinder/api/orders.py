from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from discfinder.api.deps import get_current_user_id
from discfinder.core.config import settings
from discfinder.core.database import get_db
from discfinder.core.errors import ValidationError
from discfinder.core.rate_limit import limiter
from discfinder.models import Profile
from discfinder.schemas import CreateStickerOrderRequest, OrderIdRequest, UpdateOrderStatusRequest
from discfinder.services import sticker_orders
from discfinder.services.code_issuance import issue_order_codes
from discfinder.services.sticker_pdf import generate_sticker_pdf
from discfinder.services.storage import ObjectStorage, get_storage

router = APIRouter(tags=["sticker-orders"])

RATE_LIMIT_STR = f"{settings.rate_limit_per_minute}/minute"


@router.post("/create-sticker-order")
@limiter.limit(RATE_LIMIT_STR)
def create_sticker_order(
    request: Request,
    body: CreateStickerOrderRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Creates a pending order and returns the hosted checkout URL."""
    profile = db.get(Profile, user_id)
    order, session = sticker_orders.create_sticker_order(
        db, user_id, body, customer_email=profile.email if profile else None
    )
    return {
        "checkout_url": session.url,
        "order_id": order.id,
        "order_number": order.order_number,
    }


@router.get("/get-sticker-orders")
def get_sticker_orders(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return {"orders": sticker_orders.list_orders(db, user_id)}


@router.get("/get-sticker-order")
def get_sticker_order(
    order_id: int | None = None,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return {"order": sticker_orders.get_order_detail(db, user_id, order_id)}


@router.post("/generate-order-qr-codes")
def generate_order_qr_codes(body: OrderIdRequest, db: Session = Depends(get_db)):
    """No user session: scoped to one paid order and guarded against re-issuance."""
    if not body.order_id:
        raise ValidationError("Missing required field: order_id")
    codes = issue_order_codes(db, body.order_id)
    return {
        "success": True,
        "qr_codes": [
            {"id": qr.id, "short_code": qr.short_code, "status": qr.status, "assigned_to": qr.assigned_to}
            for qr in codes
        ],
    }


@router.post("/generate-sticker-pdf")
def generate_pdf(
    body: OrderIdRequest,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    if not body.order_id:
        raise ValidationError("Missing required field: order_id")
    order, pdf_url = generate_sticker_pdf(db, storage, body.order_id)
    return {"success": True, "pdf_url": pdf_url, "pdf_storage_path": order.pdf_storage_path}


@router.post("/update-order-status")
def update_order_status(body: UpdateOrderStatusRequest, db: Session = Depends(get_db)):
    """Print shop endpoint; printer_token authenticates."""
    order = sticker_orders.update_status_by_printer(db, body)
    return {
        "success": True,
        "order": {
            "id": order.id,
            "order_number": order.order_number,
            "status": order.status,
            "tracking_number": order.tracking_number,
            "printed_at": order.printed_at.isoformat() if order.printed_at else None,
            "shipped_at": order.shipped_at.isoformat() if order.shipped_at else None,
            "updated_at": order.updated_at.isoformat() if order.updated_at else None,
        },
    }
