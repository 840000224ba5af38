"""
Printable sticker sheet for an order: codes -> Jinja2 -> WeasyPrint -> PDF bytes -> object storage.
"""
import logging
from datetime import datetime, timezone
from pathlib import Path

from jinja2 import Environment, FileSystemLoader
from sqlmodel import Session, select

from discfinder.core.config import settings
from discfinder.core.errors import ConflictError, NotFoundError
from discfinder.models import QRCode, StickerOrder, StickerOrderItem
from discfinder.services.storage import STICKERS_BUCKET, ObjectStorage

log = logging.getLogger("discfinder.stickers")

_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
_ENV = Environment(loader=FileSystemLoader(str(_TEMPLATES_DIR)), autoescape=True)

LABELS_PER_ROW = 3


def build_sheet_context(order: StickerOrder, short_codes: list[str]) -> dict:
    base = settings.lookup_base_url.rstrip("/")
    labels = [{"short_code": code, "lookup_url": f"{base}/{code}"} for code in short_codes]
    rows = [labels[i : i + LABELS_PER_ROW] for i in range(0, len(labels), LABELS_PER_ROW)]
    return {
        "title": f"Sticker sheet {order.order_number}",
        "order_number": order.order_number,
        "quantity": len(labels),
        "generated_at": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
        "rows": rows,
    }


def render_pdf(context: dict) -> bytes:
    """Renders the Jinja2 template with WeasyPrint (lazy import: its system libraries are not needed at startup)."""
    from weasyprint import HTML

    template = _ENV.get_template("sticker_sheet.html")
    html_str = template.render(**context)
    return HTML(string=html_str, base_url=str(_TEMPLATES_DIR)).write_pdf()


def generate_sticker_pdf(db: Session, storage: ObjectStorage, order_id: int) -> tuple[StickerOrder, str]:
    """Renders and stores the sheet once per order. Returns (order, signed_url)."""
    order = db.get(StickerOrder, order_id)
    if not order:
        raise NotFoundError("Order not found")
    if order.pdf_storage_path:
        raise ConflictError("PDF already generated for this order")
    short_codes = db.exec(
        select(QRCode.short_code)
        .join(StickerOrderItem, StickerOrderItem.qr_code_id == QRCode.id)
        .where(StickerOrderItem.order_id == order.id)
        .order_by(StickerOrderItem.id)
    ).all()
    if not short_codes:
        raise ConflictError("No QR codes found for this order")

    pdf_bytes = render_pdf(build_sheet_context(order, list(short_codes)))
    path = f"{order.order_number}.pdf"
    storage.upload(STICKERS_BUCKET, path, pdf_bytes, content_type="application/pdf")
    order.pdf_storage_path = path
    order.updated_at = datetime.utcnow()
    db.add(order)
    db.commit()
    db.refresh(order)
    log.info("order %s: sticker sheet stored (%s codes, %s bytes)", order.order_number, len(short_codes), len(pdf_bytes))
    return order, storage.create_signed_url(STICKERS_BUCKET, path)
