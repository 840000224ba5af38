"""Disc CRUD for owners and QR code assignment."""
import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import delete, update
from sqlmodel import Session, select

from discfinder.core.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from discfinder.models import Disc, DiscPhoto, QRCode, QRCodeStatus, RecoveryEvent
from discfinder.schemas import CreateDiscRequest, UpdateDiscRequest
from discfinder.services.short_code import normalize_short_code

log = logging.getLogger("discfinder.discs")

_CENTS = Decimal("0.01")
_TEXT_FIELDS = ("manufacturer", "plastic", "color")
_VALUE_FIELDS = ("weight", "reward_amount", "notes")


def format_reward(amount: Decimal | None) -> str | None:
    return None if amount is None else str(Decimal(amount).quantize(_CENTS))


def disc_to_dict(disc: Disc) -> dict:
    return {
        "id": disc.id,
        "owner_id": disc.owner_id,
        "name": disc.name,
        "manufacturer": disc.manufacturer,
        "mold": disc.mold,
        "plastic": disc.plastic,
        "color": disc.color,
        "weight": disc.weight,
        "flight_numbers": disc.flight_numbers,
        "reward_amount": format_reward(disc.reward_amount),
        "notes": disc.notes,
        "qr_code_id": disc.qr_code_id,
        "created_at": disc.created_at.isoformat() if disc.created_at else None,
        "updated_at": disc.updated_at.isoformat() if disc.updated_at else None,
    }


def _clean(value: str | None) -> str | None:
    value = (value or "").strip()
    return value or None


def create_disc(db: Session, owner_id: str, body: CreateDiscRequest) -> Disc:
    mold = _clean(body.mold)
    if not mold:
        raise ValidationError("Mold is required")
    disc = Disc(
        owner_id=owner_id,
        name=mold,
        mold=mold,
        manufacturer=_clean(body.manufacturer),
        plastic=_clean(body.plastic),
        color=_clean(body.color),
        weight=body.weight,
        flight_numbers=body.flight_numbers.as_json() if body.flight_numbers else None,
        reward_amount=body.reward_amount,
        notes=body.notes,
    )
    db.add(disc)
    db.commit()
    db.refresh(disc)
    log.info("disc_id=%s created by user=%s", disc.id, owner_id)
    return disc


def get_owned_disc(db: Session, disc_id: int | None, user_id: str) -> Disc:
    if not disc_id:
        raise ValidationError("disc_id is required")
    disc = db.get(Disc, disc_id)
    if not disc:
        raise NotFoundError("Disc not found")
    if disc.owner_id != user_id:
        raise PermissionDeniedError("Forbidden: You do not own this disc")
    return disc


def update_disc(db: Session, user_id: str, body: UpdateDiscRequest) -> Disc:
    disc = get_owned_disc(db, body.disc_id, user_id)
    provided = body.model_fields_set
    if "mold" in provided:
        mold = _clean(body.mold)
        if not mold:
            raise ValidationError("Mold is required")
        disc.mold = mold
        disc.name = mold
    for field in _TEXT_FIELDS:
        if field in provided:
            setattr(disc, field, _clean(getattr(body, field)))
    for field in _VALUE_FIELDS:
        if field in provided:
            setattr(disc, field, getattr(body, field))
    if "flight_numbers" in provided:
        disc.flight_numbers = body.flight_numbers.as_json() if body.flight_numbers else None
    disc.updated_at = datetime.utcnow()
    db.add(disc)
    db.commit()
    db.refresh(disc)
    return disc


def delete_disc(db: Session, user_id: str, disc_id: int | None) -> None:
    """Removes the disc with its photos and recovery history. Its sticker goes back to the holder unbound."""
    disc = get_owned_disc(db, disc_id, user_id)
    if disc.qr_code_id is not None:
        db.exec(
            update(QRCode)
            .where(QRCode.id == disc.qr_code_id)
            .values(status=QRCodeStatus.GENERATED.value)
        )
    db.exec(delete(RecoveryEvent).where(RecoveryEvent.disc_id == disc.id))
    db.exec(delete(DiscPhoto).where(DiscPhoto.disc_id == disc.id))
    db.delete(disc)
    db.commit()
    log.info("disc_id=%s deleted by user=%s", disc_id, user_id)


def assign_qr_code(db: Session, user_id: str, disc_id: int | None, short_code: str | None) -> tuple[Disc, QRCode]:
    """Binds one of the caller's generated codes to one of the caller's discs."""
    code = normalize_short_code(short_code or "")
    if not code:
        raise ValidationError("short_code is required")
    disc = get_owned_disc(db, disc_id, user_id)
    qr = db.exec(select(QRCode).where(QRCode.short_code == code)).first()
    if not qr or qr.assigned_to != user_id:
        raise NotFoundError("QR code not found")
    if qr.status != QRCodeStatus.GENERATED.value:
        raise ConflictError(f"QR code is already {qr.status}")
    if disc.qr_code_id is not None:
        raise ConflictError("Disc already has a QR code")
    qr.status = QRCodeStatus.ASSIGNED.value
    disc.qr_code_id = qr.id
    disc.updated_at = datetime.utcnow()
    db.add(qr)
    db.add(disc)
    db.commit()
    db.refresh(disc)
    db.refresh(qr)
    log.info("qr_code=%s assigned to disc_id=%s", qr.short_code, disc.id)
    return disc, qr
