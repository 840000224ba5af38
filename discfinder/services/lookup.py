"""Public QR code lookup: what a finder sees after scanning a sticker."""
from sqlmodel import Session, select

from discfinder.models import (
    ACTIVE_RECOVERY_STATUSES,
    Disc,
    DiscPhoto,
    Profile,
    QRCode,
    QRCodeStatus,
    RecoveryEvent,
)
from discfinder.services.discs import format_reward
from discfinder.services.short_code import normalize_short_code
from discfinder.services.storage import PHOTOS_BUCKET, ObjectStorage

CLAIMABLE_DISPLAY_NAME = "No Owner - Available to Claim"
ANONYMOUS_DISPLAY_NAME = "Anonymous"
_LOOKUP_STATUSES = (QRCodeStatus.ASSIGNED.value, QRCodeStatus.ACTIVE.value)


def owner_display_name(profile: Profile | None) -> str:
    """Honours the owner's display preference; never the raw id."""
    if not profile:
        return ANONYMOUS_DISPLAY_NAME
    if profile.display_preference == "full_name" and profile.full_name:
        return profile.full_name
    if profile.username:
        return profile.username
    if profile.email:
        return profile.email.split("@")[0]
    return ANONYMOUS_DISPLAY_NAME


def lookup_code(db: Session, storage: ObjectStorage, raw_code: str, current_user_id: str | None) -> dict:
    code = normalize_short_code(raw_code)
    qr = db.exec(select(QRCode).where(QRCode.short_code == code)).first()
    if not qr or qr.status not in _LOOKUP_STATUSES:
        return {"found": False}
    disc = db.exec(select(Disc).where(Disc.qr_code_id == qr.id)).first()
    if not disc:
        return {"found": False}

    is_claimable = disc.owner_id is None
    if is_claimable:
        display_name = CLAIMABLE_DISPLAY_NAME
    else:
        display_name = owner_display_name(db.get(Profile, disc.owner_id))

    active_recovery = db.exec(
        select(RecoveryEvent.id)
        .where(RecoveryEvent.disc_id == disc.id, RecoveryEvent.status.in_(ACTIVE_RECOVERY_STATUSES))
        .limit(1)
    ).first()

    photo = db.exec(select(DiscPhoto).where(DiscPhoto.disc_id == disc.id).order_by(DiscPhoto.id)).first()
    photo_url = storage.create_signed_url(PHOTOS_BUCKET, photo.storage_path, 3600) if photo else None

    return {
        "found": True,
        "disc": {
            "id": disc.id,
            "name": disc.name,
            "manufacturer": disc.manufacturer,
            "mold": disc.mold,
            "plastic": disc.plastic,
            "color": disc.color,
            "reward_amount": format_reward(disc.reward_amount),
            "owner_display_name": display_name,
            "photo_url": photo_url,
        },
        "has_active_recovery": active_recovery is not None,
        "is_owner": current_user_id is not None and current_user_id == disc.owner_id,
        "is_claimable": is_claimable,
    }
