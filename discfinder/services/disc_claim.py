"""Claiming an ownerless (abandoned) disc."""
import logging
from datetime import datetime

from sqlalchemy import update
from sqlmodel import Session

from discfinder.core.errors import ConflictError, NotFoundError
from discfinder.models import AuditLog, Disc, RecoveryEvent, RecoveryStatus

log = logging.getLogger("discfinder.discs")

ALREADY_OWNED = "This disc already has an owner and cannot be claimed"


def claim_disc(db: Session, disc_id: int, user_id: str) -> Disc:
    """
    Sets the caller as owner and closes abandoned recovery events, in one
    transaction. The owner check is a conditional update, so of two concurrent
    claimers exactly one wins.
    """
    disc = db.get(Disc, disc_id)
    if not disc:
        raise NotFoundError("Disc not found")
    if disc.owner_id is not None:
        raise ConflictError(ALREADY_OWNED)

    now = datetime.utcnow()
    result = db.exec(
        update(Disc)
        .where(Disc.id == disc_id, Disc.owner_id.is_(None))
        .values(owner_id=user_id, updated_at=now)
    )
    if result.rowcount != 1:
        db.rollback()
        log.info("disc_id=%s claimed concurrently by another user", disc_id)
        raise ConflictError(ALREADY_OWNED)
    closed = db.exec(
        update(RecoveryEvent)
        .where(
            RecoveryEvent.disc_id == disc_id,
            RecoveryEvent.status == RecoveryStatus.ABANDONED.value,
        )
        .values(status=RecoveryStatus.RECOVERED.value, recovered_at=now, updated_at=now)
    )
    db.add(AuditLog(event="disc_claimed", user_id=user_id, subject=f"disc:{disc_id}"))
    db.commit()
    db.refresh(disc)
    log.info("disc_id=%s claimed by user=%s, closed %s abandoned recoveries", disc_id, user_id, closed.rowcount)
    return disc
