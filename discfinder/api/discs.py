from fastapi import APIRouter, Depends
from sqlmodel import Session

from discfinder.api.deps import get_current_user_id
from discfinder.core.database import get_db
from discfinder.core.errors import ValidationError
from discfinder.schemas import AssignQRCodeRequest, CreateDiscRequest, DiscIdRequest, UpdateDiscRequest
from discfinder.services import discs as disc_service
from discfinder.services.disc_claim import claim_disc

router = APIRouter(tags=["discs"])


@router.post("/create-disc", status_code=201)
def create_disc(
    body: CreateDiscRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    disc = disc_service.create_disc(db, user_id, body)
    return disc_service.disc_to_dict(disc)


@router.put("/update-disc")
def update_disc(
    body: UpdateDiscRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Partial update; name follows mold."""
    disc = disc_service.update_disc(db, user_id, body)
    return disc_service.disc_to_dict(disc)


@router.delete("/delete-disc")
def delete_disc(
    body: DiscIdRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    disc_service.delete_disc(db, user_id, body.disc_id)
    return {"success": True, "message": "Disc deleted successfully"}


@router.post("/claim-disc")
def claim(
    body: DiscIdRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Take ownership of an abandoned disc."""
    if not body.disc_id:
        raise ValidationError("disc_id is required")
    disc = claim_disc(db, body.disc_id, user_id)
    return {"success": True, "disc": disc_service.disc_to_dict(disc)}


@router.post("/assign-qr-code")
def assign_qr_code(
    body: AssignQRCodeRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    disc, qr = disc_service.assign_qr_code(db, user_id, body.disc_id, body.short_code)
    return {
        "success": True,
        "disc": disc_service.disc_to_dict(disc),
        "qr_code": {"id": qr.id, "short_code": qr.short_code, "status": qr.status},
    }
