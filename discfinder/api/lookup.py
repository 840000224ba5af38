from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import Session

from discfinder.api.deps import get_optional_user_id
from discfinder.core.config import settings
from discfinder.core.database import get_db
from discfinder.core.rate_limit import limiter
from discfinder.services.lookup import lookup_code
from discfinder.services.storage import ObjectStorage, get_storage

router = APIRouter(tags=["lookup"])

LOOKUP_RATE_LIMIT = f"{settings.rate_limit_lookup_per_minute}/minute"


@router.get("/lookup-qr-code")
@limiter.limit(LOOKUP_RATE_LIMIT)
def lookup_qr_code(
    request: Request,
    code: str | None = None,
    user_id: str | None = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    """Public: what a finder sees after scanning a sticker. Auth only adds is_owner."""
    if not code or not code.strip():
        raise HTTPException(status_code=400, detail="Missing code parameter")
    return lookup_code(db, storage, code, user_id)
