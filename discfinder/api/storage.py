from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from discfinder.services.storage import ObjectStorage, StorageError, get_storage

router = APIRouter(tags=["storage"])

_MEDIA_TYPES = {".pdf": "application/pdf", ".jpg": "image/jpeg", ".jpeg": "image/jpeg", ".png": "image/png", ".webp": "image/webp"}


@router.get("/storage/{bucket}/{path:path}")
def download_object(
    bucket: str,
    path: str,
    expires: int | None = None,
    signature: str | None = None,
    storage: ObjectStorage = Depends(get_storage),
):
    """Serves a stored object to the holder of a signed, unexpired link."""
    if expires is None or not signature or not storage.verify_signature(bucket, path, expires, signature):
        raise HTTPException(status_code=403, detail="Invalid or expired signature")
    try:
        target = storage.open_path(bucket, path)
    except (FileNotFoundError, StorageError):
        raise HTTPException(status_code=404, detail="Object not found")
    return FileResponse(target, media_type=_MEDIA_TYPES.get(target.suffix.lower(), "application/octet-stream"))
