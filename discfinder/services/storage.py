"""
Object storage for disc photos and sticker sheets.

Local filesystem backend under STORAGE_ROOT. Downloads go through
GET /storage/{bucket}/{path} with an HMAC signature and an expiry, so links
can be handed to finders and the print shop without a session.
"""
import time
from pathlib import Path
from urllib.parse import quote, urlencode

from discfinder.core.config import settings
from discfinder.core.security import constant_time_equals, hmac_sha256_hex

PHOTOS_BUCKET = "disc-photos"
STICKERS_BUCKET = "stickers"


class StorageError(Exception):
    pass


def _signature(bucket: str, path: str, expires: int) -> str:
    return hmac_sha256_hex(settings.effective_storage_signing_key, f"{bucket}/{path}:{expires}")


class ObjectStorage:
    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()

    def _resolve(self, bucket: str, path: str) -> Path:
        target = (self.root / bucket / path).resolve()
        # No "../" escapes out of the bucket
        if not target.is_relative_to(self.root / bucket):
            raise StorageError(f"Invalid object path: {bucket}/{path}")
        return target

    def upload(self, bucket: str, path: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        target = self._resolve(bucket, path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        return path

    def exists(self, bucket: str, path: str) -> bool:
        return self._resolve(bucket, path).is_file()

    def open_path(self, bucket: str, path: str) -> Path:
        target = self._resolve(bucket, path)
        if not target.is_file():
            raise FileNotFoundError(f"{bucket}/{path}")
        return target

    def create_signed_url(self, bucket: str, path: str, expires_in: int | None = None) -> str:
        ttl = settings.signed_url_ttl_seconds if expires_in is None else expires_in
        expires = int(time.time()) + ttl
        query = urlencode({"expires": expires, "signature": _signature(bucket, path, expires)})
        base = settings.public_base_url.rstrip("/")
        return f"{base}/storage/{quote(bucket)}/{quote(path)}?{query}"

    @staticmethod
    def verify_signature(bucket: str, path: str, expires: int, signature: str, now: float | None = None) -> bool:
        if expires < (time.time() if now is None else now):
            return False
        return constant_time_equals(signature, _signature(bucket, path, expires))


_storage: ObjectStorage | None = None


def get_storage() -> ObjectStorage:
    """FastAPI dependency; tests override it with a tmp_path backed instance."""
    global _storage
    if _storage is None:
        _storage = ObjectStorage(settings.storage_root)
    return _storage
