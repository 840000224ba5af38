import hashlib
import hmac
import secrets

from jose import JWTError, jwt

from .config import settings

ALGORITHM = "HS256"


def decode_access_token(token: str) -> dict | None:
    """Verifies an identity-provider access token. None when invalid or expired."""
    try:
        return jwt.decode(
            token,
            settings.effective_jwt_secret,
            algorithms=[ALGORITHM],
            audience=settings.jwt_audience or None,
            options={"verify_aud": bool(settings.jwt_audience)},
        )
    except JWTError:
        return None


def generate_printer_token() -> str:
    """Capability credential handed to the print shop; 256 bits."""
    return secrets.token_urlsafe(32)


def constant_time_equals(provided: str | None, expected: str | None) -> bool:
    return hmac.compare_digest((provided or "").encode("utf-8"), (expected or "").encode("utf-8"))


def hmac_sha256_hex(key: str, message: str) -> str:
    return hmac.new(key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()
