from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from discfinder.core.database import get_db
from discfinder.core.errors import AuthenticationError
from discfinder.core.security import decode_access_token
from discfinder.models import Profile

security = HTTPBearer(auto_error=False)


def user_id_from_request(request: Request) -> str | None:
    """Caller of a request that may not have passed auth; None if the bearer token is absent or invalid."""
    scheme, _, token = (request.headers.get("authorization") or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    payload = decode_access_token(token.strip())
    if not payload or not payload.get("sub"):
        return None
    return str(payload["sub"])


def get_token_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> dict:
    if not credentials:
        raise AuthenticationError("Missing authorization header")
    payload = decode_access_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise AuthenticationError("Unauthorized")
    return payload


def get_current_user_id(
    claims: dict = Depends(get_token_claims),
    db: Session = Depends(get_db),
) -> str:
    """Authenticated caller; the profile row is created on first sight."""
    user_id = str(claims["sub"])
    if not db.get(Profile, user_id):
        db.add(Profile(id=user_id, email=claims.get("email")))
        try:
            db.commit()
        except IntegrityError:
            # created by a parallel request of the same user
            db.rollback()
    return user_id


def get_optional_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str | None:
    """Public endpoints: a missing or bad token simply means anonymous."""
    if not credentials:
        return None
    payload = decode_access_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        return None
    return str(payload["sub"])
