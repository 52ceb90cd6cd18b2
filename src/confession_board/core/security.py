"""Bearer token helpers for the identity collaborator."""
from __future__ import annotations

from datetime import timedelta

from jose import JWTError, jwt

from confession_board.core.settings import settings
from confession_board.db.time import utcnow


def create_access_token(user_id: int, expires_minutes: int | None = None) -> str:
    """Return a signed JWT whose subject is ``user_id``."""
    minutes = expires_minutes or settings.access_token_expire_minutes
    payload = {
        "sub": str(user_id),
        "exp": utcnow() + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> int | None:
    """Return the user id encoded in ``token`` or None when it is invalid."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    subject = payload.get("sub")
    if subject is None:
        return None
    try:
        return int(subject)
    except (TypeError, ValueError):
        return None
