"""Shared API dependencies for authentication, roles and quotas."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from confession_board.core.errors import Forbidden, RateLimited
from confession_board.core.security import decode_access_token
from confession_board.db.session import get_db
from confession_board.models import User
from confession_board.services.guards import ensure_can_write
from confession_board.services.rate_limit import RateLimiter, get_rate_limiter

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()
optional_bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def _resolve_user(token: str, db: Session) -> User:
    user_id = decode_access_token(token)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        HTTPException: If token is invalid or user not found
    """
    return _resolve_user(credentials.credentials, db)


def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(optional_bearer_scheme)],
    db: SessionDep,
) -> User | None:
    """Return the caller when a bearer token is sent, otherwise None.

    An invalid token is still rejected rather than treated as anonymous.
    """
    if credentials is None:
        return None
    return _resolve_user(credentials.credentials, db)


def get_active_user(current_user: Annotated[User, Depends(get_current_user)]) -> User:
    """Return the caller if their account may write content."""
    return ensure_can_write(current_user)


def require_moderator(current_user: Annotated[User, Depends(get_current_user)]) -> User:
    if not current_user.is_moderator:
        raise Forbidden("Moderator role required")
    return current_user


def require_admin(current_user: Annotated[User, Depends(get_current_user)]) -> User:
    if not current_user.is_admin:
        raise Forbidden("Administrator role required")
    return current_user


def get_rate_limiter_dep() -> RateLimiter:
    """Return the shared rate limiter."""
    return get_rate_limiter()


CurrentUserDep = Annotated[User, Depends(get_current_user)]
OptionalUserDep = Annotated[User | None, Depends(get_optional_user)]
ActiveUserDep = Annotated[User, Depends(get_active_user)]
ModeratorDep = Annotated[User, Depends(require_moderator)]
AdminDep = Annotated[User, Depends(require_admin)]
RateLimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter_dep)]


def enforce_quota(action: str) -> Callable[..., User]:
    """Build a dependency that charges ``action`` to the active caller.

    Raises:
        RateLimited: When the caller has used up the quota for ``action``.
    """

    def _dependency(current_user: ActiveUserDep, limiter: RateLimiterDep) -> User:
        if not limiter.check_quota(str(current_user.id), action):
            raise RateLimited(f"Too many {action} requests, please try again later")
        return current_user

    return _dependency
