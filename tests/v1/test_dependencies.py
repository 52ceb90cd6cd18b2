# tests/v1/test_dependencies.py
"""Tests for authentication, role and quota dependencies."""

from datetime import timedelta

import pytest
from fastapi import HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from confession_board.api.v1.dependencies import (
    enforce_quota,
    get_active_user,
    get_current_user,
    get_optional_user,
    require_admin,
    require_moderator,
)
from confession_board.core.errors import Forbidden, RateLimited
from confession_board.core.security import create_access_token, decode_access_token
from confession_board.core.settings import settings
from confession_board.db.time import utcnow
from confession_board.models.constants import USER_BANNED
from confession_board.services.rate_limit import RateLimiter


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestAccessTokens:
    """Round-trip and rejection cases for bearer tokens."""

    def test_token_round_trip(self):
        assert decode_access_token(create_access_token(42)) == 42

    def test_wrong_secret_rejected(self):
        token = jwt.encode({"sub": "1"}, "wrong_secret_key", algorithm=settings.jwt_algorithm)
        assert decode_access_token(token) is None

    def test_expired_token_rejected(self):
        token = jwt.encode(
            {"sub": "1", "exp": utcnow() - timedelta(minutes=1)},
            settings.secret_key,
            algorithm=settings.jwt_algorithm,
        )
        assert decode_access_token(token) is None

    @pytest.mark.parametrize("subject", [None, "alice"])
    def test_bad_subject_rejected(self, subject):
        claims = {} if subject is None else {"sub": subject}
        token = jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)
        assert decode_access_token(token) is None

    def test_malformed_token_rejected(self):
        assert decode_access_token("not.a.valid.jwt") is None


class TestGetCurrentUser:
    """Test the identity dependencies."""

    def test_get_current_user_success(self, db_session, test_user):
        user = get_current_user(_credentials(create_access_token(test_user.id)), db_session)
        assert user.id == test_user.id

    def test_unknown_user(self, db_session):
        with pytest.raises(HTTPException) as exc_info:
            get_current_user(_credentials(create_access_token(999)), db_session)
        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
        assert exc_info.value.detail == "User not found"

    def test_invalid_token(self, db_session):
        with pytest.raises(HTTPException) as exc_info:
            get_current_user(_credentials("garbage"), db_session)
        assert exc_info.value.detail == "Could not validate credentials"

    def test_optional_user(self, db_session, test_user):
        assert get_optional_user(None, db_session) is None
        token = _credentials(create_access_token(test_user.id))
        assert get_optional_user(token, db_session).id == test_user.id


class TestRoleAndStatusGuards:
    def test_banned_user_cannot_write(self, make_user):
        with pytest.raises(Forbidden):
            get_active_user(make_user(status=USER_BANNED))

    def test_roles(self, test_user, moderator, admin):
        with pytest.raises(Forbidden):
            require_moderator(test_user)
        assert require_moderator(moderator) is moderator
        assert require_moderator(admin) is admin
        with pytest.raises(Forbidden):
            require_admin(moderator)
        assert require_admin(admin) is admin

    def test_enforce_quota(self, test_user):
        limiter = RateLimiter(None, enabled=True, quotas={"comment": (1, 60)})
        dependency = enforce_quota("comment")

        assert dependency(test_user, limiter) is test_user
        with pytest.raises(RateLimited):
            dependency(test_user, limiter)
