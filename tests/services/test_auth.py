from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import jwt
import pytest
from fastapi.security import HTTPAuthorizationCredentials

from app.config import settings
from app.exceptions import AuthenticationError, AuthorizationError
from app.models.user_model import UserModel
from app.services.auth import create_access_token, decode_token, get_current_user
from app.utils.deps import get_current_student_dependency


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def test_access_token_carries_user_and_role():
    payload = decode_token(create_access_token(7, "student"))

    assert payload["sub"] == "7"
    assert payload["role"] == "student"
    assert payload["type"] == "access"


def test_expired_token_is_rejected():
    token = jwt.encode(
        {"sub": "7", "type": "access", "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )

    with pytest.raises(AuthenticationError) as exc_info:
        decode_token(token)

    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Token has expired"


def test_token_signed_with_other_key_is_rejected():
    token = jwt.encode({"sub": "7", "type": "access"}, "not-the-key", algorithm="HS256")

    with pytest.raises(AuthenticationError) as exc_info:
        decode_token(token)

    assert exc_info.value.message == "Invalid token"


@pytest.mark.asyncio
async def test_get_current_user(fake_session):
    user = UserModel(id=7, name="Asha Rao", email="asha@example.com", role="student")
    fake_session.rows = [user]

    assert await get_current_user(fake_session, _credentials(create_access_token(7, "student"))) is user


@pytest.mark.asyncio
async def test_get_current_user_unknown_subject(fake_session):
    with pytest.raises(AuthenticationError) as exc_info:
        await get_current_user(fake_session, _credentials(create_access_token(7, "student")))

    assert exc_info.value.message == "User not found"


@pytest.mark.asyncio
async def test_get_current_user_rejects_non_access_token(fake_session):
    token = jwt.encode(
        {"sub": "7", "type": "refresh"}, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM
    )

    with pytest.raises(AuthenticationError) as exc_info:
        await get_current_user(fake_session, _credentials(token))

    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_student_dependency_rejects_admin():
    admin = SimpleNamespace(id=2, is_student=False, is_blocked=False)

    with pytest.raises(AuthorizationError) as exc_info:
        await get_current_student_dependency(admin)

    assert exc_info.value.status_code == 403
    assert exc_info.value.message == "Student access required"


@pytest.mark.asyncio
async def test_student_dependency_rejects_blocked_student():
    blocked = SimpleNamespace(id=3, is_student=True, is_blocked=True)

    with pytest.raises(AuthorizationError) as exc_info:
        await get_current_student_dependency(blocked)

    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_get_current_user_rejects_non_ascii_digit_subject(fake_session):
    token = jwt.encode(
        {"sub": "²", "type": "access"}, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM
    )

    with pytest.raises(AuthenticationError) as exc_info:
        await get_current_user(fake_session, _credentials(token))

    assert exc_info.value.message == "Invalid token payload"
    assert fake_session.statements == []
