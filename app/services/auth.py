from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import AuthenticationError
from app.models.user_model import UserModel

logger = structlog.get_logger()

# Security scheme for JWT Bearer token
security = HTTPBearer()


def create_access_token(user_id: int, role: str) -> str:
    """
    Create a JWT access token.

    Args:
        user_id: User ID to encode in the token
        role: Account role, checked by role-restricted endpoints

    Returns:
        Encoded JWT token string
    """
    expire = datetime.now(timezone.utc) + timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    claims = {"sub": str(user_id), "role": role, "exp": expire, "type": "access"}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT token.

    Raises:
        AuthenticationError: If the token is invalid or expired
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token")


async def get_current_user(
    db: AsyncSession, credentials: HTTPAuthorizationCredentials = Depends(security)
) -> UserModel:
    """
    Load the account named by an access token's subject.

    Raises:
        AuthenticationError: If the token is not an access token or its
            subject no longer exists
    """
    payload = decode_token(credentials.credentials)

    if payload.get("type") != "access":
        raise AuthenticationError("Invalid token type")

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not (user_id.isascii() and user_id.isdigit()):
        raise AuthenticationError("Invalid token payload")

    result = await db.execute(select(UserModel).filter(UserModel.id == int(user_id)))
    user = result.scalar_one_or_none()

    if not user:
        logger.warning("Token subject not found", user_id=user_id)
        raise AuthenticationError("User not found")

    return user
