"""
Dependency utilities for FastAPI endpoints.
"""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.exceptions import AuthorizationError
from app.models.user_model import UserModel
from app.services.auth import get_current_user, security
from app.services.eligibility import EligibilityDataSource
from app.services.eligibility_repository import SqlEligibilityDataSource


async def get_current_user_dependency(
    db=Depends(get_db), credentials: HTTPAuthorizationCredentials = Depends(security)
) -> UserModel:
    """
    Get the current authenticated user. This is a shorthand dependency that combines
    the database and authentication.
    """
    return await get_current_user(db, credentials)


CurrentUser = Annotated[UserModel, Depends(get_current_user_dependency)]


async def get_current_student_dependency(current_user: CurrentUser) -> UserModel:
    """Restrict an endpoint to students who are not blocked."""
    if not current_user.is_student:
        raise AuthorizationError("Student access required")
    if current_user.is_blocked:
        raise AuthorizationError(
            "Your account has been blocked. Please contact your administrator."
        )
    return current_user


CurrentStudent = Annotated[UserModel, Depends(get_current_student_dependency)]


async def get_eligibility_source(
    db: AsyncSession = Depends(get_db),
) -> EligibilityDataSource:
    return SqlEligibilityDataSource(db)


EligibilitySource = Annotated[EligibilityDataSource, Depends(get_eligibility_source)]


def get_clock() -> datetime:
    """Current UTC time; overridden in tests to pin the evaluation time."""
    return datetime.now(timezone.utc)


Now = Annotated[datetime, Depends(get_clock)]
