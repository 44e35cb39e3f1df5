import structlog
from fastapi import APIRouter

from app.schemas.user import UserResponse
from app.utils.deps import CurrentUser

router = APIRouter()
logger = structlog.get_logger()


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: CurrentUser):
    """
    Get information about the currently authenticated user.
    """
    return current_user
