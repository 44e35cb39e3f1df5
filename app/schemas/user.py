from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class UserResponse(BaseModel):
    """Schema for user response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: str
    batch_id: Optional[int] = None
    roll_number: Optional[str] = None
    is_blocked: bool
    created_at: datetime
