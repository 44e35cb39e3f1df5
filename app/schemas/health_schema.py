from typing import Literal

from pydantic import BaseModel


class HealthCheck(BaseModel):
    """Liveness of the API plus reachability of the portal database."""

    status: Literal["healthy"]
    database_status: Literal["healthy", "unhealthy"]
    environment: str
