from typing import Callable, Iterable, Optional

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.config import settings

PUBLIC_PATHS = (
    "/docs",
    "/redoc",
    "/openapi.json",
    f"{settings.API_V1_STR}/openapi.json",
    f"{settings.API_V1_STR}/health",
)

PUBLIC_PATH_PREFIXES = ("/docs/", "/redoc/")


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Reject requests without a Bearer token before they reach the portal routes.

    Only the presence of the header is checked here. Token validation and the
    student role check happen in the endpoint dependencies.
    """

    def __init__(
        self,
        app: ASGIApp,
        public_paths: Optional[Iterable[str]] = None,
        public_path_prefixes: Optional[Iterable[str]] = None,
    ):
        super().__init__(app)
        self.public_paths = frozenset(public_paths or PUBLIC_PATHS)
        self.public_path_prefixes = tuple(public_path_prefixes or PUBLIC_PATH_PREFIXES)

    def is_public(self, path: str) -> bool:
        return path in self.public_paths or path.startswith(self.public_path_prefixes)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # CORS preflight never carries credentials
        if request.method == "OPTIONS" or self.is_public(request.url.path):
            return await call_next(request)

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={
                    "error": {
                        "code": "AUTHENTICATION_ERROR",
                        "message": "Authentication required",
                    }
                },
            )

        return await call_next(request)


def setup_auth_middleware(app: FastAPI):
    """
    Set up the authentication middleware for the application.

    Args:
        app: The FastAPI application
    """
    app.add_middleware(AuthMiddleware)
