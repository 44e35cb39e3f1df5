import os
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import structlog
from dotenv import load_dotenv

# Load .env file before importing app modules
load_dotenv(override=True)

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from app.api.v1.router import api_router
from app.config import settings
from app.exceptions import ExamPortalException, extract_sql_error_message
from app.middleware.auth import setup_auth_middleware

logger = structlog.get_logger()

CORS_ORIGINS = (
    ["http://localhost:3000"]
    if settings.ENVIRONMENT == "local"
    else [origin for origin in os.getenv("CORS_ORIGINS", "").split(",") if origin]
)

# Constraint names mapped to the message a student should see
CONSTRAINT_MESSAGES = {
    "uq_student_subscriptions_one_active": (
        409,
        "CONFLICT_ERROR",
        "Student already has an active subscription",
    ),
    "uq_batch_assignment_batch_plan": (
        409,
        "CONFLICT_ERROR",
        "This plan is already assigned to the batch",
    ),
}


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """Build the ``{"error": {...}}`` body shared by every error handler."""
    error: Dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"error": error})


def _request_context(request: Request) -> Dict[str, str]:
    return {"path": request.url.path, "method": request.method}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting exam portal API", environment=settings.ENVIRONMENT)
    try:
        yield
    finally:
        logger.info("Shutting down exam portal API")


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version="1.0.0",
        description="Exam portal API: subscription-gated exam access for college batches",
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}
    }

    # Everything except the health check needs a token
    for path_data in openapi_schema["paths"].values():
        for method, method_data in path_data.items():
            if method.upper() != "OPTIONS" and "Health" not in method_data.get("tags", []):
                method_data["security"] = [{"BearerAuth": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi


@app.exception_handler(ExamPortalException)
async def exam_portal_exception_handler(
    request: Request, exc: ExamPortalException
) -> JSONResponse:
    """Render application exceptions; details are hidden in prod."""
    logger.error(
        "Application error",
        error_code=exc.error_code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        **_request_context(request),
    )
    details = exc.details if settings.ENVIRONMENT != "prod" else None
    return error_response(exc.status_code, exc.error_code, exc.message, details)


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(
    request: Request, exc: PydanticValidationError
) -> JSONResponse:
    logger.error("Validation error", errors=exc.errors(), **_request_context(request))

    validation_errors = [
        {
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return error_response(
        422,
        "VALIDATION_ERROR",
        "Input validation failed",
        {"validation_errors": validation_errors},
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(
    request: Request, exc: IntegrityError
) -> JSONResponse:
    """Map constraint violations to conflicts or bad requests."""
    error_msg = str(exc.orig) if exc.orig else str(exc)
    logger.error("Database integrity error", error=error_msg, **_request_context(request))

    for constraint, (status_code, code, message) in CONSTRAINT_MESSAGES.items():
        if constraint in error_msg:
            return error_response(status_code, code, message)

    lowered = error_msg.lower()
    if "foreign key constraint" in lowered:
        message = "Referenced record does not exist"
    elif "not null constraint" in lowered:
        message = "Required field is missing"
    else:
        message = "Data integrity error"
    return error_response(400, "INTEGRITY_ERROR", message)


@app.exception_handler(OperationalError)
async def operational_error_handler(
    request: Request, exc: OperationalError
) -> JSONResponse:
    logger.error(
        "Database operational error",
        error=str(exc.orig) if exc.orig else str(exc),
        **_request_context(request),
    )
    return error_response(
        503,
        "DATABASE_UNAVAILABLE",
        "Database is temporarily unavailable. Please try again later.",
    )


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    user_message, technical_details = extract_sql_error_message(exc)
    logger.exception(
        "Database error",
        error_type=type(exc).__name__,
        technical_details=technical_details,
        **_request_context(request),
    )

    details = None
    if settings.ENVIRONMENT == "local":
        details = {
            "technical_details": technical_details,
            "exception_type": type(exc).__name__,
        }
    return error_response(500, "DATABASE_ERROR", user_message, details)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    logger.warning(
        "HTTP error",
        status_code=exc.status_code,
        detail=exc.detail,
        **_request_context(request),
    )
    return error_response(exc.status_code, "HTTP_ERROR", exc.detail)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        **_request_context(request),
    )
    return error_response(
        500, "INTERNAL_ERROR", "An unexpected error occurred. Please try again later."
    )


# Added first so CORS wraps it and its 401s carry CORS headers
setup_auth_middleware(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_STR)
