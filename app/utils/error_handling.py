"""
Error handling utilities for database lookups.
"""

from functools import wraps
from typing import Any, Callable, Dict

import structlog
from sqlalchemy.exc import SQLAlchemyError

from app.exceptions import DatabaseError, ExamPortalException, extract_sql_error_message

logger = structlog.get_logger()


def handle_database_errors(operation_name: str):
    """
    Decorator turning unexpected lookup failures into ``DatabaseError``.

    A missing row is a normal result and is returned by the wrapped function.
    Anything raised is a storage failure and must surface as an error.

    Args:
        operation_name: Name of the operation, used in logs and error details
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except ExamPortalException:
                raise
            except Exception as e:
                logger.exception(
                    "Database lookup failed", **format_database_error(e, operation_name)
                )
                raise DatabaseError(
                    f"Failed to {operation_name}", operation=operation_name
                ) from e

        return wrapper

    return decorator


def format_database_error(error: Exception, operation: str) -> Dict[str, Any]:
    """
    Format a failure into structured log fields.

    SQLAlchemy errors get the same user-facing summary the API returns.
    """
    fields: Dict[str, Any] = {
        "operation": operation,
        "error_type": type(error).__name__,
        "error_message": str(error),
    }
    if isinstance(error, SQLAlchemyError):
        fields["summary"], _ = extract_sql_error_message(error)
    return fields
