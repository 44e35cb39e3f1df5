import asyncio
import ssl
from typing import AsyncGenerator

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from app.config import settings

logger = structlog.get_logger()


def get_connect_args():
    """Get connection arguments"""
    connect_args = {
        "timeout": 30,
        "command_timeout": 30,
    }

    if settings.ENVIRONMENT == "prod":
        ssl_context = ssl.create_default_context()
        ssl_context.check_hostname = False
        ssl_context.verify_mode = ssl.CERT_NONE
        connect_args.update(
            {
                "ssl": ssl_context,
                "server_settings": {
                    "application_name": "exam_portal",
                    "client_encoding": "utf8",
                },
            }
        )

    return connect_args


engine = create_async_engine(
    settings.DATABASE_URI,
    echo=settings.DB_ECHO_QUERIES,
    poolclass=NullPool,
    connect_args=get_connect_args(),
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


CONNECT_ATTEMPTS = 3
RETRY_DELAY_SECONDS = 1


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a request-scoped session, committed when the request succeeds.

    Only opening the session is retried. Once the session has been handed to
    the request, any error rolls it back and propagates unchanged.
    """
    for attempt in range(1, CONNECT_ATTEMPTS + 1):
        handed_out = False
        try:
            async with AsyncSessionLocal() as session:
                try:
                    handed_out = True
                    yield session
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise
            return
        except Exception as e:
            if handed_out:
                raise
            logger.error(
                "Database session attempt failed", attempt=attempt, error=str(e)
            )
            if attempt == CONNECT_ATTEMPTS:
                raise
            await asyncio.sleep(RETRY_DELAY_SECONDS)
