"""Script to mark subscriptions past their end date as expired.

Intended to run periodically (e.g. a daily cron job) so stored statuses
match what the eligibility resolver computes from end dates.
"""

import asyncio
from datetime import datetime, timezone

from app.database import AsyncSessionLocal
from app.services.subscription_service import expire_subscriptions
from app.utils.logger import get_logger

logger = get_logger(__name__)


async def run() -> int:
    async with AsyncSessionLocal() as session:
        return await expire_subscriptions(session, datetime.now(timezone.utc))


def main() -> None:
    try:
        count = asyncio.run(run())
        logger.info("Subscription expiry sweep completed", expired=count)
    except Exception as e:
        logger.error("Subscription expiry sweep failed", error=str(e))
        raise


if __name__ == "__main__":
    main()
