"""Script to explain why a student can or cannot see exams.

Looks the student up by ID or email, runs the eligibility resolver against
the live database and prints every detail a support engineer needs to fix
the first failing check.

Usage:
    python -m app.scripts.check_student_eligibility --email student@example.com
    python -m app.scripts.check_student_eligibility --student-id 42
"""

import argparse
import asyncio
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select

from app.database import AsyncSessionLocal
from app.models.user_model import UserModel
from app.schemas.eligibility import Eligible, EligibilityResult
from app.services.eligibility import describe_result, resolve_eligibility
from app.services.eligibility_repository import SqlEligibilityDataSource
from app.utils.logger import get_logger

logger = get_logger(__name__)


def format_report(result: EligibilityResult) -> list[str]:
    """Render an eligibility result as human-readable report lines."""
    if isinstance(result, Eligible):
        lines = [
            "SUCCESS: student can see exams",
            f"  Plan: {result.subscription_plan.name} ({result.subscription_plan.price})",
            f"  Subscription ends: {result.subscription.end_date.isoformat()}",
            f"  Exams assigned to batch {result.batch_id}: {result.exam_count}",
        ]
        lines.extend(f"    - {exam.name}" for exam in result.exams)
        return lines

    remediation = result.remediation
    detail = result.detail
    lines = [
        f"ISSUE: {result.reason_code.value}",
        f"  {describe_result(result)}",
        f"  Who must act: {remediation.responsible_party.value}",
    ]
    if detail.batch_id is not None:
        lines.append(f"  Batch ID: {detail.batch_id}")
    if detail.required_plan:
        lines.append(
            f"  Required plan: {detail.required_plan.name} ({detail.required_plan.price})"
        )
    if detail.current_plan:
        lines.append(f"  Subscribed plan: {detail.current_plan.name}")
    if detail.subscription_status:
        lines.append(f"  Subscription status: {detail.subscription_status.value}")
    if detail.expired_at:
        lines.append(f"  Expired on: {detail.expired_at.isoformat()}")
    return lines


async def check_student(student_id: Optional[int], email: Optional[str]) -> EligibilityResult:
    async with AsyncSessionLocal() as session:
        if student_id is None:
            result = await session.execute(
                select(UserModel.id).filter(UserModel.email == email)
            )
            student_id = result.scalar_one_or_none()
            if student_id is None:
                raise SystemExit(f"No user found with email {email}")

        source = SqlEligibilityDataSource(session)
        return await resolve_eligibility(source, student_id, datetime.now(timezone.utc))


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--student-id", type=int)
    group.add_argument("--email")
    args = parser.parse_args()

    try:
        result = asyncio.run(check_student(args.student_id, args.email))
    except Exception as e:
        logger.error("Eligibility check failed", error=str(e))
        raise

    for line in format_report(result):
        print(line)


if __name__ == "__main__":
    main()
