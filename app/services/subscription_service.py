import calendar
import hashlib
import hmac
import math
from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.student_subscription_model import (
    StudentSubscriptionModel,
    SubscriptionStatus,
)
from app.models.subscription_plan_model import SubscriptionPlanModel
from app.models.user_model import UserModel, UserRole
from app.schemas.subscription import SubscriptionStatusSummary
from app.services.eligibility import EligibilityDataSource, is_subscription_expired

logger = structlog.get_logger()

SECONDS_PER_DAY = 24 * 60 * 60
MIN_PLAN_MONTHS = 1
MAX_PLAN_MONTHS = 999


def add_months(start: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the length of the target month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


def verify_payment_signature(
    order_id: str, payment_id: str, signature: str, secret: str
) -> bool:
    """Check a Razorpay payment signature.

    The gateway signs ``"{order_id}|{payment_id}"`` with HMAC-SHA256 using the
    key secret and sends the hex digest.
    """
    if not secret:
        return False
    expected = hmac.new(
        secret.encode("utf-8"),
        f"{order_id}|{payment_id}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))


async def get_subscription_status(
    source: EligibilityDataSource, student_id: int, now: datetime
) -> Optional[SubscriptionStatusSummary]:
    """Summarise a student's subscription for dashboard display.

    Args:
        source: Eligibility data source
        student_id: ID of the student
        now: Evaluation time

    Returns:
        Summary, or None if the student is unknown or has no batch
    """
    student = await source.get_student(student_id)
    if student is None or student.batch_id is None:
        return None

    assignment = await source.get_active_batch_assignment(student.batch_id)
    if assignment is None:
        return SubscriptionStatusSummary(
            has_assignment=False,
            message="No subscription plan assigned to your batch",
        )

    subscription = await source.get_student_subscription(student_id)
    if subscription is None:
        return SubscriptionStatusSummary(
            has_assignment=True,
            has_subscription=False,
            required_plan=assignment.plan,
            message="Please subscribe to access exams",
        )

    is_expired = is_subscription_expired(subscription, now)
    days_until_expiry = 0
    if not is_expired:
        remaining = (subscription.end_date - now).total_seconds()
        days_until_expiry = math.ceil(remaining / SECONDS_PER_DAY)

    return SubscriptionStatusSummary(
        has_assignment=True,
        has_subscription=True,
        required_plan=assignment.plan,
        subscription=subscription,
        is_expired=is_expired,
        days_until_expiry=days_until_expiry,
        status=subscription.status,
        message=(
            "Subscription expired"
            if is_expired
            else f"Active ({days_until_expiry} days remaining)"
        ),
    )


async def ensure_plan_assigned_to_batch(
    source: EligibilityDataSource, batch_id: Optional[int], plan_id: int
) -> None:
    """Only the plan a student's batch requires can be bought.

    Raises:
        ValidationError: If the student has no batch, the batch has no active
            plan, or the plan differs from the requested one
    """
    assignment = (
        await source.get_active_batch_assignment(batch_id)
        if batch_id is not None
        else None
    )
    if assignment is None or assignment.plan.id != plan_id:
        raise ValidationError(
            "This plan is not assigned to your batch", field="plan_id"
        )


async def activate_subscription(
    db: AsyncSession,
    student_id: int,
    plan_id: int,
    payment_id: str,
    now: datetime,
) -> StudentSubscriptionModel:
    """Record a paid subscription for a student.

    A student holds at most one active subscription. Active rows whose end
    date has already passed are marked expired before the new row is added.

    Args:
        db: Database session
        student_id: ID of the paying student
        plan_id: ID of the purchased plan
        payment_id: Payment gateway payment ID
        now: Activation time; the subscription starts here

    Returns:
        The newly created subscription

    Raises:
        NotFoundError: If the student or an active plan does not exist
        ValidationError: If the plan duration is outside 1..999 months
        ConflictError: If the student already has a current active subscription
    """
    plan = await db.get(SubscriptionPlanModel, plan_id)
    if plan is None or not plan.is_active:
        raise NotFoundError("Subscription plan not found", resource_type="plan")
    if not MIN_PLAN_MONTHS <= plan.duration_months <= MAX_PLAN_MONTHS:
        raise ValidationError(
            f"Plan duration must be between {MIN_PLAN_MONTHS} and {MAX_PLAN_MONTHS} months",
            field="duration_months",
        )

    student = await db.get(UserModel, student_id)
    if student is None or student.role != UserRole.STUDENT.value:
        raise NotFoundError("Student not found", resource_type="student")

    result = await db.execute(
        select(StudentSubscriptionModel)
        .filter(StudentSubscriptionModel.student_id == student_id)
        .filter(StudentSubscriptionModel.status == SubscriptionStatus.ACTIVE)
    )
    for existing in result.unique().scalars().all():
        if now > existing.end_date:
            existing.status = SubscriptionStatus.EXPIRED
            logger.info(
                "Marked stale subscription expired",
                subscription_id=existing.id,
                student_id=student_id,
            )
        else:
            raise ConflictError("Student already has an active subscription")

    subscription = StudentSubscriptionModel(
        student_id=student_id,
        plan=plan,
        college_id=student.college_id,
        start_date=now,
        end_date=add_months(now, plan.duration_months),
        status=SubscriptionStatus.ACTIVE,
        payment_id=payment_id,
        amount=plan.price,
        auto_renew=False,
    )
    db.add(subscription)
    await db.commit()
    await db.refresh(subscription)

    logger.info(
        "Subscription activated",
        subscription_id=subscription.id,
        student_id=student_id,
        plan_id=plan_id,
        end_date=subscription.end_date.isoformat(),
    )
    return subscription


async def expire_subscriptions(db: AsyncSession, now: datetime) -> int:
    """Mark every active subscription whose end date has passed as expired.

    Returns:
        Number of subscriptions updated
    """
    result = await db.execute(
        update(StudentSubscriptionModel)
        .where(StudentSubscriptionModel.status == SubscriptionStatus.ACTIVE)
        .where(StudentSubscriptionModel.end_date < now)
        .values(status=SubscriptionStatus.EXPIRED)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    count = result.rowcount
    logger.info("Expired subscriptions", count=count)
    return count
