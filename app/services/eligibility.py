"""Exam-access eligibility resolution.

A student may access their batch's exams only when every check below passes,
in this order:

1. the student exists,
2. the student is assigned to a batch,
3. the batch exists,
4. the batch has an active subscription-plan assignment,
5. the student has a subscription,
6. the subscription has not passed its end date,
7. the subscription status is ``active``,
8. the subscription is for the plan the batch requires,
9. at least one exam is assigned to the batch.

The first failing check decides the verdict and later lookups are not issued.
Lookups run sequentially because the SQL data source shares one session.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional, Protocol

import structlog

from app.models.student_subscription_model import SubscriptionStatus
from app.schemas.eligibility import (
    AssignmentRecord,
    BatchRecord,
    Eligible,
    EligibilityResult,
    ExamRecord,
    Ineligible,
    IneligibilityDetail,
    ReasonCode,
    StudentRecord,
    SubscriptionRecord,
)

logger = structlog.get_logger()


class EligibilityDataSource(Protocol):
    """Read-only lookups the resolver depends on."""

    async def get_student(self, student_id: int) -> Optional[StudentRecord]: ...

    async def get_batch(self, batch_id: int) -> Optional[BatchRecord]: ...

    async def get_active_batch_assignment(
        self, batch_id: int
    ) -> Optional[AssignmentRecord]: ...

    async def get_student_subscription(
        self, student_id: int
    ) -> Optional[SubscriptionRecord]: ...

    async def get_exams_for_batch(self, batch_id: int) -> list[ExamRecord]: ...

    async def get_exam(self, exam_id: int) -> Optional[ExamRecord]: ...


def is_subscription_expired(subscription: SubscriptionRecord, now: datetime) -> bool:
    """A subscription ending exactly at ``now`` is still valid."""
    return now > subscription.end_date


_NEVER = datetime.min.replace(tzinfo=timezone.utc)


def latest_subscription(
    subscriptions: Iterable[SubscriptionRecord],
) -> Optional[SubscriptionRecord]:
    """Pick the subscription that decides eligibility.

    Latest start date wins, then latest creation time, then highest ID.
    """
    return max(
        subscriptions,
        key=lambda s: (s.start_date, s.created_at or _NEVER, s.id),
        default=None,
    )


def _ineligible(reason_code: ReasonCode, **detail) -> Ineligible:
    return Ineligible(reason_code=reason_code, detail=IneligibilityDetail(**detail))


async def resolve_eligibility(
    source: EligibilityDataSource, student_id: int, now: datetime
) -> EligibilityResult:
    """Decide whether a student can currently access exams for their batch.

    Args:
        source: Data source providing the read-only lookups
        student_id: ID of the student; the batch is taken from the student record
        now: Evaluation time, compared against the subscription end date

    Returns:
        ``Eligible`` with the matched plan, subscription and batch exams, or
        ``Ineligible`` carrying the first failing reason code

    Raises:
        DatabaseError: If a lookup fails; this is never reported as ``Ineligible``
    """
    result = await _evaluate(source, student_id, now)

    if isinstance(result, Ineligible):
        logger.info(
            "Student not eligible for exams",
            student_id=student_id,
            batch_id=result.detail.batch_id,
            reason_code=result.reason_code.value,
        )
    else:
        logger.info(
            "Student eligible for exams",
            student_id=student_id,
            plan_id=result.subscription_plan.id,
            exam_count=result.exam_count,
        )
    return result


async def _evaluate(
    source: EligibilityDataSource, student_id: int, now: datetime
) -> EligibilityResult:
    student = await source.get_student(student_id)
    if student is None:
        return _ineligible(ReasonCode.STUDENT_NOT_FOUND, student_id=student_id)

    batch_id = student.batch_id
    if batch_id is None:
        return _ineligible(ReasonCode.NO_BATCH_ASSIGNED, student_id=student_id)

    batch = await source.get_batch(batch_id)
    if batch is None:
        return _ineligible(
            ReasonCode.BATCH_NOT_FOUND, student_id=student_id, batch_id=batch_id
        )

    assignment = await source.get_active_batch_assignment(batch_id)
    if assignment is None:
        return _ineligible(
            ReasonCode.BATCH_NOT_ASSIGNED_TO_PLAN,
            student_id=student_id,
            batch_id=batch_id,
        )
    required_plan = assignment.plan

    subscription = await source.get_student_subscription(student_id)
    if subscription is None:
        return _ineligible(
            ReasonCode.NO_SUBSCRIPTION,
            student_id=student_id,
            batch_id=batch_id,
            required_plan=required_plan,
        )

    subscription_detail = dict(
        student_id=student_id,
        batch_id=batch_id,
        required_plan=required_plan,
        current_plan=subscription.plan,
        subscription_id=subscription.id,
        subscription_status=subscription.status,
    )

    if is_subscription_expired(subscription, now):
        return _ineligible(
            ReasonCode.SUBSCRIPTION_EXPIRED,
            expired_at=subscription.end_date,
            **subscription_detail,
        )

    if subscription.status != SubscriptionStatus.ACTIVE:
        return _ineligible(ReasonCode.SUBSCRIPTION_NOT_ACTIVE, **subscription_detail)

    if subscription.plan.id != required_plan.id:
        return _ineligible(ReasonCode.PLAN_MISMATCH, **subscription_detail)

    exams = await source.get_exams_for_batch(batch_id)
    if not exams:
        return _ineligible(
            ReasonCode.NO_EXAMS_ASSIGNED,
            student_id=student_id,
            batch_id=batch_id,
            required_plan=required_plan,
            subscription_id=subscription.id,
        )

    return Eligible(
        batch_id=batch_id,
        subscription_plan=required_plan,
        subscription=subscription,
        exam_count=len(exams),
        exams=exams,
    )


async def check_exam_access(
    source: EligibilityDataSource, student_id: int, exam_id: int, now: datetime
) -> EligibilityResult:
    """Decide whether a student may open one specific exam.

    The student must be eligible for their batch and the exam must be among
    the exams assigned to that batch.
    """
    result = await resolve_eligibility(source, student_id, now)
    if isinstance(result, Ineligible):
        return result

    if any(exam.id == exam_id for exam in result.exams):
        return result

    exam = await source.get_exam(exam_id)
    reason_code = (
        ReasonCode.EXAM_NOT_FOUND
        if exam is None
        else ReasonCode.EXAM_NOT_ASSIGNED_TO_BATCH
    )
    logger.info(
        "Exam access denied",
        student_id=student_id,
        exam_id=exam_id,
        reason_code=reason_code.value,
    )
    return _ineligible(
        reason_code,
        student_id=student_id,
        batch_id=result.batch_id,
        exam_id=exam_id,
    )


def describe_result(result: EligibilityResult) -> str:
    """Human-readable message for an eligibility result."""
    if isinstance(result, Eligible):
        return f"Subscription valid. {result.exam_count} exam(s) available."

    detail = result.detail
    if result.reason_code == ReasonCode.SUBSCRIPTION_NOT_ACTIVE:
        return (
            f"Your subscription is {detail.subscription_status.value}. "
            "Please contact support."
        )
    if result.reason_code == ReasonCode.PLAN_MISMATCH:
        return (
            f"You are subscribed to '{detail.current_plan.name}' but your batch "
            f"requires '{detail.required_plan.name}'."
        )
    if result.reason_code == ReasonCode.NO_SUBSCRIPTION and detail.required_plan:
        return (
            f"No subscription found. Please subscribe to "
            f"'{detail.required_plan.name}' to access exams."
        )
    return result.remediation.message
