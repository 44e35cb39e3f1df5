import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.exceptions import PaymentVerificationError
from app.schemas.eligibility import SubscriptionRecord
from app.schemas.subscription import (
    PaymentVerificationRequest,
    SubscriptionActivationResponse,
    SubscriptionStatusResponse,
)
from app.services.subscription_service import (
    activate_subscription,
    ensure_plan_assigned_to_batch,
    get_subscription_status,
    verify_payment_signature,
)
from app.utils.deps import CurrentStudent, EligibilitySource, Now

router = APIRouter()
logger = structlog.get_logger()


@router.get("", response_model=SubscriptionStatusResponse)
async def get_my_subscription(
    current_student: CurrentStudent, source: EligibilitySource, now: Now
):
    """
    Get the current student's subscription status and the plans they can buy.
    """
    summary = await get_subscription_status(source, current_student.id, now)

    available_plans = []
    if summary and summary.has_assignment and not summary.has_subscription:
        available_plans = [summary.required_plan]

    return SubscriptionStatusResponse(
        subscription_status=summary, available_plans=available_plans
    )


@router.post("/verify", response_model=SubscriptionActivationResponse)
async def verify_subscription_payment(
    payment: PaymentVerificationRequest,
    current_student: CurrentStudent,
    source: EligibilitySource,
    now: Now,
    db: AsyncSession = Depends(get_db),
):
    """
    Verify a payment gateway callback and activate the purchased subscription.
    """
    if not verify_payment_signature(
        payment.razorpay_order_id,
        payment.razorpay_payment_id,
        payment.razorpay_signature,
        settings.RAZORPAY_KEY_SECRET,
    ):
        logger.warning(
            "Payment signature mismatch",
            student_id=current_student.id,
            order_id=payment.razorpay_order_id,
        )
        raise PaymentVerificationError()

    # The gateway signature does not cover plan_id
    await ensure_plan_assigned_to_batch(
        source, current_student.batch_id, payment.plan_id
    )

    subscription = await activate_subscription(
        db,
        student_id=current_student.id,
        plan_id=payment.plan_id,
        payment_id=payment.razorpay_payment_id,
        now=now,
    )

    return SubscriptionActivationResponse(
        message="Payment verified and subscription activated successfully",
        data=SubscriptionRecord.model_validate(subscription),
    )
