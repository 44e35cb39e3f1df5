from typing import Optional

from pydantic import BaseModel, Field

from app.models.student_subscription_model import SubscriptionStatus
from app.schemas.eligibility import PlanRecord, SubscriptionRecord


class SubscriptionStatusSummary(BaseModel):
    """Dashboard view of a student's subscription against their batch's plan."""

    has_assignment: bool
    has_subscription: bool = False
    required_plan: Optional[PlanRecord] = None
    subscription: Optional[SubscriptionRecord] = None
    is_expired: Optional[bool] = None
    days_until_expiry: Optional[int] = None
    status: Optional[SubscriptionStatus] = None
    message: str


class SubscriptionStatusResponse(BaseModel):
    success: bool = True
    subscription_status: Optional[SubscriptionStatusSummary] = None
    available_plans: list[PlanRecord] = Field(default_factory=list)


class PaymentVerificationRequest(BaseModel):
    """Payment gateway callback data for a subscription purchase"""

    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)
    plan_id: int


class SubscriptionActivationResponse(BaseModel):
    success: bool = True
    message: str
    data: SubscriptionRecord
