"""Records and result types for exam-access eligibility.

The record models are the read-only views the eligibility resolver works on;
they are built from ORM rows (``from_attributes``) or directly in tests. The
result is a tagged union of :class:`Eligible` and :class:`Ineligible`.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from app.models.student_subscription_model import SubscriptionStatus


class StudentRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    batch_id: Optional[int] = None
    is_blocked: bool = False


class BatchRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    college_id: int
    is_active: bool = True


class PlanRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: Decimal
    duration_months: int
    is_active: bool = True


class AssignmentRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    batch_id: int
    plan: PlanRecord
    is_active: bool
    assignment_date: datetime


class SubscriptionRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    student_id: int
    plan: PlanRecord
    start_date: datetime
    end_date: datetime
    status: SubscriptionStatus
    payment_id: str
    amount: Decimal
    created_at: Optional[datetime] = None


class ExamRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    duration_minutes: int
    total_marks: int
    max_attempts: int = 1
    is_active: bool = True


class ReasonCode(str, Enum):
    """Why a student cannot access exams, in check order."""

    STUDENT_NOT_FOUND = "STUDENT_NOT_FOUND"
    NO_BATCH_ASSIGNED = "NO_BATCH_ASSIGNED"
    BATCH_NOT_FOUND = "BATCH_NOT_FOUND"
    BATCH_NOT_ASSIGNED_TO_PLAN = "BATCH_NOT_ASSIGNED_TO_PLAN"
    NO_SUBSCRIPTION = "NO_SUBSCRIPTION"
    SUBSCRIPTION_EXPIRED = "SUBSCRIPTION_EXPIRED"
    SUBSCRIPTION_NOT_ACTIVE = "SUBSCRIPTION_NOT_ACTIVE"
    PLAN_MISMATCH = "PLAN_MISMATCH"
    NO_EXAMS_ASSIGNED = "NO_EXAMS_ASSIGNED"

    # Single-exam access gate
    EXAM_NOT_FOUND = "EXAM_NOT_FOUND"
    EXAM_NOT_ASSIGNED_TO_BATCH = "EXAM_NOT_ASSIGNED_TO_BATCH"


class ResponsibleParty(str, Enum):
    ADMIN = "admin"
    STUDENT = "student"


class Remediation(BaseModel):
    responsible_party: ResponsibleParty
    message: str


REMEDIATIONS: dict[ReasonCode, Remediation] = {
    ReasonCode.STUDENT_NOT_FOUND: Remediation(
        responsible_party=ResponsibleParty.ADMIN,
        message="Student account not found. Please contact your administrator.",
    ),
    ReasonCode.NO_BATCH_ASSIGNED: Remediation(
        responsible_party=ResponsibleParty.ADMIN,
        message="You are not assigned to any batch. An administrator must assign you to a batch.",
    ),
    ReasonCode.BATCH_NOT_FOUND: Remediation(
        responsible_party=ResponsibleParty.ADMIN,
        message="Your batch could not be found. An administrator must fix your batch assignment.",
    ),
    ReasonCode.BATCH_NOT_ASSIGNED_TO_PLAN: Remediation(
        responsible_party=ResponsibleParty.ADMIN,
        message="This batch is not assigned to any subscription plan. An administrator must assign one.",
    ),
    ReasonCode.NO_SUBSCRIPTION: Remediation(
        responsible_party=ResponsibleParty.STUDENT,
        message="No subscription found. Please subscribe to access exams.",
    ),
    ReasonCode.SUBSCRIPTION_EXPIRED: Remediation(
        responsible_party=ResponsibleParty.STUDENT,
        message="Your subscription has expired. Please renew to access exams.",
    ),
    ReasonCode.SUBSCRIPTION_NOT_ACTIVE: Remediation(
        responsible_party=ResponsibleParty.STUDENT,
        message="Your subscription is not active. Please contact support.",
    ),
    ReasonCode.PLAN_MISMATCH: Remediation(
        responsible_party=ResponsibleParty.STUDENT,
        message="Your current subscription plan does not match the required plan for this batch.",
    ),
    ReasonCode.NO_EXAMS_ASSIGNED: Remediation(
        responsible_party=ResponsibleParty.ADMIN,
        message="No exams are assigned to your batch yet. An administrator must assign exams.",
    ),
    ReasonCode.EXAM_NOT_FOUND: Remediation(
        responsible_party=ResponsibleParty.ADMIN,
        message="The requested exam does not exist.",
    ),
    ReasonCode.EXAM_NOT_ASSIGNED_TO_BATCH: Remediation(
        responsible_party=ResponsibleParty.ADMIN,
        message="This exam is not assigned to your batch.",
    ),
}


class IneligibilityDetail(BaseModel):
    """Context for an ineligible verdict; only the fields relevant to the reason are set."""

    student_id: int
    batch_id: Optional[int] = None
    required_plan: Optional[PlanRecord] = None
    current_plan: Optional[PlanRecord] = None
    subscription_id: Optional[int] = None
    subscription_status: Optional[SubscriptionStatus] = None
    expired_at: Optional[datetime] = None
    exam_id: Optional[int] = None


class Eligible(BaseModel):
    status: Literal["eligible"] = "eligible"
    batch_id: int
    subscription_plan: PlanRecord
    subscription: SubscriptionRecord
    exam_count: int
    exams: list[ExamRecord] = Field(default_factory=list)

    @property
    def is_eligible(self) -> bool:
        return True


class Ineligible(BaseModel):
    status: Literal["ineligible"] = "ineligible"
    reason_code: ReasonCode
    detail: IneligibilityDetail

    @property
    def is_eligible(self) -> bool:
        return False

    @property
    def remediation(self) -> Remediation:
        return REMEDIATIONS[self.reason_code]


EligibilityResult = Annotated[Union[Eligible, Ineligible], Field(discriminator="status")]


class EligibilityData(BaseModel):
    result: EligibilityResult
    remediation: Optional[Remediation] = None


class EligibilityResponse(BaseModel):
    """Envelope returned by the student eligibility endpoints"""

    success: bool
    message: str
    data: EligibilityData


class ExamListResponse(BaseModel):
    success: bool = True
    exams: list[ExamRecord]
    subscription: SubscriptionRecord
    total_exams: int
