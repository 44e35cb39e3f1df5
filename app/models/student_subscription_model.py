from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    func,
    text,
)
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from app.database import Base
from app.models.subscription_plan_model import SubscriptionPlanModel


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"


class StudentSubscriptionModel(Base):
    """A student's purchase record against a plan. Rows are never hard-deleted."""

    __tablename__ = "student_subscriptions"
    __table_args__ = (
        Index("ix_student_subscriptions_student_status", "student_id", "status"),
        Index("ix_student_subscriptions_end_date_status", "end_date", "status"),
        # At most one active subscription per student
        Index(
            "uq_student_subscriptions_one_active",
            "student_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
        ),
    )

    id = Column(Integer, primary_key=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    plan_id = Column(Integer, ForeignKey("subscription_plans.id"), nullable=False)
    college_id = Column(Integer, ForeignKey("colleges.id"), nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    status = Column(
        SQLEnum(
            SubscriptionStatus,
            name="subscription_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=SubscriptionStatus.ACTIVE,
    )
    payment_id = Column(String(100), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    auto_renew = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    plan = relationship(SubscriptionPlanModel, lazy="joined")
