from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from app.database import Base
from app.models.subscription_plan_model import SubscriptionPlanModel


class BatchSubscriptionAssignmentModel(Base):
    """Records that a batch requires a given subscription plan for exam access.

    Uniqueness covers (batch, plan) only, so more than one active plan per
    batch is representable.
    """

    __tablename__ = "batch_subscription_assignments"
    __table_args__ = (
        UniqueConstraint("batch_id", "plan_id", name="uq_batch_assignment_batch_plan"),
    )

    id = Column(Integer, primary_key=True)
    batch_id = Column(Integer, ForeignKey("batches.id"), nullable=False, index=True)
    plan_id = Column(Integer, ForeignKey("subscription_plans.id"), nullable=False)
    college_id = Column(Integer, ForeignKey("colleges.id"), nullable=False)
    assigned_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    assignment_date = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    notes = Column(String(500), nullable=True)

    plan = relationship(SubscriptionPlanModel, lazy="joined")
