from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from app.database import Base
from app.models.college_model import CollegeModel

subscription_plan_colleges = Table(
    "subscription_plan_colleges",
    Base.metadata,
    Column(
        "plan_id",
        Integer,
        ForeignKey("subscription_plans.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "college_id",
        Integer,
        ForeignKey("colleges.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class SubscriptionPlanModel(Base):
    """Purchasable tier a college can attach to its batches"""

    __tablename__ = "subscription_plans"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    duration_months = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    colleges = relationship(CollegeModel, secondary=subscription_plan_colleges)
