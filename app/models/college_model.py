from sqlalchemy import Boolean, Column, DateTime, Integer, String, func

from app.database import Base


class CollegeModel(Base):
    """College that owns batches and can be offered subscription plans"""

    __tablename__ = "colleges"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    code = Column(String(10), unique=True, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())
