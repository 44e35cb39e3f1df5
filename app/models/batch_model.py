from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)

from app.database import Base


class BatchModel(Base):
    """A cohort of students grouped under one college for exam assignment"""

    __tablename__ = "batches"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    year = Column(Integer, nullable=False)
    college_id = Column(Integer, ForeignKey("colleges.id"), nullable=False)
    department = Column(String(100), nullable=True)
    semester = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    max_attempts = Column(Integer, nullable=False, default=3)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())
