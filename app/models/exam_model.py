from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from app.database import Base
from app.models.batch_model import BatchModel

exam_batches = Table(
    "exam_batches",
    Base.metadata,
    Column(
        "exam_id", Integer, ForeignKey("exams.id", ondelete="CASCADE"), primary_key=True
    ),
    Column(
        "batch_id",
        Integer,
        ForeignKey("batches.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class ExamModel(Base):
    """Exam owned by a college and assigned to zero or more batches"""

    __tablename__ = "exams"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    college_id = Column(Integer, ForeignKey("colleges.id"), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    total_marks = Column(Integer, nullable=False)
    max_attempts = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    assigned_batches = relationship(BatchModel, secondary=exam_batches)
