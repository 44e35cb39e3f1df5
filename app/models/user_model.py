from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, func

from app.database import Base


class UserRole(str, Enum):
    ADMIN = "admin"
    STUDENT = "student"


class UserModel(Base):
    """Portal account; students carry an optional batch reference"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String(50), nullable=False)
    email = Column(String(100), unique=True, nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.STUDENT.value)
    batch_id = Column(Integer, ForeignKey("batches.id"), nullable=True, index=True)
    college_id = Column(Integer, ForeignKey("colleges.id"), nullable=True)
    roll_number = Column(String(20), nullable=True)
    is_blocked = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT.value
