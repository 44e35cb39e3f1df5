from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.batch_model import BatchModel
from app.models.batch_subscription_assignment_model import (
    BatchSubscriptionAssignmentModel,
)
from app.models.exam_model import ExamModel, exam_batches
from app.models.student_subscription_model import StudentSubscriptionModel
from app.models.user_model import UserModel, UserRole
from app.schemas.eligibility import (
    AssignmentRecord,
    BatchRecord,
    ExamRecord,
    StudentRecord,
    SubscriptionRecord,
)
from app.services.eligibility import latest_subscription
from app.utils.error_handling import handle_database_errors


class SqlEligibilityDataSource:
    """Eligibility lookups backed by the application database."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @handle_database_errors("load student")
    async def get_student(self, student_id: int) -> Optional[StudentRecord]:
        """Get a student account by ID; admin accounts are not students."""
        result = await self.db.execute(
            select(UserModel)
            .filter(UserModel.id == student_id)
            .filter(UserModel.role == UserRole.STUDENT.value)
        )
        student = result.scalar_one_or_none()
        return StudentRecord.model_validate(student) if student else None

    @handle_database_errors("load batch")
    async def get_batch(self, batch_id: int) -> Optional[BatchRecord]:
        batch = await self.db.get(BatchModel, batch_id)
        return BatchRecord.model_validate(batch) if batch else None

    @handle_database_errors("load batch subscription assignment")
    async def get_active_batch_assignment(
        self, batch_id: int
    ) -> Optional[AssignmentRecord]:
        """Get the active plan assignment for a batch.

        Several active assignments per batch are representable; the earliest
        one wins so repeated calls agree.
        """
        result = await self.db.execute(
            select(BatchSubscriptionAssignmentModel)
            .filter(BatchSubscriptionAssignmentModel.batch_id == batch_id)
            .filter(BatchSubscriptionAssignmentModel.is_active.is_(True))
            .order_by(
                BatchSubscriptionAssignmentModel.assignment_date.asc(),
                BatchSubscriptionAssignmentModel.id.asc(),
            )
            .limit(1)
        )
        assignment = result.unique().scalar_one_or_none()
        return AssignmentRecord.model_validate(assignment) if assignment else None

    @handle_database_errors("load student subscription")
    async def get_student_subscription(
        self, student_id: int
    ) -> Optional[SubscriptionRecord]:
        """Get the subscription that decides the student's eligibility.

        Students hold a handful of rows at most, so all are loaded and the
        tie-break is applied by ``latest_subscription``.
        """
        result = await self.db.execute(
            select(StudentSubscriptionModel).filter(
                StudentSubscriptionModel.student_id == student_id
            )
        )
        return latest_subscription(
            SubscriptionRecord.model_validate(subscription)
            for subscription in result.unique().scalars().all()
        )

    @handle_database_errors("load exams for batch")
    async def get_exams_for_batch(self, batch_id: int) -> list[ExamRecord]:
        result = await self.db.execute(
            select(ExamModel)
            .join(exam_batches, exam_batches.c.exam_id == ExamModel.id)
            .filter(exam_batches.c.batch_id == batch_id)
            .order_by(ExamModel.created_at.desc(), ExamModel.id.desc())
        )
        return [ExamRecord.model_validate(exam) for exam in result.scalars().all()]

    @handle_database_errors("load exam")
    async def get_exam(self, exam_id: int) -> Optional[ExamRecord]:
        exam = await self.db.get(ExamModel, exam_id)
        return ExamRecord.model_validate(exam) if exam else None
