import os
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace
from typing import Optional

import pytest
from fastapi.testclient import TestClient

# Settings are read at import time; tests never reach a real database
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("POSTGRES_SERVER", "localhost")
os.environ.setdefault("POSTGRES_USER", "postgres")
os.environ.setdefault("POSTGRES_PASSWORD", "postgres")
os.environ.setdefault("POSTGRES_DB", "exam_portal_test")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:3000")

from app.database import get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.student_subscription_model import SubscriptionStatus  # noqa: E402
from app.schemas.eligibility import (  # noqa: E402
    AssignmentRecord,
    BatchRecord,
    ExamRecord,
    PlanRecord,
    StudentRecord,
    SubscriptionRecord,
)
from app.services.eligibility import latest_subscription  # noqa: E402
from app.utils.deps import (  # noqa: E402
    get_clock,
    get_current_student_dependency,
    get_current_user_dependency,
    get_eligibility_source,
)

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)

STUDENT_ID = 1
BATCH_ID = 10


class FakeEligibilitySource:
    """In-memory eligibility lookups that record which lookups were issued."""

    def __init__(self):
        self.students: dict[int, StudentRecord] = {}
        self.batches: dict[int, BatchRecord] = {}
        self.assignments: dict[int, AssignmentRecord] = {}
        self.subscriptions: dict[int, SubscriptionRecord] = {}
        self.exams_by_batch: dict[int, list[ExamRecord]] = {}
        self.other_exams: dict[int, ExamRecord] = {}
        self.other_subscriptions: dict[int, list[SubscriptionRecord]] = {}
        self.calls: list[str] = []

    async def get_student(self, student_id: int) -> Optional[StudentRecord]:
        self.calls.append("get_student")
        return self.students.get(student_id)

    async def get_batch(self, batch_id: int) -> Optional[BatchRecord]:
        self.calls.append("get_batch")
        return self.batches.get(batch_id)

    async def get_active_batch_assignment(
        self, batch_id: int
    ) -> Optional[AssignmentRecord]:
        self.calls.append("get_active_batch_assignment")
        return self.assignments.get(batch_id)

    async def get_student_subscription(
        self, student_id: int
    ) -> Optional[SubscriptionRecord]:
        self.calls.append("get_student_subscription")
        held = list(self.other_subscriptions.get(student_id, []))
        if student_id in self.subscriptions:
            held.append(self.subscriptions[student_id])
        return latest_subscription(held)

    async def get_exams_for_batch(self, batch_id: int) -> list[ExamRecord]:
        self.calls.append("get_exams_for_batch")
        return list(self.exams_by_batch.get(batch_id, []))

    async def get_exam(self, exam_id: int) -> Optional[ExamRecord]:
        self.calls.append("get_exam")
        for exams in self.exams_by_batch.values():
            for exam in exams:
                if exam.id == exam_id:
                    return exam
        return self.other_exams.get(exam_id)


class FakeResult:
    def __init__(self, rows=None, scalar_value=None):
        self.rows = rows or []
        self.scalar_value = scalar_value

    def scalar(self):
        return self.scalar_value

    def scalar_one_or_none(self):
        return self.rows[0] if self.rows else None

    def unique(self):
        return self

    def scalars(self):
        return self

    def all(self):
        return list(self.rows)


class FakeSession:
    """Minimal stand-in for AsyncSession used by the write paths and health check."""

    def __init__(self, objects=None, rows=None, next_id: int = 900):
        self.objects = objects or {}
        self.rows = rows or []
        self.added = []
        self.statements = []
        self.committed = False
        self.next_id = next_id

    async def get(self, model, ident):
        return self.objects.get((model, ident))

    async def execute(self, statement):
        self.statements.append(statement)
        return FakeResult(rows=self.rows, scalar_value=1)

    def add(self, obj):
        self.added.append(obj)

    async def commit(self):
        self.committed = True

    async def refresh(self, obj):
        if obj.id is None:
            obj.id = self.next_id
        if obj.plan_id is None and obj.plan is not None:
            obj.plan_id = obj.plan.id


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def basic_plan() -> PlanRecord:
    return PlanRecord(id=1, name="Basic", price=Decimal("499.00"), duration_months=6)


@pytest.fixture
def premium_plan() -> PlanRecord:
    return PlanRecord(id=2, name="Premium", price=Decimal("999.00"), duration_months=12)


@pytest.fixture
def portal(basic_plan) -> FakeEligibilitySource:
    """A student whose batch requires Basic, holding a current Basic subscription."""
    source = FakeEligibilitySource()
    source.students[STUDENT_ID] = StudentRecord(
        id=STUDENT_ID, name="Asha Rao", email="asha@example.com", batch_id=BATCH_ID
    )
    source.batches[BATCH_ID] = BatchRecord(
        id=BATCH_ID, name="CSE 2025", college_id=3, is_active=True
    )
    source.assignments[BATCH_ID] = AssignmentRecord(
        id=100,
        batch_id=BATCH_ID,
        plan=basic_plan,
        is_active=True,
        assignment_date=NOW - timedelta(days=90),
    )
    source.subscriptions[STUDENT_ID] = SubscriptionRecord(
        id=500,
        student_id=STUDENT_ID,
        plan=basic_plan,
        start_date=NOW - timedelta(days=30),
        end_date=NOW + timedelta(days=150),
        status=SubscriptionStatus.ACTIVE,
        payment_id="pay_basic_1",
        amount=Decimal("499.00"),
    )
    source.exams_by_batch[BATCH_ID] = [
        ExamRecord(id=1000, name="Data Structures Mock", duration_minutes=90, total_marks=100),
        ExamRecord(id=1001, name="Operating Systems Mock", duration_minutes=60, total_marks=50),
    ]
    return source


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def current_student():
    return SimpleNamespace(
        id=STUDENT_ID,
        name="Asha Rao",
        email="asha@example.com",
        role="student",
        batch_id=BATCH_ID,
        roll_number="CSE25-001",
        is_blocked=False,
        created_at=NOW - timedelta(days=120),
        is_student=True,
    )


@pytest.fixture
def client(portal, fake_session, current_student):
    async def override_get_db():
        yield fake_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_eligibility_source] = lambda: portal
    app.dependency_overrides[get_clock] = lambda: NOW
    app.dependency_overrides[get_current_user_dependency] = lambda: current_student
    app.dependency_overrides[get_current_student_dependency] = lambda: current_student
    with TestClient(app, headers={"Authorization": "Bearer test-token"}) as test_client:
        yield test_client
    app.dependency_overrides.clear()
