"""init_exam_portal

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2025-10-19 12:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9b7d10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "colleges",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("code", sa.String(length=10), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "batches",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("college_id", sa.Integer(), sa.ForeignKey("colleges.id"), nullable=False),
        sa.Column("department", sa.String(length=100), nullable=True),
        sa.Column("semester", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("max_attempts", sa.Integer(), nullable=False, server_default="3"),
        *_timestamps(),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=100), nullable=False, unique=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="student"),
        sa.Column("batch_id", sa.Integer(), sa.ForeignKey("batches.id"), nullable=True),
        sa.Column("college_id", sa.Integer(), sa.ForeignKey("colleges.id"), nullable=True),
        sa.Column("roll_number", sa.String(length=20), nullable=True),
        sa.Column("is_blocked", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_users_batch_id", "users", ["batch_id"])

    op.create_table(
        "subscription_plans",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("duration_months", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.CheckConstraint(
            "duration_months BETWEEN 1 AND 999", name="ck_plan_duration_months"
        ),
        sa.CheckConstraint("price >= 0", name="ck_plan_price_non_negative"),
    )

    op.create_table(
        "subscription_plan_colleges",
        sa.Column(
            "plan_id",
            sa.Integer(),
            sa.ForeignKey("subscription_plans.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "college_id",
            sa.Integer(),
            sa.ForeignKey("colleges.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )

    op.create_table(
        "batch_subscription_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("batch_id", sa.Integer(), sa.ForeignKey("batches.id"), nullable=False),
        sa.Column(
            "plan_id", sa.Integer(), sa.ForeignKey("subscription_plans.id"), nullable=False
        ),
        sa.Column("college_id", sa.Integer(), sa.ForeignKey("colleges.id"), nullable=False),
        sa.Column("assigned_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "assignment_date",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("notes", sa.String(length=500), nullable=True),
        sa.UniqueConstraint("batch_id", "plan_id", name="uq_batch_assignment_batch_plan"),
    )
    op.create_index(
        "ix_batch_subscription_assignments_batch_id",
        "batch_subscription_assignments",
        ["batch_id"],
    )

    subscription_status = sa.Enum(
        "active", "expired", "suspended", "cancelled", name="subscription_status"
    )
    op.create_table(
        "student_subscriptions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("student_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "plan_id", sa.Integer(), sa.ForeignKey("subscription_plans.id"), nullable=False
        ),
        sa.Column("college_id", sa.Integer(), sa.ForeignKey("colleges.id"), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", subscription_status, nullable=False, server_default="active"),
        sa.Column("payment_id", sa.String(length=100), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("auto_renew", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.CheckConstraint("amount >= 0", name="ck_subscription_amount_non_negative"),
    )
    op.create_index(
        "ix_student_subscriptions_student_status",
        "student_subscriptions",
        ["student_id", "status"],
    )
    op.create_index(
        "ix_student_subscriptions_end_date_status",
        "student_subscriptions",
        ["end_date", "status"],
    )
    # At most one active subscription per student
    op.create_index(
        "uq_student_subscriptions_one_active",
        "student_subscriptions",
        ["student_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )

    op.create_table(
        "exams",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("college_id", sa.Integer(), sa.ForeignKey("colleges.id"), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("total_marks", sa.Integer(), nullable=False),
        sa.Column("max_attempts", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "exam_batches",
        sa.Column(
            "exam_id",
            sa.Integer(),
            sa.ForeignKey("exams.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "batch_id",
            sa.Integer(),
            sa.ForeignKey("batches.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )
    op.create_index("ix_exam_batches_batch_id", "exam_batches", ["batch_id"])


def downgrade() -> None:
    op.drop_table("exam_batches")
    op.drop_table("exams")
    op.drop_index(
        "uq_student_subscriptions_one_active", table_name="student_subscriptions"
    )
    op.drop_table("student_subscriptions")
    op.execute("DROP TYPE IF EXISTS subscription_status")
    op.drop_table("batch_subscription_assignments")
    op.drop_table("subscription_plan_colleges")
    op.drop_table("subscription_plans")
    op.drop_table("users")
    op.drop_table("batches")
    op.drop_table("colleges")
