"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def _updated_at() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def _user_fk(name: str) -> sa.Column:
    return sa.Column(name, sa.Uuid(), sa.ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False)


def upgrade() -> None:
    op.create_table(
        "country",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _created_at(),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("code", sa.String(length=2), nullable=False, unique=True),
    )

    op.create_table(
        "app_user",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _created_at(),
        _updated_at(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=50), server_default="EMPLOYEE", nullable=False),
        sa.Column("employment_date", sa.Date(), nullable=True),
        sa.Column("country_id", sa.Uuid(), sa.ForeignKey("country.id", ondelete="SET NULL"), nullable=True),
    )
    op.create_index("ix_app_user_email", "app_user", ["email"], unique=True)

    op.create_table(
        "manager_employee",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _created_at(),
        _user_fk("manager_id"),
        _user_fk("employee_id"),
        sa.UniqueConstraint("manager_id", "employee_id", name="uq_manager_employee"),
    )
    op.create_index("ix_manager_employee_manager_id", "manager_employee", ["manager_id"])
    op.create_index("ix_manager_employee_employee_id", "manager_employee", ["employee_id"])

    op.create_table(
        "public_holiday",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("country_id", sa.Uuid(), sa.ForeignKey("country.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.UniqueConstraint("country_id", "date", name="uq_holiday_country_date"),
    )
    op.create_index("ix_public_holiday_country_id", "public_holiday", ["country_id"])

    op.create_table(
        "vacation_balance",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _user_fk("user_id"),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("adjusted", sa.Float(), server_default="0", nullable=False),
        _updated_at(),
        sa.UniqueConstraint("user_id", "year", name="uq_balance_user_year"),
    )
    op.create_index("ix_vacation_balance_user_id", "vacation_balance", ["user_id"])

    op.create_table(
        "vacation_accrual_log",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _user_fk("user_id"),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("days_accrued", sa.Float(), nullable=False),
        _created_at(),
        sa.UniqueConstraint("user_id", "year", "month", name="uq_accrual_user_year_month"),
    )
    op.create_index("ix_vacation_accrual_log_user_id", "vacation_accrual_log", ["user_id"])

    op.create_table(
        "vacation_rollover_log",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _user_fk("user_id"),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("unused_days", sa.Float(), nullable=False),
        sa.Column("carried_days", sa.Float(), nullable=False),
        _created_at(),
        sa.UniqueConstraint("user_id", "year", name="uq_rollover_user_year"),
    )
    op.create_index("ix_vacation_rollover_log_user_id", "vacation_rollover_log", ["user_id"])

    op.create_table(
        "vacation_request",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _created_at(),
        _updated_at(),
        _user_fk("user_id"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("days", sa.Integer(), nullable=False),
        sa.Column("comment", sa.String(length=1000), nullable=True),
        sa.Column("status", sa.String(length=50), server_default="PENDING", nullable=False),
        sa.Column("rejection_reason", sa.String(length=500), nullable=True),
        sa.Column("approved_by_id", sa.Uuid(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_vacation_request_user_id", "vacation_request", ["user_id"])
    op.create_index("ix_vacation_request_status", "vacation_request", ["status"])
    op.create_index("ix_vacation_request_user_dates", "vacation_request", ["user_id", "start_date", "end_date"])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("actor_id", sa.Uuid(), nullable=False),
        sa.Column("target_user_id", sa.Uuid(), nullable=True),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("before_json", sa.JSON(), nullable=True),
        sa.Column("after_json", sa.JSON(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_audit_log_target_user_id", "audit_log", ["target_user_id"])
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"])
    op.create_index("ix_audit_entity", "audit_log", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("vacation_request")
    op.drop_table("vacation_rollover_log")
    op.drop_table("vacation_accrual_log")
    op.drop_table("vacation_balance")
    op.drop_table("public_holiday")
    op.drop_table("manager_employee")
    op.drop_table("app_user")
    op.drop_table("country")
