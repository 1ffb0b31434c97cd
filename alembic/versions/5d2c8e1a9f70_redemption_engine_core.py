"""redemption_engine_core

Revision ID: 5d2c8e1a9f70
Revises:
Create Date: 2026-10-17 09:30:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "5d2c8e1a9f70"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "students",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("student_code", sa.String(16), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("verification_status", sa.String(16), nullable=False),
        sa.Column("verification_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("total_redemptions", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_savings", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "verification_status IN ('PENDING','APPROVED','REJECTED','EXPIRED')",
            name="ck_students_verification_status",
        ),
        sa.CheckConstraint("total_redemptions >= 0", name="ck_students_total_redemptions_non_negative"),
        sa.CheckConstraint("total_savings >= 0", name="ck_students_total_savings_non_negative"),
        sa.UniqueConstraint("student_code", name="uq_students_student_code"),
    )
    op.create_index("idx_students_verification_status", "students", ["verification_status"])

    op.create_table(
        "merchants",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("business_name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "merchant_branches",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("merchant_id", sa.Uuid(), nullable=False),
        sa.Column("branch_name", sa.String(255), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["merchant_id"], ["merchants.id"]),
    )
    op.create_index("idx_merchant_branches_merchant", "merchant_branches", ["merchant_id"])

    op.create_table(
        "offers",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("merchant_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("discount_type", sa.String(16), nullable=False),
        sa.Column("discount_value", sa.Numeric(10, 2), nullable=False),
        sa.Column("min_order_value", sa.Numeric(10, 2), nullable=True),
        sa.Column("max_discount_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("valid_from", sa.DateTime(timezone=True), nullable=False),
        sa.Column("valid_until", sa.DateTime(timezone=True), nullable=False),
        sa.Column("daily_limit", sa.Integer(), nullable=True),
        sa.Column("total_limit", sa.Integer(), nullable=True),
        sa.Column("current_redemptions", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("schedule_type", sa.String(16), nullable=False, server_default=sa.text("'ALWAYS'")),
        sa.Column("allowed_days", sa.JSON(), nullable=True),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column("redemption_strategy", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("discount_type IN ('PERCENTAGE','FIXED')", name="ck_offers_discount_type"),
        sa.CheckConstraint("discount_value > 0", name="ck_offers_discount_value_positive"),
        sa.CheckConstraint("status IN ('ACTIVE','INACTIVE')", name="ck_offers_status"),
        sa.CheckConstraint("schedule_type IN ('ALWAYS','CUSTOM')", name="ck_offers_schedule_type"),
        sa.CheckConstraint("valid_until > valid_from", name="ck_offers_valid_range"),
        sa.CheckConstraint("daily_limit IS NULL OR daily_limit > 0", name="ck_offers_daily_limit_positive"),
        sa.CheckConstraint("total_limit IS NULL OR total_limit > 0", name="ck_offers_total_limit_positive"),
        sa.CheckConstraint(
            "current_redemptions >= 0",
            name="ck_offers_current_redemptions_non_negative",
        ),
        sa.CheckConstraint(
            "total_limit IS NULL OR current_redemptions <= total_limit",
            name="ck_offers_current_redemptions_le_total_limit",
        ),
        sa.ForeignKeyConstraint(["merchant_id"], ["merchants.id"]),
    )
    op.create_index("idx_offers_merchant", "offers", ["merchant_id"])
    op.create_index("idx_offers_status", "offers", ["status"])

    op.create_table(
        "offer_branches",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("offer_id", sa.Uuid(), nullable=False),
        sa.Column("branch_id", sa.Uuid(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.ForeignKeyConstraint(["offer_id"], ["offers.id"]),
        sa.ForeignKeyConstraint(["branch_id"], ["merchant_branches.id"]),
        sa.UniqueConstraint("offer_id", "branch_id", name="uq_offer_branches_offer_branch"),
    )
    op.create_index("idx_offer_branches_branch", "offer_branches", ["branch_id"])

    op.create_table(
        "branch_bonus_settings",
        sa.Column("branch_id", sa.Uuid(), primary_key=True),
        sa.Column("redemptions_required", sa.Integer(), nullable=False, server_default=sa.text("5")),
        sa.Column("discount_type", sa.String(16), nullable=False),
        sa.Column("discount_value", sa.Numeric(10, 2), nullable=False),
        sa.Column("max_discount_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("reward_description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "discount_type IN ('PERCENTAGE','FIXED','ITEM')",
            name="ck_branch_bonus_settings_discount_type",
        ),
        sa.CheckConstraint(
            "redemptions_required >= 1",
            name="ck_branch_bonus_settings_redemptions_required_positive",
        ),
        sa.CheckConstraint(
            "discount_value >= 0",
            name="ck_branch_bonus_settings_discount_value_non_negative",
        ),
        sa.ForeignKeyConstraint(["branch_id"], ["merchant_branches.id"]),
    )

    op.create_table(
        "redemptions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("student_id", sa.Uuid(), nullable=False),
        sa.Column("offer_id", sa.Uuid(), nullable=False),
        sa.Column("branch_id", sa.Uuid(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("discount_type", sa.String(16), nullable=False),
        sa.Column("discount_value", sa.Numeric(10, 2), nullable=False),
        sa.Column("discount_note", sa.String(128), nullable=True),
        sa.Column("is_bonus_applied", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("bonus_discount_applied", sa.Numeric(12, 2), nullable=True),
        sa.Column("reward_description", sa.Text(), nullable=True),
        sa.Column("verified_by", sa.String(64), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("reject_reason", sa.Text(), nullable=True),
        sa.Column("rejected_by", sa.String(64), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("status IN ('VERIFIED','REJECTED')", name="ck_redemptions_status"),
        sa.CheckConstraint(
            "discount_type IN ('PERCENTAGE','FIXED','ITEM')",
            name="ck_redemptions_discount_type",
        ),
        sa.CheckConstraint(
            "(status = 'VERIFIED' AND verified_by IS NOT NULL AND rejected_at IS NULL) "
            "OR (status = 'REJECTED' AND verified_by IS NULL AND rejected_at IS NOT NULL)",
            name="ck_redemptions_status_consistency",
        ),
        sa.CheckConstraint(
            "is_bonus_applied OR bonus_discount_applied IS NULL",
            name="ck_redemptions_bonus_consistency",
        ),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"]),
        sa.ForeignKeyConstraint(["offer_id"], ["offers.id"]),
        sa.ForeignKeyConstraint(["branch_id"], ["merchant_branches.id"]),
    )
    op.create_index(
        "idx_redemptions_triple_created",
        "redemptions",
        ["student_id", "offer_id", "branch_id", "created_at"],
    )
    op.create_index(
        "idx_redemptions_offer_branch_created",
        "redemptions",
        ["offer_id", "branch_id", "created_at"],
    )
    op.create_index("idx_redemptions_student_created", "redemptions", ["student_id", "created_at"])

    op.create_table(
        "student_merchant_stats",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("student_id", sa.Uuid(), nullable=False),
        sa.Column("merchant_id", sa.Uuid(), nullable=False),
        sa.Column("redemption_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_savings", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("last_redemption_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "redemption_count >= 0",
            name="ck_student_merchant_stats_count_non_negative",
        ),
        sa.CheckConstraint(
            "total_savings >= 0",
            name="ck_student_merchant_stats_savings_non_negative",
        ),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"]),
        sa.ForeignKeyConstraint(["merchant_id"], ["merchants.id"]),
        sa.UniqueConstraint("student_id", "merchant_id", name="uq_student_merchant_stats_pair"),
    )

    op.create_table(
        "student_branch_stats",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("student_id", sa.Uuid(), nullable=False),
        sa.Column("branch_id", sa.Uuid(), nullable=False),
        sa.Column("redemption_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_savings", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("last_redemption_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "redemption_count >= 0",
            name="ck_student_branch_stats_count_non_negative",
        ),
        sa.CheckConstraint(
            "total_savings >= 0",
            name="ck_student_branch_stats_savings_non_negative",
        ),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"]),
        sa.ForeignKeyConstraint(["branch_id"], ["merchant_branches.id"]),
        sa.UniqueConstraint("student_id", "branch_id", name="uq_student_branch_stats_pair"),
    )


def downgrade() -> None:
    op.drop_table("student_branch_stats")
    op.drop_table("student_merchant_stats")
    op.drop_index("idx_redemptions_student_created", table_name="redemptions")
    op.drop_index("idx_redemptions_offer_branch_created", table_name="redemptions")
    op.drop_index("idx_redemptions_triple_created", table_name="redemptions")
    op.drop_table("redemptions")
    op.drop_table("branch_bonus_settings")
    op.drop_index("idx_offer_branches_branch", table_name="offer_branches")
    op.drop_table("offer_branches")
    op.drop_index("idx_offers_status", table_name="offers")
    op.drop_index("idx_offers_merchant", table_name="offers")
    op.drop_table("offers")
    op.drop_index("idx_merchant_branches_merchant", table_name="merchant_branches")
    op.drop_table("merchant_branches")
    op.drop_table("merchants")
    op.drop_index("idx_students_verification_status", table_name="students")
    op.drop_table("students")
