from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base

REDEMPTION_STATUS_VERIFIED = "VERIFIED"
REDEMPTION_STATUS_REJECTED = "REJECTED"


class Redemption(Base):
    __tablename__ = "redemptions"
    __table_args__ = (
        CheckConstraint("status IN ('VERIFIED','REJECTED')", name="ck_redemptions_status"),
        CheckConstraint(
            "discount_type IN ('PERCENTAGE','FIXED','ITEM')",
            name="ck_redemptions_discount_type",
        ),
        CheckConstraint(
            "(status = 'VERIFIED' AND verified_by IS NOT NULL AND rejected_at IS NULL) "
            "OR (status = 'REJECTED' AND verified_by IS NULL AND rejected_at IS NOT NULL)",
            name="ck_redemptions_status_consistency",
        ),
        CheckConstraint(
            "is_bonus_applied OR bonus_discount_applied IS NULL",
            name="ck_redemptions_bonus_consistency",
        ),
        Index(
            "idx_redemptions_triple_created",
            "student_id",
            "offer_id",
            "branch_id",
            "created_at",
        ),
        Index("idx_redemptions_offer_branch_created", "offer_id", "branch_id", "created_at"),
        Index("idx_redemptions_student_created", "student_id", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    student_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("students.id"), nullable=False)
    offer_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("offers.id"), nullable=False)
    branch_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("merchant_branches.id"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    discount_type: Mapped[str] = mapped_column(String(16), nullable=False)
    discount_value: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    discount_note: Mapped[str | None] = mapped_column(String(128), nullable=True)
    is_bonus_applied: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("false"),
    )
    bonus_discount_applied: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    reward_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    verified_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reject_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejected_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
