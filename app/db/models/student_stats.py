from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Numeric, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class StudentMerchantStats(Base):
    __tablename__ = "student_merchant_stats"
    __table_args__ = (
        UniqueConstraint("student_id", "merchant_id", name="uq_student_merchant_stats_pair"),
        CheckConstraint(
            "redemption_count >= 0",
            name="ck_student_merchant_stats_count_non_negative",
        ),
        CheckConstraint(
            "total_savings >= 0",
            name="ck_student_merchant_stats_savings_non_negative",
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    student_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("students.id"), nullable=False)
    merchant_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("merchants.id"), nullable=False)
    redemption_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    total_savings: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        server_default=text("0"),
    )
    last_redemption_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )


class StudentBranchStats(Base):
    __tablename__ = "student_branch_stats"
    __table_args__ = (
        UniqueConstraint("student_id", "branch_id", name="uq_student_branch_stats_pair"),
        CheckConstraint(
            "redemption_count >= 0",
            name="ck_student_branch_stats_count_non_negative",
        ),
        CheckConstraint(
            "total_savings >= 0",
            name="ck_student_branch_stats_savings_non_negative",
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    student_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("students.id"), nullable=False)
    branch_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("merchant_branches.id"),
        nullable=False,
    )
    redemption_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    total_savings: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        server_default=text("0"),
    )
    last_redemption_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
