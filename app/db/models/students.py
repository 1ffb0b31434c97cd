from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, Integer, Numeric, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Student(Base):
    __tablename__ = "students"
    __table_args__ = (
        CheckConstraint(
            "verification_status IN ('PENDING','APPROVED','REJECTED','EXPIRED')",
            name="ck_students_verification_status",
        ),
        CheckConstraint("total_redemptions >= 0", name="ck_students_total_redemptions_non_negative"),
        CheckConstraint("total_savings >= 0", name="ck_students_total_savings_non_negative"),
        Index("idx_students_verification_status", "verification_status"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    student_code: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    verification_status: Mapped[str] = mapped_column(String(16), nullable=False)
    verification_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    total_redemptions: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    total_savings: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        server_default=text("0"),
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
