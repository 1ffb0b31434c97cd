from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class BranchBonusSettings(Base):
    __tablename__ = "branch_bonus_settings"
    __table_args__ = (
        CheckConstraint(
            "discount_type IN ('PERCENTAGE','FIXED','ITEM')",
            name="ck_branch_bonus_settings_discount_type",
        ),
        CheckConstraint(
            "redemptions_required >= 1",
            name="ck_branch_bonus_settings_redemptions_required_positive",
        ),
        CheckConstraint(
            "discount_value >= 0",
            name="ck_branch_bonus_settings_discount_value_non_negative",
        ),
    )

    branch_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("merchant_branches.id"),
        primary_key=True,
    )
    redemptions_required: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        server_default=text("5"),
    )
    discount_type: Mapped[str] = mapped_column(String(16), nullable=False)
    discount_value: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    max_discount_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    reward_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
