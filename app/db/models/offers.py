from __future__ import annotations

from datetime import datetime, time
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Time,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, validates

from app.db.models.base import Base


class Offer(Base):
    __tablename__ = "offers"
    __table_args__ = (
        CheckConstraint(
            "discount_type IN ('PERCENTAGE','FIXED')",
            name="ck_offers_discount_type",
        ),
        CheckConstraint("discount_value > 0", name="ck_offers_discount_value_positive"),
        CheckConstraint("status IN ('ACTIVE','INACTIVE')", name="ck_offers_status"),
        CheckConstraint("schedule_type IN ('ALWAYS','CUSTOM')", name="ck_offers_schedule_type"),
        CheckConstraint("valid_until > valid_from", name="ck_offers_valid_range"),
        CheckConstraint(
            "daily_limit IS NULL OR daily_limit > 0",
            name="ck_offers_daily_limit_positive",
        ),
        CheckConstraint(
            "total_limit IS NULL OR total_limit > 0",
            name="ck_offers_total_limit_positive",
        ),
        CheckConstraint(
            "current_redemptions >= 0",
            name="ck_offers_current_redemptions_non_negative",
        ),
        CheckConstraint(
            "total_limit IS NULL OR current_redemptions <= total_limit",
            name="ck_offers_current_redemptions_le_total_limit",
        ),
        Index("idx_offers_merchant", "merchant_id"),
        Index("idx_offers_status", "status"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    merchant_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("merchants.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    discount_type: Mapped[str] = mapped_column(String(16), nullable=False)
    discount_value: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    min_order_value: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    max_discount_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    valid_from: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    valid_until: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    daily_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_redemptions: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        server_default=text("0"),
    )
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    schedule_type: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        server_default=text("'ALWAYS'"),
    )
    # ISO weekday numbers, Monday=1 ... Sunday=7
    allowed_days: Mapped[list[int] | None] = mapped_column(JSON, nullable=True)
    start_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    end_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    redemption_strategy: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @validates("allowed_days")
    def validate_allowed_days(self, key: str, days: list[int] | None) -> list[int] | None:
        if days is None:
            return None
        invalid = [day for day in days if not isinstance(day, int) or not 1 <= day <= 7]
        if invalid:
            raise ValueError(f"{key} must hold ISO weekdays 1..7, got {invalid}")
        return sorted(set(days))
