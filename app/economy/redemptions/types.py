from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID

from app.core.config import Settings


@dataclass(frozen=True, slots=True)
class StaffIdentity:
    user_id: str
    branch_id: UUID | None
    role: str


@dataclass(frozen=True, slots=True)
class RedemptionPolicy:
    timezone: str = "Asia/Karachi"
    student_code_prefix: str = "PK-"
    duplicate_window: timedelta = timedelta(seconds=5)
    tx_timeout_seconds: float = 20.0
    student_daily_offer_limit: int | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> RedemptionPolicy:
        return cls(
            timezone=settings.redemption_timezone,
            student_code_prefix=settings.student_code_prefix,
            duplicate_window=timedelta(seconds=settings.duplicate_window_seconds),
            tx_timeout_seconds=settings.redemption_tx_timeout_seconds,
            student_daily_offer_limit=settings.student_daily_offer_limit,
        )


@dataclass(frozen=True, slots=True)
class StrategyDiscount:
    discount_type: str
    discount_value: Decimal
    note: str | None = None


@dataclass(frozen=True, slots=True)
class DiscountResolution:
    source: str
    discount_type: str
    discount_value: Decimal
    note: str | None = None
    is_bonus_applied: bool = False
    bonus_discount_applied: Decimal | None = None
    reward_description: str | None = None


@dataclass(slots=True)
class RedemptionResult:
    redemption_id: UUID
    status: str
    student_id: UUID
    student_code: str
    student_name: str
    offer_id: UUID
    offer_title: str
    offer_discount_type: str
    offer_discount_value: Decimal
    branch_id: UUID
    branch_name: str
    branch_address: str
    branch_city: str
    merchant_id: UUID
    merchant_name: str
    discount_type: str
    discount_value: Decimal
    discount_note: str | None
    is_bonus_applied: bool
    bonus_discount_applied: Decimal | None
    reward_description: str | None
    savings: Decimal
    verified_by: str | None
    notes: str | None
    reject_reason: str | None
    created_at: datetime
    rejected_at: datetime | None
