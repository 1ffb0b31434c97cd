from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class StaffIdentityPayload(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    branch_id: UUID | None = None
    role: str = Field(min_length=1, max_length=32)


class RedemptionCreateRequest(BaseModel):
    student_code: str = Field(min_length=1, max_length=16)
    offer_id: UUID
    notes: str | None = Field(default=None, max_length=1000)
    staff: StaffIdentityPayload


class RedemptionRejectRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)
    staff: StaffIdentityPayload


class RedemptionOfferView(BaseModel):
    id: UUID
    title: str
    discount_type: str
    discount_value: Decimal


class RedemptionBranchView(BaseModel):
    id: UUID
    branch_name: str
    address: str
    city: str


class RedemptionMerchantView(BaseModel):
    id: UUID
    business_name: str


class RedemptionStudentView(BaseModel):
    id: UUID
    student_code: str
    name: str


class RedemptionResponse(BaseModel):
    id: UUID
    status: str
    discount_type: str
    discount_value: Decimal
    discount_note: str | None = None
    is_bonus_applied: bool
    bonus_discount_applied: Decimal | None = None
    reward_description: str | None = None
    savings: Decimal
    verified_by: str | None = None
    notes: str | None = None
    reject_reason: str | None = None
    created_at: datetime
    rejected_at: datetime | None = None
    offer: RedemptionOfferView
    branch: RedemptionBranchView
    merchant: RedemptionMerchantView
    student: RedemptionStudentView
