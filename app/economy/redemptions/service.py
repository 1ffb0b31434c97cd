from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.db.models.merchant_branches import MerchantBranch
from app.db.models.merchants import Merchant
from app.db.models.offers import Offer
from app.db.models.redemptions import Redemption
from app.db.models.students import Student
from app.db.repo.branches_repo import BranchesRepo
from app.db.repo.offers_repo import OffersRepo
from app.db.repo.redemptions_repo import RedemptionsRepo
from app.db.repo.student_stats_repo import StudentStatsRepo
from app.db.repo.students_repo import StudentsRepo
from app.economy.redemptions.constants import STAFF_ROLE_BRANCH, STUDENT_VERIFICATION_APPROVED
from app.economy.redemptions.discounts import resolve_discount
from app.economy.redemptions.duplicates import assert_not_duplicate
from app.economy.redemptions.eligibility import assert_offer_redeemable
from app.economy.redemptions.errors import (
    BranchInactiveError,
    BranchNotFoundError,
    InvalidStudentCodeError,
    OfferNotFoundError,
    StaffBranchRequiredError,
    StaffRoleNotAllowedError,
    StudentDailyLimitReachedError,
    StudentNotFoundError,
    StudentNotVerifiedError,
)
from app.economy.redemptions.ledger import redemption_savings, write_redemption
from app.economy.redemptions.reversal import load_rejectable_redemption, reverse_redemption
from app.economy.redemptions.time_utils import as_utc, local_midnight_utc
from app.economy.redemptions.types import RedemptionPolicy, RedemptionResult, StaffIdentity

logger = structlog.get_logger(__name__)


def normalize_student_code(raw_code: str, *, prefix: str) -> str:
    normalized = raw_code.strip().upper()
    if not normalized or not normalized.startswith(prefix.upper()):
        raise InvalidStudentCodeError
    return normalized


def require_branch_staff(staff: StaffIdentity) -> UUID:
    if staff.role != STAFF_ROLE_BRANCH:
        raise StaffRoleNotAllowedError
    if staff.branch_id is None:
        raise StaffBranchRequiredError
    return staff.branch_id


def assert_student_verified(student: Student, *, now_utc: datetime) -> None:
    if not student.is_active:
        raise StudentNotVerifiedError("Student account is not active")
    if student.verification_status != STUDENT_VERIFICATION_APPROVED:
        raise StudentNotVerifiedError
    expires_at = student.verification_expires_at
    if expires_at is not None and as_utc(expires_at) <= now_utc:
        raise StudentNotVerifiedError("Student verification has expired")


def _as_result(
    redemption: Redemption,
    *,
    student: Student,
    offer: Offer,
    branch: MerchantBranch,
    merchant: Merchant,
) -> RedemptionResult:
    return RedemptionResult(
        redemption_id=redemption.id,
        status=redemption.status,
        student_id=student.id,
        student_code=student.student_code,
        student_name=f"{student.first_name} {student.last_name}".strip(),
        offer_id=offer.id,
        offer_title=offer.title,
        offer_discount_type=offer.discount_type,
        offer_discount_value=offer.discount_value,
        branch_id=branch.id,
        branch_name=branch.branch_name,
        branch_address=branch.address,
        branch_city=branch.city,
        merchant_id=merchant.id,
        merchant_name=merchant.business_name,
        discount_type=redemption.discount_type,
        discount_value=redemption.discount_value,
        discount_note=redemption.discount_note,
        is_bonus_applied=redemption.is_bonus_applied,
        bonus_discount_applied=redemption.bonus_discount_applied,
        reward_description=redemption.reward_description,
        savings=redemption_savings(redemption),
        verified_by=redemption.verified_by,
        notes=redemption.notes,
        reject_reason=redemption.reject_reason,
        created_at=as_utc(redemption.created_at),
        rejected_at=as_utc(redemption.rejected_at) if redemption.rejected_at else None,
    )


class RedemptionService:
    @staticmethod
    async def _assert_student_daily_policy(
        session: AsyncSession,
        *,
        student_id: UUID,
        offer_id: UUID,
        branch_id: UUID,
        now_utc: datetime,
        policy: RedemptionPolicy,
    ) -> None:
        if policy.student_daily_offer_limit is None:
            return
        redeemed_today = await RedemptionsRepo.count_verified_for_triple_since(
            session,
            student_id=student_id,
            offer_id=offer_id,
            branch_id=branch_id,
            since_utc=local_midnight_utc(now_utc, policy.timezone),
        )
        if redeemed_today >= policy.student_daily_offer_limit:
            raise StudentDailyLimitReachedError

    @staticmethod
    async def _load_merchant(session: AsyncSession, branch: MerchantBranch) -> Merchant:
        merchant = await BranchesRepo.get_merchant(session, branch.merchant_id)
        if merchant is None:
            raise BranchNotFoundError("Branch merchant not found")
        return merchant

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        staff: StaffIdentity,
        student_code: str,
        offer_id: UUID,
        notes: str | None = None,
        now_utc: datetime | None = None,
        policy: RedemptionPolicy | None = None,
    ) -> RedemptionResult:
        now_utc = now_utc or datetime.now(timezone.utc)
        policy = policy or RedemptionPolicy.from_settings(get_settings())

        branch_id = require_branch_staff(staff)
        normalized_code = normalize_student_code(student_code, prefix=policy.student_code_prefix)

        # Lock order (offer, then student) is shared with the reject path.
        offer = await OffersRepo.get_by_id_for_update(session, offer_id)

        student = await StudentsRepo.get_by_code_for_update(session, normalized_code)
        if student is None:
            raise StudentNotFoundError
        assert_student_verified(student, now_utc=now_utc)

        branch = await BranchesRepo.get_by_id(session, branch_id)
        if branch is None:
            raise BranchNotFoundError
        if not branch.is_active:
            raise BranchInactiveError

        if offer is None:
            raise OfferNotFoundError

        await assert_offer_redeemable(
            session,
            offer=offer,
            branch=branch,
            now_utc=now_utc,
            tz_name=policy.timezone,
        )
        await assert_not_duplicate(
            session,
            student_id=student.id,
            offer_id=offer.id,
            branch_id=branch.id,
            now_utc=now_utc,
            window=policy.duplicate_window,
        )
        await RedemptionService._assert_student_daily_policy(
            session,
            student_id=student.id,
            offer_id=offer.id,
            branch_id=branch.id,
            now_utc=now_utc,
            policy=policy,
        )

        bonus_settings = await BranchesRepo.get_bonus_settings(session, branch.id)
        branch_stats = await StudentStatsRepo.get_branch_stats(
            session,
            student_id=student.id,
            branch_id=branch.id,
        )
        discount = await resolve_discount(
            session,
            student_id=student.id,
            merchant_id=branch.merchant_id,
            offer=offer,
            bonus_settings=bonus_settings,
            branch_visit_count=branch_stats.redemption_count if branch_stats is not None else 0,
            now_utc=now_utc,
        )

        redemption = await write_redemption(
            session,
            student=student,
            offer=offer,
            branch=branch,
            discount=discount,
            verified_by=staff.user_id,
            notes=(notes or "").strip() or None,
            now_utc=now_utc,
        )
        merchant = await RedemptionService._load_merchant(session, branch)

        logger.info(
            "redemption_created",
            redemption_id=str(redemption.id),
            student_id=str(student.id),
            offer_id=str(offer.id),
            branch_id=str(branch.id),
            discount_source=discount.source,
            discount_value=str(discount.discount_value),
            is_bonus_applied=discount.is_bonus_applied,
        )
        return _as_result(redemption, student=student, offer=offer, branch=branch, merchant=merchant)

    @staticmethod
    async def reject(
        session: AsyncSession,
        *,
        staff: StaffIdentity,
        redemption_id: UUID,
        reason: str | None = None,
        now_utc: datetime | None = None,
    ) -> RedemptionResult:
        now_utc = now_utc or datetime.now(timezone.utc)
        branch_id = require_branch_staff(staff)

        redemption = await load_rejectable_redemption(
            session,
            redemption_id=redemption_id,
            staff_branch_id=branch_id,
        )
        await reverse_redemption(
            session,
            redemption=redemption,
            rejected_by=staff.user_id,
            reason=reason,
            now_utc=now_utc,
        )

        student = await StudentsRepo.get_by_id(session, redemption.student_id)
        offer = await OffersRepo.get_by_id(session, redemption.offer_id)
        branch = await BranchesRepo.get_by_id(session, redemption.branch_id)
        if student is None or offer is None or branch is None:
            raise RuntimeError(f"redemption {redemption.id} references missing rows")
        merchant = await RedemptionService._load_merchant(session, branch)

        logger.info(
            "redemption_rejected",
            redemption_id=str(redemption.id),
            branch_id=str(branch.id),
            rejected_by=staff.user_id,
            savings_reverted=str(redemption_savings(redemption)),
        )
        return _as_result(redemption, student=student, offer=offer, branch=branch, merchant=merchant)
