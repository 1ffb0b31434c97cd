from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.merchant_branches import MerchantBranch
from app.db.models.offers import Offer
from app.db.models.redemptions import REDEMPTION_STATUS_VERIFIED, Redemption
from app.db.models.student_stats import StudentBranchStats, StudentMerchantStats
from app.db.models.students import Student
from app.db.repo.redemptions_repo import RedemptionsRepo
from app.db.repo.student_stats_repo import StudentStatsRepo
from app.economy.redemptions.types import DiscountResolution


def compute_savings(
    *,
    discount_value: Decimal,
    is_bonus_applied: bool,
    bonus_discount_applied: Decimal | None,
) -> Decimal:
    """Amount credited to the aggregates for one redemption.

    Bonus redemptions replace the offer discount, so only one of the two
    amounts ever counts.
    """
    if is_bonus_applied and bonus_discount_applied is not None:
        return Decimal(bonus_discount_applied)
    return Decimal(discount_value)


def redemption_savings(redemption: Redemption) -> Decimal:
    return compute_savings(
        discount_value=redemption.discount_value,
        is_bonus_applied=redemption.is_bonus_applied,
        bonus_discount_applied=redemption.bonus_discount_applied,
    )


async def _increment_merchant_stats(
    session: AsyncSession,
    *,
    student_id: UUID,
    merchant_id: UUID,
    savings: Decimal,
    now_utc: datetime,
) -> StudentMerchantStats:
    stats = await StudentStatsRepo.get_merchant_stats_for_update(
        session,
        student_id=student_id,
        merchant_id=merchant_id,
    )
    if stats is None:
        return await StudentStatsRepo.create_merchant_stats(
            session,
            stats=StudentMerchantStats(
                id=uuid4(),
                student_id=student_id,
                merchant_id=merchant_id,
                redemption_count=1,
                total_savings=savings,
                last_redemption_at=now_utc,
            ),
        )

    stats.redemption_count += 1
    stats.total_savings = Decimal(stats.total_savings) + savings
    stats.last_redemption_at = now_utc
    return stats


async def _increment_branch_stats(
    session: AsyncSession,
    *,
    student_id: UUID,
    branch_id: UUID,
    savings: Decimal,
    now_utc: datetime,
) -> StudentBranchStats:
    stats = await StudentStatsRepo.get_branch_stats_for_update(
        session,
        student_id=student_id,
        branch_id=branch_id,
    )
    if stats is None:
        return await StudentStatsRepo.create_branch_stats(
            session,
            stats=StudentBranchStats(
                id=uuid4(),
                student_id=student_id,
                branch_id=branch_id,
                redemption_count=1,
                total_savings=savings,
                last_redemption_at=now_utc,
            ),
        )

    stats.redemption_count += 1
    stats.total_savings = Decimal(stats.total_savings) + savings
    stats.last_redemption_at = now_utc
    return stats


async def write_redemption(
    session: AsyncSession,
    *,
    student: Student,
    offer: Offer,
    branch: MerchantBranch,
    discount: DiscountResolution,
    verified_by: str,
    notes: str | None,
    now_utc: datetime,
) -> Redemption:
    """Applies the accept-path write set inside the caller's transaction.

    ``student`` and ``offer`` must already be locked by the caller.
    """
    redemption = await RedemptionsRepo.create(
        session,
        redemption=Redemption(
            id=uuid4(),
            student_id=student.id,
            offer_id=offer.id,
            branch_id=branch.id,
            status=REDEMPTION_STATUS_VERIFIED,
            discount_type=discount.discount_type,
            discount_value=discount.discount_value,
            discount_note=discount.note,
            is_bonus_applied=discount.is_bonus_applied,
            bonus_discount_applied=discount.bonus_discount_applied,
            reward_description=discount.reward_description,
            verified_by=verified_by,
            notes=notes,
            reject_reason=None,
            rejected_by=None,
            rejected_at=None,
            created_at=now_utc,
        ),
    )
    savings = redemption_savings(redemption)

    offer.current_redemptions += 1
    offer.updated_at = now_utc

    student.total_redemptions += 1
    student.total_savings = Decimal(student.total_savings) + savings
    student.updated_at = now_utc

    await _increment_merchant_stats(
        session,
        student_id=student.id,
        merchant_id=branch.merchant_id,
        savings=savings,
        now_utc=now_utc,
    )
    await _increment_branch_stats(
        session,
        student_id=student.id,
        branch_id=branch.id,
        savings=savings,
        now_utc=now_utc,
    )
    await session.flush()
    return redemption
