from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.offers import Offer
from app.db.models.redemptions import REDEMPTION_STATUS_REJECTED, REDEMPTION_STATUS_VERIFIED, Redemption
from app.db.models.student_stats import StudentBranchStats, StudentMerchantStats
from app.db.models.students import Student
from app.db.repo.branches_repo import BranchesRepo
from app.db.repo.offers_repo import OffersRepo
from app.db.repo.redemptions_repo import RedemptionsRepo
from app.db.repo.student_stats_repo import StudentStatsRepo
from app.db.repo.students_repo import StudentsRepo
from app.economy.redemptions.constants import DEFAULT_REJECT_REASON
from app.economy.redemptions.errors import (
    AggregateInvariantError,
    BranchNotFoundError,
    OfferNotFoundError,
    RedemptionAlreadyRejectedError,
    RedemptionBranchMismatchError,
    RedemptionNotFoundError,
    StudentNotFoundError,
)
from app.economy.redemptions.ledger import redemption_savings


def _checked_decrement(
    row: Offer | Student | StudentMerchantStats | StudentBranchStats,
    *,
    count_attr: str,
    savings_attr: str | None,
    savings: Decimal,
) -> None:
    count = getattr(row, count_attr)
    if count < 1:
        raise AggregateInvariantError(
            f"{row.__tablename__}.{count_attr} would go negative for {row.id}"
        )
    setattr(row, count_attr, count - 1)

    if savings_attr is None:
        return
    total = Decimal(getattr(row, savings_attr))
    if total < savings:
        raise AggregateInvariantError(
            f"{row.__tablename__}.{savings_attr} would go negative for {row.id}"
        )
    setattr(row, savings_attr, total - savings)


async def load_rejectable_redemption(
    session: AsyncSession,
    *,
    redemption_id: UUID,
    staff_branch_id: UUID,
) -> Redemption:
    redemption = await RedemptionsRepo.get_by_id_for_update(session, redemption_id)
    if redemption is None:
        raise RedemptionNotFoundError
    if redemption.branch_id != staff_branch_id:
        raise RedemptionBranchMismatchError
    if redemption.status != REDEMPTION_STATUS_VERIFIED:
        raise RedemptionAlreadyRejectedError
    return redemption


async def reverse_redemption(
    session: AsyncSession,
    *,
    redemption: Redemption,
    rejected_by: str,
    reason: str | None,
    now_utc: datetime,
) -> Redemption:
    """Undoes every aggregate increment of an accepted redemption and marks it rejected.

    ``redemption`` must come from ``load_rejectable_redemption`` in the same
    transaction. A counter that would go negative aborts with
    ``AggregateInvariantError`` instead of being clamped.
    """
    savings = redemption_savings(redemption)

    offer = await OffersRepo.get_by_id_for_update(session, redemption.offer_id)
    if offer is None:
        raise OfferNotFoundError
    student = await StudentsRepo.get_by_id_for_update(session, redemption.student_id)
    if student is None:
        raise StudentNotFoundError
    branch = await BranchesRepo.get_by_id(session, redemption.branch_id)
    if branch is None:
        raise BranchNotFoundError

    merchant_stats = await StudentStatsRepo.get_merchant_stats_for_update(
        session,
        student_id=student.id,
        merchant_id=branch.merchant_id,
    )
    branch_stats = await StudentStatsRepo.get_branch_stats_for_update(
        session,
        student_id=student.id,
        branch_id=branch.id,
    )
    if merchant_stats is None or branch_stats is None:
        raise AggregateInvariantError(f"stats rows missing for redemption {redemption.id}")

    redemption.status = REDEMPTION_STATUS_REJECTED
    redemption.verified_by = None
    redemption.rejected_by = rejected_by
    redemption.rejected_at = now_utc
    redemption.reject_reason = (reason or "").strip() or DEFAULT_REJECT_REASON

    _checked_decrement(offer, count_attr="current_redemptions", savings_attr=None, savings=savings)
    offer.updated_at = now_utc

    _checked_decrement(
        student,
        count_attr="total_redemptions",
        savings_attr="total_savings",
        savings=savings,
    )
    student.updated_at = now_utc

    for stats in (merchant_stats, branch_stats):
        _checked_decrement(
            stats,
            count_attr="redemption_count",
            savings_attr="total_savings",
            savings=savings,
        )

    await session.flush()
    return redemption
