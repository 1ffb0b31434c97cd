from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.branch_bonus_settings import BranchBonusSettings
from app.db.models.offers import Offer
from app.db.repo.redemptions_repo import RedemptionsRepo
from app.economy.redemptions.constants import DISCOUNT_TYPE_PERCENTAGE
from app.economy.redemptions.strategies import get_strategy
from app.economy.redemptions.types import DiscountResolution

SOURCE_STRATEGY = "STRATEGY"
SOURCE_BRANCH_BONUS = "BRANCH_BONUS"
SOURCE_OFFER = "OFFER"


def resolve_branch_bonus(
    settings: BranchBonusSettings | None,
    *,
    branch_visit_count: int,
) -> DiscountResolution | None:
    if settings is None or not settings.is_active:
        return None
    if settings.redemptions_required < 1:
        return None

    upcoming_visit = branch_visit_count + 1
    if upcoming_visit % settings.redemptions_required != 0:
        return None

    amount = Decimal(settings.discount_value)
    if settings.discount_type == DISCOUNT_TYPE_PERCENTAGE and settings.max_discount_amount is not None:
        amount = min(amount, Decimal(settings.max_discount_amount))

    return DiscountResolution(
        source=SOURCE_BRANCH_BONUS,
        discount_type=settings.discount_type,
        discount_value=amount,
        note=f"Branch bonus: visit #{upcoming_visit}",
        is_bonus_applied=True,
        bonus_discount_applied=amount,
        reward_description=settings.reward_description,
    )


def base_offer_discount(offer: Offer) -> DiscountResolution:
    return DiscountResolution(
        source=SOURCE_OFFER,
        discount_type=offer.discount_type,
        discount_value=Decimal(offer.discount_value),
    )


async def resolve_discount(
    session: AsyncSession,
    *,
    student_id: UUID,
    merchant_id: UUID,
    offer: Offer,
    bonus_settings: BranchBonusSettings | None,
    branch_visit_count: int,
    now_utc: datetime,
) -> DiscountResolution:
    """Picks the discount for the redemption about to be written.

    Order: the offer's named strategy, then the branch bonus, then the offer
    itself. Reads redemption history only; never writes.
    """
    if offer.redemption_strategy:
        strategy = get_strategy(offer.redemption_strategy)
        history = await RedemptionsRepo.list_recent_verified_times_at_merchant(
            session,
            student_id=student_id,
            merchant_id=merchant_id,
            limit=strategy.lookback_limit,
        )
        strategy_discount = strategy.resolve(
            student_id=student_id,
            merchant_id=merchant_id,
            offer=offer,
            history=history,
            now_utc=now_utc,
        )
        return DiscountResolution(
            source=SOURCE_STRATEGY,
            discount_type=strategy_discount.discount_type,
            discount_value=strategy_discount.discount_value,
            note=strategy_discount.note,
        )

    bonus = resolve_branch_bonus(bonus_settings, branch_visit_count=branch_visit_count)
    if bonus is not None:
        return bonus

    return base_offer_discount(offer)
