from __future__ import annotations

from datetime import datetime, time
from typing import Protocol
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.merchant_branches import MerchantBranch
from app.db.models.offers import Offer
from app.db.repo.offers_repo import OffersRepo
from app.db.repo.redemptions_repo import RedemptionsRepo
from app.economy.redemptions.constants import (
    ISO_WEEKDAY_NAMES,
    OFFER_STATUS_ACTIVE,
    SCHEDULE_TYPE_CUSTOM,
)
from app.economy.redemptions.errors import (
    OfferExpiredError,
    OfferInactiveError,
    OfferLimitReachedError,
    OfferNotAvailableAtBranchError,
    OfferOutOfScheduleError,
)
from app.economy.redemptions.time_utils import (
    as_utc,
    is_time_in_window,
    local_midnight_utc,
    local_now,
)


class ScheduledOffer(Protocol):
    schedule_type: str
    allowed_days: list[int] | None
    start_time: time | None
    end_time: time | None


def assert_offer_active(offer: Offer, *, now_utc: datetime) -> None:
    if offer.status != OFFER_STATUS_ACTIVE:
        raise OfferInactiveError

    if now_utc < as_utc(offer.valid_from):
        raise OfferExpiredError("Offer is not valid yet")
    if now_utc > as_utc(offer.valid_until):
        raise OfferExpiredError


def assert_within_schedule(offer: ScheduledOffer, *, local_dt: datetime) -> None:
    if offer.schedule_type != SCHEDULE_TYPE_CUSTOM:
        return

    allowed_days = sorted(set(offer.allowed_days or []))
    if allowed_days and local_dt.isoweekday() not in allowed_days:
        allowed_names = ", ".join(ISO_WEEKDAY_NAMES.get(day, str(day)) for day in allowed_days)
        raise OfferOutOfScheduleError(
            f"This offer is not available on {ISO_WEEKDAY_NAMES[local_dt.isoweekday()]}. "
            f"It is only available on: {allowed_names}"
        )

    start_time = offer.start_time
    end_time = offer.end_time
    if start_time is None or end_time is None:
        return
    if not is_time_in_window(local_dt.time(), start=start_time, end=end_time):
        raise OfferOutOfScheduleError(
            f"This offer is only available between {start_time:%H:%M} and {end_time:%H:%M}. "
            "Current time is outside this window."
        )


def assert_total_limit(offer: Offer) -> None:
    if offer.total_limit is not None and offer.current_redemptions >= offer.total_limit:
        raise OfferLimitReachedError(limit="total")


async def assert_daily_limit(
    session: AsyncSession,
    *,
    offer: Offer,
    branch_id: UUID,
    now_utc: datetime,
    tz_name: str,
) -> None:
    if offer.daily_limit is None:
        return

    redeemed_today = await RedemptionsRepo.count_verified_for_offer_branch_since(
        session,
        offer_id=offer.id,
        branch_id=branch_id,
        since_utc=local_midnight_utc(now_utc, tz_name),
    )
    if redeemed_today >= offer.daily_limit:
        raise OfferLimitReachedError(
            limit="daily",
            message="Offer daily redemption limit reached at this branch",
        )


async def assert_offer_redeemable(
    session: AsyncSession,
    *,
    offer: Offer,
    branch: MerchantBranch,
    now_utc: datetime,
    tz_name: str,
) -> None:
    """Runs the eligibility chain in order; the first failing check raises."""
    assert_offer_active(offer, now_utc=now_utc)

    is_assigned = await OffersRepo.has_active_branch_assignment(
        session,
        offer=offer,
        branch_id=branch.id,
        branch_merchant_id=branch.merchant_id,
    )
    if not is_assigned:
        raise OfferNotAvailableAtBranchError

    assert_within_schedule(offer, local_dt=local_now(now_utc, tz_name))
    assert_total_limit(offer)
    await assert_daily_limit(
        session,
        offer=offer,
        branch_id=branch.id,
        now_utc=now_utc,
        tz_name=tz_name,
    )
