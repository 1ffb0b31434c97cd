from __future__ import annotations

from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.redemptions_repo import RedemptionsRepo
from app.economy.redemptions.constants import DEFAULT_DUPLICATE_WINDOW
from app.economy.redemptions.errors import DuplicateRedemptionError


async def assert_not_duplicate(
    session: AsyncSession,
    *,
    student_id: UUID,
    offer_id: UUID,
    branch_id: UUID,
    now_utc: datetime,
    window: timedelta = DEFAULT_DUPLICATE_WINDOW,
) -> None:
    """Collapses double taps and client retries of one physical scan.

    Must run after the offer row lock is taken so competing requests for the
    same triple observe each other's committed rows.
    """
    recent = await RedemptionsRepo.get_latest_verified_for_triple_since(
        session,
        student_id=student_id,
        offer_id=offer_id,
        branch_id=branch_id,
        since_utc=now_utc - window,
    )
    if recent is not None:
        raise DuplicateRedemptionError
