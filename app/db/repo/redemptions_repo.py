from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.offers import Offer
from app.db.models.redemptions import REDEMPTION_STATUS_VERIFIED, Redemption


class RedemptionsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, redemption: Redemption) -> Redemption:
        session.add(redemption)
        await session.flush()
        return redemption

    @staticmethod
    async def get_by_id(session: AsyncSession, redemption_id: UUID) -> Redemption | None:
        return await session.get(Redemption, redemption_id)

    @staticmethod
    async def get_by_id_for_update(
        session: AsyncSession,
        redemption_id: UUID,
    ) -> Redemption | None:
        stmt = select(Redemption).where(Redemption.id == redemption_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_latest_verified_for_triple_since(
        session: AsyncSession,
        *,
        student_id: UUID,
        offer_id: UUID,
        branch_id: UUID,
        since_utc: datetime,
    ) -> Redemption | None:
        stmt = (
            select(Redemption)
            .where(
                Redemption.student_id == student_id,
                Redemption.offer_id == offer_id,
                Redemption.branch_id == branch_id,
                Redemption.status == REDEMPTION_STATUS_VERIFIED,
                Redemption.created_at >= since_utc,
            )
            .order_by(Redemption.created_at.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def count_verified_for_offer_branch_since(
        session: AsyncSession,
        *,
        offer_id: UUID,
        branch_id: UUID,
        since_utc: datetime,
    ) -> int:
        stmt = select(func.count(Redemption.id)).where(
            Redemption.offer_id == offer_id,
            Redemption.branch_id == branch_id,
            Redemption.status == REDEMPTION_STATUS_VERIFIED,
            Redemption.created_at >= since_utc,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def count_verified_for_triple_since(
        session: AsyncSession,
        *,
        student_id: UUID,
        offer_id: UUID,
        branch_id: UUID,
        since_utc: datetime,
    ) -> int:
        stmt = select(func.count(Redemption.id)).where(
            Redemption.student_id == student_id,
            Redemption.offer_id == offer_id,
            Redemption.branch_id == branch_id,
            Redemption.status == REDEMPTION_STATUS_VERIFIED,
            Redemption.created_at >= since_utc,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def list_recent_verified_times_at_merchant(
        session: AsyncSession,
        *,
        student_id: UUID,
        merchant_id: UUID,
        limit: int,
    ) -> list[datetime]:
        stmt = (
            select(Redemption.created_at)
            .join(Offer, Offer.id == Redemption.offer_id)
            .where(
                Redemption.student_id == student_id,
                Redemption.status == REDEMPTION_STATUS_VERIFIED,
                Offer.merchant_id == merchant_id,
            )
            .order_by(Redemption.created_at.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return [created_at for created_at in result.scalars().all() if created_at is not None]
