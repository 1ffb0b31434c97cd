from __future__ import annotations

from uuid import UUID

from sqlalchemy import exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.offer_branches import OfferBranch
from app.db.models.offers import Offer


class OffersRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, offer_id: UUID) -> Offer | None:
        return await session.get(Offer, offer_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, offer_id: UUID) -> Offer | None:
        stmt = select(Offer).where(Offer.id == offer_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def has_active_branch_assignment(
        session: AsyncSession,
        *,
        offer: Offer,
        branch_id: UUID,
        branch_merchant_id: UUID,
    ) -> bool:
        assignment_match = OfferBranch.branch_id == branch_id
        if offer.merchant_id == branch_merchant_id:
            assignment_match = or_(assignment_match, OfferBranch.branch_id.is_(None))

        stmt = select(
            exists().where(
                OfferBranch.offer_id == offer.id,
                OfferBranch.is_active.is_(True),
                assignment_match,
            )
        )
        result = await session.execute(stmt)
        return bool(result.scalar())
