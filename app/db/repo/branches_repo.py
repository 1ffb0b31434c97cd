from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.branch_bonus_settings import BranchBonusSettings
from app.db.models.merchant_branches import MerchantBranch
from app.db.models.merchants import Merchant


class BranchesRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, branch_id: UUID) -> MerchantBranch | None:
        return await session.get(MerchantBranch, branch_id)

    @staticmethod
    async def get_merchant(session: AsyncSession, merchant_id: UUID) -> Merchant | None:
        return await session.get(Merchant, merchant_id)

    @staticmethod
    async def get_bonus_settings(
        session: AsyncSession,
        branch_id: UUID,
    ) -> BranchBonusSettings | None:
        return await session.get(BranchBonusSettings, branch_id)
