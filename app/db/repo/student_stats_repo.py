from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.student_stats import StudentBranchStats, StudentMerchantStats


class StudentStatsRepo:
    @staticmethod
    async def get_branch_stats(
        session: AsyncSession,
        *,
        student_id: UUID,
        branch_id: UUID,
    ) -> StudentBranchStats | None:
        stmt = select(StudentBranchStats).where(
            StudentBranchStats.student_id == student_id,
            StudentBranchStats.branch_id == branch_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_branch_stats_for_update(
        session: AsyncSession,
        *,
        student_id: UUID,
        branch_id: UUID,
    ) -> StudentBranchStats | None:
        stmt = (
            select(StudentBranchStats)
            .where(
                StudentBranchStats.student_id == student_id,
                StudentBranchStats.branch_id == branch_id,
            )
            .with_for_update()
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_merchant_stats_for_update(
        session: AsyncSession,
        *,
        student_id: UUID,
        merchant_id: UUID,
    ) -> StudentMerchantStats | None:
        stmt = (
            select(StudentMerchantStats)
            .where(
                StudentMerchantStats.student_id == student_id,
                StudentMerchantStats.merchant_id == merchant_id,
            )
            .with_for_update()
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_branch_stats(
        session: AsyncSession,
        *,
        stats: StudentBranchStats,
    ) -> StudentBranchStats:
        session.add(stats)
        await session.flush()
        return stats

    @staticmethod
    async def create_merchant_stats(
        session: AsyncSession,
        *,
        stats: StudentMerchantStats,
    ) -> StudentMerchantStats:
        session.add(stats)
        await session.flush()
        return stats
