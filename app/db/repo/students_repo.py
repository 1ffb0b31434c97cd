from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.students import Student


class StudentsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, student_id: UUID) -> Student | None:
        return await session.get(Student, student_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, student_id: UUID) -> Student | None:
        stmt = select(Student).where(Student.id == student_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_code_for_update(session: AsyncSession, student_code: str) -> Student | None:
        stmt = select(Student).where(Student.student_code == student_code).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()
