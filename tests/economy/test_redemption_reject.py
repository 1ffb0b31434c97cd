from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from sqlalchemy import select

from app.db.models.offers import Offer
from app.db.models.redemptions import Redemption
from app.db.models.student_stats import StudentBranchStats, StudentMerchantStats
from app.db.models.students import Student
from app.economy.redemptions.errors import (
    AggregateInvariantError,
    RedemptionAlreadyRejectedError,
    RedemptionBranchMismatchError,
    RedemptionNotFoundError,
)
from app.economy.redemptions.service import RedemptionService
from app.economy.redemptions.transactions import run_in_transaction
from app.economy.redemptions.types import StaffIdentity
from tests.economy.redemption_fixtures import (
    NOW_UTC,
    TEST_POLICY,
    branch_staff,
    create_bonus_settings,
    create_branch,
    seed_world,
)


async def _seed(session_factory, **kwargs):
    async with session_factory.begin() as session:
        return await seed_world(session, **kwargs)


async def _accept(session_factory, world, *, now_utc=NOW_UTC):
    return await run_in_transaction(
        lambda session: RedemptionService.create(
            session,
            staff=world.staff,
            student_code=world.student.student_code,
            offer_id=world.offer.id,
            now_utc=now_utc,
            policy=TEST_POLICY,
        ),
        session_factory=session_factory,
    )


async def _reject(
    session_factory,
    *,
    staff: StaffIdentity,
    redemption_id: UUID,
    reason: str | None = "Customer changed mind",
    now_utc=NOW_UTC + timedelta(minutes=1),
):
    return await run_in_transaction(
        lambda session: RedemptionService.reject(
            session,
            staff=staff,
            redemption_id=redemption_id,
            reason=reason,
            now_utc=now_utc,
        ),
        session_factory=session_factory,
    )


async def _aggregates(session_factory, world) -> dict[str, object]:
    async with session_factory() as session:
        offer = await session.get(Offer, world.offer.id)
        student = await session.get(Student, world.student.id)
        merchant_stats = await session.scalar(
            select(StudentMerchantStats).where(StudentMerchantStats.student_id == world.student.id)
        )
        branch_stats = await session.scalar(
            select(StudentBranchStats).where(StudentBranchStats.student_id == world.student.id)
        )
    return {
        "offer_redemptions": offer.current_redemptions,
        "student_redemptions": student.total_redemptions,
        "student_savings": student.total_savings,
        "merchant_count": merchant_stats.redemption_count,
        "merchant_savings": merchant_stats.total_savings,
        "branch_count": branch_stats.redemption_count,
        "branch_savings": branch_stats.total_savings,
    }


@pytest.mark.asyncio
async def test_reject_restores_every_aggregate(session_factory) -> None:
    world = await _seed(session_factory)
    first = await _accept(session_factory, world)
    second = await _accept(session_factory, world, now_utc=NOW_UTC + timedelta(hours=1))

    result = await _reject(
        session_factory,
        staff=world.staff,
        redemption_id=second.redemption_id,
        now_utc=NOW_UTC + timedelta(hours=2),
    )

    assert result.status == "REJECTED"
    assert result.reject_reason == "Customer changed mind"
    assert result.verified_by is None
    assert result.rejected_at == NOW_UTC + timedelta(hours=2)
    assert await _aggregates(session_factory, world) == {
        "offer_redemptions": 1,
        "student_redemptions": 1,
        "student_savings": Decimal("20"),
        "merchant_count": 1,
        "merchant_savings": Decimal("20"),
        "branch_count": 1,
        "branch_savings": Decimal("20"),
    }

    async with session_factory() as session:
        kept = await session.get(Redemption, first.redemption_id)
        rejected = await session.get(Redemption, second.redemption_id)
    assert kept.status == "VERIFIED"
    assert rejected.status == "REJECTED"
    assert rejected.rejected_by == "staff-1"


@pytest.mark.asyncio
async def test_reject_uses_default_reason(session_factory) -> None:
    world = await _seed(session_factory)
    accepted = await _accept(session_factory, world)

    result = await _reject(session_factory, staff=world.staff, redemption_id=accepted.redemption_id, reason="  ")

    assert result.reject_reason == "Redemption rejected"


@pytest.mark.asyncio
async def test_second_reject_is_conflict_without_double_decrement(session_factory) -> None:
    world = await _seed(session_factory)
    accepted = await _accept(session_factory, world)
    await _reject(session_factory, staff=world.staff, redemption_id=accepted.redemption_id)

    with pytest.raises(RedemptionAlreadyRejectedError) as exc_info:
        await _reject(session_factory, staff=world.staff, redemption_id=accepted.redemption_id)

    assert exc_info.value.code == "E_REDEMPTION_ALREADY_REJECTED"
    assert await _aggregates(session_factory, world) == {
        "offer_redemptions": 0,
        "student_redemptions": 0,
        "student_savings": Decimal("0"),
        "merchant_count": 0,
        "merchant_savings": Decimal("0"),
        "branch_count": 0,
        "branch_savings": Decimal("0"),
    }


@pytest.mark.asyncio
async def test_reject_from_another_branch_is_denied(session_factory) -> None:
    world = await _seed(session_factory)
    accepted = await _accept(session_factory, world)
    async with session_factory.begin() as session:
        other_branch = await create_branch(
            session,
            merchant_id=world.merchant.id,
            now_utc=NOW_UTC,
            name="DHA",
        )

    with pytest.raises(RedemptionBranchMismatchError) as exc_info:
        await _reject(session_factory, staff=branch_staff(other_branch.id), redemption_id=accepted.redemption_id)

    assert exc_info.value.code == "E_BRANCH_ACCESS_DENIED"
    assert (await _aggregates(session_factory, world))["student_redemptions"] == 1


@pytest.mark.asyncio
async def test_reject_unknown_redemption(session_factory) -> None:
    world = await _seed(session_factory)

    with pytest.raises(RedemptionNotFoundError):
        await _reject(session_factory, staff=world.staff, redemption_id=uuid4())


@pytest.mark.asyncio
async def test_rejected_scan_does_not_block_a_rescan(session_factory) -> None:
    world = await _seed(session_factory)
    accepted = await _accept(session_factory, world)
    await _reject(
        session_factory,
        staff=world.staff,
        redemption_id=accepted.redemption_id,
        now_utc=NOW_UTC + timedelta(seconds=1),
    )

    rescan = await _accept(session_factory, world, now_utc=NOW_UTC + timedelta(seconds=2))

    assert rescan.status == "VERIFIED"
    assert (await _aggregates(session_factory, world))["offer_redemptions"] == 1


@pytest.mark.asyncio
async def test_reject_reverts_bonus_amount(session_factory) -> None:
    world = await _seed(session_factory)
    async with session_factory.begin() as session:
        await create_bonus_settings(
            session,
            branch_id=world.branch.id,
            now_utc=NOW_UTC,
            redemptions_required=1,
            discount_value=Decimal("75"),
        )
    accepted = await _accept(session_factory, world)
    assert accepted.savings == Decimal("75")

    await _reject(session_factory, staff=world.staff, redemption_id=accepted.redemption_id)

    aggregates = await _aggregates(session_factory, world)
    assert aggregates["student_savings"] == Decimal("0")
    assert aggregates["branch_savings"] == Decimal("0")


@pytest.mark.asyncio
async def test_reject_refuses_to_drive_counters_negative(session_factory) -> None:
    world = await _seed(session_factory)
    accepted = await _accept(session_factory, world)
    async with session_factory.begin() as session:
        student = await session.get(Student, world.student.id)
        student.total_redemptions = 0

    with pytest.raises(AggregateInvariantError):
        await _reject(session_factory, staff=world.staff, redemption_id=accepted.redemption_id)

    async with session_factory() as session:
        redemption = await session.get(Redemption, accepted.redemption_id)
        offer = await session.get(Offer, world.offer.id)
    assert redemption.status == "VERIFIED"
    assert offer.current_redemptions == 1
