from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import datetime
from typing import Protocol
from uuid import UUID

from app.db.models.offers import Offer
from app.economy.redemptions.constants import (
    DISCOUNT_TYPE_PERCENTAGE,
    STRATEGY_STREAK_TIERING,
    STREAK_LOOKBACK_LIMIT,
    STREAK_MAX_GAP_DAYS,
    STREAK_TIERS,
)
from app.economy.redemptions.errors import UnknownRedemptionStrategyError
from app.economy.redemptions.time_utils import as_utc
from app.economy.redemptions.types import StrategyDiscount

SECONDS_PER_DAY = 24 * 60 * 60


class RedemptionStrategy(Protocol):
    name: str
    lookback_limit: int

    def resolve(
        self,
        *,
        student_id: UUID,
        merchant_id: UUID,
        offer: Offer,
        history: Sequence[datetime],
        now_utc: datetime,
    ) -> StrategyDiscount: ...


def gap_in_days(later: datetime, earlier: datetime) -> int:
    delta_seconds = abs((as_utc(later) - as_utc(earlier)).total_seconds())
    return math.ceil(delta_seconds / SECONDS_PER_DAY)


def count_streak(
    history: Sequence[datetime | None],
    *,
    now_utc: datetime,
    max_gap_days: int = STREAK_MAX_GAP_DAYS,
) -> int:
    """Counts prior visits chained to ``now_utc`` by gaps of at most ``max_gap_days``.

    ``history`` is newest first. Missing timestamps are skipped.
    """
    streak = 0
    cursor = now_utc
    for created_at in history:
        if created_at is None:
            continue
        if gap_in_days(cursor, created_at) > max_gap_days:
            break
        streak += 1
        cursor = created_at
    return streak


class StreakTieringStrategy:
    name = STRATEGY_STREAK_TIERING
    lookback_limit = STREAK_LOOKBACK_LIMIT

    def resolve(
        self,
        *,
        student_id: UUID,
        merchant_id: UUID,
        offer: Offer,
        history: Sequence[datetime],
        now_utc: datetime,
    ) -> StrategyDiscount:
        visit_number = count_streak(history, now_utc=now_utc) + 1
        for min_visit, percent, note in STREAK_TIERS:
            if visit_number >= min_visit:
                return StrategyDiscount(
                    discount_type=DISCOUNT_TYPE_PERCENTAGE,
                    discount_value=percent,
                    note=note,
                )
        raise AssertionError("streak tiers must cover the first visit")


_REGISTRY: dict[str, RedemptionStrategy] = {
    StreakTieringStrategy.name: StreakTieringStrategy(),
}


def register_strategy(strategy: RedemptionStrategy) -> None:
    _REGISTRY[strategy.name] = strategy


def get_strategy(name: str) -> RedemptionStrategy:
    strategy = _REGISTRY.get(name)
    if strategy is None:
        raise UnknownRedemptionStrategyError
    return strategy
