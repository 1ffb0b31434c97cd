from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

OFFER_STATUS_ACTIVE = "ACTIVE"
SCHEDULE_TYPE_CUSTOM = "CUSTOM"

STUDENT_VERIFICATION_APPROVED = "APPROVED"
STAFF_ROLE_BRANCH = "MERCHANT_BRANCH"

DISCOUNT_TYPE_PERCENTAGE = "PERCENTAGE"

DEFAULT_DUPLICATE_WINDOW = timedelta(seconds=5)
DEFAULT_TX_TIMEOUT_SECONDS = 20.0
DEFAULT_REJECT_REASON = "Redemption rejected"

STRATEGY_STREAK_TIERING = "streak_tiering"
STREAK_LOOKBACK_LIMIT = 20
STREAK_MAX_GAP_DAYS = 10
STREAK_TIERS: tuple[tuple[int, Decimal, str], ...] = (
    (3, Decimal("40"), "Loyalty Streak: 40% OFF"),
    (2, Decimal("30"), "Loyalty Bonus: 30% OFF"),
    (1, Decimal("20"), "First Visit (or Streak Reset): 20% OFF"),
)

ISO_WEEKDAY_NAMES = {
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
    7: "Sunday",
}
