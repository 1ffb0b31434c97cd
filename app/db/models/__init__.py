from app.db.models.branch_bonus_settings import BranchBonusSettings
from app.db.models.merchant_branches import MerchantBranch
from app.db.models.merchants import Merchant
from app.db.models.offer_branches import OfferBranch
from app.db.models.offers import Offer
from app.db.models.redemptions import Redemption
from app.db.models.student_stats import StudentBranchStats, StudentMerchantStats
from app.db.models.students import Student

__all__ = [
    "BranchBonusSettings",
    "Merchant",
    "MerchantBranch",
    "Offer",
    "OfferBranch",
    "Redemption",
    "Student",
    "StudentBranchStats",
    "StudentMerchantStats",
]
