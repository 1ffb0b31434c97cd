from app.db.repo.branches_repo import BranchesRepo
from app.db.repo.offers_repo import OffersRepo
from app.db.repo.redemptions_repo import RedemptionsRepo
from app.db.repo.student_stats_repo import StudentStatsRepo
from app.db.repo.students_repo import StudentsRepo

__all__ = [
    "BranchesRepo",
    "OffersRepo",
    "RedemptionsRepo",
    "StudentStatsRepo",
    "StudentsRepo",
]
