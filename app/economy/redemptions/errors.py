from __future__ import annotations

from enum import Enum


class ErrorCategory(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    INELIGIBLE = "INELIGIBLE"
    CONFLICT = "CONFLICT"
    AUTHORIZATION = "AUTHORIZATION"
    TRANSIENT = "TRANSIENT"
    INVARIANT = "INVARIANT"


class RedemptionError(Exception):
    """Base for every typed redemption failure.

    ``code`` is stable for API clients; ``message`` is what branch staff read
    back to the student.
    """

    category: ErrorCategory = ErrorCategory.INELIGIBLE
    code = "E_REDEMPTION_FAILED"
    default_message = "Redemption failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class StudentNotFoundError(RedemptionError):
    category = ErrorCategory.NOT_FOUND
    code = "E_STUDENT_NOT_FOUND"
    default_message = "Student not found"


class BranchNotFoundError(RedemptionError):
    category = ErrorCategory.NOT_FOUND
    code = "E_BRANCH_NOT_FOUND"
    default_message = "Branch not found"


class OfferNotFoundError(RedemptionError):
    category = ErrorCategory.NOT_FOUND
    code = "E_OFFER_NOT_FOUND"
    default_message = "Offer not found"


class RedemptionNotFoundError(RedemptionError):
    category = ErrorCategory.NOT_FOUND
    code = "E_REDEMPTION_NOT_FOUND"
    default_message = "Redemption not found"


class InvalidStudentCodeError(RedemptionError):
    code = "E_STUDENT_CODE_INVALID"
    default_message = "Invalid student code"


class StudentNotVerifiedError(RedemptionError):
    code = "E_STUDENT_NOT_VERIFIED"
    default_message = "Student is not verified"


class BranchInactiveError(RedemptionError):
    code = "E_BRANCH_INACTIVE"
    default_message = "Branch is not active"


class OfferInactiveError(RedemptionError):
    code = "E_OFFER_INACTIVE"
    default_message = "Offer is not active"


class OfferExpiredError(RedemptionError):
    code = "E_OFFER_EXPIRED"
    default_message = "Offer has expired"


class OfferNotAvailableAtBranchError(RedemptionError):
    code = "E_OFFER_NOT_AVAILABLE_AT_BRANCH"
    default_message = "Offer is not available at this branch"


class OfferOutOfScheduleError(RedemptionError):
    code = "E_OFFER_OUT_OF_SCHEDULE"
    default_message = "Offer is not available at this time"


class OfferLimitReachedError(RedemptionError):
    code = "E_OFFER_LIMIT_REACHED"
    default_message = "Offer redemption limit reached"

    def __init__(self, *, limit: str, message: str | None = None) -> None:
        self.limit = limit
        super().__init__(message)


class StudentDailyLimitReachedError(RedemptionError):
    code = "E_STUDENT_DAILY_LIMIT_REACHED"
    default_message = "Student already redeemed this offer today"


class UnknownRedemptionStrategyError(RedemptionError):
    code = "E_OFFER_MISCONFIGURED"
    default_message = "Offer uses an unknown redemption strategy"


class DuplicateRedemptionError(RedemptionError):
    category = ErrorCategory.CONFLICT
    code = "E_DUPLICATE_REDEMPTION"
    default_message = "This redemption was already recorded a moment ago"


class RedemptionAlreadyRejectedError(RedemptionError):
    category = ErrorCategory.CONFLICT
    code = "E_REDEMPTION_ALREADY_REJECTED"
    default_message = "Redemption is already rejected"


class StaffRoleNotAllowedError(RedemptionError):
    category = ErrorCategory.AUTHORIZATION
    code = "E_ROLE_NOT_ALLOWED"
    default_message = "Only branch staff can manage redemptions"


class StaffBranchRequiredError(RedemptionError):
    category = ErrorCategory.AUTHORIZATION
    code = "E_BRANCH_ACCESS_DENIED"
    default_message = "Staff account is not linked to a branch"


class RedemptionBranchMismatchError(RedemptionError):
    category = ErrorCategory.AUTHORIZATION
    code = "E_BRANCH_ACCESS_DENIED"
    default_message = "Redemption belongs to another branch"


class RedemptionTransientError(RedemptionError):
    category = ErrorCategory.TRANSIENT
    code = "E_TRANSIENT"
    default_message = "Redemption could not be completed, please scan again"


class RedemptionTimeoutError(RedemptionTransientError):
    default_message = "Redemption timed out, please scan again"


class AggregateInvariantError(RedemptionError):
    category = ErrorCategory.INVARIANT
    code = "E_AGGREGATE_INVARIANT"
    default_message = "Redemption aggregates are inconsistent"
