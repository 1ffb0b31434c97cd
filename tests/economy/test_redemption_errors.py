from __future__ import annotations

import pytest

from app.api.routes.internal_redemptions import STATUS_BY_CATEGORY
from app.economy.redemptions import errors
from app.economy.redemptions.errors import (
    ErrorCategory,
    OfferLimitReachedError,
    RedemptionError,
    RedemptionTimeoutError,
    RedemptionTransientError,
    StudentNotVerifiedError,
)


def _error_classes() -> list[type[RedemptionError]]:
    return [
        value
        for value in vars(errors).values()
        if isinstance(value, type) and issubclass(value, RedemptionError) and value is not RedemptionError
    ]


def test_every_category_maps_to_an_http_status() -> None:
    assert set(STATUS_BY_CATEGORY) == set(ErrorCategory)


@pytest.mark.parametrize("error_cls", _error_classes())
def test_error_codes_are_stable_strings(error_cls: type[RedemptionError]) -> None:
    assert error_cls.code.startswith("E_")
    assert error_cls.default_message


def test_message_defaults_and_overrides() -> None:
    assert StudentNotVerifiedError().message == "Student is not verified"
    assert StudentNotVerifiedError("Student verification has expired").message == (
        "Student verification has expired"
    )
    assert str(StudentNotVerifiedError()) == "Student is not verified"


def test_limit_error_records_which_limit() -> None:
    error = OfferLimitReachedError(limit="daily", message="Offer daily redemption limit reached at this branch")

    assert error.limit == "daily"
    assert error.category is ErrorCategory.INELIGIBLE


def test_timeout_is_transient() -> None:
    assert issubclass(RedemptionTimeoutError, RedemptionTransientError)
    assert RedemptionTimeoutError().category is ErrorCategory.TRANSIENT
