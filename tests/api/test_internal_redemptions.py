from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.api.routes import internal_redemptions
from app.economy.redemptions.errors import (
    AggregateInvariantError,
    DuplicateRedemptionError,
    OfferLimitReachedError,
    RedemptionBranchMismatchError,
    RedemptionTimeoutError,
    StudentNotFoundError,
)
from app.economy.redemptions.types import RedemptionResult
from app.main import app

UTC = timezone.utc
OFFER_ID = uuid4()
BRANCH_ID = uuid4()


def _settings(**overrides) -> SimpleNamespace:
    values = {
        "internal_api_token": "internal-secret",
        "internal_api_allowlist": "127.0.0.1/32",
        "internal_api_trusted_proxies": "",
        "redemption_timezone": "Asia/Karachi",
        "student_code_prefix": "PK-",
        "duplicate_window_seconds": 5.0,
        "redemption_tx_timeout_seconds": 20.0,
        "student_daily_offer_limit": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _create_payload() -> dict[str, object]:
    return {
        "student_code": "PK-7F3A21",
        "offer_id": str(OFFER_ID),
        "notes": "table 4",
        "staff": {"user_id": "staff-1", "branch_id": str(BRANCH_ID), "role": "MERCHANT_BRANCH"},
    }


def _result(**overrides) -> RedemptionResult:
    values = {
        "redemption_id": uuid4(),
        "status": "VERIFIED",
        "student_id": uuid4(),
        "student_code": "PK-7F3A21",
        "student_name": "Ayesha Khan",
        "offer_id": OFFER_ID,
        "offer_title": "20% off any meal",
        "offer_discount_type": "PERCENTAGE",
        "offer_discount_value": Decimal("20"),
        "branch_id": BRANCH_ID,
        "branch_name": "Gulberg",
        "branch_address": "12 Main Boulevard",
        "branch_city": "Lahore",
        "merchant_id": uuid4(),
        "merchant_name": "Chai Corner",
        "discount_type": "PERCENTAGE",
        "discount_value": Decimal("20"),
        "discount_note": None,
        "is_bonus_applied": False,
        "bonus_discount_applied": None,
        "reward_description": None,
        "savings": Decimal("20"),
        "verified_by": "staff-1",
        "notes": "table 4",
        "reject_reason": None,
        "created_at": datetime(2026, 3, 4, 7, 0, tzinfo=UTC),
        "rejected_at": None,
    }
    values.update(overrides)
    return RedemptionResult(**values)


def _client() -> TestClient:
    return TestClient(app, client=("127.0.0.1", 5200))


def _use_transaction_outcome(monkeypatch, outcome) -> list[float]:
    timeouts: list[float] = []

    async def _fake_run_in_transaction(operation, *, timeout_seconds: float):
        timeouts.append(timeout_seconds)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(internal_redemptions, "run_in_transaction", _fake_run_in_transaction)
    return timeouts


def test_create_redemption_rejects_missing_token(monkeypatch) -> None:
    monkeypatch.setattr(internal_redemptions, "get_settings", _settings)

    response = _client().post("/internal/redemptions", json=_create_payload())

    assert response.status_code == 403
    assert response.json() == {"detail": {"code": "E_FORBIDDEN"}}


def test_create_redemption_rejects_disallowed_ip(monkeypatch) -> None:
    monkeypatch.setattr(
        internal_redemptions,
        "get_settings",
        lambda: _settings(internal_api_allowlist="192.168.0.0/16"),
    )

    response = _client().post(
        "/internal/redemptions",
        json=_create_payload(),
        headers={"X-Internal-Token": "internal-secret"},
    )

    assert response.status_code == 403
    assert response.json() == {"detail": {"code": "E_FORBIDDEN"}}


def test_create_redemption_returns_created_payload(monkeypatch) -> None:
    monkeypatch.setattr(internal_redemptions, "get_settings", lambda: _settings(redemption_tx_timeout_seconds=7.5))
    timeouts = _use_transaction_outcome(monkeypatch, _result())

    response = _client().post(
        "/internal/redemptions",
        json=_create_payload(),
        headers={"X-Internal-Token": "internal-secret"},
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["status"] == "VERIFIED"
    assert Decimal(payload["savings"]) == Decimal("20")
    assert payload["offer"]["id"] == str(OFFER_ID)
    assert payload["branch"]["branch_name"] == "Gulberg"
    assert payload["merchant"]["business_name"] == "Chai Corner"
    assert payload["student"]["name"] == "Ayesha Khan"
    assert timeouts == [7.5]


def test_create_redemption_exposes_bonus_reward(monkeypatch) -> None:
    monkeypatch.setattr(internal_redemptions, "get_settings", lambda: _settings())
    bonus = _result(
        discount_type="FIXED",
        discount_value=Decimal("150"),
        discount_note="Branch bonus: visit #5",
        is_bonus_applied=True,
        bonus_discount_applied=Decimal("150"),
        reward_description="Free chai",
        savings=Decimal("150"),
    )
    _use_transaction_outcome(monkeypatch, bonus)

    response = _client().post(
        "/internal/redemptions",
        json=_create_payload(),
        headers={"X-Internal-Token": "internal-secret"},
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["is_bonus_applied"] is True
    assert payload["reward_description"] == "Free chai"
    assert Decimal(payload["bonus_discount_applied"]) == Decimal("150")


@pytest.mark.parametrize(
    ("error", "status_code", "code"),
    [
        (StudentNotFoundError(), 404, "E_STUDENT_NOT_FOUND"),
        (OfferLimitReachedError(limit="total"), 422, "E_OFFER_LIMIT_REACHED"),
        (DuplicateRedemptionError(), 409, "E_DUPLICATE_REDEMPTION"),
        (RedemptionBranchMismatchError(), 403, "E_BRANCH_ACCESS_DENIED"),
        (RedemptionTimeoutError(), 503, "E_TRANSIENT"),
        (AggregateInvariantError(), 500, "E_AGGREGATE_INVARIANT"),
    ],
)
def test_create_redemption_maps_domain_errors(monkeypatch, error, status_code: int, code: str) -> None:
    monkeypatch.setattr(internal_redemptions, "get_settings", _settings)
    _use_transaction_outcome(monkeypatch, error)

    response = _client().post(
        "/internal/redemptions",
        json=_create_payload(),
        headers={"X-Internal-Token": "internal-secret"},
    )

    assert response.status_code == status_code
    assert response.json() == {"detail": {"code": code, "message": error.message}}


def test_reject_redemption_returns_rejected_payload(monkeypatch) -> None:
    monkeypatch.setattr(internal_redemptions, "get_settings", _settings)
    redemption_id = uuid4()
    _use_transaction_outcome(
        monkeypatch,
        _result(
            redemption_id=redemption_id,
            status="REJECTED",
            verified_by=None,
            reject_reason="Wrong student",
            rejected_at=datetime(2026, 3, 4, 7, 5, tzinfo=UTC),
        ),
    )

    response = _client().post(
        f"/internal/redemptions/{redemption_id}/reject",
        json={
            "reason": "Wrong student",
            "staff": {"user_id": "staff-1", "branch_id": str(BRANCH_ID), "role": "MERCHANT_BRANCH"},
        },
        headers={"X-Internal-Token": "internal-secret"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["id"] == str(redemption_id)
    assert payload["status"] == "REJECTED"
    assert payload["verified_by"] is None
    assert payload["reject_reason"] == "Wrong student"


def test_reject_redemption_rejects_missing_token(monkeypatch) -> None:
    monkeypatch.setattr(internal_redemptions, "get_settings", _settings)

    response = _client().post(
        f"/internal/redemptions/{uuid4()}/reject",
        json={"staff": {"user_id": "staff-1", "branch_id": str(BRANCH_ID), "role": "MERCHANT_BRANCH"}},
    )

    assert response.status_code == 403
