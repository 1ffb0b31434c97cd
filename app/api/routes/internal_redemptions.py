from __future__ import annotations

from uuid import UUID

import structlog
from fastapi import APIRouter, HTTPException, Request

from app.api.routes.internal_redemptions_models import (
    RedemptionBranchView,
    RedemptionCreateRequest,
    RedemptionMerchantView,
    RedemptionOfferView,
    RedemptionRejectRequest,
    RedemptionResponse,
    RedemptionStudentView,
    StaffIdentityPayload,
)
from app.core.config import get_settings
from app.economy.redemptions.errors import ErrorCategory, RedemptionError
from app.economy.redemptions.service import RedemptionService
from app.economy.redemptions.transactions import run_in_transaction
from app.economy.redemptions.types import RedemptionPolicy, RedemptionResult, StaffIdentity
from app.services.internal_auth import internal_access_denial_reason

router = APIRouter(tags=["internal", "redemptions"])
logger = structlog.get_logger(__name__)

STATUS_BY_CATEGORY: dict[ErrorCategory, int] = {
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.INELIGIBLE: 422,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.AUTHORIZATION: 403,
    ErrorCategory.TRANSIENT: 503,
    ErrorCategory.INVARIANT: 500,
}


def _assert_internal_access(request: Request) -> None:
    settings = get_settings()
    reason = internal_access_denial_reason(
        request,
        expected_token=settings.internal_api_token,
        allowlist=settings.internal_api_allowlist,
        trusted_proxies=settings.internal_api_trusted_proxies,
    )
    if reason is None:
        return
    logger.warning("internal_redemptions_auth_failed", reason=reason)
    raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})


def _as_staff(payload: StaffIdentityPayload) -> StaffIdentity:
    return StaffIdentity(user_id=payload.user_id, branch_id=payload.branch_id, role=payload.role)


def _as_http_error(exc: RedemptionError, *, operation: str) -> HTTPException:
    status_code = STATUS_BY_CATEGORY[exc.category]
    log = logger.error if status_code >= 500 else logger.info
    log(
        "redemption_denied",
        operation=operation,
        code=exc.code,
        category=exc.category.value,
        reason=exc.message,
    )
    return HTTPException(
        status_code=status_code,
        detail={"code": exc.code, "message": exc.message},
    )


def _as_response(result: RedemptionResult) -> RedemptionResponse:
    return RedemptionResponse(
        id=result.redemption_id,
        status=result.status,
        discount_type=result.discount_type,
        discount_value=result.discount_value,
        discount_note=result.discount_note,
        is_bonus_applied=result.is_bonus_applied,
        bonus_discount_applied=result.bonus_discount_applied,
        reward_description=result.reward_description,
        savings=result.savings,
        verified_by=result.verified_by,
        notes=result.notes,
        reject_reason=result.reject_reason,
        created_at=result.created_at,
        rejected_at=result.rejected_at,
        offer=RedemptionOfferView(
            id=result.offer_id,
            title=result.offer_title,
            discount_type=result.offer_discount_type,
            discount_value=result.offer_discount_value,
        ),
        branch=RedemptionBranchView(
            id=result.branch_id,
            branch_name=result.branch_name,
            address=result.branch_address,
            city=result.branch_city,
        ),
        merchant=RedemptionMerchantView(id=result.merchant_id, business_name=result.merchant_name),
        student=RedemptionStudentView(
            id=result.student_id,
            student_code=result.student_code,
            name=result.student_name,
        ),
    )


@router.post("/internal/redemptions", response_model=RedemptionResponse, status_code=201)
async def create_redemption(payload: RedemptionCreateRequest, request: Request) -> RedemptionResponse:
    _assert_internal_access(request)

    policy = RedemptionPolicy.from_settings(get_settings())
    staff = _as_staff(payload.staff)
    try:
        result = await run_in_transaction(
            lambda session: RedemptionService.create(
                session,
                staff=staff,
                student_code=payload.student_code,
                offer_id=payload.offer_id,
                notes=payload.notes,
                policy=policy,
            ),
            timeout_seconds=policy.tx_timeout_seconds,
        )
    except RedemptionError as exc:
        raise _as_http_error(exc, operation="create") from exc

    return _as_response(result)


@router.post("/internal/redemptions/{redemption_id}/reject", response_model=RedemptionResponse)
async def reject_redemption(
    redemption_id: UUID,
    payload: RedemptionRejectRequest,
    request: Request,
) -> RedemptionResponse:
    _assert_internal_access(request)

    policy = RedemptionPolicy.from_settings(get_settings())
    staff = _as_staff(payload.staff)
    try:
        result = await run_in_transaction(
            lambda session: RedemptionService.reject(
                session,
                staff=staff,
                redemption_id=redemption_id,
                reason=payload.reason,
            ),
            timeout_seconds=policy.tx_timeout_seconds,
        )
    except RedemptionError as exc:
        raise _as_http_error(exc, operation="reject") from exc

    return _as_response(result)
