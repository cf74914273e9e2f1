"""
Payment API endpoints.

Session creation, status polling and cancellation for the signed-in
user, plus the gateway confirmation webhook.
"""

from fastapi import APIRouter, Depends

from api.middleware.auth import get_current_user, verify_webhook_secret
from api.dependencies import get_access_service, get_payment_manager
from shared.models import AuthenticatedUser
from modules.access.interfaces import IAccessService

from .interfaces import IPaymentSessionManager
from .models import (
    ConfirmPaymentRequest,
    CreatePaymentSessionRequest,
    FinalizeResult,
    PaymentPlanListResponse,
    PaymentSession,
)
from .exceptions import PaymentSessionNotFoundError

router = APIRouter()


@router.get("/plans", response_model=PaymentPlanListResponse)
async def list_plans(
    manager: IPaymentSessionManager = Depends(get_payment_manager),
) -> PaymentPlanListResponse:
    return PaymentPlanListResponse(plans=manager.list_plans())


@router.post("/sessions", response_model=PaymentSession, status_code=201)
async def create_session(
    request: CreatePaymentSessionRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAccessService = Depends(get_access_service),
) -> PaymentSession:
    """Open a payment session for a plan."""
    return await service.create_payment_session(user.id, request.method, request.plan)


@router.get("/sessions/{session_id}", response_model=PaymentSession)
async def get_session(
    session_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    manager: IPaymentSessionManager = Depends(get_payment_manager),
) -> PaymentSession:
    """
    Poll a payment session.

    Clients call this until the status is terminal. Sessions past their
    TTL are reported as expired.
    """
    session = await manager.get(session_id)
    if session.subject_id != user.id:
        raise PaymentSessionNotFoundError(session_id)
    return session


@router.post("/sessions/{session_id}/cancel", response_model=PaymentSession)
async def cancel_session(
    session_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    manager: IPaymentSessionManager = Depends(get_payment_manager),
) -> PaymentSession:
    """Cancel a session that is still pending."""
    return await manager.cancel(session_id, user.id)


@router.post(
    "/webhook",
    response_model=FinalizeResult,
    dependencies=[Depends(verify_webhook_secret)],
)
async def payment_webhook(
    request: ConfirmPaymentRequest,
    manager: IPaymentSessionManager = Depends(get_payment_manager),
    service: IAccessService = Depends(get_access_service),
) -> FinalizeResult:
    """
    Gateway confirmation receiver.

    Safe to deliver more than once: repeats return applied=false.
    """
    if request.external_reference:
        session = await manager.get(request.session_id)
        if not session.status.is_terminal:
            await manager.mark_processing(request.session_id, request.external_reference)
    return await service.confirm_payment(request.session_id, request.outcome)
