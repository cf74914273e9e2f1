"""
Access API endpoints.

Status, code redemption, trial and grace for the signed-in user.
"""

from fastapi import APIRouter, Depends

from api.middleware.auth import get_current_user
from api.dependencies import get_access_service, get_trial_manager
from shared.models import AuthenticatedUser
from modules.codes.models import RedeemCodeRequest
from modules.entitlements.models import StatusSnapshot
from modules.trials.interfaces import ITrialManager
from modules.trials.models import TrialEligibility

from .interfaces import IAccessService

router = APIRouter()


@router.get("/status", response_model=StatusSnapshot)
async def get_status(
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAccessService = Depends(get_access_service),
) -> StatusSnapshot:
    """Current access status of the signed-in user."""
    return service.get_status(user.id)


@router.post("/redeem", response_model=StatusSnapshot)
async def redeem_code(
    request: RedeemCodeRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAccessService = Depends(get_access_service),
) -> StatusSnapshot:
    """
    Redeem an access code.

    409 means someone else already redeemed it.
    """
    return await service.redeem_code(request.code, user.id)


@router.get("/eligibility", response_model=TrialEligibility)
async def get_eligibility(
    user: AuthenticatedUser = Depends(get_current_user),
    trials: ITrialManager = Depends(get_trial_manager),
) -> TrialEligibility:
    return trials.check_eligibility(user.id)


@router.post("/trial", response_model=StatusSnapshot)
async def request_trial(
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAccessService = Depends(get_access_service),
) -> StatusSnapshot:
    """Start the one-time trial."""
    return await service.request_trial(user.id)


@router.post("/grace", response_model=StatusSnapshot)
async def request_grace(
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAccessService = Depends(get_access_service),
) -> StatusSnapshot:
    """Start the one-time grace period after the trial ran out."""
    return await service.request_grace(user.id)
