"""
Admin API endpoints.

A signed-in admin opens a session with POST /sessions and passes its id
in the X-Admin-Session header on every privileged call, alongside the
same bearer token. A session only works for the user who opened it.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Response

from api.middleware.auth import get_current_user
from api.dependencies import get_access_service, get_admin_guard, get_clock
from shared.clock import Clock
from shared.models import AuthenticatedUser
from modules.access.interfaces import IAccessService
from modules.audit.models import AuditLogEntry
from modules.codes.models import AccessCode, CodeListResponse, CodeStatus, GenerateCodeRequest
from modules.entitlements.models import Entitlement

from .interfaces import IAdminSessionGuard
from .models import AdminGrantRequest, AdminSessionResponse

router = APIRouter()


def admin_session_id(x_admin_session: str = Header(...)) -> str:
    return x_admin_session


@router.post("/sessions", response_model=AdminSessionResponse, status_code=201)
async def open_session(
    user: AuthenticatedUser = Depends(get_current_user),
    guard: IAdminSessionGuard = Depends(get_admin_guard),
    clock: Clock = Depends(get_clock),
) -> AdminSessionResponse:
    """Open an admin session for the signed-in user."""
    session = guard.authenticate(user)
    return AdminSessionResponse.from_session(session, clock.now())


@router.get("/sessions/current", response_model=AdminSessionResponse)
async def current_session(
    session_id: str = Depends(admin_session_id),
    user: AuthenticatedUser = Depends(get_current_user),
    guard: IAdminSessionGuard = Depends(get_admin_guard),
    clock: Clock = Depends(get_clock),
) -> AdminSessionResponse:
    """Report the session and how long it has left."""
    session = guard.authorize(session_id, actor_id=user.id)
    return AdminSessionResponse.from_session(session, clock.now())


@router.post("/sessions/current/refresh", response_model=AdminSessionResponse)
async def refresh_session(
    session_id: str = Depends(admin_session_id),
    user: AuthenticatedUser = Depends(get_current_user),
    guard: IAdminSessionGuard = Depends(get_admin_guard),
    clock: Clock = Depends(get_clock),
) -> AdminSessionResponse:
    session = guard.refresh(session_id, actor_id=user.id)
    return AdminSessionResponse.from_session(session, clock.now())


@router.delete("/sessions/current", status_code=204)
async def end_session(
    session_id: str = Depends(admin_session_id),
    user: AuthenticatedUser = Depends(get_current_user),
    guard: IAdminSessionGuard = Depends(get_admin_guard),
) -> Response:
    guard.end(session_id, actor_id=user.id)
    return Response(status_code=204)


@router.post("/codes", response_model=AccessCode, status_code=201)
async def generate_code(
    request: GenerateCodeRequest,
    session_id: str = Depends(admin_session_id),
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAccessService = Depends(get_access_service),
) -> AccessCode:
    return await service.admin_generate_code(
        session_id, request.duration_class, request.valid_until, actor_id=user.id
    )


@router.get("/codes", response_model=CodeListResponse)
async def list_codes(
    status: Optional[CodeStatus] = Query(default=None, description="Filter by status"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    session_id: str = Depends(admin_session_id),
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAccessService = Depends(get_access_service),
) -> CodeListResponse:
    # Fetch one extra row to learn whether another page exists
    codes = await service.admin_list_codes(
        session_id, status=status, limit=limit + 1, offset=offset, actor_id=user.id
    )
    return CodeListResponse(codes=codes[:limit], has_more=len(codes) > limit)


@router.post("/codes/{code}/revoke", response_model=AccessCode)
async def revoke_code(
    code: str,
    session_id: str = Depends(admin_session_id),
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAccessService = Depends(get_access_service),
) -> AccessCode:
    return await service.admin_revoke_code(session_id, code, actor_id=user.id)


@router.post("/grants", response_model=Entitlement)
async def grant_access(
    request: AdminGrantRequest,
    session_id: str = Depends(admin_session_id),
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAccessService = Depends(get_access_service),
) -> Entitlement:
    """Grant a duration directly to a subject (super admins only)."""
    return await service.admin_grant(
        session_id, request.subject_id, request.duration_class, actor_id=user.id
    )


@router.get("/audit", response_model=list[AuditLogEntry])
async def list_audit(
    actor: Optional[str] = Query(default=None),
    action: Optional[str] = Query(default=None),
    target: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    session_id: str = Depends(admin_session_id),
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAccessService = Depends(get_access_service),
) -> list[AuditLogEntry]:
    """Audit trail, newest first (super admins only)."""
    return await service.admin_list_audit(
        session_id, actor=actor, action=action, target=target, limit=limit, offset=offset, actor_id=user.id
    )
