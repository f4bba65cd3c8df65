"""
Authentication Endpoints
Google OAuth login, logout and the signed-in member's profile
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from lscs_core.core.config import Settings
from lscs_core.core.database import get_db
from lscs_core.core.deps import (
    RequestIdentity,
    get_oauth_client,
    get_rbac_service,
    get_session_service,
    get_settings,
    optional_session,
    require_session,
)
from lscs_core.core.logging import redact_session_id
from lscs_core.core.rbac import RBACService
from lscs_core.models.role import ADMIN_ROLE
from lscs_core.repositories.member import member_repository
from lscs_core.schemas.auth import CurrentMemberResponse, LogoutResponse
from lscs_core.schemas.member import MemberResponse, MemberUpdateRequest
from lscs_core.services.member import get_member_or_404, update_member_profile
from lscs_core.services.oauth import GoogleOAuthClient, OAuthError, parse_state
from lscs_core.services.session import SessionService

logger = structlog.get_logger()
router = APIRouter()


def set_session_cookie(response: Response, settings: Settings, session_id: str, max_age: int) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session_id,
        max_age=max_age,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


async def _current_member_response(
    db: AsyncSession, rbac: RBACService, member_id: int
) -> CurrentMemberResponse:
    member = await get_member_or_404(db, member_id)
    roles = [assignment.role_id for assignment in await rbac.get_member_roles(db, member_id)]
    profile = MemberResponse.model_validate(member).model_dump()
    return CurrentMemberResponse(**profile, roles=roles, is_admin=ADMIN_ROLE in roles)


@router.get("/google/login")
async def google_login(
    remember: bool = Query(False, description="Use the long-lived session"),
    redirect: Optional[str] = Query(None, description="Frontend path to return to"),
    oauth: GoogleOAuthClient = Depends(get_oauth_client),
):
    """Redirect to the Google consent screen"""
    return RedirectResponse(oauth.authorization_url(remember, redirect), status_code=status.HTTP_302_FOUND)


@router.get("/google/callback")
async def google_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    oauth: GoogleOAuthClient = Depends(get_oauth_client),
    sessions: SessionService = Depends(get_session_service),
):
    """
    Complete the OAuth flow. Every failure redirects to the frontend login
    page with an error reason instead of returning an error body.
    """
    frontend_url = settings.frontend_url

    def login_error(reason: str) -> RedirectResponse:
        return RedirectResponse(f"{frontend_url}/login?error={reason}", status_code=status.HTTP_302_FOUND)

    if error:
        logger.warning("OAuth error from Google", error=error)
        return login_error("oauth_denied")

    if not code:
        logger.warning("OAuth callback missing code")
        return login_error("no_code")

    try:
        access_token = await oauth.exchange_code(code)
    except OAuthError as e:
        logger.error("Failed to exchange OAuth code", error=str(e))
        return login_error("token_exchange")

    try:
        user_info = await oauth.fetch_user_info(access_token)
    except OAuthError as e:
        logger.error("Failed to get user info", error=str(e))
        return login_error("user_info")

    try:
        member = await member_repository.get_by_email(db, user_info.email)
    except Exception as e:
        logger.error("Failed to check membership", email=user_info.email, error=str(e))
        return login_error("db_error")

    if member is None:
        logger.info("Login attempt by non-member", email=user_info.email)
        return login_error("not_member")

    remember_me, redirect_path = parse_state(state)

    try:
        session = await sessions.create_session(
            member.id,
            remember_me=remember_me,
            user_agent=request.headers.get("user-agent"),
            ip_address=request.client.host if request.client else None,
        )
    except Exception as e:
        logger.error("Failed to create session", member_id=member.id, error=str(e))
        return login_error("session_create")

    duration = sessions.remember_me_duration() if remember_me else sessions.default_duration()
    response = RedirectResponse(f"{frontend_url}{redirect_path}", status_code=status.HTTP_302_FOUND)
    set_session_cookie(response, settings, session.id, int(duration.total_seconds()))

    logger.info("Member logged in", member_id=member.id, email=member.email, remember_me=remember_me)
    return response


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_settings),
    sessions: SessionService = Depends(get_session_service),
):
    """Delete the current session if any and clear the cookie"""
    session_id = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if session_id:
        try:
            await sessions.delete_session(session_id)
        except Exception as e:
            logger.error("Failed to delete session", session_id=redact_session_id(session_id), error=str(e))

    clear_session_cookie(response, settings)
    return LogoutResponse()


@router.post("/logout-all", response_model=LogoutResponse)
async def logout_all(
    response: Response,
    identity: RequestIdentity = Depends(require_session),
    settings: Settings = Depends(get_settings),
    sessions: SessionService = Depends(get_session_service),
):
    """Sign out of every device"""
    count = await sessions.delete_all_sessions_for_member(identity.member_id)
    clear_session_cookie(response, settings)
    return LogoutResponse(message="Logged out of all sessions", sessions_deleted=count)


@router.get("/me", response_model=CurrentMemberResponse)
async def get_me(
    identity: RequestIdentity = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    rbac: RBACService = Depends(get_rbac_service),
):
    return await _current_member_response(db, rbac, identity.member_id)


@router.put("/me", response_model=CurrentMemberResponse)
async def update_me(
    body: MemberUpdateRequest,
    identity: RequestIdentity = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    rbac: RBACService = Depends(get_rbac_service),
):
    """Update the caller's own profile (self-editable fields unless ADMIN)"""
    member = await get_member_or_404(db, identity.member_id)
    await update_member_profile(db, rbac, identity.member_id, member, body.model_dump(exclude_unset=True))
    return await _current_member_response(db, rbac, identity.member_id)


@router.get("/session")
async def session_status(
    identity: Optional[RequestIdentity] = Depends(optional_session),
):
    """Lets the frontend decide whether to show the login page without a 401"""
    if identity is None:
        return {"authenticated": False}
    return {"authenticated": True, "member_id": identity.member_id, "email": identity.email}
