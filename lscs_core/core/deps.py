"""
FastAPI Dependencies
Credential resolution (session cookie, API key, Google ID token) and
authorization gates
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import BackgroundTasks, Depends, HTTPException, Path, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from lscs_core.core.config import Settings
from lscs_core.core.database import get_db
from lscs_core.core.logging import redact_session_id
from lscs_core.core.rbac import RBACService
from lscs_core.core.token_validator import GoogleIDTokenValidationStrategy, LocalJWTValidationStrategy
from lscs_core.services.api_key import APIKeyService
from lscs_core.services.oauth import GoogleOAuthClient
from lscs_core.services.session import SessionService

logger = structlog.get_logger()

# Security schemes
api_key_security = HTTPBearer(scheme_name="API Key", auto_error=False)
google_id_token_security = HTTPBearer(scheme_name="Google ID Token", auto_error=False)


@dataclass(frozen=True)
class RequestIdentity:
    """Authenticated caller. member_id and session_id are only set on the session path."""
    email: str
    member_id: Optional[int] = None
    session_id: Optional[str] = None


# ==================== Application state ====================

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_service(request: Request) -> SessionService:
    return request.app.state.session_service


def get_rbac_service(request: Request) -> RBACService:
    return request.app.state.rbac_service


def get_api_key_service(request: Request) -> APIKeyService:
    return request.app.state.api_key_service


def get_oauth_client(request: Request) -> GoogleOAuthClient:
    return request.app.state.oauth_client


def get_api_key_validator(request: Request) -> LocalJWTValidationStrategy:
    return request.app.state.api_key_validator


def get_google_token_validator(request: Request) -> GoogleIDTokenValidationStrategy:
    return request.app.state.google_token_validator


# ==================== Credentials ====================

def _not_authenticated(detail: str = "Not authenticated") -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


async def _resolve_session(
    request: Request,
    background_tasks: BackgroundTasks,
    settings: Settings,
    sessions: SessionService,
) -> Optional[RequestIdentity]:
    session_id = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not session_id:
        return None

    try:
        session = await sessions.get_session(session_id)
    except Exception as e:
        logger.error("Session lookup failed", session_id=redact_session_id(session_id), error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Authentication service error",
        )

    if session is None:
        logger.debug("Invalid or expired session", session_id=redact_session_id(session_id))
        return None

    duration = sessions.default_duration()
    if sessions.should_extend_session(session, duration):
        try:
            await sessions.extend_session(session.id, duration)
        except Exception as e:
            logger.warning("Failed to extend session", session_id=redact_session_id(session.id), error=str(e))

    background_tasks.add_task(sessions.record_activity, session.id)

    return RequestIdentity(email=session.email, member_id=session.member_id, session_id=session.id)


async def require_session(
    request: Request,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
    sessions: SessionService = Depends(get_session_service),
) -> RequestIdentity:
    """
    Authenticate a web UI request from its session cookie

    Applies sliding expiry and schedules the last-activity update.

    Raises:
        HTTPException: 401 when the cookie is missing, unknown or expired
    """
    identity = await _resolve_session(request, background_tasks, settings, sessions)
    if identity is None:
        raise _not_authenticated("Invalid or expired session")
    return identity


async def optional_session(
    request: Request,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
    sessions: SessionService = Depends(get_session_service),
) -> Optional[RequestIdentity]:
    """Like require_session but yields None for anonymous requests"""
    return await _resolve_session(request, background_tasks, settings, sessions)


async def require_api_key(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(api_key_security),
    validator: LocalJWTValidationStrategy = Depends(get_api_key_validator),
) -> RequestIdentity:
    """Authenticate an integration request from its API key bearer token"""
    if not credentials:
        logger.warning("Missing API key")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await validator.validate(credentials.credentials)
    return RequestIdentity(email=result.email)


async def require_google_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(google_id_token_security),
    validator: GoogleIDTokenValidationStrategy = Depends(get_google_token_validator),
) -> RequestIdentity:
    """Authenticate a one-shot request from a Google-issued ID token"""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing ID token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await validator.validate(credentials.credentials)
    return RequestIdentity(email=result.email)


# ==================== Authorization ====================

def _forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


async def require_api_key_management(
    identity: RequestIdentity = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    rbac: RBACService = Depends(get_rbac_service),
) -> RequestIdentity:
    if not await rbac.can_access_api_key_management(db, identity.member_id):
        raise _forbidden("API key management requires RND committee, AVP or higher, or ADMIN")
    return identity


async def require_api_consumer(
    identity: RequestIdentity = Depends(require_api_key),
    db: AsyncSession = Depends(get_db),
    rbac: RBACService = Depends(get_rbac_service),
) -> RequestIdentity:
    if not await rbac.can_access_api_key_management_by_email(db, identity.email):
        raise _forbidden("API key owner is not allowed to use the API")
    return identity


async def require_role_manager(
    identity: RequestIdentity = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    rbac: RBACService = Depends(get_rbac_service),
) -> RequestIdentity:
    if not await rbac.can_manage_roles(db, identity.member_id):
        raise _forbidden("Only administrators can manage roles")
    return identity


async def require_can_edit_member(
    member_id: int = Path(..., description="Target member ID"),
    identity: RequestIdentity = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    rbac: RBACService = Depends(get_rbac_service),
) -> RequestIdentity:
    if not await rbac.can_edit_member(db, identity.member_id, member_id):
        raise _forbidden("Not allowed to edit this member")
    return identity
