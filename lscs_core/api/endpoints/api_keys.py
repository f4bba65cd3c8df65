"""
API Key Endpoints
Issuing keys (Google ID token) and managing them from the web UI (session)
"""

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from lscs_core.core.database import get_db
from lscs_core.core.deps import (
    RequestIdentity,
    get_api_key_service,
    require_api_key_management,
    require_google_identity,
)
from lscs_core.schemas.api_key import APIKeyResponse, RequestKeyRequest, RequestKeyResponse
from lscs_core.services.api_key import APIKeyService

logger = structlog.get_logger()
router = APIRouter()


@router.post("/request-key", response_model=RequestKeyResponse)
async def request_key(
    body: RequestKeyRequest,
    identity: RequestIdentity = Depends(require_google_identity),
    db: AsyncSession = Depends(get_db),
    service: APIKeyService = Depends(get_api_key_service),
):
    """
    Issue an API key.

    - Admin keys never expire and require the requester to hold ADMIN
    - Dev keys need an http://localhost origin
    - Production keys need a unique, non-localhost origin

    The raw key is only returned here; only its hash is stored.
    """
    issued = await service.request_key(db, identity.email, body)
    return RequestKeyResponse(email=issued.email, api_key=issued.api_key, expires_at=issued.expires_at)


@router.get("/api-keys", response_model=list[APIKeyResponse])
async def list_api_keys(
    identity: RequestIdentity = Depends(require_api_key_management),
    db: AsyncSession = Depends(get_db),
    service: APIKeyService = Depends(get_api_key_service),
):
    return await service.list_keys(db, identity.email)


@router.delete("/api-keys/{api_key_id}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_api_key(
    api_key_id: int,
    identity: RequestIdentity = Depends(require_api_key_management),
    db: AsyncSession = Depends(get_db),
    service: APIKeyService = Depends(get_api_key_service),
):
    await service.revoke_key(db, api_key_id, identity.email)
    logger.info("API key revoked", api_key_id=api_key_id, email=identity.email)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
