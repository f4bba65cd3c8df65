"""
Member Directory Endpoints
Read-only lookups for integrations authenticated with an API key
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lscs_core.core.database import get_db
from lscs_core.core.deps import RequestIdentity, require_api_consumer
from lscs_core.repositories.member import member_repository
from lscs_core.schemas.member import EmailLookupRequest, IdLookupRequest, MemberResponse, PresenceResponse
from lscs_core.services.member import get_member_or_404, not_a_member

router = APIRouter()


@router.get("/members", response_model=list[MemberResponse])
async def list_members(
    identity: RequestIdentity = Depends(require_api_consumer),
    db: AsyncSession = Depends(get_db),
):
    return await member_repository.list_members(db)


@router.post("/member", response_model=MemberResponse)
async def get_member_by_email(
    body: EmailLookupRequest,
    identity: RequestIdentity = Depends(require_api_consumer),
    db: AsyncSession = Depends(get_db),
):
    member = await member_repository.get_by_email(db, body.email)
    if member is None:
        raise not_a_member(email=body.email)
    return member


@router.post("/member-id", response_model=MemberResponse)
async def get_member_by_id(
    body: IdLookupRequest,
    identity: RequestIdentity = Depends(require_api_consumer),
    db: AsyncSession = Depends(get_db),
):
    return await get_member_or_404(db, body.id)


@router.post("/check-email", response_model=PresenceResponse, response_model_exclude_none=True)
async def check_email(
    body: EmailLookupRequest,
    identity: RequestIdentity = Depends(require_api_consumer),
    db: AsyncSession = Depends(get_db),
):
    member = await member_repository.get_by_email(db, body.email)
    if member is None:
        raise not_a_member(email=body.email)
    return PresenceResponse(success="Email is an LSCS member", email=member.email)


@router.post("/check-id", response_model=PresenceResponse, response_model_exclude_none=True)
async def check_id(
    body: IdLookupRequest,
    identity: RequestIdentity = Depends(require_api_consumer),
    db: AsyncSession = Depends(get_db),
):
    member = await get_member_or_404(db, body.id)
    return PresenceResponse(success="ID is an LSCS member", id=member.id)
