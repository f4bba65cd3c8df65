"""
Member Profile Endpoints
Viewing and editing other members from the web UI
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from lscs_core.core.database import get_db
from lscs_core.core.deps import RequestIdentity, get_rbac_service, require_can_edit_member, require_session
from lscs_core.core.rbac import RBACService
from lscs_core.schemas.member import EditableFieldsResponse, MemberResponse, MemberUpdateRequest
from lscs_core.services.member import get_member_or_404, update_member_profile

logger = structlog.get_logger()
router = APIRouter()


@router.get("/{member_id}", response_model=MemberResponse)
async def get_member(
    member_id: int,
    identity: RequestIdentity = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    rbac: RBACService = Depends(get_rbac_service),
):
    if not await rbac.can_view_member(db, identity.member_id, member_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to view this member")
    return await get_member_or_404(db, member_id)


@router.put("/{member_id}", response_model=MemberResponse)
async def update_member(
    member_id: int,
    body: MemberUpdateRequest,
    identity: RequestIdentity = Depends(require_can_edit_member),
    db: AsyncSession = Depends(get_db),
    rbac: RBACService = Depends(get_rbac_service),
):
    """
    Update another member's profile.

    The caller must be able to edit the member, and every submitted field
    must be in the caller's editable set for that member.
    """
    member = await get_member_or_404(db, member_id)
    return await update_member_profile(db, rbac, identity.member_id, member, body.model_dump(exclude_unset=True))


@router.get("/{member_id}/editable-fields", response_model=EditableFieldsResponse)
async def get_editable_fields(
    member_id: int,
    identity: RequestIdentity = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    rbac: RBACService = Depends(get_rbac_service),
):
    await get_member_or_404(db, member_id)
    fields = await rbac.get_editable_fields(db, identity.member_id, member_id)
    return EditableFieldsResponse(member_id=member_id, fields=sorted(field.value for field in fields))
