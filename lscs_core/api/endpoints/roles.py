"""
Role Management Endpoints
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from lscs_core.core.database import get_db
from lscs_core.core.deps import RequestIdentity, get_rbac_service, require_role_manager, require_session
from lscs_core.core.rbac import RBACService
from lscs_core.models.role import ADMIN_ROLE
from lscs_core.repositories.role import role_repository
from lscs_core.schemas.member import MemberRoleResponse, RoleGrantRequest
from lscs_core.services.member import get_member_or_404

logger = structlog.get_logger()
router = APIRouter()


@router.get("/{member_id}/roles", response_model=list[MemberRoleResponse])
async def list_member_roles(
    member_id: int,
    identity: RequestIdentity = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    rbac: RBACService = Depends(get_rbac_service),
):
    """Members may list their own roles; listing anyone else's requires ADMIN"""
    if member_id != identity.member_id and not await rbac.can_manage_roles(db, identity.member_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only administrators can view roles")
    await get_member_or_404(db, member_id)
    return await rbac.get_member_roles(db, member_id)


@router.post("/{member_id}/roles", response_model=MemberRoleResponse, status_code=status.HTTP_201_CREATED)
async def grant_member_role(
    member_id: int,
    body: RoleGrantRequest,
    identity: RequestIdentity = Depends(require_role_manager),
    db: AsyncSession = Depends(get_db),
    rbac: RBACService = Depends(get_rbac_service),
):
    await get_member_or_404(db, member_id)
    if not await role_repository.role_exists(db, body.role_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Role {body.role_id} not found")

    await rbac.grant_role(db, member_id, body.role_id, identity.member_id)
    logger.info("Role granted via API", member_id=member_id, role=body.role_id, granted_by=identity.member_id)
    return MemberRoleResponse(member_id=member_id, role_id=body.role_id, granted_by=identity.member_id)


@router.delete("/{member_id}/roles/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_member_role(
    member_id: int,
    role_id: str,
    identity: RequestIdentity = Depends(require_role_manager),
    db: AsyncSession = Depends(get_db),
    rbac: RBACService = Depends(get_rbac_service),
):
    role_id = role_id.upper()
    if member_id == identity.member_id and role_id == ADMIN_ROLE:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot revoke your own ADMIN role")

    if not await rbac.revoke_role(db, member_id, role_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Role assignment not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
