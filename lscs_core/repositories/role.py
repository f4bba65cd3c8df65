"""
Role Repository
Role assignment lookups and mutations.
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from lscs_core.models.role import ADMIN_ROLE, MemberRole, Role

logger = structlog.get_logger()


class RoleRepository:
    async def has_role(self, db: AsyncSession, member_id: int, role_id: str) -> bool:
        query = select(
            exists().where(MemberRole.member_id == member_id, MemberRole.role_id == role_id)
        )
        return bool((await db.execute(query)).scalar())

    async def is_admin(self, db: AsyncSession, member_id: int) -> bool:
        return await self.has_role(db, member_id, ADMIN_ROLE)

    async def list_member_roles(self, db: AsyncSession, member_id: int) -> list[MemberRole]:
        result = await db.execute(
            select(MemberRole).where(MemberRole.member_id == member_id).order_by(MemberRole.role_id)
        )
        return list(result.scalars().all())

    async def role_exists(self, db: AsyncSession, role_id: str) -> bool:
        return bool((await db.execute(select(exists().where(Role.id == role_id)))).scalar())

    async def ensure_role(self, db: AsyncSession, role_id: str, description: Optional[str] = None) -> None:
        if await self.role_exists(db, role_id):
            return
        db.add(Role(id=role_id, description=description))
        await db.commit()
        logger.info("Role created", role=role_id)

    async def grant(self, db: AsyncSession, member_id: int, role_id: str, granted_by: Optional[int]) -> None:
        if await self.has_role(db, member_id, role_id):
            logger.debug("Role already granted", member_id=member_id, role=role_id)
            return

        db.add(MemberRole(member_id=member_id, role_id=role_id, granted_by=granted_by))
        await db.commit()
        logger.info("Role granted", member_id=member_id, role=role_id, granted_by=granted_by)

    async def revoke(self, db: AsyncSession, member_id: int, role_id: str) -> bool:
        result = await db.execute(
            delete(MemberRole).where(MemberRole.member_id == member_id, MemberRole.role_id == role_id)
        )
        await db.commit()
        revoked = (result.rowcount or 0) > 0
        logger.info("Role revoked", member_id=member_id, role=role_id, revoked=revoked)
        return revoked


role_repository = RoleRepository()
