"""
Member Repository
Read access to the member directory.
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lscs_core.models.member import Member
from lscs_core.repositories.base import CRUDBase

logger = structlog.get_logger()


class MemberRepository(CRUDBase[Member]):
    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[Member]:
        result = await db.execute(select(Member).where(Member.email == email.lower().strip()))
        return result.scalar_one_or_none()

    async def list_members(self, db: AsyncSession) -> list[Member]:
        result = await db.execute(select(Member).order_by(Member.id))
        return list(result.scalars().all())

    async def update_fields(self, db: AsyncSession, member: Member, updates: dict) -> Member:
        for field, value in updates.items():
            setattr(member, field, value)

        db.add(member)
        await db.commit()
        await db.refresh(member)

        logger.info("Member updated", member_id=member.id, fields=sorted(updates))
        return member


member_repository = MemberRepository(Member)
