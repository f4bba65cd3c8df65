"""
API Key Repository
Storage of issued API key hashes and metadata.
"""

from __future__ import annotations

import structlog
from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from lscs_core.models.api_key import APIKey
from lscs_core.repositories.base import CRUDBase

logger = structlog.get_logger()


class APIKeyRepository(CRUDBase[APIKey]):
    async def store(self, db: AsyncSession, api_key: APIKey) -> APIKey:
        stored = await self.add(db, db_obj=api_key)
        await db.refresh(stored)
        logger.info(
            "API key stored",
            api_key_id=stored.api_key_id,
            member_email=stored.member_email,
            is_dev=stored.is_dev,
            is_admin=stored.is_admin,
        )
        return stored

    async def list_for_email(self, db: AsyncSession, email: str) -> list[APIKey]:
        result = await db.execute(
            select(APIKey).where(APIKey.member_email == email).order_by(APIKey.created_at.desc())
        )
        return list(result.scalars().all())

    async def origin_exists(self, db: AsyncSession, allowed_origin: str) -> bool:
        query = select(exists().where(APIKey.allowed_origin == allowed_origin))
        return bool((await db.execute(query)).scalar())

    async def revoke(self, db: AsyncSession, api_key_id: int, member_email: str) -> bool:
        """Delete a key; both the id and the owning email must match."""
        result = await db.execute(
            delete(APIKey).where(APIKey.api_key_id == api_key_id, APIKey.member_email == member_email)
        )
        await db.commit()
        revoked = (result.rowcount or 0) > 0
        logger.info("API key revoke", api_key_id=api_key_id, member_email=member_email, revoked=revoked)
        return revoked


api_key_repository = APIKeyRepository(APIKey)
