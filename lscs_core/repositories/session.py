"""
Session Repository
Persistence for web UI sessions. Every mutation is a single-row (or single
statement) write; no in-process coordination is involved.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lscs_core.core.logging import redact_session_id
from lscs_core.models.member import Member
from lscs_core.models.session import Session
from lscs_core.repositories.base import CRUDBase

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionRepository(CRUDBase[Session]):
    async def create(self, db: AsyncSession, session: Session) -> Session:
        return await self.add(db, db_obj=session)

    async def get_active_with_member(
        self, db: AsyncSession, session_id: str, now: Optional[datetime] = None
    ) -> Optional[tuple[Session, str, str]]:
        """Return (session, member email, member full name) for a non-expired session."""
        now = now or _utcnow()
        result = await db.execute(
            select(Session, Member.email, Member.full_name)
            .join(Member, Member.id == Session.member_id)
            .where(Session.id == session_id, Session.expires_at > now)
        )
        row = result.first()
        if row is None:
            logger.debug("Session not found or expired", session_id=redact_session_id(session_id))
            return None
        return row[0], row[1], row[2]

    async def update_activity(self, db: AsyncSession, session_id: str, now: Optional[datetime] = None) -> None:
        await db.execute(
            update(Session).where(Session.id == session_id).values(last_activity=now or _utcnow())
        )
        await db.commit()

    async def extend(self, db: AsyncSession, session_id: str, expires_at: datetime) -> None:
        await db.execute(update(Session).where(Session.id == session_id).values(expires_at=expires_at))
        await db.commit()

    async def delete(self, db: AsyncSession, session_id: str) -> bool:
        result = await db.execute(delete(Session).where(Session.id == session_id))
        await db.commit()
        return (result.rowcount or 0) > 0

    async def delete_all_for_member(self, db: AsyncSession, member_id: int) -> int:
        result = await db.execute(delete(Session).where(Session.member_id == member_id))
        await db.commit()
        return result.rowcount or 0

    async def delete_expired(self, db: AsyncSession, now: Optional[datetime] = None) -> int:
        result = await db.execute(delete(Session).where(Session.expires_at <= (now or _utcnow())))
        await db.commit()
        return result.rowcount or 0


session_repository = SessionRepository(Session)
