"""
Session Service
Server-side web sessions: creation, lookup, sliding expiry and removal
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lscs_core.core.config import Settings
from lscs_core.core.logging import redact_session_id
from lscs_core.models.session import Session
from lscs_core.repositories.session import SessionRepository, session_repository

logger = structlog.get_logger()

SESSION_ID_BYTES = 32


def generate_session_id() -> str:
    """64 hex characters from a cryptographically secure source"""
    return secrets.token_hex(SESSION_ID_BYTES)


def _as_utc(value: datetime) -> datetime:
    # sqlite and mysql hand back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _or_none(value: Optional[str]) -> Optional[str]:
    return value or None


@dataclass
class SessionRecord:
    id: str
    member_id: int
    created_at: datetime
    expires_at: datetime
    last_activity: datetime
    user_agent: Optional[str]
    ip_address: Optional[str]

    @classmethod
    def from_model(cls, session: Session) -> "SessionRecord":
        return cls(
            id=session.id,
            member_id=session.member_id,
            created_at=_as_utc(session.created_at),
            expires_at=_as_utc(session.expires_at),
            last_activity=_as_utc(session.last_activity),
            user_agent=session.user_agent,
            ip_address=session.ip_address,
        )


@dataclass
class SessionWithMember(SessionRecord):
    email: str
    full_name: str


class SessionService:
    """Owns the session lifecycle; each call runs in its own database session"""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings,
        repository: SessionRepository = session_repository,
    ) -> None:
        self.session_factory = session_factory
        self.repository = repository
        self._default_duration = settings.session_duration
        self._remember_duration = settings.session_remember_duration
        self.extend_threshold = settings.SESSION_EXTEND_THRESHOLD

    def default_duration(self) -> timedelta:
        return self._default_duration

    def remember_me_duration(self) -> timedelta:
        return self._remember_duration

    async def create_session(
        self,
        member_id: int,
        remember_me: bool = False,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> SessionRecord:
        """
        Create and persist a new session for a member

        Args:
            member_id: Owning member
            remember_me: Use the long-lived duration instead of the default
            user_agent: Client user agent, empty values are stored as null
            ip_address: Client address, empty values are stored as null

        Returns:
            The stored session
        """
        now = datetime.now(timezone.utc)
        duration = self._remember_duration if remember_me else self._default_duration

        session = Session(
            id=generate_session_id(),
            member_id=member_id,
            created_at=now,
            expires_at=now + duration,
            last_activity=now,
            user_agent=_or_none(user_agent),
            ip_address=_or_none(ip_address),
        )

        async with self.session_factory() as db:
            await self.repository.create(db, session)

        logger.info(
            "Session created",
            session_id=redact_session_id(session.id),
            member_id=member_id,
            remember_me=remember_me,
        )
        return SessionRecord(
            id=session.id,
            member_id=member_id,
            created_at=now,
            expires_at=now + duration,
            last_activity=now,
            user_agent=session.user_agent,
            ip_address=session.ip_address,
        )

    async def get_session(self, session_id: str) -> Optional[SessionWithMember]:
        """Active session joined with the member's identity, or None when missing or expired"""
        if not session_id:
            return None

        async with self.session_factory() as db:
            row = await self.repository.get_active_with_member(db, session_id)

        if row is None:
            return None

        session, email, full_name = row
        record = SessionRecord.from_model(session)
        return SessionWithMember(**vars(record), email=email, full_name=full_name)

    async def update_activity(self, session_id: str) -> None:
        async with self.session_factory() as db:
            await self.repository.update_activity(db, session_id)

    async def record_activity(self, session_id: str) -> None:
        """Best-effort activity update run after the response is sent"""
        try:
            await self.update_activity(session_id)
        except Exception as e:
            logger.warning(
                "Failed to update session activity",
                session_id=redact_session_id(session_id),
                error=str(e),
            )

    async def extend_session(self, session_id: str, duration: timedelta) -> datetime:
        """Set expiry to now + duration; returns the new expiry"""
        expires_at = datetime.now(timezone.utc) + duration
        async with self.session_factory() as db:
            await self.repository.extend(db, session_id, expires_at)

        logger.debug("Session extended", session_id=redact_session_id(session_id), expires_at=expires_at)
        return expires_at

    async def delete_session(self, session_id: str) -> bool:
        """Delete a single session. Deleting an unknown id is not an error."""
        async with self.session_factory() as db:
            deleted = await self.repository.delete(db, session_id)

        logger.info("Session deleted", session_id=redact_session_id(session_id), existed=deleted)
        return deleted

    async def delete_all_sessions_for_member(self, member_id: int) -> int:
        async with self.session_factory() as db:
            count = await self.repository.delete_all_for_member(db, member_id)

        logger.info("All sessions deleted for member", member_id=member_id, count=count)
        return count

    async def cleanup_expired_sessions(self) -> int:
        async with self.session_factory() as db:
            count = await self.repository.delete_expired(db)

        if count > 0:
            logger.info("Cleaned up expired sessions", count=count)
        return count

    def should_extend_session(
        self,
        session: SessionRecord,
        duration: timedelta,
        now: Optional[datetime] = None,
    ) -> bool:
        """True when less than `extend_threshold` of duration remains"""
        now = _as_utc(now) if now is not None else datetime.now(timezone.utc)
        remaining = _as_utc(session.expires_at) - now
        return remaining < duration * self.extend_threshold
