"""
API Key Service
Business rules for requesting, listing and revoking API keys
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from urllib.parse import urlparse

import structlog
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from lscs_core.core.rbac import RBACService
from lscs_core.core.security import APIKeyIssuer, KeyType, hash_api_key
from lscs_core.models.api_key import APIKey
from lscs_core.repositories.api_key import APIKeyRepository, api_key_repository
from lscs_core.repositories.member import MemberRepository, member_repository
from lscs_core.schemas.api_key import RequestKeyRequest

logger = structlog.get_logger()

DEV_ORIGIN_PREFIX = "http://localhost"
_LOCAL_HOSTS = {"localhost", "127.0.0.1", "0.0.0.0", "::1"}


@dataclass(frozen=True)
class IssuedAPIKey:
    email: str
    api_key: str
    expires_at: Optional[datetime]


def is_valid_production_origin(origin: str) -> bool:
    """Absolute http(s) URL whose host is not a loopback name"""
    try:
        parsed = urlparse(origin)
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return False
    return parsed.hostname.lower() not in _LOCAL_HOSTS


class APIKeyService:
    def __init__(
        self,
        issuer: APIKeyIssuer,
        rbac: RBACService,
        members: MemberRepository = member_repository,
        keys: APIKeyRepository = api_key_repository,
    ) -> None:
        self.issuer = issuer
        self.rbac = rbac
        self.members = members
        self.keys = keys

    async def _resolve_key_type(
        self, db: AsyncSession, requester_email: str, request: RequestKeyRequest
    ) -> tuple[KeyType, Optional[str]]:
        """Return the key type and the origin to store for it"""
        if request.is_admin:
            requester = await self.members.get_by_email(db, requester_email)
            if requester is None or not await self.rbac.is_admin(db, requester.id):
                logger.warning("Admin key requested by non-admin", requester=requester_email)
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Admin keys can only be requested by administrators",
                )
            return KeyType.ADMIN, None

        origin = (request.allowed_origin or "").strip()

        if request.is_dev:
            if not origin.startswith(DEV_ORIGIN_PREFIX):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Dev keys require an allowed_origin starting with http://localhost",
                )
            return KeyType.DEV, None

        if not origin:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="allowed_origin is required for production keys",
            )
        if not is_valid_production_origin(origin):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="allowed_origin must be a valid non-localhost URL",
            )
        if await self.keys.origin_exists(db, origin):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="An API key for this origin already exists",
            )
        return KeyType.PROD, origin

    async def request_key(
        self, db: AsyncSession, requester_email: str, request: RequestKeyRequest
    ) -> IssuedAPIKey:
        """
        Issue an API key for a member

        Args:
            db: Database session
            requester_email: Verified email from the Google ID token
            request: Key parameters

        Returns:
            The raw token (shown once) with its owner and expiry
        """
        if not await self.rbac.can_access_api_key_management_by_email(db, requester_email):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to request API keys",
            )

        member = await self.members.get_by_email(db, request.email)
        if member is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"error": "Not an LSCS member", "state": "absent", "email": request.email},
            )

        key_type, origin = await self._resolve_key_type(db, requester_email, request)
        token, expires_at = self.issuer.generate(member.email, key_type)

        await self.keys.store(
            db,
            APIKey(
                member_email=member.email,
                api_key_hash=hash_api_key(token),
                project=request.project or None,
                allowed_origin=origin,
                is_dev=key_type == KeyType.DEV,
                is_admin=key_type == KeyType.ADMIN,
                expires_at=expires_at,
            ),
        )

        logger.info(
            "API key issued",
            requester=requester_email,
            email=member.email,
            key_type=key_type.value,
        )
        return IssuedAPIKey(email=member.email, api_key=token, expires_at=expires_at)

    async def list_keys(self, db: AsyncSession, email: str) -> list[APIKey]:
        return await self.keys.list_for_email(db, email)

    async def revoke_key(self, db: AsyncSession, api_key_id: int, email: str) -> None:
        if not await self.keys.revoke(db, api_key_id, email):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="API key not found",
            )
