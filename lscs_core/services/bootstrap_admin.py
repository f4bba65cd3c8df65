"""
Bootstrap admin setup.
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from lscs_core.models.role import ADMIN_ROLE
from lscs_core.repositories.member import member_repository
from lscs_core.repositories.role import role_repository

logger = structlog.get_logger()


async def ensure_bootstrap_admin(db: AsyncSession, admin_email: Optional[str]) -> None:
    """Make sure the ADMIN role exists and, if configured, that one member holds it"""
    await role_repository.ensure_role(db, ADMIN_ROLE, "Bypasses position and committee checks")

    if not admin_email:
        return

    member = await member_repository.get_by_email(db, admin_email)
    if member is None:
        logger.warning("Bootstrap admin is not a member", email=admin_email)
        return

    await role_repository.grant(db, member.id, ADMIN_ROLE, granted_by=None)
    logger.info("Bootstrap admin ensured", email=member.email, member_id=member.id)
