"""
Member profile updates with per-field authorization
"""

from __future__ import annotations

import structlog
from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lscs_core.core.rbac import RBACService
from lscs_core.models.member import Member
from lscs_core.repositories.member import member_repository

logger = structlog.get_logger()


def _is_duplicate_email(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower()
    return ("unique" in message or "duplicate" in message) and "email" in message


def not_a_member(**identifier) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "Not an LSCS member", "state": "absent", **identifier},
    )


async def get_member_or_404(db: AsyncSession, member_id: int) -> Member:
    member = await member_repository.get(db, member_id)
    if member is None:
        raise not_a_member(id=member_id)
    return member


async def update_member_profile(
    db: AsyncSession,
    rbac: RBACService,
    actor_id: int,
    member: Member,
    updates: dict,
) -> Member:
    """
    Apply a partial update after checking every field against the actor's
    editable set. Any field outside that set rejects the whole update.
    """
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    editable = {field.value for field in await rbac.get_editable_fields(db, actor_id, member.id)}
    forbidden = sorted(set(updates) - editable)
    if forbidden:
        logger.info("Member update denied", actor_id=actor_id, member_id=member.id, fields=forbidden)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Not allowed to edit fields: {', '.join(forbidden)}",
        )

    try:
        return await member_repository.update_fields(db, member, updates)
    except IntegrityError as e:
        await db.rollback()
        if not _is_duplicate_email(e):
            raise
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")
