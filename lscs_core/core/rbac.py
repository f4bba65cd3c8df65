"""
RBAC service and editable field definitions for LSCS Core.

Authorization combines explicit role assignments (ADMIN) with the implicit
position/committee hierarchy. Every decision fails closed: a lookup error
or a missing member denies.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from lscs_core.core.positions import Position, is_higher_or_equal_position, is_higher_position
from lscs_core.models.member import Member
from lscs_core.models.role import MemberRole
from lscs_core.repositories.member import MemberRepository, member_repository
from lscs_core.repositories.role import RoleRepository, role_repository

logger = structlog.get_logger()

API_KEY_COMMITTEE = "RND"
API_KEY_MIN_POSITION = Position.AVP
CROSS_COMMITTEE_POSITIONS = frozenset({Position.PRES.value, Position.EVP.value})


class EditableField(str, Enum):
    NICKNAME = "nickname"
    TELEGRAM = "telegram"
    DISCORD = "discord"
    INTERESTS = "interests"
    CONTACT_NUMBER = "contact_number"
    FB_LINK = "fb_link"
    FULL_NAME = "full_name"
    EMAIL = "email"
    POSITION_ID = "position_id"
    COMMITTEE_ID = "committee_id"
    COLLEGE = "college"
    PROGRAM = "program"
    HOUSE_ID = "house_id"


# Fields members can edit on their own profile
SELF_EDITABLE_FIELDS: frozenset[EditableField] = frozenset({
    EditableField.NICKNAME,
    EditableField.TELEGRAM,
    EditableField.DISCORD,
    EditableField.INTERESTS,
    EditableField.CONTACT_NUMBER,
    EditableField.FB_LINK,
})

# Fields only authorized editors may change on someone else's profile
AUTHORIZED_EDITABLE_FIELDS: frozenset[EditableField] = frozenset({
    EditableField.FULL_NAME,
    EditableField.EMAIL,
    EditableField.POSITION_ID,
    EditableField.COMMITTEE_ID,
    EditableField.COLLEGE,
    EditableField.PROGRAM,
    EditableField.HOUSE_ID,
})

ALL_EDITABLE_FIELDS: frozenset[EditableField] = SELF_EDITABLE_FIELDS | AUTHORIZED_EDITABLE_FIELDS


def _as_field(field: Union[EditableField, str]) -> Optional[EditableField]:
    try:
        return EditableField(field)
    except ValueError:
        return None


class RBACService:
    def __init__(
        self,
        members: MemberRepository = member_repository,
        roles: RoleRepository = role_repository,
    ) -> None:
        self.members = members
        self.roles = roles

    # ==================== Roles ====================

    async def is_admin(self, db: AsyncSession, member_id: int) -> bool:
        try:
            return await self.roles.is_admin(db, member_id)
        except Exception as e:
            logger.error("Failed to check admin status", member_id=member_id, error=str(e))
            return False

    async def has_role(self, db: AsyncSession, member_id: int, role_id: str) -> bool:
        try:
            return await self.roles.has_role(db, member_id, role_id)
        except Exception as e:
            logger.error("Failed to check role", member_id=member_id, role=role_id, error=str(e))
            return False

    async def get_member_roles(self, db: AsyncSession, member_id: int) -> list[MemberRole]:
        return await self.roles.list_member_roles(db, member_id)

    async def grant_role(self, db: AsyncSession, member_id: int, role_id: str, granted_by: int) -> None:
        await self.roles.grant(db, member_id, role_id, granted_by)

    async def revoke_role(self, db: AsyncSession, member_id: int, role_id: str) -> bool:
        return await self.roles.revoke(db, member_id, role_id)

    async def can_manage_roles(self, db: AsyncSession, actor_id: int) -> bool:
        """Only ADMIN role holders can grant or revoke roles."""
        return await self.is_admin(db, actor_id)

    # ==================== Members ====================

    async def _get_member(self, db: AsyncSession, member_id: int, label: str) -> Optional[Member]:
        try:
            member = await self.members.get(db, member_id)
        except Exception as e:
            logger.error(f"Failed to get {label} info", member_id=member_id, error=str(e))
            return None
        if member is None:
            logger.warning(f"{label.capitalize()} not found", member_id=member_id)
        return member

    async def can_edit_member(self, db: AsyncSession, actor_id: int, target_id: int) -> bool:
        """
        Decide whether actor may edit target.

        Order matters: self-edit, then ADMIN, then the actor must strictly
        outrank the target; PRES/EVP may then edit across committees while
        a VP is limited to their own committee.
        """
        if actor_id == target_id:
            return True

        if await self.is_admin(db, actor_id):
            return True

        actor = await self._get_member(db, actor_id, "actor")
        if actor is None:
            return False

        target = await self._get_member(db, target_id, "target")
        if target is None:
            return False

        actor_position = actor.position_id or ""
        if not is_higher_position(actor_position, target.position_id or ""):
            return False

        if actor_position in CROSS_COMMITTEE_POSITIONS:
            return True

        if actor_position == Position.VP.value and (actor.committee_id or "") == (target.committee_id or ""):
            return True

        return False

    async def can_view_member(self, db: AsyncSession, actor_id: int, target_id: int) -> bool:
        # every authenticated member may view any member
        return True

    # ==================== API keys ====================

    def _member_can_access_api_keys(self, member: Member) -> bool:
        if (member.committee_id or "") == API_KEY_COMMITTEE:
            return True
        return is_higher_or_equal_position(member.position_id or "", API_KEY_MIN_POSITION)

    async def can_access_api_key_management(self, db: AsyncSession, member_id: int) -> bool:
        """ADMIN, or RND committee, or AVP and above."""
        if await self.is_admin(db, member_id):
            return True

        member = await self._get_member(db, member_id, "member")
        if member is None:
            return False

        allowed = self._member_can_access_api_keys(member)
        if not allowed:
            logger.info(
                "API key access denied",
                member_id=member_id,
                committee=member.committee_id,
                position=member.position_id,
            )
        return allowed

    async def can_access_api_key_management_by_email(self, db: AsyncSession, email: str) -> bool:
        """Same policy as can_access_api_key_management, resolved from an email."""
        try:
            member = await self.members.get_by_email(db, email)
        except Exception as e:
            logger.error("Failed to get member info for API access check", email=email, error=str(e))
            return False

        if member is None:
            logger.warning("Not an LSCS member", email=email)
            return False

        if await self.is_admin(db, member.id):
            return True

        allowed = self._member_can_access_api_keys(member)
        if not allowed:
            logger.info(
                "API access denied",
                email=email,
                committee=member.committee_id,
                position=member.position_id,
            )
        return allowed

    # ==================== Fields ====================

    async def can_edit_field(
        self, db: AsyncSession, actor_id: int, target_id: int, field: Union[EditableField, str]
    ) -> bool:
        if await self.is_admin(db, actor_id):
            return True

        editable = _as_field(field)
        if editable is None:
            return False

        if actor_id == target_id:
            return editable in SELF_EDITABLE_FIELDS

        if not await self.can_edit_member(db, actor_id, target_id):
            return False

        return editable in ALL_EDITABLE_FIELDS

    async def get_editable_fields(self, db: AsyncSession, actor_id: int, target_id: int) -> set[EditableField]:
        if await self.is_admin(db, actor_id):
            return set(ALL_EDITABLE_FIELDS)

        if actor_id == target_id:
            return set(SELF_EDITABLE_FIELDS)

        if await self.can_edit_member(db, actor_id, target_id):
            return set(ALL_EDITABLE_FIELDS)

        return set()
