"""
Authentication Schemas
"""

from typing import List, Optional

from lscs_core.schemas.base import BaseSchema
from lscs_core.schemas.member import MemberResponse


class CurrentMemberResponse(MemberResponse):
    """Profile of the signed-in member with their roles"""
    roles: List[str] = []
    is_admin: bool = False


class LogoutResponse(BaseSchema):
    message: str = "Logged out"
    sessions_deleted: Optional[int] = None
