"""
SQLAlchemy Models Package
LSCS Core database models
"""

from lscs_core.models.api_key import APIKey
from lscs_core.models.member import Member
from lscs_core.models.role import ADMIN_ROLE, MemberRole, Role
from lscs_core.models.session import Session

__all__ = [
    "ADMIN_ROLE",
    "APIKey",
    "Member",
    "MemberRole",
    "Role",
    "Session",
]
