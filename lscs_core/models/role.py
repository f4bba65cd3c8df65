"""
Role Models
Explicit role assignments layered on top of the position hierarchy
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.sql import func

from lscs_core.core.database import Base

ADMIN_ROLE = "ADMIN"


class Role(Base):
    """Assignable role, e.g. ADMIN"""
    __tablename__ = "roles"

    id = Column(String(32), primary_key=True)
    description = Column(String(255), nullable=True)

    def __repr__(self):
        return f"<Role(id='{self.id}')>"


class MemberRole(Base):
    """Many-to-many assignment of roles to members"""
    __tablename__ = "member_roles"

    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), primary_key=True)
    role_id = Column(String(32), ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True)
    granted_by = Column(Integer, ForeignKey("members.id", ondelete="SET NULL"), nullable=True)
    granted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<MemberRole(member_id={self.member_id}, role_id='{self.role_id}')>"
