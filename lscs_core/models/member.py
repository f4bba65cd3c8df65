"""
Member Model
Organization member directory entry
"""

from sqlalchemy import Column, Index, Integer, String, Text

from lscs_core.core.database import Base
from lscs_core.models.base import TimestampMixin


class Member(Base, TimestampMixin):
    """Member record; email binds OAuth and API key identities"""
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, autoincrement=False)
    email = Column(String(254), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=False)
    nickname = Column(String(100), nullable=True)

    # Organization placement
    position_id = Column(String(10), nullable=True, index=True)
    committee_id = Column(String(10), nullable=True, index=True)
    house_id = Column(Integer, nullable=True)

    # Profile information
    college = Column(String(100), nullable=True)
    program = Column(String(100), nullable=True)
    discord = Column(String(100), nullable=True)
    interests = Column(Text, nullable=True)
    contact_number = Column(String(30), nullable=True)
    fb_link = Column(String(255), nullable=True)
    telegram = Column(String(100), nullable=True)
    image_url = Column(String(500), nullable=True)

    __table_args__ = (
        Index("ix_member_committee_position", "committee_id", "position_id"),
    )

    def __repr__(self):
        return f"<Member(id={self.id}, email='{self.email}', position='{self.position_id}')>"
