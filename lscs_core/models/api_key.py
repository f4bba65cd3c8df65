"""
API Key Model
Server-side record of an issued API key; only the token hash is kept
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.sql import func

from lscs_core.core.database import Base


class APIKey(Base):
    """Issued API key metadata"""
    __tablename__ = "api_keys"

    api_key_id = Column(Integer, primary_key=True, autoincrement=True)
    member_email = Column(
        String(254),
        ForeignKey("members.email", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    api_key_hash = Column(String(64), nullable=False, unique=True)
    project = Column(String(255), nullable=True)
    allowed_origin = Column(String(255), nullable=True, index=True)
    is_dev = Column(Boolean, default=False, nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    # null only for admin keys
    expires_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<APIKey(id={self.api_key_id}, member_email='{self.member_email}')>"
