"""
Session Model
Server-side state of a cookie-bound web login
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from lscs_core.core.database import Base


class Session(Base):
    """Web UI session; the id doubles as the bearer credential"""
    __tablename__ = "sessions"

    id = Column(String(64), primary_key=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    last_activity = Column(DateTime(timezone=True), nullable=False)
    user_agent = Column(String(512), nullable=True)
    ip_address = Column(String(64), nullable=True)

    def __repr__(self):
        return f"<Session(id='{self.id[:8]}...', member_id={self.member_id})>"
