"""
Issued bearer-token sessions. A token authenticates only while its row
exists and expires_at is in the future.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from studio_booking.db.base import Base, TimestampMixin


class Session(Base, TimestampMixin):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(512), unique=True, index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    user = relationship("User", back_populates="sessions", lazy="joined")

    def __repr__(self) -> str:
        return f"<Session(id={self.id}, user={self.user_id}, expires={self.expires_at})>"
