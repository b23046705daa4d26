from sqlalchemy import Column, Integer, String, DateTime
from tasktracker.db.base import Base


class RevokedToken(Base):
    """A logged-out session token, kept until its own expiry passes."""

    __tablename__ = "revoked_tokens"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(1024), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
