"""
SQLAlchemy models for the authentication service.
"""
import datetime

from sqlalchemy import Boolean, Column, DateTime, String

from auth_service.database import Base


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class UserRecord(Base):
    """
    Stored identity.

    One row per email. Only the password hash is persisted.
    """
    __tablename__ = "users"

    email = Column(String(320), primary_key=True)
    password_hash = Column(String(255), nullable=False)
    requires_2fa = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def __repr__(self) -> str:
        """String representation of the UserRecord object."""
        return f"<UserRecord(email={self.email}, requires_2fa={self.requires_2fa})>"
