"""User model definitions."""

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, String

from natours.core.clock import as_utc
from natours.database import Base
from natours.models.base import DocumentMixin


class Role(str, Enum):
    USER = "user"
    GUIDE = "guide"
    LEAD_GUIDE = "lead-guide"
    ADMIN = "admin"


class User(DocumentMixin, Base):
    """Represents an application user."""
    __tablename__ = "users"

    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    photo = Column(String, nullable=True)
    role = Column(String, nullable=False, default=Role.USER.value)
    password = Column(String, nullable=False)
    password_changed_at = Column(DateTime(timezone=True), nullable=True)
    password_reset_token = Column(String, nullable=True, index=True)
    # Absolute expiry instant of the reset token, not a duration.
    password_reset_expires_in = Column(DateTime(timezone=True), nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    def changed_password_after(self, token_issued_at: int) -> bool:
        """Return True if the password changed after a token's ``iat`` timestamp."""
        if self.password_changed_at is None:
            return False
        changed_timestamp = int(as_utc(self.password_changed_at).timestamp())
        return token_issued_at < changed_timestamp
