"""Single-use, time-limited password reset tokens.

The plain token is returned once so it can be mailed to the user; only its
SHA-256 digest and an absolute expiry instant are stored on the user row.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from natours.core import config
from natours.core.clock import utcnow
from natours.core.exceptions import ResetTokenError
from natours.models.user import User
from natours.repositories.users import users

TOKEN_BYTES = 32


@dataclass(frozen=True)
class ResetToken:
    plain: str
    hashed: str
    expires_at: datetime


def hash_token(plain: str) -> str:
    return hashlib.sha256(plain.encode("utf-8")).hexdigest()


def generate() -> ResetToken:
    plain = secrets.token_hex(TOKEN_BYTES)
    expires_at = utcnow() + timedelta(minutes=config.PASSWORD_RESET_EXPIRES_MINUTES)
    return ResetToken(plain=plain, hashed=hash_token(plain), expires_at=expires_at)


def issue(db: Session, user: User) -> str:
    """Store a fresh reset token on ``user`` and return the plain value."""
    token = generate()
    user.password_reset_token = token.hashed
    user.password_reset_expires_in = token.expires_at
    users.save(db, user)
    return token.plain


def revoke(db: Session, user: User) -> None:
    user.password_reset_token = None
    user.password_reset_expires_in = None
    users.save(db, user)


def redeem(db: Session, plain: str) -> User:
    """Find the user a plain reset token belongs to and clear the token on it.

    The cleared fields are not saved; the caller persists them together with
    whatever the token authorised, so a failed save leaves the token usable.

    Raises:
        ResetTokenError: No stored token matches, or it has expired.
    """
    user = (
        users.query(db)
        .filter(
            User.password_reset_token == hash_token(plain or ""),
            User.password_reset_expires_in > utcnow(),
        )
        .first()
    )
    if user is None:
        raise ResetTokenError()

    user.password_reset_token = None
    user.password_reset_expires_in = None
    return user


def consume(db: Session, plain: str) -> User:
    """Exchange a plain reset token for its user, invalidating the token."""
    user = redeem(db, plain)
    users.save(db, user)
    return user
