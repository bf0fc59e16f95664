"""Authentication and authorization flows.

Request states: anonymous -> authenticated (valid token for a live user whose
password did not change since the token was issued) -> authorized (role in
the route's allowed set).
"""

import logging
from typing import Iterable

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from natours.auth import jwt_handler, reset_tokens
from natours.auth.passwords import verify_password
from natours.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DeliveryError,
    NotFoundError,
    ValidationError,
)
from natours.models.user import Role, User
from natours.repositories.users import find_by_email, users
from natours.schemas.user import SignupRequest
from natours.services.mailer import Mailer

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Incorrect email or password"
RESET_MAIL_SUBJECT = "Your password reset token (valid for 10 min)"


def signup(db: Session, data: SignupRequest) -> tuple[User, str]:
    user = users.create(
        db,
        {
            "name": data.name,
            "email": data.email,
            "password": data.password,
            "password_changed_at": data.password_changed_at,
        },
    )
    logger.info("User %s signed up", user.id)
    return user, jwt_handler.create_access_token(user.id)


def login(db: Session, email: str | None, password: str | None) -> tuple[User, str]:
    if not email or not password:
        raise ValidationError("Please provide email and password!")

    user = find_by_email(db, email)
    # Same error for an unknown email and a wrong password.
    if user is None or not verify_password(password, user.password):
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

    return user, jwt_handler.create_access_token(user.id)


def authenticate(db: Session, token: str | None) -> User:
    if not token:
        raise AuthenticationError("You are not logged in! Please log in to get access.")

    payload = jwt_handler.decode_access_token(token)
    user = users.get(db, jwt_handler.get_subject_id(payload))
    if user is None:
        raise AuthenticationError("The user belonging to this token no longer exists.")

    if user.changed_password_after(int(payload["iat"])):
        raise AuthenticationError("User recently changed password! Please log in again.")

    return user


def authorize(user: User, roles: Iterable[Role | str]) -> bool:
    allowed = {Role(role).value for role in roles}
    return user.role in allowed


def require_role(user: User, roles: Iterable[Role | str]) -> User:
    if not authorize(user, roles):
        raise AuthorizationError()
    return user


def update_password(
    db: Session,
    user: User,
    current_password: str,
    new_password: str,
) -> str:
    if not verify_password(current_password, user.password):
        raise AuthenticationError("Your current password is wrong.")

    # Goes through the repository so the pre-save hooks rehash and stamp the change.
    user.password = new_password
    users.save(db, user)
    return jwt_handler.create_access_token(user.id)


async def forgot_password(db: Session, email: str, reset_url: str, mailer: Mailer) -> None:
    """Mail a reset link for ``email``.

    Database work runs in the threadpool so the event loop only waits on the
    mail delivery.

    Args:
        reset_url: Link prefix; the plain token is appended to it.
    """
    user = await run_in_threadpool(find_by_email, db, email)
    if user is None:
        raise NotFoundError("There is no user with that email address.")

    token = await run_in_threadpool(reset_tokens.issue, db, user)
    message = (
        f"Forgot your password? Submit a PATCH request with your new password and "
        f"passwordConfirm to: {reset_url}{token}.\n"
        f"If you didn't forget your password, please ignore this email!"
    )
    try:
        await mailer.send(user.email, RESET_MAIL_SUBJECT, message)
    except DeliveryError as exc:
        logger.error("Password reset email for user %s failed: %s", user.id, exc)
        await run_in_threadpool(reset_tokens.revoke, db, user)
        raise DeliveryError("There was an error sending the email. Try again later!") from exc


def reset_password(db: Session, token: str, new_password: str) -> tuple[User, str]:
    # Token invalidation and the new password are committed together.
    user = reset_tokens.redeem(db, token)
    user.password = new_password
    users.save(db, user)
    return user, jwt_handler.create_access_token(user.id)
