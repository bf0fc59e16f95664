from datetime import datetime, timedelta

import jwt

from natours.core import config
from natours.core.clock import utcnow
from natours.core.exceptions import TokenExpiredError, TokenInvalidError


def create_access_token(
    subject: int | str,
    expires_delta: timedelta | None = None,
    issued_at: datetime | None = None,
) -> str:
    issued = issued_at or utcnow()
    if expires_delta is None:
        expires_delta = timedelta(minutes=config.JWT_EXPIRES_MINUTES)
    payload = {"sub": str(subject), "iat": issued, "exp": issued + expires_delta}
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    # jwt.decode checks the signature before it looks at exp.
    try:
        return jwt.decode(
            token,
            config.JWT_SECRET_KEY,
            algorithms=[config.JWT_ALGORITHM],
            options={"require": ["sub", "iat", "exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpiredError() from exc
    except jwt.InvalidTokenError as exc:
        raise TokenInvalidError() from exc


def get_subject_id(payload: dict) -> int:
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise TokenInvalidError() from exc
