from datetime import timedelta

import jwt
import pytest

from natours.auth import jwt_handler
from natours.core import config
from natours.core.clock import utcnow
from natours.core.exceptions import TokenExpiredError, TokenInvalidError


@pytest.mark.parametrize('subject', [1, 42, 987654])
def test_decode_returns_subject_of_fresh_token(subject: int) -> None:
    payload = jwt_handler.decode_access_token(jwt_handler.create_access_token(subject))

    assert jwt_handler.get_subject_id(payload) == subject
    assert payload['exp'] > payload['iat']


def test_expired_token_is_rejected() -> None:
    token = jwt_handler.create_access_token(7, issued_at=utcnow() - timedelta(hours=2), expires_delta=timedelta(hours=1))

    with pytest.raises(TokenExpiredError):
        jwt_handler.decode_access_token(token)


def test_token_signed_with_other_secret_is_invalid() -> None:
    now = utcnow()
    forged = jwt.encode(
        {'sub': '7', 'iat': now, 'exp': now + timedelta(hours=1)},
        'some-other-secret-key-of-sufficient-length',
        algorithm=config.JWT_ALGORITHM,
    )

    with pytest.raises(TokenInvalidError):
        jwt_handler.decode_access_token(forged)


def test_expired_token_with_bad_signature_reports_invalid_signature() -> None:
    issued = utcnow() - timedelta(hours=2)
    forged = jwt.encode(
        {'sub': '7', 'iat': issued, 'exp': issued + timedelta(hours=1)},
        'some-other-secret-key-of-sufficient-length',
        algorithm=config.JWT_ALGORITHM,
    )

    with pytest.raises(TokenInvalidError):
        jwt_handler.decode_access_token(forged)


@pytest.mark.parametrize('token', ['', 'garbage', 'a.b.c'])
def test_malformed_token_is_invalid(token: str) -> None:
    with pytest.raises(TokenInvalidError):
        jwt_handler.decode_access_token(token)


def test_get_subject_id_rejects_non_numeric_subject() -> None:
    with pytest.raises(TokenInvalidError):
        jwt_handler.get_subject_id({'sub': 'admin'})
