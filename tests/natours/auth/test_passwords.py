import pytest

from natours.auth.passwords import hash_password, verify_password


def test_hash_password_never_returns_plaintext() -> None:
    digest = hash_password('pass1234')

    assert digest != 'pass1234'
    assert digest.startswith('$2')


def test_hash_password_salts_each_digest() -> None:
    assert hash_password('pass1234') != hash_password('pass1234')


def test_verify_password_accepts_matching_password() -> None:
    assert verify_password('pass1234', hash_password('pass1234'))


@pytest.mark.parametrize('candidate', ['wrong-password', '', 'PASS1234'])
def test_verify_password_rejects_other_passwords(candidate: str) -> None:
    assert not verify_password(candidate, hash_password('pass1234'))


def test_verify_password_rejects_malformed_digest() -> None:
    assert not verify_password('pass1234', 'not-a-bcrypt-digest')
    assert not verify_password('pass1234', None)


def test_hash_password_rejects_empty_password() -> None:
    with pytest.raises(ValueError):
        hash_password('')
