import bcrypt

from natours.core import config


def hash_password(plain: str) -> str:
    if not plain:
        raise ValueError("Password must not be empty")
    salt = bcrypt.gensalt(rounds=config.PASSWORD_HASH_ROUNDS)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str | None) -> bool:
    if not plain or not hashed:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed digest or a candidate longer than bcrypt accepts.
        return False
