"""Per-operation input structs for users.

Each struct lists exactly the fields its operation may assign; anything else
in the request body is dropped before it reaches the database.
"""

from datetime import datetime
from typing import Any

from pydantic import EmailStr, field_validator, model_validator

from natours.models.user import Role
from natours.schemas.base import CamelModel

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_BYTES = 72


def check_password(value: str) -> str:
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must have at least {PASSWORD_MIN_LENGTH} characters.")
    if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes.")
    return value


class PasswordPair(CamelModel):
    password: str
    password_confirm: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password(value)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_confirm:
            raise ValueError("Passwords are not the same!")
        return self


class SignupRequest(PasswordPair):
    name: str
    email: EmailStr
    password_changed_at: datetime | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not value:
            raise ValueError("Please tell us your name!")
        return value

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class LoginRequest(CamelModel):
    email: str | None = None
    password: str | None = None


class ForgotPasswordRequest(CamelModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class ResetPasswordRequest(PasswordPair):
    pass


class UpdatePasswordRequest(PasswordPair):
    password_current: str


class UpdateMeRequest(CamelModel):
    name: str | None = None
    email: EmailStr | None = None

    @model_validator(mode="before")
    @classmethod
    def reject_password_fields(cls, data: Any) -> Any:
        if isinstance(data, dict) and any(
            key in data for key in ("password", "passwordConfirm", "password_confirm")
        ):
            raise ValueError("This route is not for password updates. Please use /updateMyPassword.")
        return data

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        return value.lower() if value else value


class UserUpdate(CamelModel):
    name: str | None = None
    email: EmailStr | None = None
    photo: str | None = None
    role: Role | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        return value.lower() if value else value
