from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, EmailStr, Field, StringConstraints, field_validator

from studly.models.user import UserRole
from studly.schemas.base import CamelModel, TimestampedOut, UpdateModel

# bcrypt only hashes the first 72 bytes and refuses longer input
PASSWORD_MAX_BYTES = 72


def _fits_bcrypt(value: str) -> str:
    if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"Password must not exceed {PASSWORD_MAX_BYTES} bytes")
    return value


Password = Annotated[str, StringConstraints(min_length=6), AfterValidator(_fits_bcrypt)]


class RegisterRequest(CamelModel):
    email: EmailStr
    name: Optional[str] = Field(default=None, max_length=100)
    first_name: Optional[str] = Field(default=None, max_length=100)
    password: Password

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class LoginRequest(CamelModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: Password


class UserUpdate(UpdateModel):
    nullable_fields = frozenset({"name", "first_name"})

    email: Optional[EmailStr] = None
    name: Optional[str] = Field(default=None, max_length=100)
    first_name: Optional[str] = Field(default=None, max_length=100)
    password: Optional[Password] = None
    role: Optional[UserRole] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().lower() if value else value


class UserOut(TimestampedOut):
    email: str
    name: Optional[str] = None
    first_name: Optional[str] = None
    role: UserRole
    last_login_at: Optional[datetime] = None


class LoginResponse(CamelModel):
    token: str
    token_type: str = "bearer"
    user: UserOut
