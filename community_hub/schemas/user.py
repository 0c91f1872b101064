"""Pydantic schemas for account input and the external account view."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from community_hub.models.user import AccountRole

_MAX_LEN = 255
_BCRYPT_MAX_BYTES = 72


def _require_text(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be empty")
    return v


def _check_password(v: str) -> str:
    _require_text(v)
    # bcrypt only reads the first 72 bytes; longer input would be cut silently
    if len(v.encode("utf-8")) > _BCRYPT_MAX_BYTES:
        raise ValueError(f"must be at most {_BCRYPT_MAX_BYTES} bytes")
    return v


class AccountCreate(BaseModel):
    email: EmailStr  # email-validator caps addresses at 254 chars
    password: str = Field(min_length=1)
    full_name: str = Field(min_length=1, max_length=_MAX_LEN)
    role: AccountRole = AccountRole.MEMBER
    community_id: int | None = None
    points: int = 0
    is_active: bool = True

    model_config = ConfigDict(extra="forbid")

    @field_validator("full_name")
    @classmethod
    def _strip_full_name(cls, v: str) -> str:
        return _require_text(v)

    @field_validator("password")
    @classmethod
    def _password_not_blank(cls, v: str) -> str:
        return _check_password(v)


class AccountRegister(BaseModel):
    """Public self-registration; role is always ``member``.

    Fields are left loose here and checked by the account service, so every
    rejection produces the same generic error.
    """

    email: str | None = None
    password: str | None = None
    full_name: str | None = None
    community_id: int | None = None


class AccountUpdate(BaseModel):
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=1)
    full_name: str | None = Field(default=None, min_length=1, max_length=_MAX_LEN)
    role: AccountRole | None = None
    community_id: int | None = None
    points: int | None = None
    is_active: bool | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("full_name")
    @classmethod
    def _strip_full_name(cls, v: str | None) -> str | None:
        return v if v is None else _require_text(v)

    @field_validator("password")
    @classmethod
    def _password_not_blank(cls, v: str | None) -> str | None:
        return v if v is None else _check_password(v)


class ProfileUpdate(BaseModel):
    """Fields an account may change on itself."""

    full_name: str | None = None
    password: str | None = None


class AccountRead(BaseModel):
    """External view: every account field except the password hash."""

    id: int
    email: str
    full_name: str
    role: AccountRole
    points: int
    join_date: datetime | None
    community_id: int | None
    is_active: bool
    created_at: datetime | None
    updated_at: datetime | None

    model_config = ConfigDict(from_attributes=True)
