"""
Community account identity, role and points.

Email is deliberately NOT unique at the database level: the production
schema sits close to the storage engine's per-table index limit, so no
unique index is created here. Add one through a migration if needed.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String
from sqlalchemy.orm import validates

from community_hub.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccountRole(str, enum.Enum):
    PLATFORM_ADMIN = "platform_admin"
    COMMUNITY_ADMIN = "community_admin"
    MEMBER = "member"


class User(Base):
    __tablename__ = "users"

    id: int = Column(Integer, primary_key=True, autoincrement=True)  # type: ignore[assignment]
    email: str = Column(String(255), unique=False, nullable=False)  # type: ignore[assignment]
    password_hash: str = Column(String(255), nullable=False)  # type: ignore[assignment]
    full_name: str = Column(String(255), nullable=False)  # type: ignore[assignment]
    role: AccountRole = Column(  # type: ignore[assignment]
        Enum(
            AccountRole,
            name="account_role",
            values_callable=lambda roles: [r.value for r in roles],
            validate_strings=True,
        ),
        nullable=False,
        default=AccountRole.MEMBER,
    )
    points: int = Column(Integer, default=0)  # type: ignore[assignment]
    join_date: datetime = Column(DateTime(timezone=True), default=_utcnow)  # type: ignore[assignment]
    community_id: int | None = Column(Integer, nullable=True)  # type: ignore[assignment]
    is_active: bool = Column(Boolean, default=True, server_default="true")  # type: ignore[assignment]
    created_at: datetime = Column(DateTime(timezone=True), default=_utcnow)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
    )

    @validates("role")
    def _validate_role(self, _key: str, value: AccountRole | str) -> AccountRole:
        return AccountRole(value)

    def __repr__(self) -> str:
        return f"<User id={self.id} role={getattr(self.role, 'value', self.role)}>"
