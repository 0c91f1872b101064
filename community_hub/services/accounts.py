"""
Account service: create, verify, update and serialize community accounts.

Hashing is an explicit step that finishes before the row is handed to the
session, so no account is ever written with a raw password. bcrypt work is
pushed to a worker thread to keep the event loop responsive.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from community_hub.core.exceptions import ComparisonError, PersistenceError, ValidationError
from community_hub.core.security import get_password_hash, is_password_hash
from community_hub.core.security import verify_password as _verify_hash
from community_hub.models.user import User
from community_hub.schemas.user import AccountCreate, AccountRead, AccountUpdate

logger = logging.getLogger(__name__)

# Columns that accept NULL; any other field sent as null in an update is ignored.
_NULLABLE_FIELDS = {"community_id"}


def _parse(schema: type[BaseModel], fields: BaseModel | Mapping[str, Any]) -> Any:
    if isinstance(fields, schema):
        return fields
    if isinstance(fields, BaseModel):
        fields = fields.model_dump(exclude_unset=True)
    try:
        return schema.model_validate(dict(fields))
    except SchemaValidationError as exc:
        raise ValidationError(
            "Invalid account details",
            errors=exc.errors(include_url=False, include_input=False),
        ) from None


async def _hash(raw_password: str) -> str:
    try:
        return await asyncio.to_thread(get_password_hash, raw_password)
    except Exception as exc:
        raise PersistenceError("Password hashing failed") from exc


async def _commit(db: AsyncSession, account: User) -> None:
    try:
        await db.commit()
        await db.refresh(account)
    except SQLAlchemyError as exc:
        await db.rollback()
        raise PersistenceError("Could not save account") from exc


# ── Create ──────────────────────────────────────────────────────────
async def create_account(
    db: AsyncSession,
    fields: AccountCreate | Mapping[str, Any],
) -> User:
    """Validate *fields*, hash the password once, then persist the account.

    Email uniqueness is not checked; two accounts may share an address.

    Raises:
        ValidationError: bad or missing input. Nothing is hashed or written.
        PersistenceError: hashing or storage failure.
    """
    data = _parse(AccountCreate, fields)
    values = data.model_dump(exclude={"password"})

    account = User(**values)
    if data.password:
        account.password_hash = await _hash(data.password)

    db.add(account)
    await _commit(db, account)
    logger.info("Account %s created with role %s", account.id, account.role.value)
    return account


# ── Password verification ───────────────────────────────────────────
def verify_password(candidate: str, account: User) -> bool:
    """True iff *candidate* matches the account's stored hash.

    Raises ``ComparisonError`` when the stored hash is absent or malformed.
    """
    stored = account.password_hash
    if not is_password_hash(stored):
        raise ComparisonError(f"Account {account.id} has no usable password hash")
    try:
        return _verify_hash(candidate, stored)
    except (ValueError, TypeError) as exc:
        raise ComparisonError(f"Account {account.id} has a malformed password hash") from exc


async def averify_password(candidate: str, account: User) -> bool:
    return await asyncio.to_thread(verify_password, candidate, account)


async def authenticate(db: AsyncSession, email: str, password: str) -> User | None:
    """Return the first account with *email* whose password matches.

    Addresses are compared case-insensitively, since creation normalises the
    domain part. Several accounts can share an email, so each candidate is
    checked in id order. Inactive accounts are returned as well; callers decide.
    """
    result = await db.execute(
        select(User)
        .where(func.lower(User.email) == email.lower().strip())
        .order_by(User.id)
    )
    for account in result.scalars():
        if await averify_password(password, account):
            return account
    return None


# ── External view ───────────────────────────────────────────────────
def to_external_view(account: User) -> AccountRead:
    """Build the only representation of an account that leaves the service."""
    return AccountRead.model_validate(account)


# ── Read / update / delete ──────────────────────────────────────────
async def get_account(db: AsyncSession, account_id: int) -> User | None:
    return await db.get(User, account_id)


async def list_accounts(db: AsyncSession, skip: int = 0, limit: int = 100) -> Sequence[User]:
    result = await db.execute(select(User).order_by(User.id).offset(skip).limit(limit))
    return result.scalars().all()


async def update_account(
    db: AsyncSession,
    account: User,
    changes: AccountUpdate | Mapping[str, Any],
) -> User:
    """Apply only the fields present in *changes*.

    The password is re-hashed only when a new one is supplied; any other
    update leaves ``password_hash`` untouched.
    """
    data = _parse(AccountUpdate, changes)
    updates = data.model_dump(exclude_unset=True)

    raw_password = updates.pop("password", None)
    new_hash = await _hash(raw_password) if raw_password else None

    for field, value in updates.items():
        if value is None and field not in _NULLABLE_FIELDS:
            continue
        setattr(account, field, value)
    if new_hash:
        account.password_hash = new_hash

    await _commit(db, account)
    logger.info(
        "Account %s updated: %s",
        account.id,
        sorted(updates) + (["password"] if raw_password else []),
    )
    return account


async def delete_account(db: AsyncSession, account: User) -> None:
    account_id = account.id
    try:
        await db.delete(account)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise PersistenceError("Could not delete account") from exc
    logger.info("Account %s deleted", account_id)
