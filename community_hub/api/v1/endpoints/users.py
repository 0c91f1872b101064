"""
Account management endpoints (platform admin only).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from community_hub.api.v1.deps import get_db, require_platform_admin
from community_hub.models.user import User
from community_hub.schemas.common import DeleteResponse
from community_hub.schemas.user import AccountCreate, AccountRead, AccountUpdate
from community_hub.services import accounts

router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger(__name__)


async def _get_or_404(db: AsyncSession, user_id: int) -> User:
    user = await accounts.get_account(db, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("", response_model=list[AccountRead])
async def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_platform_admin),
) -> list[AccountRead]:
    users = await accounts.list_accounts(db, skip=skip, limit=limit)
    return [accounts.to_external_view(u) for u in users]


@router.post("", response_model=AccountRead, status_code=201)
async def create_user(
    body: AccountCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_platform_admin),
) -> AccountRead:
    """Create an account with any role."""
    user = await accounts.create_account(db, body)
    return accounts.to_external_view(user)


@router.get("/{user_id}", response_model=AccountRead)
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_platform_admin),
) -> AccountRead:
    return accounts.to_external_view(await _get_or_404(db, user_id))


@router.patch("/{user_id}", response_model=AccountRead)
async def update_user(
    user_id: int,
    body: AccountUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_platform_admin),
) -> AccountRead:
    """Update profile, points, role or active flag; re-hash only on a new password."""
    user = await accounts.update_account(db, await _get_or_404(db, user_id), body)
    return accounts.to_external_view(user)


@router.delete("/{user_id}", response_model=DeleteResponse)
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_platform_admin),
) -> DeleteResponse:
    """Permanently delete an account."""
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="Cannot delete your own account")
    await accounts.delete_account(db, await _get_or_404(db, user_id))
    return DeleteResponse(success=True, message=f"User {user_id} deleted")
