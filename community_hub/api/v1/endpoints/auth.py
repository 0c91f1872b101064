"""
Auth endpoints — registration, login (OAuth2 password flow), token refresh
and the caller's own profile.
"""

from fastapi import APIRouter, Cookie, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from community_hub.api.v1.deps import get_current_active_user, get_db
from community_hub.core.config import settings
from community_hub.core.security import (create_access_token, create_refresh_token,
                                         decode_refresh_token)
from community_hub.models.user import AccountRole, User
from community_hub.schemas.common import MessageResponse
from community_hub.schemas.token import RefreshRequest, Token
from community_hub.schemas.user import AccountRead, AccountRegister, ProfileUpdate
from community_hub.services import accounts

# Rate limiter — keyed by client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_tokens(response: Response, user: User) -> Token:
    access_token = create_access_token(user.id)
    refresh_token = create_refresh_token(user.id)

    response.set_cookie(
        key="access_token",
        value=f"Bearer {access_token}",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    response.set_cookie(
        key="refresh_token",
        value=refresh_token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
    )
    return Token(access_token=access_token, refresh_token=refresh_token)


@router.post("/register", response_model=AccountRead, status_code=201)
@limiter.limit("10/minute")
async def register(
    request: Request,
    body: AccountRegister,
    db: AsyncSession = Depends(get_db),
) -> AccountRead:
    """Self-service sign-up. New accounts are always plain members.

    Failures carry a generic message so the response never reveals which
    field was rejected.
    """
    fields = body.model_dump(exclude_unset=True)
    fields["role"] = AccountRole.MEMBER
    user = await accounts.create_account(db, fields)
    return accounts.to_external_view(user)


@router.post("/login", response_model=Token)
@limiter.limit("5/minute")
async def login_for_access_token(
    request: Request,
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
) -> Token:
    """Authenticate with email/password. Returns tokens and HttpOnly cookies."""
    user = await accounts.authenticate(db, form_data.username, form_data.password)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    return _issue_tokens(response, user)


@router.post("/refresh", response_model=Token)
@limiter.limit("10/minute")
async def refresh_access_token_endpoint(
    request: Request,
    response: Response,
    body: RefreshRequest | None = None,
    refresh_token_cookie: str | None = Cookie(None, alias="refresh_token"),
    db: AsyncSession = Depends(get_db),
) -> Token:
    # Priority: Body > Cookie
    token_str = body.refresh_token if body and body.refresh_token else refresh_token_cookie

    if not token_str:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token missing",
        )

    payload = decode_refresh_token(token_str)
    user_id = payload.get("sub") if payload else None
    if user_id is None or not str(user_id).isdigit():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )

    user = await accounts.get_account(db, int(user_id))
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    return _issue_tokens(response, user)


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response) -> MessageResponse:
    """Clear auth cookies and end the session."""
    response.delete_cookie("access_token")
    response.delete_cookie("refresh_token")
    return MessageResponse(message="Logged out")


# ── Own profile ─────────────────────────────────────────────────────
@router.get("/me", response_model=AccountRead)
async def read_current_user(
    current_user: User = Depends(get_current_active_user),
) -> AccountRead:
    """Return profile of the currently authenticated account."""
    return accounts.to_external_view(current_user)


@router.patch("/me", response_model=AccountRead)
async def update_current_user(
    body: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> AccountRead:
    """Change own display name and/or password."""
    user = await accounts.update_account(db, current_user, body)
    return accounts.to_external_view(user)
