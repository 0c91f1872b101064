"""Tests for the platform-admin account management endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from community_hub.models.user import User
from community_hub.services import accounts

USERS_URL = "/api/v1/users"


@pytest.mark.asyncio
async def test_member_cannot_manage_users(async_client: AsyncClient, member_headers):
    resp = await async_client.get(USERS_URL, headers=member_headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_list_users_hides_hashes(
    async_client: AsyncClient, admin_headers, member_user: User
):
    resp = await async_client.get(USERS_URL, headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json()
    assert {u["email"] for u in data} == {"admin@example.com", "member@example.com"}
    assert all("password_hash" not in u for u in data)


@pytest.mark.asyncio
async def test_list_users_pagination(async_client: AsyncClient, admin_headers):
    for i in range(4):
        await async_client.post(
            USERS_URL,
            json={"email": f"p{i}@example.com", "password": "pw-123456", "full_name": f"P{i}"},
            headers=admin_headers,
        )
    resp = await async_client.get(f"{USERS_URL}?skip=1&limit=2", headers=admin_headers)
    assert resp.status_code == 200
    assert [u["email"] for u in resp.json()] == ["p0@example.com", "p1@example.com"]


@pytest.mark.asyncio
async def test_admin_creates_community_admin(async_client: AsyncClient, admin_headers):
    resp = await async_client.post(
        USERS_URL,
        json={
            "email": "lead@example.com",
            "password": "lead-pass-1",
            "full_name": "Community Lead",
            "role": "community_admin",
            "community_id": 2,
        },
        headers=admin_headers,
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["role"] == "community_admin"
    assert data["community_id"] == 2
    assert "password_hash" not in data


@pytest.mark.asyncio
async def test_admin_create_rejects_unknown_role(async_client: AsyncClient, admin_headers):
    resp = await async_client.post(
        USERS_URL,
        json={"email": "x@example.com", "password": "pw", "full_name": "X", "role": "owner"},
        headers=admin_headers,
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_get_user_not_found(async_client: AsyncClient, admin_headers):
    resp = await async_client.get(f"{USERS_URL}/9999", headers=admin_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_update_points_and_role_keeps_password_hash(
    async_client: AsyncClient, db_session: AsyncSession, admin_headers, member_user: User
):
    original_hash = member_user.password_hash

    resp = await async_client.patch(
        f"{USERS_URL}/{member_user.id}",
        json={"points": 150, "role": "community_admin"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["points"] == 150
    assert data["role"] == "community_admin"

    await db_session.refresh(member_user)
    assert member_user.password_hash == original_hash


@pytest.mark.asyncio
async def test_admin_resets_password(
    async_client: AsyncClient, db_session: AsyncSession, admin_headers, member_user: User
):
    resp = await async_client.patch(
        f"{USERS_URL}/{member_user.id}",
        json={"password": "reset-by-admin"},
        headers=admin_headers,
    )
    assert resp.status_code == 200

    await db_session.refresh(member_user)
    assert accounts.verify_password("reset-by-admin", member_user) is True


@pytest.mark.asyncio
async def test_deactivate_user(async_client: AsyncClient, admin_headers, member_user: User):
    resp = await async_client.patch(
        f"{USERS_URL}/{member_user.id}", json={"is_active": False}, headers=admin_headers
    )
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False


@pytest.mark.asyncio
async def test_delete_user(async_client: AsyncClient, admin_headers, member_user: User):
    resp = await async_client.delete(f"{USERS_URL}/{member_user.id}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    gone = await async_client.get(f"{USERS_URL}/{member_user.id}", headers=admin_headers)
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_admin_cannot_delete_self(
    async_client: AsyncClient, admin_headers, admin_user: User
):
    resp = await async_client.delete(f"{USERS_URL}/{admin_user.id}", headers=admin_headers)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json() == {"db": True}
