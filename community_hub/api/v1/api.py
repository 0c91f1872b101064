"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from community_hub.api.v1.endpoints import auth, health, users

api_router = APIRouter()

# Registration, login, refresh, own profile
api_router.include_router(auth.router)

# Account management (platform admin)
api_router.include_router(users.router)

# Health
api_router.include_router(health.router)
