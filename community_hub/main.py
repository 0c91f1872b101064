"""
Community Hub — application entry point.

This is the **only** file that assembles the app.  All business logic
lives in the `api/`, `services/`, `models/`, and `core/` packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select

from community_hub.api.v1.api import api_router
from community_hub.api.v1.endpoints.auth import limiter
from community_hub.core.config import settings
from community_hub.core.exceptions import register_exception_handlers
from community_hub.db.base import Base
from community_hub.db.session import async_session_factory, engine
from community_hub.models.user import AccountRole, User
from community_hub.services.accounts import create_account

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    # Seed the platform admin on first run
    async with async_session_factory() as session:
        result = await session.execute(
            select(User.id).where(User.email == settings.FIRST_ADMIN_EMAIL).limit(1)
        )
        if result.scalar_one_or_none() is None:
            admin = await create_account(
                session,
                {
                    "email": settings.FIRST_ADMIN_EMAIL,
                    "password": settings.FIRST_ADMIN_PASSWORD,
                    "full_name": settings.FIRST_ADMIN_NAME,
                    "role": AccountRole.PLATFORM_ADMIN,
                },
            )
            logger.info("Default platform admin created (id=%s, password: <redacted>)", admin.id)

    logger.info("%s v%s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Community membership, roles and points",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Rate limiting (slowapi reads the limiter from app state)
    application.state.limiter = limiter

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    # Mount API v1
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return application


app = create_app()
