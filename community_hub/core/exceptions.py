"""
Account error taxonomy and global exception handlers.

Handlers prevent stack-trace leakage to clients: storage and hashing
failures are logged server-side and answered with a generic message.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from community_hub.core.config import settings

logger = logging.getLogger(__name__)

# Routes whose body errors must not reveal which field was rejected
_GENERIC_VALIDATION_PATHS = {f"{settings.API_V1_PREFIX}/auth/register"}


# ── Domain errors ───────────────────────────────────────────────────
class AccountError(Exception):
    """Base class for every error raised by the account model."""


class ValidationError(AccountError):
    """Input failed shape / format checks. Raised before any hashing or write."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []

    @property
    def fields(self) -> list[str]:
        return [".".join(str(p) for p in err.get("loc", ())) for err in self.errors]


class ComparisonError(AccountError):
    """The stored password hash is missing or not a recognised hash."""


class PersistenceError(AccountError):
    """Storage (or hashing) failure; the original cause is chained."""


# ── Handlers ────────────────────────────────────────────────────────
async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "success": False},
        headers=getattr(exc, "headers", None),
    )


async def _validation_error_handler(_request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "success": False},
    )


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    if request.url.path in _GENERIC_VALIDATION_PATHS:
        return JSONResponse(
            status_code=422,
            content={"detail": "Invalid account details", "success": False},
        )
    return await request_validation_exception_handler(request, exc)


async def _comparison_error_handler(_request: Request, exc: ComparisonError) -> JSONResponse:
    logger.error("Stored password hash could not be compared: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "success": False},
    )


async def _persistence_error_handler(_request: Request, exc: PersistenceError) -> JSONResponse:
    logger.error("Persistence error: %s", exc, exc_info=exc.__cause__ or exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal database error", "success": False},
    )


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=409,
        content={"detail": "Database constraint violation", "success": False},
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal database error", "success": False},
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "success": False},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ComparisonError, _comparison_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(PersistenceError, _persistence_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
