"""
FTW Community Backend — FastAPI Application Factory
====================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (`uvicorn ftw_community.main:app`) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                        FastAPI App                           │
    │                                                              │
    │  Middleware:  Rate Limit → Request ID → Access Log → GZip    │
    │                                                   → CORS     │
    │                                                              │
    │  Routes:  /api/login /api/me /api/profile/*                  │
    │           /api/colleges /api/community/*                     │
    │           /api/tasks /api/reports                            │
    │           /api/applications /api/events /api/videos          │
    │           /api/toprated /api/stats /health                   │
    │                                                              │
    │  app.state.container: repositories, ScopeResolver, services  │
    │                                                              │
    │  Exception Handlers:                                         │
    │    Validation→400  Auth→401  Locked/Denied→403  Missing→404  │
    │    Conflict→409  RateLimit→429  DB→500                       │
    └──────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → configuration check → seed bootstrap data
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from ftw_community import __version__
from ftw_community.config import settings
from ftw_community.container import ServiceContainer, build_container
from ftw_community.database import async_session_factory, dispose_engine
from ftw_community.exceptions import (
    AuthenticationFailure,
    AuthorizationDenial,
    CommunityError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    RateLimitExceededError,
    ValidationError,
)
from ftw_community.middleware.logging import RequestLoggingMiddleware
from ftw_community.middleware.rate_limit import RateLimitMiddleware
from ftw_community.middleware.request_id import RequestIDMiddleware, request_id_var
from ftw_community.routes import auth, community, content, health, work
from ftw_community.services.seed import seed_initial_data

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, before anything else logs.

    Format: 2026-01-15T12:00:00 [INFO] ftw_community.access: GET /api/tasks 200 ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    # passlib logs a bcrypt version probe warning on every import
    logging.getLogger("passlib").setLevel(logging.ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("FTW Community Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: health checks and public pages still work, and the
        # problem is visible in the logs.
        logger.error("Configuration error: %s", e)

    if settings.seed_on_startup:
        container: ServiceContainer = app.state.container
        await seed_initial_data(
            async_session_factory,
            users=container.users,
            content=container.content_repo,
            hasher=container.hasher,
            config=settings,
        )

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("FTW Community Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error(status_code: int, code: str, message: str, details=None, headers=None) -> JSONResponse:
    content = {"error": code, "message": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the CommunityError hierarchy onto HTTP responses.

        ValidationError         → 400 validation_error
        AuthenticationFailure   → 401 authentication_failed
          AccountLocked         → 403 account_locked
        AuthorizationDenial     → 403 insufficient_permissions
        NotFoundError           → 404 not_found
        ConflictError           → 409 conflict
        RateLimitExceededError  → 429 rate_limit_exceeded
        DatabaseError / SQLAlchemyError → 500 server_error
        Exception (fallback)    → 500 internal_server_error

    `context` is logged, never returned, except for the field name of a
    validation or conflict error.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        details = {"field": exc.field} if exc.field else None
        return _error(400, "validation_error", exc.message, details)

    @app.exception_handler(AuthenticationFailure)
    async def handle_authentication_failure(request: Request, exc: AuthenticationFailure):
        # AccountLocked carries its own code and status
        logger.warning(
            "[%s] %s on %s: %s",
            request_id_var.get(""),
            type(exc).__name__,
            request.url.path,
            exc.context,
        )
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return _error(exc.status_code, exc.error_code, exc.message, headers=headers)

    @app.exception_handler(AuthorizationDenial)
    async def handle_authorization_denial(request: Request, exc: AuthorizationDenial):
        logger.info(
            "[%s] Denied %s %s: %s",
            request_id_var.get(""),
            request.method,
            request.url.path,
            exc.context,
        )
        return _error(403, "insufficient_permissions", exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error(404, "not_found", exc.message)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        details = {"field": exc.field} if exc.field else None
        return _error(409, "conflict", exc.message, details)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return _error(
            429,
            "rate_limit_exceeded",
            exc.message,
            {"retry_after": exc.retry_after},
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context
        )
        return _error(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(SQLAlchemyError)
    async def handle_sqlalchemy_error(request: Request, exc: SQLAlchemyError):
        logger.error("[%s] Unhandled database error: %s", request_id_var.get(""), exc, exc_info=True)
        return _error(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(CommunityError)
    async def handle_community_error(request: Request, exc: CommunityError):
        logger.error("[%s] %s: %s", request_id_var.get(""), type(exc).__name__, exc.message)
        return _error(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), exc, exc_info=True)
        return _error(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Assemble the application.

    Args:
        container: prebuilt services (the test suite passes one built with
                   cheap bcrypt rounds); built from `settings` when omitted
    """
    app = FastAPI(
        title="FTW Community API",
        description=(
            "Community management backend: colleges, staff hierarchy, "
            "college-scoped tasks and reports, and public site content."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.container = container or build_container(settings)

    # Middleware executes in reverse order of addition:
    # RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(community.router)
    app.include_router(work.router)
    app.include_router(content.router)
    app.include_router(health.router)

    return app


app = create_app()
