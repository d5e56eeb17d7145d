"""
Inkpost Backend — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the services from Settings, registers middleware,
       exception handlers and routers, and returns the app.
Who:   uvicorn (`uvicorn app.main:app`) and the test suite (create_app(test_settings)).

Application Architecture:
    ┌───────────────────────────────────────────────────────────┐
    │                       FastAPI App                         │
    │                                                           │
    │  Middleware:  Request ID → Access Log → GZip → CORS       │
    │                                                           │
    │  Routes:                                                  │
    │    /api/users/*   /api/posts/*   /uploads/{name}  /health │
    │                                                           │
    │  app.state:                                               │
    │    settings, media_store, token_service,                  │
    │    user_service, post_service                             │
    │                                                           │
    │  Exception Handlers:                                      │
    │    InkpostError family → its status_code                  │
    │    HTTPException 404   → "Not found - <path>"             │
    │    RequestValidation   → 422                              │
    │    anything else       → 500                              │
    └───────────────────────────────────────────────────────────┘

Every error body has the shape {"message", "error", "request_id"}.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import __version__
from app.config import Settings, settings
from app.database import dispose_engine, engine, init_models
from app.exceptions import AuthenticationError, InkpostError
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware, request_id_var
from app.routes import health, posts, uploads, users
from app.security import PasswordHasher, TokenService
from app.services.media_store import MediaStore
from app.services.post_service import PostService
from app.services.user_service import UserService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger once for the whole process.

    Format: 2024-01-15T12:00:00 [INFO] app.services.post_service: Post created: ...
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Access lines come from inkpost.access instead
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Configure logging
        2. Validate critical settings (logged, not fatal)
        3. Create tables when DB_CREATE_ALL is set
    Shutdown:
        1. Dispose the database engine
    """
    app_settings: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(app_settings.log_level)
    logger.info("=" * 60)
    logger.info("Inkpost Backend %s starting up...", __version__)

    try:
        app_settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    if app_settings.db_create_all:
        await init_models(engine)
        logger.info("Database tables ensured (DB_CREATE_ALL=true)")

    logger.info("Storage directory: %s", app.state.media_store.storage_root)
    logger.info(
        "Server ready at http://%s:%d", app_settings.backend_host, app_settings.backend_port
    )
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Inkpost Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    # The catch-all handler runs outside the middleware stack, after the
    # ContextVar has been reset; request.state still holds the id.
    return request_id_var.get("") or getattr(request.state, "request_id", "")


def _error_body(message: str, error: str, rid: str) -> dict:
    return {"message": message, "error": error, "request_id": rid}


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to JSON error responses.

        InkpostError and subclasses → exc.status_code (401 adds WWW-Authenticate)
        StarletteHTTPException     → its status; 404 says "Not found - <path>"
        RequestValidationError     → 422 (malformed JSON body)
        Exception                  → 500 with a generic message

    Server-side details (exc.context, stack traces) are logged, never returned.
    """

    @app.exception_handler(InkpostError)
    async def handle_inkpost_error(request: Request, exc: InkpostError):
        rid = _request_id(request)
        if exc.status_code >= 500:
            logger.error(
                "[%s] %s: %s | Context: %s",
                rid, type(exc).__name__, exc.message, exc.context,
            )
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)

        headers = {}
        if isinstance(exc, AuthenticationError):
            headers["WWW-Authenticate"] = "Bearer"
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.error_code, rid),
            headers=headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        rid = _request_id(request)
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content=_error_body(f"Not found - {request.url.path}", "not_found", rid),
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail), "http_error", rid),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = _request_id(request)
        errors = exc.errors()
        logger.warning("[%s] Request validation failed: %s", rid, errors)
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        detail = first.get("msg", "Invalid request")
        message = f"{location}: {detail}" if location else detail
        return JSONResponse(
            status_code=422,
            content=_error_body(message, "validation_error", rid),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = _request_id(request)
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "An unexpected error occurred. Please try again later.",
                "internal_server_error",
                rid,
            ),
            headers={REQUEST_ID_HEADER: rid} if rid else None,
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def build_services(app: FastAPI, app_settings: Settings) -> None:
    """Construct the service graph and attach it to app.state."""
    media_store = MediaStore(app_settings.storage_root)
    tokens = TokenService(app_settings)
    hasher = PasswordHasher(rounds=app_settings.bcrypt_rounds)

    app.state.settings = app_settings
    app.state.media_store = media_store
    app.state.token_service = tokens
    app.state.user_service = UserService(app_settings, media_store, hasher, tokens)
    app.state.post_service = PostService(app_settings, media_store)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: Settings to build services from; defaults to the
                      environment-loaded module instance.
    """
    app_settings = app_settings or settings

    app = FastAPI(
        title="Inkpost API",
        description=(
            "Blog content API: accounts with bearer tokens, posts with image "
            "thumbnails, avatars, and author/category listings."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Services are ready before the first request; ASGI test transports
    # do not run the lifespan.
    build_services(app, app_settings)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(users.router)
    app.include_router(posts.router)
    app.include_router(uploads.router)
    app.include_router(health.router)

    return app


app = create_app()
