"""
Jokes API Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the Database handle (or takes one from the caller),
       registers middleware, exception handlers and routers, and returns the app.
Who:   uvicorn (`uvicorn jokes_api.main:app`, or `python -m jokes_api`) and the
       test suite, which builds its own app on a temporary SQLite database.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware: RequestID → AccessLog → RateLimit → GZip →  │
    │              CORS                                        │
    │                                                          │
    │  Routes:  /api/auth/*   /api/jokes/*   /api/users/*      │
    │           /api/favorites/* (legacy)    /health           │
    │                                                          │
    │  Exception Handlers:                                     │
    │    JokesApiError          → its status_code / error_code │
    │    RequestValidationError → 400 validation_error         │
    │    Exception              → 500 internal_server_error    │
    └──────────────────────────────────────────────────────────┘

Error Body (every failure):
    {"error": <code>, "message": <text>, "details": {...}, "request_id": <id>}
    `details` only for 4xx; 5xx context is logged, never returned.
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

from jokes_api import __version__
from jokes_api.config import Settings, settings
from jokes_api.database import Database
from jokes_api.exceptions import JokesApiError, RateLimitExceededError, ValidationError
from jokes_api.middleware.logging import RequestLoggingMiddleware
from jokes_api.middleware.rate_limit import RateLimitMiddleware
from jokes_api.middleware.request_id import RequestIDMiddleware, request_id_var
from jokes_api.routes import auth, favorites, health, jokes
from jokes_api.services.security import CredentialService
from jokes_api.services.user_service import UserService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger once, at startup.

    Format: 2024-01-15T12:00:00 [INFO] jokes_api.services.joke_service: message
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries log every operation at DEBUG/INFO
    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx", "passlib"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    config: Settings = app.state.settings

    setup_logging(config.log_level)
    logger.info("=" * 60)
    logger.info("Jokes API %s starting up...", __version__)

    try:
        config.validate_required_for_production()
    except ValueError as e:
        # Keep serving: health checks and reads still work with a dev secret
        logger.error("Configuration error: %s", str(e))

    logger.info("Server ready at http://%s:%d", config.host, config.port)
    logger.info("API docs: http://%s:%d/docs", config.host, config.port)
    logger.info("=" * 60)

    yield

    logger.info("Jokes API shutting down...")
    await app.state.db.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    One handler per family instead of one per class: every JokesApiError
    already knows its status code and error code.
    """

    @app.exception_handler(JokesApiError)
    async def handle_application_error(request: Request, exc: JokesApiError):
        rid = request_id_var.get("")
        if exc.is_client_error:
            logger.info("[%s] %s: %s", rid, exc.error_code, exc.message)
        else:
            # Server-side detail stays in the log
            logger.error("[%s] %s: %s | Context: %s", rid, exc.error_code, exc.message, exc.context)

        headers = {}
        if isinstance(exc, RateLimitExceededError):
            headers["Retry-After"] = str(exc.retry_after)

        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response_body(rid),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        """Malformed JSON or a wrongly typed field: same shape as our own validation errors."""
        rid = request_id_var.get("")
        errors = [
            {
                "loc": [str(part) for part in error.get("loc", ())],
                "msg": error.get("msg", ""),
                "type": error.get("type", ""),
            }
            for error in exc.errors()
        ]
        logger.info("[%s] Request validation failed: %s", rid, errors)
        error = ValidationError(
            message="Invalid request",
            context={"reason": "Malformed request", "errors": errors},
        )
        return JSONResponse(status_code=error.status_code, content=error.to_response_body(rid))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Stack trace to the log, generic message to the client."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": rid or None,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    config: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Assemble the application.

    Args:
        config:   Settings to use (default: the process-wide settings)
        database: Store handle to use (default: built from config). The tests
                  pass a handle on a temporary SQLite file here.
    """
    config = config or settings

    app = FastAPI(
        title="Jokes API",
        description="Share jokes, keep favorites, comment. Bearer-token authentication.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = config
    app.state.db = database or Database.from_settings(config)
    app.state.credentials = CredentialService.from_settings(config)
    app.state.user_service = UserService(app.state.credentials)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → RateLimit → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)

    if config.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            max_requests=config.rate_limit_requests,
            window=config.rate_limit_window,
            path_prefix=config.rate_limit_path_prefix,
        )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(jokes.router)
    app.include_router(favorites.router, prefix="/api")
    app.include_router(favorites.router, prefix="/api/favorites", include_in_schema=False)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `jokes_api.main:app` to be importable
app = create_app()
