"""
Taskforge Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app(settings) returns a configured FastAPI
       instance whose process-wide components live on `app.state`.
Who:   uvicorn (`uvicorn taskforge.main:app`) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────┐
    │                    FastAPI App                       │
    │                                                      │
    │  app.state: settings · engine · session_factory      │
    │             token_service · password_hasher          │
    │                                                      │
    │  Middleware:  Request ID → Logging → GZip → CORS     │
    │                                                      │
    │  Routes:  /api/auth · /api/users · /api/tasks        │
    │           /health                                    │
    │                                                      │
    │  Errors:  TaskforgeError → kind's status             │
    │           RequestValidationError → 400               │
    │           anything else → 500 Internal               │
    └──────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration checks, SQLite table creation
    Shutdown: dispose the engine (close pooled connections)
"""

import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskforge import __version__
from taskforge.config import Settings, settings as default_settings
from taskforge.database import build_engine, build_session_factory, create_all, dispose_engine
from taskforge.exceptions import ErrorKind, TaskforgeError
from taskforge.middleware.logging import RequestLoggingMiddleware
from taskforge.middleware.request_id import RequestIDMiddleware, request_id_var
from taskforge.routes import auth, health, tasks, users
from taskforge.security.passwords import PasswordHasher
from taskforge.security.tokens import TokenService

logger = logging.getLogger(__name__)

# Error names for framework-raised HTTP errors (unknown route, wrong method)
_HTTP_ERROR_NAMES = {
    400: ErrorKind.VALIDATION.value,
    401: ErrorKind.UNAUTHENTICATED.value,
    404: ErrorKind.NOT_FOUND.value,
    405: "MethodNotAllowed",
    409: ErrorKind.CONFLICT.value,
}


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(log_level: str) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s, to stdout.
    Called once during app startup.
    """
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # Third-party libraries log every operation at DEBUG/INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Validate security-critical configuration (logged, not fatal)
        3. Create tables when running on SQLite (no migrations needed locally)
    Shutdown:
        1. Dispose database engine
    """
    settings: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings.log_level)
    logger.info("=" * 60)
    logger.info("Taskforge Backend starting up...")

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Not fatal: a development server should still come up
        logger.error("Configuration error: %s", str(e))

    if settings.is_sqlite:
        await create_all(app.state.engine)
        logger.info("SQLite schema ensured at %s", settings.database_url)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Taskforge Backend shutting down...")
    await dispose_engine(app.state.engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(
    error: str,
    message: str,
    status_code: int,
    details: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": error, "message": message, "statusCode": status_code}
    if details is not None:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map every failure to `{error, message, statusCode}`.

    Handler table:
        TaskforgeError          → kind.status_code (400/401/404/409/500)
        RequestValidationError  → 400 ValidationError, with field details
        StarletteHTTPException  → its own status (404 route, 405 method)
        Exception (fallback)    → 500 Internal, generic message

    Internal errors never expose stack traces, SQL, or context in the body;
    those are logged server-side with the request id.
    """

    @app.exception_handler(TaskforgeError)
    async def handle_taskforge_error(request: Request, exc: TaskforgeError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, exc.kind.value, exc.message, exc.context)
        else:
            logger.warning("[%s] %s: %s", rid, exc.kind.value, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        details = [
            {
                "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
                "message": error.get("msg", ""),
                "type": error.get("type", ""),
            }
            for error in exc.errors()
        ]
        logger.warning("[%s] Request validation failed: %s", rid, details)
        return JSONResponse(
            status_code=400,
            content=_error_body(ErrorKind.VALIDATION.value, "Request validation failed", 400, details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        error = _HTTP_ERROR_NAMES.get(exc.status_code, "HTTPError")
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(error, str(exc.detail), exc.status_code),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                ErrorKind.INTERNAL.value,
                "An unexpected error occurred. Please try again later.",
                500,
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Builds the process-wide components once from `settings` and stores them
    on `app.state`; request handlers reach them through
    taskforge.dependencies. Tests pass their own Settings.
    """
    settings = settings or default_settings

    app = FastAPI(
        title="Taskforge API",
        description=(
            "Starter backend for CRUD applications: registration, login, and "
            "authenticated, owner-scoped resources (tasks) with pagination."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Process-wide components ───────────────────────────────────────────
    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.token_service = TokenService(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        ttl_seconds=settings.token_ttl_seconds,
    )
    app.state.password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    app.state.started_at = time.time()

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(tasks.router)
    app.include_router(health.router)

    return app


app = create_app()
