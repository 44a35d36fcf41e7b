"""
SnipKeep Backend — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() builds the record store, session store
       and services, attaches them to `app.state`, and wires middleware,
       exception handlers and routers.
Who:   uvicorn imports `snipkeep.main:app`; tests call create_app() with
       their own Settings.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌────────────┐ ┌─────────┐ ┌──────┐   │
    │  │  Req ID  │→│ Rate Limit │→│ Logging │→│ CORS │   │
    │  └──────────┘ └────────────┘ └─────────┘ └──────┘   │
    │                                                     │
    │  Routes:                                            │
    │  /register /login /logout /me                       │
    │  /snippets /snippets/search /snippets/{id}          │
    │  /health                                            │
    │                                                     │
    │  app.state:                                         │
    │  settings, record_store, session_store,             │
    │  auth_service, snippet_service                      │
    └─────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from snipkeep import __version__
from snipkeep.config import Settings
from snipkeep.config import settings as default_settings
from snipkeep.exceptions import SnipKeepError
from snipkeep.middleware.logging import RequestLoggingMiddleware
from snipkeep.middleware.rate_limit import RateLimitMiddleware
from snipkeep.middleware.request_id import RequestIDMiddleware, request_id_var
from snipkeep.routes import auth, health, snippets
from snipkeep.services.auth_service import AuthService
from snipkeep.services.record_store import RecordStore
from snipkeep.services.session_store import InMemorySessionStore, SessionStore
from snipkeep.services.snippet_service import SnippetService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout, so container runtimes capture it.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # uvicorn's own access log duplicates RequestLoggingMiddleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: configure logging and make sure the data directory exists.
    Shutdown: drop expired sessions and log.

    Live sessions are not persisted; a restart logs everybody out.
    """
    settings: Settings = app.state.settings
    setup_logging(settings.log_level)
    logger.info("=" * 60)
    logger.info("SnipKeep Backend %s starting up...", __version__)

    store: RecordStore = app.state.record_store
    store.data_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Data directory: %s", store.data_dir)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("SnipKeep Backend shutting down...")
    purged = await app.state.session_store.expire()
    logger.info("Shutdown complete (%d expired sessions purged).", purged)


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return request_id_var.get("") or getattr(request.state, "request_id", "")


def _error_body(message: str, rid: str) -> dict:
    return {"error": message, "request_id": rid}


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to HTTP responses with a `{"error": message}` body.

    Handler hierarchy:
        SnipKeepError subclasses → their `status_code` (400/401/403/404/429/500)
        RequestValidationError   → 400 Bad Request (malformed body or query)
        Exception (fallback)     → 500 Internal Server Error

    5xx responses never carry internal detail; it goes to the log only.
    """

    @app.exception_handler(SnipKeepError)
    async def handle_app_error(request: Request, exc: SnipKeepError):
        rid = _request_id(request)
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s",
                         rid, type(exc).__name__, exc.message, exc.context)
        else:
            logger.info("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        headers = {}
        retry_after = getattr(exc, "retry_after", None)
        if retry_after:
            headers["Retry-After"] = str(retry_after)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, rid),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = _request_id(request)
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            message = f"Invalid request: {location}: {first.get('msg', 'invalid value')}"
        else:
            message = "Invalid request"
        logger.info("[%s] Request validation failed: %s", rid, message)
        return JSONResponse(status_code=400, content=_error_body(message, rid))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = _request_id(request)
        logger.error("[%s] Unexpected error: %s", rid, exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body("An unexpected error occurred. Please try again later.", rid),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    session_store: Optional[SessionStore] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration to use; defaults to the env-loaded singleton.
        session_store: Session backend; defaults to a fresh in-memory store.

    Returns:
        Fully configured FastAPI instance.
    """
    settings = settings or default_settings

    app = FastAPI(
        title="SnipKeep API",
        description="Personal code snippet manager: store, tag, search and edit your snippets.",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Services ──────────────────────────────────────────────────────────
    record_store = RecordStore(settings.data_dir)
    sessions = session_store or InMemorySessionStore()

    app.state.settings = settings
    app.state.record_store = record_store
    app.state.session_store = sessions
    app.state.auth_service = AuthService(
        record_store,
        sessions,
        session_ttl=settings.session_ttl_seconds,
        schemes=settings.password_schemes_list,
    )
    app.state.snippet_service = SnippetService(record_store)

    # ── Middleware ────────────────────────────────────────────────────────
    # Last added runs first: RequestID → RateLimit → Logging → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.rate_limit_requests,
        window=settings.rate_limit_window,
    )
    app.add_middleware(RequestIDMiddleware)

    # ── Exception Handlers ────────────────────────────────────────────────
    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(snippets.router)
    app.include_router(health.router)

    return app


app = create_app()
