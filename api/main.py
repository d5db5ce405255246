"""
api/main.py -- FastAPI application factory for WorkMate.

Run with:      uvicorn asgi:app --reload
               python main.py serve

create_app(settings) builds a fresh application around an explicit, frozen
Settings object. Nothing in the app reads the environment: the settings are
stored on app.state and every component that needs configuration gets it
from there or through its constructor.

Middleware stack:
  1. log_requests -- one access-log line per request with latency

Lifespan handles startup (connect, apply schema, build stores and the auth
service) and shutdown (dispose the connection pool) symmetrically.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.tasks import router as tasks_router
from auth.service import AuthService
from auth.store import UserStore
from core.config import Settings, get_settings, warn_on_placeholder_secret
from core.database import apply_schema, create_db_engine, ping
from tasks.store import TaskStore

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("workmate.api")


# ---------------------------------------------------------------------------
# Lifespan -- startup / shutdown
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Startup order matters:
      1. Engine + ping -- an unreachable database aborts startup here rather
         than on the first request.
      2. Schema -- idempotent create-if-missing on every start.
      3. Stores and AuthService -- share the one engine (and its pool).
    """
    settings: Settings = app.state.settings
    logger.info("WorkMate API starting up")
    warn_on_placeholder_secret(settings)

    engine = create_db_engine(settings.database_url)
    ping(engine)
    apply_schema(engine)
    logger.info("Database ready (%s)", engine.url.get_backend_name())

    app.state.engine = engine
    app.state.user_store = UserStore(engine)
    app.state.task_store = TaskStore(engine)
    app.state.auth_service = AuthService(app.state.user_store, settings)

    yield

    engine.dispose()
    logger.info("WorkMate API shutdown complete")


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, detail: str | None = None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            response_code=status_code,
            error=ErrorDetail(code=code, message=message, detail=detail),
        ).model_dump(exclude_none=True),
        headers=headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 when the body is not JSON or a field fails validation."""
    return _error(400, "validation_error", "Request validation failed.", detail=str(exc.errors()))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    Route handlers raise HTTPException with detail={"code": ..., "message": ...}.
    When detail is already a structured dict, use it directly rather than
    stringifying it -- str(dict) produces a Python repr, not JSON.
    """
    headers = getattr(exc, "headers", None)
    if isinstance(exc.detail, dict):
        return _error(
            exc.status_code,
            exc.detail.get("code", f"http_{exc.status_code}"),
            exc.detail.get("message", ""),
            headers=headers,
        )
    return _error(exc.status_code, f"http_{exc.status_code}", str(exc.detail), headers=headers)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    Security note: the raw exception is written to the log only, never to the
    response body. Store and crypto failures can carry connection strings or
    SQL in their messages.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    # An exception escaping the app is answered with a 500 further out.
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %d %.1fms %s",
            request.method,
            request.url.path,
            status_code,
            ms,
            request.client.host if request.client else "unknown",
        )


# ---------------------------------------------------------------------------
# Health endpoint
#
# No auth, no database call -- load balancers only need to know the process
# is serving.
# ---------------------------------------------------------------------------


async def healthz() -> HealthResponse:
    """Return API liveness."""
    return HealthResponse()


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the WorkMate application around the given settings.

    With no argument, the process-wide settings from the environment are
    used (that is what asgi.py does). Tests pass their own Settings.
    """
    if settings is None:
        settings = get_settings()
    logging.getLogger().setLevel(settings.log_level)

    app = FastAPI(
        title="WorkMate API",
        description="Multi-tenant task tracking: register, log in, manage your own tasks.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.middleware("http")(log_requests)

    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.add_api_route("/healthz", healthz, methods=["GET"], response_model=HealthResponse, tags=["Health"])
    app.include_router(auth_router, prefix="/api", tags=["Auth"])
    app.include_router(tasks_router, prefix="/api", tags=["Tasks"])
    return app
