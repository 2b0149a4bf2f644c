"""Folio Magazine API - FastAPI application entry point."""

import logging
import os
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from adapters.identity import identity_provider
from api.middleware.rate_limit import limiter
from api.routes import api_router
from core.errors import AccessError
from infrastructure.config import get_settings
from infrastructure.database import close_db, init_db
from infrastructure.logging_config import request_id_var, setup_logging

settings = get_settings()
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
MAX_BODY_BYTES = 5 * 1024 * 1024
UNLOGGED_PREFIXES = (f"{API_PREFIX}/health",)


def _init_sentry() -> None:
    if not settings.sentry_dsn:
        return
    if not settings.sentry_dsn.startswith("https://"):
        logger.warning("SENTRY_DSN is not an https URL; error tracking disabled")
        return

    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.logging import LoggingIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        integrations=[
            FastApiIntegration(transaction_style="url"),
            SqlalchemyIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        traces_sample_rate=0.1 if settings.is_production else 1.0,
        send_default_pii=False,
    )
    logger.info("Sentry enabled for %s", settings.environment)


# Before the app exists, so import-time failures are reported too
_init_sentry()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(
        json_output=settings.is_production and not settings.debug,
        level="DEBUG" if settings.debug else "INFO",
    )
    logger.info("Starting %s %s (%s)", settings.app_name, settings.app_version, settings.environment)
    logger.info("Allowed origins: %r", settings.cors_origins_list)

    settings.validate_production_secrets()
    if not identity_provider.is_configured:
        logger.warning(
            "CLERK_SECRET_KEY is not set: admin listings fall back to stored names "
            "and password operations will fail"
        )

    if settings.is_development:
        # Migrations own the schema everywhere else
        await init_db()

    yield

    logger.info("Shutting down")
    await identity_provider.close()
    await close_db()


app = FastAPI(
    title=settings.app_name,
    description="Magazine content, paywall and member management API",
    version=settings.app_version,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# ============================================================================
# Error rendering: every error body is {"detail": "<message>"}
# ============================================================================


@app.exception_handler(AccessError)
async def handle_access_error(request: Request, exc: AccessError):
    if exc.status_code >= 500:
        logger.warning("%s %s failed upstream: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return JSONResponse(status_code=400, content={"detail": "Invalid request"})

    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    reason = first.get("msg", "invalid value")
    return JSONResponse(
        status_code=400,
        content={"detail": f"{field}: {reason}" if field else str(reason)},
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    if settings.is_production:
        # Messages may embed connection strings
        logger.error("Unhandled %s on %s: %s", type(exc).__name__, request.url.path, str(exc)[:200])
    else:
        logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# ============================================================================
# Middleware (the last registered runs first)
# ============================================================================


@app.middleware("http")
async def reject_oversized_bodies(request: Request, call_next):
    declared = request.headers.get("content-length", "")
    if request.method in ("POST", "PUT", "PATCH") and declared.isdigit() and int(declared) > MAX_BODY_BYTES:
        return JSONResponse(status_code=413, content={"detail": "Request body too large (max 5MB)"})
    return await call_next(request)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
    response.headers["X-Response-Time"] = f"{elapsed_ms}ms"

    path = request.url.path
    if not path.startswith(UNLOGGED_PREFIXES):
        logger.info(
            "%s %s %s %.1fms",
            request.method,
            path,
            response.status_code,
            elapsed_ms,
            extra={
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
            },
        )
    return response


def _request_id_from(request: Request) -> str:
    """Reuse the caller's X-Request-ID only when it is a UUID."""
    incoming = request.headers.get("X-Request-ID")
    if incoming:
        try:
            return str(uuid.UUID(incoming))
        except ValueError:
            pass
    return str(uuid.uuid4())


@app.middleware("http")
async def bind_request_id(request: Request, call_next):
    request_id = _request_id_from(request)
    request.state.request_id = request_id
    token = request_id_var.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)
    response.headers["X-Request-ID"] = request_id
    return response


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    if settings.is_production:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    # Avatar URLs carry a ?v= version, so stored objects never change in place
    if request.url.path.startswith("/uploads/"):
        response.headers["Cache-Control"] = "public, max-age=31536000, immutable"
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Requested-With", "X-Request-ID"],
)

if settings.storage_type == "local":
    uploads_dir = os.path.abspath(settings.storage_local_path)
    os.makedirs(uploads_dir, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=uploads_dir), name="uploads")

app.include_router(api_router, prefix=API_PREFIX)


@app.get("/")
async def root():
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs" if settings.is_development else "disabled",
        "health": f"{API_PREFIX}/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        workers=1 if settings.is_development else settings.workers,
    )
