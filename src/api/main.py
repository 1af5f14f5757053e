"""FastAPI application for the PrintPalooza API.

Provides the main application instance with routers, middleware,
and exception handlers configured.
"""

import logging
import os
import sys
import time as _time
from contextlib import asynccontextmanager
from importlib.metadata import version as _pkg_version
from typing import Any

from fastapi import Depends, FastAPI, Request

# Configure logging to stdout for uvicorn to capture
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
# Ensure our application loggers are captured
logging.getLogger("src").setLevel(logging.INFO)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.auth import require_admin_key, validate_admin_key
from src.api.routes import admin, orders, webhooks
from src.db.connection import close_db, init_db
from src.errors import (
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
    WebhookSignatureError,
)
from src.services.email_client import ResendClient
from src.services.email_settings import EmailSettings, log_settings_warnings

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"

# Module-level state for health endpoint
_startup_time: float = 0.0


def _parse_allowed_origins() -> list[str]:
    """Parse comma-separated CORS allowlist from ALLOWED_ORIGINS env var."""
    raw = os.environ.get("ALLOWED_ORIGINS", "").strip()
    if not raw:
        return []
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Async lifespan: owns the database schema and the email provider client."""
    global _startup_time

    # --- Startup ---
    _startup_time = _time.time()

    # Fail fast if the admin key is set but too weak
    validate_admin_key()

    init_db()

    settings = EmailSettings.from_env()
    log_settings_warnings(settings)
    app.state.email_settings = settings
    app.state.email_client = ResendClient(settings)
    logger.info(
        "Email provider %s, reply domain %s",
        "configured" if settings.provider_configured else "not configured",
        settings.reply_domain,
    )

    yield

    # --- Shutdown ---
    await app.state.email_client.aclose()
    app.state.email_client = None
    close_db()


app = FastAPI(
    title="PrintPalooza API",
    description="Order conversations between the print shop and its customers",
    version=API_VERSION,
    lifespan=lifespan,
)

# CORS allowlist is env-driven. If unset, CORS is disabled (same-origin only).
allowed_origins = _parse_allowed_origins()
if allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key"],
    )


def _status_for(exc: DomainError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ConflictError):
        return 409
    if isinstance(exc, WebhookSignatureError):
        return 401
    if isinstance(exc, ValidationError):
        return 400
    return 500


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Map domain errors that escape a route to a consistent JSON body.

    Args:
        request: The incoming request.
        exc: The DomainError exception.

    Returns:
        JSONResponse with ``detail`` and ``error_type``.
    """
    status_code = _status_for(exc)
    if status_code == 500:
        logger.error("Unhandled domain error on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )


# Include routers. Webhooks authenticate by signature, not the admin key.
_admin_only = [Depends(require_admin_key)]
app.include_router(orders.router, prefix="/api", dependencies=_admin_only)
app.include_router(admin.router, prefix="/api", dependencies=_admin_only)
app.include_router(webhooks.router, prefix="/api")


@app.get("/health")
def health_check() -> dict:
    """Liveness check with version and uptime.

    Returns:
        Dictionary with health status and metrics.
    """
    uptime = int(_time.time() - _startup_time) if _startup_time else 0

    # Version from package metadata (matches pyproject.toml)
    try:
        version = _pkg_version("printpalooza")
    except Exception:
        version = "unknown"

    return {
        "status": "healthy",
        "version": version,
        "uptime_seconds": uptime,
    }


@app.get("/readyz")
def readiness_check(request: Request):
    """Dependency-aware readiness check for local/container deployments."""
    from sqlalchemy import text

    from src.db.connection import get_db_context

    uptime = int(_time.time() - _startup_time) if _startup_time else 0
    checks: dict[str, dict[str, Any]] = {}

    # DB connectivity gate.
    try:
        with get_db_context() as db:
            db.execute(text("SELECT 1"))
        checks["database"] = {"status": "ok"}
    except Exception as exc:
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "uptime_seconds": uptime,
                "checks": {
                    "database": {"status": "error", "message": str(exc)},
                },
            },
        )

    settings = getattr(request.app.state, "email_settings", None) or EmailSettings.from_env()
    status = "ready"

    if settings.webhook_verification_enabled:
        checks["webhook_signature"] = {"status": "ok"}
    else:
        checks["webhook_signature"] = {
            "status": "degraded",
            "message": "RESEND_WEBHOOK_SECRET not set; deliveries are unverified",
        }
        status = "degraded"

    if settings.provider_configured:
        checks["email_provider"] = {"status": "configured"}
    else:
        checks["email_provider"] = {"status": "degraded", "missing": ["RESEND_API_KEY"]}
        status = "degraded"

    return {
        "status": status,
        "uptime_seconds": uptime,
        "checks": checks,
    }


@app.get("/api")
def api_root() -> dict:
    """API root with links to docs.

    Returns:
        Dictionary with API info and links.
    """
    return {
        "name": "PrintPalooza API",
        "version": API_VERSION,
        "docs": "/docs",
        "redoc": "/redoc",
    }
