"""Main FastAPI application."""

import logging
import re
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import __version__
from .database import engine, get_db, init_db, DATABASE_URL
from .api import quotes_router, versions_router
from .core.config import settings, ConfigurationError, Environment
from .core.logging_config import setup_logging
from .middleware.exception_handler import quoteledger_exception_handler
from .middleware.request_context import RequestContextMiddleware
from .exceptions import QuoteLedgerException

# Setup logging first
setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = logging.getLogger(__name__)


def _mask_url(url: str) -> str:
    """Mask password in database URL for safe logging."""
    return re.sub(r'://([^:]+):([^@]+)@', r'://\1:***@', url)


def _prepare_database() -> None:
    """Verify connectivity and create missing tables. Exits on failure."""
    masked = _mask_url(DATABASE_URL)
    logger.info(f"Connecting to database: {masked}")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        init_db()
    except SQLAlchemyError as e:
        logger.critical(
            "Database unavailable.\n"
            f"  DATABASE_URL: {masked}\n"
            "  Check that the server is running (PostgreSQL) or the directory is writable (SQLite).\n"
            f"  Error: {e}"
        )
        raise SystemExit(1) from e

    logger.info("Database ready")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle for the QuoteLedger API."""
    logger.info(f"Environment: {settings.environment.value}")
    try:
        settings.validate_production_config()
    except ConfigurationError as e:
        logger.critical(f"STARTUP BLOCKED: {e}")
        raise SystemExit(1) from e

    if settings.environment == Environment.DEVELOPMENT:
        if not settings.auth_enabled:
            logger.warning(
                "SECURITY: Authentication is disabled (AUTH_ENABLED=false). "
                "Owner identity is read from the X-Owner-Id header."
            )
        elif settings.uses_default_jwt_secret():
            logger.critical(
                "SECURITY: AUTH_ENABLED=true but JWT_SECRET_KEY is the default. "
                "Anyone can forge owner tokens."
            )

    _prepare_database()

    yield  # App runs here


app = FastAPI(
    title="QuoteLedger API",
    description=(
        "Cost-estimate (quote) storage with full version history: every save "
        "snapshots the previous state, versions can be compared field by field "
        "and item by item, and any version can be restored.\n\n"
        "**Authentication:** when `AUTH_ENABLED=true`, every endpoint requires a "
        "`Bearer` token issued by the auth service; its subject is the quote owner."
    ),
    version=__version__,
    lifespan=lifespan,
)

# Middleware stack (outermost first: CORS wraps request context).
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization", "X-Owner-Id", "X-Request-ID"],
    expose_headers=["X-Request-ID", "Retry-After"],
)
app.add_middleware(RequestContextMiddleware)

app.add_exception_handler(QuoteLedgerException, quoteledger_exception_handler)

app.include_router(quotes_router)
app.include_router(versions_router)


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "name": "QuoteLedger API",
        "version": __version__,
        "status": "running"
    }


_startup_time = time.monotonic()


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Health check with database status, uptime and quote count.

    Never raises. Returns degraded status on DB failure so load balancers
    can still poll it without receiving 5xx.
    """
    db_status = "ok"
    quote_count = 0
    try:
        quote_count = db.execute(text("SELECT COUNT(*) FROM quotes")).scalar() or 0
    except SQLAlchemyError:
        logger.warning("Health check database query failed", exc_info=True)
        db_status = "error"

    return {
        "status": "healthy" if db_status == "ok" else "degraded",
        "db": db_status,
        "uptime_seconds": round(time.monotonic() - _startup_time),
        "version": __version__,
        "quote_count": quote_count,
    }
