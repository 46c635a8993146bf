from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from slowapi.errors import RateLimitExceeded

from coursedesk.core.limits import limiter, rate_limit_handler
from coursedesk.core.init_db import init_database
from coursedesk.core.error_handlers import setup_exception_handlers
from coursedesk.core.database import db_manager
from coursedesk.core.middleware import setup_middleware
from coursedesk.core.logging_utils import (
    setup_logging,
    get_logger,
    log_business_event,
    error_tracker,
)
from coursedesk.core.config import (
    validate_config,
    APP_NAME,
    APP_VERSION,
    CORS_ORIGINS,
    DEBUG,
    ENVIRONMENT,
    LOG_LEVEL,
    LOG_FORMAT,
)

from coursedesk.auth.routers import auth_router, admin_router
from coursedesk.fees.routers import (
    courses_router,
    custom_fees_router,
    payments_router,
    fees_router,
)
from coursedesk.admissions.routers import inquiries_router, enrollments_router
from coursedesk.reports.routers import stats_router, exports_router, reminders_router

setup_logging(LOG_LEVEL, LOG_FORMAT)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle"""

    # Startup
    logger.info(f"Starting {APP_NAME} v{APP_VERSION}")

    try:
        validate_config()
        logger.info("Configuration validated")

        await init_database()
        logger.info("Database initialized")

        log_business_event(
            "application_started",
            "system",
            0,
            {"version": APP_VERSION, "environment": ENVIRONMENT},
        )

        logger.info("Application startup completed")

    except Exception as e:
        logger.error(f"Application startup failed: {str(e)}")
        error_tracker.track_error(
            "STARTUP_ERROR",
            str(e),
            {"component": "application_startup", "version": APP_VERSION},
        )
        raise

    yield

    # Shutdown
    logger.info("Shutting down application...")

    try:
        await db_manager.close_connections()

    except Exception as e:
        logger.error(f"Error during shutdown: {str(e)}")

    logger.info("Application shutdown completed")


app = FastAPI(
    title=APP_NAME,
    description="Admissions, enrollments and fee tracking for a computer training institute",
    version=APP_VERSION,
    lifespan=lifespan,
    debug=DEBUG,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

setup_middleware(
    app,
    {
        "slow_request_threshold": 5.0,
        "exclude_paths": [
            "/health",
            "/docs",
            "/openapi.json",
            "/redoc",
            "/favicon.ico",
        ],
    },
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

for router in (
    auth_router,
    admin_router,
    courses_router,
    custom_fees_router,
    payments_router,
    fees_router,
    inquiries_router,
    enrollments_router,
    stats_router,
    exports_router,
    reminders_router,
):
    app.include_router(router, prefix="/api")


@app.get("/health", tags=["System"])
async def health():
    """Liveness check with in-process error counters"""
    return {
        "status": "ok",
        "app": APP_NAME,
        "version": APP_VERSION,
        "environment": ENVIRONMENT,
        "errors": error_tracker.get_stats(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
