"""FastAPI application entry point for the escalation service."""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from src.api.middleware.error_handler import global_exception_handler
from src.api.middleware.logging import StructuredLoggingMiddleware
from src.api.routes.escalation import router as escalation_router
from src.api.routes.health import router as health_router
from src.config import settings
from src.shared.logging import setup_logging

logger = structlog.get_logger()

# Track app start time for uptime calculation
APP_START_TIME: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown logic."""
    global APP_START_TIME
    APP_START_TIME = time.time()
    setup_logging(settings.log_level)

    logger.info(
        "escalation_service_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
    )

    yield

    from src.db.database import engine

    await engine.dispose()
    logger.info("escalation_service_shutting_down")


app = FastAPI(
    title="Remit Escalation",
    description="Transaction escalation workflow for the remittance admin back office",
    version=settings.app_version,
    lifespan=lifespan,
)

# Structured logging middleware
app.add_middleware(StructuredLoggingMiddleware)

# Exception handlers; Exception is the catch-all for anything not listed before it
for exc_class in (ValueError, PermissionError, LookupError, SQLAlchemyError, Exception):
    app.add_exception_handler(exc_class, global_exception_handler)

# Register routers
app.include_router(health_router)
app.include_router(escalation_router)


def get_uptime() -> int:
    """Get application uptime in seconds."""
    if APP_START_TIME == 0.0:
        return 0
    return int(time.time() - APP_START_TIME)
