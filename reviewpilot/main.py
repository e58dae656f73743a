"""
ReviewPilot - Review Request Campaign Engine

FastAPI application entry point.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reviewpilot.api import health, review_requests
from reviewpilot.core.config import get_settings
from reviewpilot.core.database import init_db
from reviewpilot.core.logging import get_logger, setup_logging
from reviewpilot.middleware.trace import TracingMiddleware

settings = get_settings()

setup_logging(level=settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    await init_db()
    yield
    logger.info(f"Shutting down {settings.app_name}")


app = FastAPI(
    title=settings.app_name,
    description="Review request campaign planning: templates, send queues and funnel health",
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(TracingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Correlation-ID", "X-Tenant-ID"],
)

app.include_router(health.router, tags=["Health"])
app.include_router(
    review_requests.router,
    prefix=f"{settings.api_prefix}/review-requests",
    tags=["Review Requests"],
)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Review request campaign engine",
        "docs": "/docs",
    }
