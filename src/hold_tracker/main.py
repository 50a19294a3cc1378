"""
Hold Tracker API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Logging
- Field encryption (fails fast without a key)
- Mail transport
- Database and Redis connections
- Background job scheduler
- CORS middleware
- API routing
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from hold_tracker import __version__
from hold_tracker.api import api_router
from hold_tracker.core.config import settings
from hold_tracker.core.crypto import build_field_cipher
from hold_tracker.core.database import async_session_maker, close_db, init_db
from hold_tracker.core.email import build_mail_transport
from hold_tracker.core.logging import configure_logging
from hold_tracker.core.redis import close_redis, get_redis, init_redis
from hold_tracker.core.scheduler import (
    clear_registry,
    list_registered_jobs,
    pause_job,
    resume_job,
    start_scheduler,
    stop_scheduler,
    trigger_job_manually,
)
from hold_tracker.modules.reminders import register_reminder_jobs

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup order matters: the field cipher is built first so that a missing
    ENCRYPTION_KEY stops the process before it serves a single request.
    """
    configure_logging(settings.log_level)
    logger.info(f"Starting Hold Tracker API in {settings.python_env} mode...")

    # Raises EncryptionKeyMissingError unless a key (or ephemeral mode) is configured
    cipher = build_field_cipher(settings)
    transport = build_mail_transport(settings)
    app.state.field_cipher = cipher
    app.state.mail_transport = transport

    await init_redis()

    try:
        await init_db()
        logger.info("Database connected")
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        if settings.is_production:
            raise

    try:
        clear_registry()
        register_reminder_jobs(cipher, transport)
        await start_scheduler()
    except Exception as e:
        logger.error(f"Background scheduler failed to start: {e}", exc_info=True)
        if settings.is_production:
            raise

    yield  # Application runs here

    logger.info("Shutting down Hold Tracker API...")

    # Stop the scheduler first (wait for running jobs)
    await stop_scheduler()
    await close_redis()
    await close_db()
    logger.info("Cleanup complete")


app = FastAPI(
    title="Hold Tracker API",
    description="Follow-up tracking for on-hold student records",
    version=__version__,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to Hold Tracker API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    """Readiness check endpoint."""
    return {"status": "ready"}


# ============================================
# Debug Endpoints (development only)
# ============================================
# Manual control of background jobs. In production, jobs run on schedule.

debug_router = APIRouter(prefix="/debug", tags=["Debug"])


@debug_router.get("/db")
async def debug_db():
    """Test database connection."""
    try:
        async with async_session_maker() as session:
            result = await session.execute(text("SELECT 1"))
            return {"database": "connected", "result": result.scalar()}
    except Exception as e:
        return {"database": "error", "message": str(e)}


@debug_router.get("/redis")
async def debug_redis():
    """Test Redis connection."""
    client = get_redis()
    if client is None:
        return {"redis": "not initialized"}
    try:
        await client.ping()
        return {"redis": "connected"}
    except Exception as e:
        return {"redis": "error", "message": str(e)}


@debug_router.get("/jobs")
async def list_jobs():
    """List all registered background jobs and their next run time."""
    return {"jobs": list_registered_jobs()}


@debug_router.post("/jobs/{job_id}/trigger")
async def trigger_job(job_id: str):
    """
    Run a background job now, bypassing the schedule.

    Available jobs:
        - reminders_send_batch

    Raises:
        HTTPException 400: If job_id is not found.
    """
    try:
        return await trigger_job_manually(job_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@debug_router.post("/jobs/{job_id}/pause")
async def pause_job_endpoint(job_id: str):
    """Stop a job running on schedule; it stays registered."""
    return {"job_id": job_id, "paused": pause_job(job_id)}


@debug_router.post("/jobs/{job_id}/resume")
async def resume_job_endpoint(job_id: str):
    return {"job_id": job_id, "resumed": resume_job(job_id)}


if settings.is_development:
    app.include_router(debug_router)
