"""
FastAPI application initialization
"""

import logging

from fastapi import FastAPI

from api.middleware import RequestContextMiddleware
from api.routes import health, imports
from core.config import settings
from core.logging import setup_logging
from ingestion.scheduler import ImportScheduler

setup_logging()

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Congress Bulk Import API",
    description="Read-only status of the Congress.gov bulk import",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestContextMiddleware)

scheduler = ImportScheduler()


# Include routers
app.include_router(health.router)
app.include_router(imports.router)


@app.on_event("startup")
async def startup_event():
    """Application startup event"""
    logger.info("Starting Congress Bulk Import API")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Database: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'configured'}")

    if settings.IMPORT_SCHEDULE_ENABLED:
        scheduler.start()


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event"""
    logger.info("Shutting down Congress Bulk Import API")
    if settings.IMPORT_SCHEDULE_ENABLED:
        scheduler.stop()


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Congress Bulk Import API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "status": "/import/status",
            "phases": "/import/phases"
        }
    }
