"""
Entry point of the Poultry Operations Service.
"""
import os
import logging
from datetime import datetime
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from poultry_ops.api.routes import register_routes
from poultry_ops.infrastructure import get_service_factory
from poultry_ops.infrastructure.logging import setup_logging
from poultry_ops.infrastructure.database import close_database_connections

load_dotenv()

setup_logging()
logger = logging.getLogger(__name__)

VERSION = os.getenv("API_VERSION", "0.1.0")
ENV = os.getenv("ENVIRONMENT", "development")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the stores on startup and release every component on shutdown."""
    logger.info("Application starting up")

    factory = get_service_factory()
    if not await run_in_threadpool(factory.connect):
        logger.warning("Started without the realtime database; use POST /api/system/reconnect to retry")

    yield

    logger.info("Application shutting down")
    await run_in_threadpool(factory.shutdown)
    close_database_connections()


app = FastAPI(
    title="Poultry Operations Service",
    description="""
    Backend of the poultry coop dashboard.

    ## Features

    * Live temperature, humidity, food and water levels and alarm flags
    * Feed and water dispensing with automatic trigger reset
    * Manual fan, heat lamp and pump control, hourly schedules
    * Feeding and water analytics by day, week and month
    * Temperature and humidity history, hydration report, event log

    ## Storage

    * Firebase Realtime Database (shared with the coop firmware)
    * Redis (analytics cache and dashboard preferences)
    """,
    version=VERSION,
    lifespan=lifespan,
)

register_routes(app)


@app.get("/version", tags=["system"])
async def get_version():
    """API version information."""
    return {
        "version": VERSION,
        "environment": ENV,
        "build_date": os.getenv("BUILD_DATE", "unknown"),
        "commit_hash": os.getenv("COMMIT_HASH", "unknown")
    }


@app.get("/", tags=["system"])
async def root():
    return {
        "service": "Poultry Operations Service",
        "status": "running",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health"
    }


@app.get("/health", tags=["system"])
async def health_check():
    """Store connection state; 503 while the realtime database is unavailable."""
    factory = get_service_factory()
    connections = factory.connection_status()

    health_status = {
        "status": "healthy" if connections["firebase"] == "ok" else "unhealthy",
        "timestamp": datetime.now().isoformat(),
        "version": VERSION,
        "connections": connections
    }

    if connections["firebase"] != "ok":
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=health_status
        )

    return health_status


if __name__ == "__main__":
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", 8000))

    logger.info(f"Starting server at http://{host}:{port}")
    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=ENV == "development"
    )
