"""FastAPI application entry point."""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

from common.cli_helpers import setup_logging
from sentinel.log_buffer import install_log_buffer
from sentinel.scheduler import SentinelScheduler
from sentinel_api.dependencies import get_service
from sentinel_api.routers import data_quality, health, sentinel

load_dotenv()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the scheduler when the configured service has it enabled."""
    install_log_buffer()
    service = get_service()
    scheduler = None
    if service.config.enabled:
        scheduler = SentinelScheduler(service)
        scheduler.start()
    app.state.scheduler = scheduler
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.stop(timeout=5)
        service.close()


app = FastAPI(
    title="Sentinel API",
    description="Admin API for sentinel news ingestion: run control, status and data quality",
    version="0.1.0",
    lifespan=lifespan,
)

# Register routers
app.include_router(health.router)
app.include_router(sentinel.router)
app.include_router(data_quality.router)


@app.get("/")
def root():
    """API root - returns basic info."""
    return {
        "name": "Sentinel API",
        "version": "0.1.0",
        "docs": "/docs",
    }


def main():
    """Run the API server."""
    import uvicorn

    setup_logging()
    uvicorn.run(
        "sentinel_api.main:app",
        host=os.getenv("SENTINEL_API_HOST", "127.0.0.1"),
        port=int(os.getenv("SENTINEL_API_PORT", "8000")),
    )


if __name__ == "__main__":
    main()
