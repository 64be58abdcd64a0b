"""
Main FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fastroute import __version__
from fastroute.api.error_handlers import register_error_handlers
from fastroute.api.routes import graphs_db
from fastroute.api.routes import router as graphs_router
from fastroute.core.config import settings
from fastroute.core.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Configure logging on startup and drop stored graphs on shutdown.
    """
    setup_logging(
        log_file=settings.log_file,
        json_logs=(settings.environment == "production"),
        enable_console=True,
    )
    logger.info(f"Starting FastRoute API v{__version__} in {settings.environment} mode")

    yield

    logger.info(f"Shutting down FastRoute API, discarding {len(graphs_db)} graphs")
    graphs_db.clear()


app = FastAPI(
    title="FastRoute API",
    description="Emergency vehicle routing on a weighted city grid",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(graphs_router, prefix=settings.api_v1_prefix)


@app.get("/")
async def root() -> dict[str, str]:
    """
    Root endpoint returning API information.

    Returns:
        dict[str, str]: API information including name and version.
    """
    return {
        "name": "FastRoute API",
        "version": __version__,
        "description": "Emergency vehicle routing on a weighted city grid",
    }


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


def run() -> None:
    """Serve the API with uvicorn."""
    uvicorn.run("fastroute.api.main:app", host="0.0.0.0", port=settings.port)
