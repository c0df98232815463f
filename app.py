"""Main FastAPI application for the mzforge plugin service."""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Configure logging BEFORE importing any modules that use logger
log_level = os.getenv('LOG_LEVEL', 'INFO')
logging.basicConfig(
    level=getattr(logging, log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Import after logging is configured
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mzforge import __version__
from mzforge.constants import DEFAULT_PROJECT_PATH, LOAD_ORDER
from mzforge.routers import plugins_router, project_router

app = FastAPI(
    title="mzforge",
    description="RPG Maker MZ plugin generation, validation and project analysis",
    version=__version__
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(plugins_router)  # /api/plugins/*
app.include_router(project_router)  # /api/project/*


@app.get("/")
async def root():
    return {"message": "mzforge API", "docs": "/docs"}


@app.on_event("startup")
async def startup_event():
    """Application startup event."""
    logger.info("Starting mzforge service")
    logger.info(f"Working directory: {Path.cwd()}")
    logger.info(f"Default project: {DEFAULT_PROJECT_PATH or 'not set'} (load order: {LOAD_ORDER})")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down mzforge service")


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", "9090"))
    uvicorn.run("app:app", host="0.0.0.0", port=port, reload=True)
