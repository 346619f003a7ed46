"""
Catalog Dashboard - FastAPI Application

Release catalog for independent labels, backed by a Google Sheet with
cover art and audio in Google Drive, plus distribution report imports.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import get_settings
from app.routers.imports import router as imports_router
from app.routers.releases import router as releases_router

settings = get_settings()
if not logging.getLogger().handlers:
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s")

logger = logging.getLogger(__name__)

if not settings.GOOGLE_SPREADSHEET_ID:
    logger.warning("GOOGLE_SPREADSHEET_ID is not set; release endpoints will fail until it is")
if not settings.GOOGLE_DRIVE_FOLDER_ID:
    logger.warning("GOOGLE_DRIVE_FOLDER_ID is not set; creating or updating releases will fail")


app = FastAPI(
    title="Catalog Dashboard",
    description="Release catalog and distribution imports for independent labels",
    version="0.1.0",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(releases_router)
app.include_router(imports_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
