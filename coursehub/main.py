"""
Main Entry Module

This module serves as the application entry point, configuring FastAPI
and running the development server.

Features:
- Server configuration
- CORS setup
- Router mounting
- Service wiring
- Staged file cleanup
- Development server

Data Model:
- API routes
- CORS settings
- Application state (batch store, services, cache)

Dependencies:
- FastAPI for API
- CORS middleware
- uvicorn for server
- Router modules
- Logging

Author: CourseHub Development Team
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from coursehub.features.chapter_upload import router as chapter_upload_router
from coursehub.features.chapter_upload.batch_store import BatchStore
from coursehub.features.chapter_upload.upload_service import ChapterUploadService
from coursehub.features.chapter_upload.viewer_service import ResourceViewerService
from coursehub.shared.config import CORS_ORIGINS, LOG_LEVEL
from coursehub.shared.resource_cache import ResourceCache

logging.basicConfig(level=getattr(logging, LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)

BATCH_SWEEP_INTERVAL_SECONDS = 300

async def sweep_idle_batches(store: BatchStore, interval: float = BATCH_SWEEP_INTERVAL_SECONDS) -> None:
    while True:
        await asyncio.sleep(interval)
        store.expire_idle()

def create_app(
    upload_service: Optional[ChapterUploadService] = None,
    viewer_service: Optional[ResourceViewerService] = None,
    batch_store: Optional[BatchStore] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        upload_service: Upload orchestrator, built from config if omitted
        viewer_service: Viewer content service, built from config if omitted
        batch_store: Open batch registry, empty if omitted

    Returns:
        FastAPI: Configured application

    Notes:
        - Upload and viewer services share one resource cache so deletions
          invalidate cached viewer content
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Sweep idle batches while running; drop all staged files on shutdown"""
        sweeper = asyncio.ensure_future(sweep_idle_batches(app.state.batch_store))
        yield
        sweeper.cancel()
        logger.info("Shutting down, removing staged upload files...")
        app.state.batch_store.close()

    app = FastAPI(title="CourseHub Chapter Upload", lifespan=lifespan)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    cache = ResourceCache()
    app.state.upload_service = upload_service or ChapterUploadService(cache=cache)
    app.state.viewer_service = viewer_service or ResourceViewerService(cache=app.state.upload_service.cache)
    app.state.batch_store = batch_store or BatchStore()

    # Add routers
    app.include_router(chapter_upload_router)

    logger.info("CourseHub chapter upload service configured")
    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "coursehub.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="debug"
    )
