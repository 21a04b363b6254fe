"""
FastAPI application factory for Filter Cam.

Routes:
- /upload -> multipart image upload to object storage
- /api/* -> session control, capture and preview
- everything else -> static shell (public/, index.html fallback)
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from cloud.uploader import Uploader
from pipeline.capture import CaptureConfig, CaptureService
from runtime.context import Session
from .routes import api, pages


def create_app(
    session: Session,
    uploader: Optional[Uploader] = None,
    capture_config: Optional[CaptureConfig] = None,
    static_dir: str = "public",
) -> FastAPI:
    """Create the FastAPI app and wire routes to the given session and uploader."""
    app = FastAPI(
        title="Filter Cam",
        version="0.1.0",
        description="Camera preview with pixel filters and capture-to-storage upload",
    )

    app.state.session = session
    app.state.uploader = uploader
    app.state.capture_service = (
        CaptureService(session, uploader, capture_config) if uploader is not None else None
    )
    app.state.static_dir = static_dir

    app.include_router(api.upload_router)
    app.include_router(api.router, prefix="/api")

    # Catch-all last so it never shadows API routes
    app.include_router(pages.router)

    return app
