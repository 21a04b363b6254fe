from __future__ import annotations

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse, Response, StreamingResponse

from cloud.uploader import Uploader
from filters.engine import available_filters
from models.errors import (
    CaptureError,
    SourceInactiveError,
    SourceNotReadyError,
    UploadError,
)
from pipeline.capture import CaptureService, DEFAULT_CONTENT_TYPE
from runtime.context import Session
from ..api_models import (
    CameraStartRequest,
    CaptureResponse,
    FilterRequest,
    FiltersResponse,
    SessionResponse,
    UploadResponse,
)
from ..services.preview_service import PreviewService
from ..state import get_capture_service, get_session, get_uploader

router = APIRouter()
upload_router = APIRouter()


def _error(status_code: int, message: str, details: Optional[str] = None) -> JSONResponse:
    body = {"error": message}
    if details:
        body["details"] = details
    return JSONResponse(body, status_code=status_code)


def _session_payload(session: Session) -> SessionResponse:
    stats = session.get_system_stats_copy()
    last_frame_ts = stats.get("last_frame_ts")
    return SessionResponse(
        **session.describe(),
        fps=stats.get("fps"),
        last_frame_age_s=(time.time() - last_frame_ts) if last_frame_ts else None,
    )


@upload_router.post("/upload", response_model=UploadResponse)
def upload_image(
    image: Optional[UploadFile] = File(None),
    uploader: Optional[Uploader] = Depends(get_uploader),
):
    """
    Store an uploaded image (multipart field "image") and return its URL.

    Objects are always stored as JPEG under a fresh .jpg key.
    """
    if image is None:
        return _error(400, "No file uploaded")
    if uploader is None:
        return _error(500, "Error uploading image", "Upload backend is not configured")

    payload = image.file.read()
    try:
        url = uploader.upload(payload, "image.jpg", DEFAULT_CONTENT_TYPE)
    except UploadError as e:
        return JSONResponse(e.to_dict(), status_code=500)
    return UploadResponse(url=url)


@router.get("/filters", response_model=FiltersResponse)
def list_filters(session: Session = Depends(get_session)):
    return FiltersResponse(filters=available_filters(), selected=session.filter_mode.value)


@router.get("/session", response_model=SessionResponse)
def session_status(session: Session = Depends(get_session)):
    return _session_payload(session)


@router.post("/filter", response_model=SessionResponse)
def select_filter(req: FilterRequest, session: Session = Depends(get_session)):
    session.select_filter(req.mode)
    return _session_payload(session)


@router.post("/camera/start", response_model=SessionResponse)
def start_camera(req: CameraStartRequest, session: Session = Depends(get_session)):
    try:
        session.start_source(req.source, url=req.url)
    except ValueError as e:
        return _error(400, str(e))
    except RuntimeError as e:
        logging.error(f"Error accessing the camera: {e}")
        return _error(503, f"Error accessing the camera: {e}")
    return _session_payload(session)


@router.post("/camera/stop", response_model=SessionResponse)
def stop_camera(session: Session = Depends(get_session)):
    session.stop_source()
    return _session_payload(session)


@router.post("/capture", response_model=CaptureResponse)
def capture(capture_service: Optional[CaptureService] = Depends(get_capture_service)):
    if capture_service is None:
        return _error(500, "Error uploading image", "Upload backend is not configured")
    try:
        result = capture_service.capture()
    except SourceInactiveError as e:
        return _error(409, str(e))
    except SourceNotReadyError as e:
        return _error(503, str(e))
    except CaptureError as e:
        return _error(500, str(e))
    except UploadError as e:
        logging.error(f"Error uploading image: {e.message} ({e.details})")
        return _error(e.status, f"Error uploading image. Please try again. Details: {e.message}", e.details)
    return CaptureResponse(**result.to_dict())


@router.get("/preview.jpg")
def preview_snapshot(session: Session = Depends(get_session)):
    jpeg_bytes = PreviewService.snapshot_jpeg(session)
    if jpeg_bytes is None:
        return _error(503, "No preview frame available")
    return Response(content=jpeg_bytes, media_type="image/jpeg", headers={"Cache-Control": "no-store"})


@router.get("/preview.mjpg")
def preview_stream(fps: int = 10, session: Session = Depends(get_session)):
    return StreamingResponse(
        PreviewService.mjpeg_stream(session, fps=fps),
        media_type="multipart/x-mixed-replace; boundary=frame",
    )
