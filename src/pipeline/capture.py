"""
Capture-and-export pipeline.

On request: check the source is live, grab one frame, apply the selected
filter, JPEG-encode it and hand the bytes to the upload collaborator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import cv2

from cloud.uploader import Uploader
from filters.engine import apply_filter
from models.errors import CaptureError, SourceInactiveError
from models.filter_mode import FilterMode
from models.frame import PixelBuffer
from runtime.context import Session


DEFAULT_FILENAME = "filtered-image.jpg"
DEFAULT_CONTENT_TYPE = "image/jpeg"


@dataclass
class CaptureConfig:
    """
    Attributes:
        jpeg_quality: OpenCV JPEG quality (0-100).
        filename: Filename sent to the uploader.
    """
    jpeg_quality: int = 92
    filename: str = DEFAULT_FILENAME

    @classmethod
    def from_config(cls, capture_cfg: Optional[Dict[str, Any]]) -> "CaptureConfig":
        capture_cfg = capture_cfg or {}
        return cls(
            jpeg_quality=int(capture_cfg.get("jpeg_quality", 92)),
            filename=capture_cfg.get("filename", DEFAULT_FILENAME),
        )


@dataclass
class CapturedImage:
    """Encoded frame ready for upload."""
    payload: bytes
    filename: str
    content_type: str
    width: int
    height: int


@dataclass
class CaptureResult:
    url: str
    width: int
    height: int
    filter_mode: FilterMode
    size_bytes: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "width": self.width,
            "height": self.height,
            "filter": self.filter_mode.value,
            "size_bytes": self.size_bytes,
        }


def encode_jpeg(buffer: PixelBuffer, quality: int = 92, filename: str = DEFAULT_FILENAME) -> CapturedImage:
    """
    Encode a PixelBuffer to JPEG.

    Raises:
        CaptureError: OpenCV could not encode the frame.
    """
    quality = max(0, min(100, int(quality)))
    ok, buf = cv2.imencode(".jpg", buffer.to_bgr(), [int(cv2.IMWRITE_JPEG_QUALITY), quality])
    if not ok:
        raise CaptureError("Failed to encode JPEG")
    return CapturedImage(
        payload=buf.tobytes(),
        filename=filename,
        content_type=DEFAULT_CONTENT_TYPE,
        width=buffer.width,
        height=buffer.height,
    )


class CaptureService:
    """
    One-shot capture of the current filtered frame.

    The frame read holds the session's acquisition lock only for the read
    itself; the upload runs on the caller's thread without any session lock,
    so the preview loop keeps ticking while it is in flight. No retries.
    """

    def __init__(self, session: Session, uploader: Uploader, config: Optional[CaptureConfig] = None):
        self.session = session
        self.uploader = uploader
        self.config = config or CaptureConfig()

    def capture(self) -> CaptureResult:
        """
        Capture, filter, encode and upload one frame.

        Raises:
            SourceInactiveError: No live source; nothing else is attempted.
            SourceNotReadyError: The source has not delivered a frame yet.
            CaptureError: Encoding failed.
            UploadError: The uploader reported a failure.
        """
        if not self.session.is_active:
            raise SourceInactiveError()

        mode = self.session.filter_mode
        buffer = self.session.acquire_frame()
        apply_filter(buffer, mode)

        image = encode_jpeg(buffer, quality=self.config.jpeg_quality, filename=self.config.filename)
        url = self.uploader.upload(image.payload, image.filename, image.content_type)

        logging.info(
            f"Captured {image.width}x{image.height} frame "
            f"(filter={mode.value}, {len(image.payload)} bytes) -> {url}"
        )
        return CaptureResult(
            url=url,
            width=image.width,
            height=image.height,
            filter_mode=mode,
            size_bytes=len(image.payload),
        )
