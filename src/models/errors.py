"""
Error kinds shared by acquisition, preview, capture and upload.
"""

from __future__ import annotations

from typing import Optional


class SourceNotReadyError(RuntimeError):
    """Frame acquisition attempted before the source delivered a frame."""


class SourceInactiveError(RuntimeError):
    """Capture requested while no video source is live."""

    def __init__(self, message: str = "Camera is not active. Please start the camera first."):
        super().__init__(message)


class UnsupportedFilterModeError(ValueError):
    """Raised by strict filter-mode parsing for unknown mode names."""


class CaptureError(RuntimeError):
    """Frame could not be encoded for export."""


class UploadError(RuntimeError):
    """
    Upload collaborator returned a non-success result.

    Attributes:
        status: HTTP-style status code.
        message: Human-readable message.
        details: Backend-specific detail string, if any.
    """

    def __init__(self, status: int, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body
