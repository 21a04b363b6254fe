"""
Typed models for the filter cam application.
"""

from .frame import PixelBuffer
from .filter_mode import FilterMode
from .errors import (
    CaptureError,
    SourceInactiveError,
    SourceNotReadyError,
    UnsupportedFilterModeError,
    UploadError,
)

__all__ = [
    # Frame
    "PixelBuffer",
    # Filters
    "FilterMode",
    # Errors
    "CaptureError",
    "SourceInactiveError",
    "SourceNotReadyError",
    "UnsupportedFilterModeError",
    "UploadError",
]
