"""
Pipeline module for the filter cam.

- Preview loop: acquire -> filter -> display, every tick
- Capture pipeline: acquire -> filter -> encode -> upload, on request
"""

from .preview import (
    FrameClock,
    IntervalClock,
    OpenCVWindowSink,
    PreviewConfig,
    PreviewLoop,
    PreviewState,
    preview_step,
)
from .capture import (
    CaptureConfig,
    CaptureResult,
    CaptureService,
    CapturedImage,
    encode_jpeg,
)

__all__ = [
    "FrameClock",
    "IntervalClock",
    "OpenCVWindowSink",
    "PreviewConfig",
    "PreviewLoop",
    "PreviewState",
    "preview_step",
    "CaptureConfig",
    "CaptureResult",
    "CaptureService",
    "CapturedImage",
    "encode_jpeg",
]
