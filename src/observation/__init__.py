"""
Observation layer for pluggable camera sources.

This layer abstracts where frames come from (local device, DroidCam, remote
stream) from the preview loop and capture pipeline. Each source implements
the VideoSource interface and returns RGBA PixelBuffers.
"""

from .base import VideoSource, SourceConfig
from .opencv_source import OpenCVSource, OpenCVSourceConfig
from .factory import DROIDCAM_URL, SourceKind, create_source

__all__ = [
    "VideoSource",
    "SourceConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "DROIDCAM_URL",
    "SourceKind",
    "create_source",
]
