"""
Camera source factory.

This is the single entrypoint the rest of the project should use to create
a video source from a user selection.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from .base import VideoSource
from .opencv_source import OpenCVSource, OpenCVSourceConfig


DROIDCAM_URL = "http://127.0.0.1:4747/video"
DEFAULT_DEVICE_RESOLUTION = (1280, 720)


class SourceKind(str, Enum):
    DEVICE = "device"
    DROIDCAM = "droidcam"
    IPCAM = "ipcam"


def create_source(
    kind: str,
    url: Optional[str] = None,
    camera_cfg: Optional[Dict[str, Any]] = None,
) -> VideoSource:
    """
    Build an unopened VideoSource for a camera selection.

    Args:
        kind: "device", "droidcam" or "ipcam".
        url: Stream URL, required for "ipcam".
        camera_cfg: `camera` section of the app config.

    Raises:
        ValueError: Unknown kind, or ipcam without a URL.
    """
    camera_cfg = dict(camera_cfg or {})
    try:
        source_kind = SourceKind((kind or "").strip().lower())
    except ValueError:
        raise ValueError("Invalid camera source")

    if source_kind is SourceKind.DEVICE:
        camera_cfg.setdefault("resolution", list(DEFAULT_DEVICE_RESOLUTION))
        config = OpenCVSourceConfig.from_camera_config(camera_cfg, source_id=source_kind.value)
    elif source_kind is SourceKind.DROIDCAM:
        droidcam_url = camera_cfg.get("droidcam_url") or DROIDCAM_URL
        config = OpenCVSourceConfig.from_camera_config(
            camera_cfg, source_id=source_kind.value, device_id=droidcam_url
        )
    else:
        url = (url or "").strip()
        if not url:
            raise ValueError("Please enter a valid IP camera URL")
        config = OpenCVSourceConfig.from_camera_config(
            camera_cfg, source_id=source_kind.value, device_id=url
        )

    return OpenCVSource(config)
