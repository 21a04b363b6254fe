"""
OpenCV-based video source.

Supports:
- Local camera devices (device_id as int, e.g., 0)
- DroidCam / IP cameras (device_id as http(s) URL)
- RTSP streams (device_id as rtsp URL)

Frames are converted from OpenCV's BGR layout to RGBA PixelBuffers.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import cv2

from models.frame import PixelBuffer
from .base import VideoSource, SourceConfig
from .url_utils import sanitize_url, is_stream_url


@dataclass
class OpenCVSourceConfig(SourceConfig):
    """
    Configuration for OpenCV-based video sources.

    Attributes:
        device_id: Camera index (int) or stream URL (str).
        rtsp_transport: Transport protocol for RTSP ("tcp" or "udp").
        buffer_size: OpenCV capture buffer size (reduces latency for live feeds).
        max_retries: Maximum attempts when opening the device.
        max_read_failures: Consecutive failed reads that trigger a reconnect.
        warmup_seconds: Pause after opening before the first read.
    """
    device_id: Union[int, str] = 0
    rtsp_transport: str = "tcp"
    buffer_size: int = 1
    max_retries: int = 3
    max_read_failures: int = 3
    warmup_seconds: float = 0.5

    @classmethod
    def from_camera_config(
        cls,
        camera_cfg: Dict[str, Any],
        source_id: str = "camera",
        device_id: Union[int, str, None] = None,
    ) -> "OpenCVSourceConfig":
        """
        Create OpenCVSourceConfig from the `camera` section of the app config.

        Args:
            camera_cfg: Camera configuration dict (from config.yaml).
            source_id: Identifier for this source.
            device_id: Overrides camera_cfg["device_id"] when given.
        """
        resolution = camera_cfg.get("resolution")
        if resolution:
            resolution = tuple(resolution)

        return cls(
            source_id=source_id,
            resolution=resolution,
            fps=camera_cfg.get("fps"),
            device_id=camera_cfg.get("device_id", 0) if device_id is None else device_id,
            rtsp_transport=camera_cfg.get("rtsp_transport", "tcp"),
            buffer_size=camera_cfg.get("buffer_size", 1),
            max_retries=camera_cfg.get("max_retries", 3),
            max_read_failures=camera_cfg.get("max_read_failures", 3),
            warmup_seconds=float(camera_cfg.get("warmup_seconds", 0.5)),
        )


class OpenCVSource(VideoSource):
    """
    Video source backed by cv2.VideoCapture.

    Handles reconnection for live streams when reads start failing.

    Example:
        config = OpenCVSourceConfig(device_id=0, resolution=(1280, 720))
        with OpenCVSource(config) as source:
            buffer = source.current_frame()
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._consecutive_failures = 0

    @property
    def device_id(self) -> Union[int, str]:
        return self._opencv_config.device_id

    @property
    def is_rtsp(self) -> bool:
        return isinstance(self.device_id, str) and self.device_id.startswith(("rtsp://", "rtsps://"))

    @property
    def is_stream(self) -> bool:
        return is_stream_url(self.device_id)

    def open(self) -> None:
        """Open the capture device or stream."""
        if self._is_open:
            return

        self._connect()
        self._is_open = True
        self._frame_index = 0

        info = self.get_video_info()
        logging.info(
            f"OpenCVSource opened: source_id={self.source_id}, "
            f"device={sanitize_url(self.device_id)}, "
            f"negotiated={info.get('width')}x{info.get('height')}"
        )

    def _connect(self) -> None:
        """
        (Re)connect the capture handle, backing off between attempts.

        Raises:
            RuntimeError: No attempt produced an opened capture.
        """
        self._release()
        attempts = max(1, self._opencv_config.max_retries)

        for attempt in range(attempts):
            if attempt > 0:
                backoff = min(2 ** attempt, 10)
                logging.info(f"Retrying open ({attempt + 1}/{attempts}) in {backoff}s")
                time.sleep(backoff)

            if self.is_rtsp:
                os.environ["OPENCV_FFMPEG_CAPTURE_OPTIONS"] = (
                    f"rtsp_transport;{self._opencv_config.rtsp_transport}"
                )

            cap = cv2.VideoCapture(self.device_id)
            if cap.isOpened():
                self._cap = cap
                break
            cap.release()
            logging.warning(f"Could not open {sanitize_url(self.device_id)}")
        else:
            raise RuntimeError(
                f"Failed to open device {sanitize_url(self.device_id)} after {attempts} attempts"
            )

        if self.is_stream:
            # Keep only the newest frame of a network feed
            self._cap.set(cv2.CAP_PROP_BUFFERSIZE, self._opencv_config.buffer_size)
        else:
            self._configure_device()

        if self._opencv_config.warmup_seconds > 0:
            time.sleep(self._opencv_config.warmup_seconds)
        self._consecutive_failures = 0

    def _configure_device(self) -> None:
        resolution = self._opencv_config.resolution
        if resolution:
            width, height = resolution
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        if self._opencv_config.fps:
            self._cap.set(cv2.CAP_PROP_FPS, self._opencv_config.fps)

    def _release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def read(self) -> Optional[PixelBuffer]:
        """
        Read the latest frame as an RGBA PixelBuffer.

        Returns None when no frame is available yet. After
        max_read_failures consecutive misses the capture is reconnected
        once and read again.
        """
        if not self._is_open or self._cap is None:
            return None

        ok, frame = self._cap.read()
        if not ok or frame is None:
            self._consecutive_failures += 1
            if self._consecutive_failures < self._opencv_config.max_read_failures:
                return None
            logging.warning(f"{self._consecutive_failures} failed reads, reconnecting")
            try:
                self._connect()
            except RuntimeError as e:
                logging.error(f"Reconnect failed: {e}")
                return None
            ok, frame = self._cap.read()
            if not ok or frame is None:
                return None

        self._consecutive_failures = 0
        self._frame_index += 1
        return PixelBuffer.from_bgr(
            frame,
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def stop(self) -> None:
        """Release the capture handle. Safe to call when already stopped."""
        was_open = self._is_open
        self._is_open = False
        self._release()
        if was_open:
            logging.info(f"OpenCVSource stopped: source_id={self.source_id}")

    def get_video_info(self) -> Dict[str, Any]:
        """Report what the capture backend negotiated."""
        if self._cap is None or not self._cap.isOpened():
            return {}

        return {
            "width": int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            "height": int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            "fps": self._cap.get(cv2.CAP_PROP_FPS),
        }
