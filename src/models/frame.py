"""
PixelBuffer model for captured video frames.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import time
from typing import Optional, Tuple

import cv2
import numpy as np


CHANNELS = 4


@dataclass
class PixelBuffer:
    """
    RGBA pixel payload and metadata for a captured video frame.

    Attributes:
        pixels: Frame data as a contiguous uint8 array of shape (height, width, 4), RGBA order.
        width: Frame width in pixels.
        height: Frame height in pixels.
        timestamp: Unix timestamp when frame was captured.
        frame_index: Sequential frame number since the source was opened.
        source: Identifier for the camera/video source.
    """
    pixels: np.ndarray
    width: int
    height: int
    timestamp: float = field(default_factory=time.time)
    frame_index: int = 0
    source: Optional[str] = None

    def __post_init__(self):
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"PixelBuffer requires uint8 pixels, got {self.pixels.dtype}")
        if self.pixels.shape != (self.height, self.width, CHANNELS):
            raise ValueError(
                f"PixelBuffer shape {self.pixels.shape} does not match "
                f"{self.width}x{self.height}x{CHANNELS}"
            )
        if not self.pixels.flags["C_CONTIGUOUS"]:
            self.pixels = np.ascontiguousarray(self.pixels)

    @classmethod
    def from_numpy(
        cls,
        pixels: np.ndarray,
        timestamp: Optional[float] = None,
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "PixelBuffer":
        """Create a PixelBuffer from an RGBA numpy array."""
        h, w = pixels.shape[:2]
        return cls(
            pixels=pixels,
            width=w,
            height=h,
            timestamp=time.time() if timestamp is None else timestamp,
            frame_index=frame_index,
            source=source,
        )

    @classmethod
    def from_bgr(
        cls,
        frame: np.ndarray,
        timestamp: Optional[float] = None,
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "PixelBuffer":
        """
        Create a PixelBuffer from an OpenCV frame.

        Accepts BGR, BGRA or single-channel frames; alpha is set opaque
        when the input has none.
        """
        if frame.ndim == 2:
            rgba = cv2.cvtColor(frame, cv2.COLOR_GRAY2RGBA)
        elif frame.shape[2] == 4:
            rgba = cv2.cvtColor(frame, cv2.COLOR_BGRA2RGBA)
        else:
            rgba = cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA)
        return cls.from_numpy(rgba, timestamp=timestamp, frame_index=frame_index, source=source)

    def to_bgr(self) -> np.ndarray:
        """Return a BGR copy suitable for cv2.imencode / cv2.imshow."""
        return cv2.cvtColor(self.pixels, cv2.COLOR_RGBA2BGR)

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(
            pixels=self.pixels.copy(),
            width=self.width,
            height=self.height,
            timestamp=self.timestamp,
            frame_index=self.frame_index,
            source=self.source,
        )

    @property
    def shape(self) -> Tuple[int, int, int]:
        """Return (height, width, channels)."""
        return self.pixels.shape

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)

    @property
    def nbytes(self) -> int:
        return self.pixels.size
