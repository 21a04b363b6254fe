"""
VideoSource interface for pluggable camera sources.

This defines the contract that all video sources must implement, so the
preview loop and capture pipeline can pull frames from any input:
- Local camera devices
- DroidCam on the fixed local endpoint
- Arbitrary remote stream URLs
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

from models.errors import SourceNotReadyError
from models.frame import PixelBuffer


@dataclass
class SourceConfig:
    """
    Base configuration for video sources.

    Attributes:
        source_id: Unique identifier for this source (e.g., "device", "ipcam").
        resolution: Target resolution as (width, height). None = use source default.
        fps: Target frames per second. None = use source default.
        metadata: Additional source-specific configuration.
    """
    source_id: str = "default"
    resolution: Optional[tuple[int, int]] = None
    fps: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class VideoSource(ABC):
    """
    Abstract base class for video sources.

    Lifecycle:
        1. Create instance with config
        2. Call open() to connect to the source
        3. Call current_frame() repeatedly to pull frames
        4. Call stop() to release resources (safe to repeat)

    Can also be used as a context manager:
        with OpenCVSource(config) as source:
            for buffer in source:
                process(buffer)
    """

    def __init__(self, config: SourceConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        """Unique identifier for this source."""
        return self._config.source_id

    @property
    def is_active(self) -> bool:
        """Whether the source is connected and frames can be pulled."""
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Number of frames delivered since open."""
        return self._frame_index

    @abstractmethod
    def open(self) -> None:
        """
        Connect to the source.

        Raises:
            RuntimeError: If the source cannot be opened.
        """

    @abstractmethod
    def read(self) -> Optional[PixelBuffer]:
        """
        Read the next frame.

        Returns:
            PixelBuffer in RGBA order, or None if no frame is available.
        """

    @abstractmethod
    def stop(self) -> None:
        """
        Release the source.

        Must flip is_active to False immediately. Safe to call multiple times.
        """

    def current_frame(self) -> PixelBuffer:
        """
        Pull the current frame.

        Raises:
            SourceNotReadyError: The source is not open or has no frame yet.
        """
        if not self.is_active:
            raise SourceNotReadyError(f"Source {self.source_id} is not active")
        buffer = self.read()
        if buffer is None:
            raise SourceNotReadyError(f"Source {self.source_id} has no frame available")
        return buffer

    def __enter__(self) -> "VideoSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def __iter__(self) -> Iterator[PixelBuffer]:
        """
        Iterate over frames until the source is exhausted or stopped.
        """
        if not self.is_active:
            raise RuntimeError("Source must be open before iterating")

        while self.is_active:
            buffer = self.read()
            if buffer is None:
                break
            yield buffer
