from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from models.errors import SourceNotReadyError
from models.filter_mode import FilterMode
from models.frame import PixelBuffer
from observation.base import VideoSource
from observation.factory import create_source


SourceFactory = Callable[..., VideoSource]


class Session:
    """
    Holds the selected filter, the current video source and the last
    displayed frame; avoids global singletons.

    Command handlers (select_filter, start_source, stop_source) replace UI
    callbacks. Source switches (stop, open, assign) run under one switch
    lock so they never interleave; mode changes and frame reads use their
    own locks, so a slow open or reader never blocks a mode switch.
    """

    def __init__(
        self,
        camera_cfg: Optional[Dict[str, Any]] = None,
        filter_mode: FilterMode = FilterMode.NONE,
        source_factory: SourceFactory = create_source,
    ):
        self.camera_cfg = dict(camera_cfg or {})
        self._source_factory = source_factory
        self._filter_mode = filter_mode
        self._source: Optional[VideoSource] = None
        self._source_kind: Optional[str] = None
        self._active = False
        self._lock = threading.Lock()
        self._switch_lock = threading.Lock()
        self._read_lock = threading.Lock()
        self._frame_lock = threading.Lock()
        self._latest_frame: Optional[PixelBuffer] = None

        self.system_stats: Dict[str, Any] = {"start_time": time.time(), "last_frame_ts": None}

    # -- state reads ---------------------------------------------------------

    @property
    def filter_mode(self) -> FilterMode:
        return self._filter_mode

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def source_kind(self) -> Optional[str]:
        return self._source_kind

    # -- commands ------------------------------------------------------------

    def select_filter(self, mode) -> FilterMode:
        """Set the filter for subsequent ticks and captures; unknown names map to none."""
        parsed = FilterMode.parse(mode)
        with self._lock:
            self._filter_mode = parsed
        logging.info(f"Filter selected: {parsed.value}")
        return parsed

    def start_source(self, kind: str, url: Optional[str] = None) -> None:
        """
        Connect a new source, replacing any current one.

        Source switches are serialised: a stop or another start issued while
        this one is opening waits for it and then applies on top of it.

        Raises:
            ValueError: Invalid kind or missing URL.
            RuntimeError: The source could not be opened.
        """
        source = self._source_factory(kind, url=url, camera_cfg=self.camera_cfg)
        with self._switch_lock:
            self._stop_current()
            source.open()
            self._activate(source, kind)
        logging.info(f"Camera started: source={kind}")

    def attach_source(self, source: VideoSource, kind: str = "custom") -> None:
        """Adopt an already constructed source, opening it if needed."""
        with self._switch_lock:
            self._stop_current()
            if not source.is_active:
                source.open()
            self._activate(source, kind)

    def stop_source(self) -> None:
        """Stop the current source. Idempotent."""
        with self._switch_lock:
            self._stop_current()

    def _activate(self, source: VideoSource, kind: str) -> None:
        with self._lock:
            self._source = source
            self._source_kind = kind
            self._active = True

    def _stop_current(self) -> None:
        # Caller holds _switch_lock
        with self._lock:
            source = self._source
            self._active = False
            self._source = None
            self._source_kind = None
        if source is None:
            return
        with self._read_lock:
            source.stop()
        logging.info("Camera stopped")

    # -- frames --------------------------------------------------------------

    def acquire_frame(self) -> PixelBuffer:
        """
        Pull the current frame from the active source.

        Raises:
            SourceNotReadyError: No source, source stopped, or no frame yet.
        """
        with self._lock:
            source = self._source if self._active else None
        if source is None:
            raise SourceNotReadyError("No active video source")
        with self._read_lock:
            return source.current_frame()

    def publish_frame(self, buffer: PixelBuffer) -> None:
        """Display sink: keep the latest rendered frame for the web preview."""
        with self._frame_lock:
            self._latest_frame = buffer
        self.system_stats["last_frame_ts"] = time.time()

    def latest_frame(self) -> Optional[PixelBuffer]:
        with self._frame_lock:
            return self._latest_frame

    def describe(self) -> Dict[str, Any]:
        latest = self.latest_frame()
        return {
            "active": self.is_active,
            "source": self.source_kind,
            "filter": self.filter_mode.value,
            "frame_size": list(latest.size) if latest is not None else None,
        }

    def get_system_stats_copy(self) -> Dict[str, Any]:
        return dict(self.system_stats)
