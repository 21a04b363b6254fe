"""
Real-time preview loop.

Each tick reads the selected filter and the active flag from the session,
pulls a frame, filters it and hands it to the display sinks. Ticks on an
inactive source are idle no-ops, so the loop can run for the whole life of
the process and pick up a source whenever one is started.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Tuple

import cv2

from filters.engine import apply_filter
from models.errors import SourceNotReadyError
from models.filter_mode import FilterMode
from models.frame import PixelBuffer
from runtime.context import Session


DisplaySink = Callable[[PixelBuffer], Optional[bool]]


@dataclass
class PreviewConfig:
    """
    Configuration for the preview loop.

    Attributes:
        target_fps: Tick rate held by the default frame clock.
        stats_log_interval: Seconds between status log messages.
        display: Show frames in an OpenCV window.
        window_name: Title of the OpenCV window.
    """
    target_fps: float = 30.0
    stats_log_interval: float = 60.0
    display: bool = False
    window_name: str = "Filter Cam"


@dataclass(frozen=True)
class PreviewState:
    """Counters carried from one tick to the next."""
    ticks: int = 0
    frame_count: int = 0
    idle_ticks: int = 0
    not_ready_ticks: int = 0
    error_count: int = 0
    last_size: Optional[Tuple[int, int]] = None
    last_mode: Optional[FilterMode] = None


def preview_step(state: PreviewState, session: Session, display: DisplaySink) -> PreviewState:
    """
    Run one preview iteration and return the next state.

    The filter mode is read once at the start of the tick; a change made
    while the frame is being processed applies from the next tick.
    SourceNotReadyError is absorbed as a not-ready tick; other errors
    propagate to the caller.
    """
    mode = session.filter_mode
    ticked = replace(state, ticks=state.ticks + 1)

    if not session.is_active:
        return replace(ticked, idle_ticks=state.idle_ticks + 1)

    try:
        buffer = session.acquire_frame()
    except SourceNotReadyError:
        return replace(ticked, not_ready_ticks=state.not_ready_ticks + 1)

    apply_filter(buffer, mode)
    display(buffer)

    if buffer.size != state.last_size:
        logging.info(f"Preview resolution: {buffer.width}x{buffer.height}")

    return replace(
        ticked,
        frame_count=state.frame_count + 1,
        last_size=buffer.size,
        last_mode=mode,
    )


class FrameClock(ABC):
    """Paces the preview loop between ticks."""

    @abstractmethod
    def wait(self) -> None:
        """Block until the next tick is due."""


class IntervalClock(FrameClock):
    """Holds a fixed tick rate, skipping ahead instead of bursting when late."""

    def __init__(self, fps: float = 30.0):
        self.interval = 1.0 / max(1.0, float(fps))
        self._next = time.monotonic() + self.interval

    def wait(self) -> None:
        now = time.monotonic()
        delay = self._next - now
        if delay > 0:
            time.sleep(delay)
            self._next += self.interval
        else:
            self._next = now + self.interval


class OpenCVWindowSink:
    """Display sink that shows frames in a cv2 window. Returns False on 'q'."""

    def __init__(self, window_name: str = "Filter Cam"):
        self.window_name = window_name

    def __call__(self, buffer: PixelBuffer) -> bool:
        cv2.imshow(self.window_name, buffer.to_bgr())
        key = cv2.waitKey(1) & 0xFF
        return key != ord("q")

    def close(self) -> None:
        cv2.destroyWindow(self.window_name)


class PreviewLoop:
    """
    Continuously rescheduled preview task.

    Example:
        loop = PreviewLoop(session, PreviewConfig(target_fps=30))
        loop.start()      # background thread
        ...
        loop.stop()
    """

    def __init__(
        self,
        session: Session,
        config: Optional[PreviewConfig] = None,
        clock: Optional[FrameClock] = None,
    ):
        self.session = session
        self.config = config or PreviewConfig()
        self.clock = clock or IntervalClock(self.config.target_fps)
        self.state = PreviewState()
        self._sinks: List[DisplaySink] = [session.publish_frame]
        self._window: Optional[OpenCVWindowSink] = None
        if self.config.display:
            self._window = OpenCVWindowSink(self.config.window_name)
            self._sinks.append(self._window)
        self._stop_event = threading.Event()
        self._stop_event.set()
        self._thread: Optional[threading.Thread] = None
        self._last_stats_log_time = time.time()
        self._fps_window_start = time.time()
        self._fps_window_frames = 0

    def add_sink(self, sink: DisplaySink) -> None:
        """
        Add a display sink called with every filtered frame.

        A sink returning False stops the loop (e.g., the window was closed).
        """
        self._sinks.append(sink)

    @property
    def is_running(self) -> bool:
        return not self._stop_event.is_set()

    def _display(self, buffer: PixelBuffer) -> None:
        for sink in self._sinks:
            try:
                keep_going = sink(buffer)
            except Exception as e:
                logging.warning(f"Display sink error: {e}")
                continue
            if keep_going is False:
                logging.info("Display closed by user")
                self._stop_event.set()

    def tick(self) -> PreviewState:
        """Run one iteration. Never raises."""
        previous_frames = self.state.frame_count
        try:
            self.state = preview_step(self.state, self.session, self._display)
        except Exception as e:
            self.state = replace(
                self.state,
                ticks=self.state.ticks + 1,
                error_count=self.state.error_count + 1,
            )
            logging.error(f"Preview tick failed: {e}")

        if self.state.frame_count > previous_frames:
            self._fps_window_frames += 1
        self._update_fps()
        return self.state

    def run(self) -> None:
        """Tick on the calling thread until stop() is called."""
        self._stop_event.clear()
        self._run_loop()

    def _run_loop(self) -> None:
        logging.info(f"Preview loop started: target_fps={self.config.target_fps}")
        try:
            while not self._stop_event.is_set():
                self.tick()
                self._handle_periodic_tasks()
                if not self._stop_event.is_set():
                    self.clock.wait()
        finally:
            if self._window is not None:
                self._window.close()
            self._stop_event.set()
            logging.info("Preview loop stopped")

    def start(self) -> threading.Thread:
        """Run the loop on a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name="preview-loop", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout: float = 2.0) -> None:
        """Signal the loop to stop after the current tick."""
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
            self._thread = None

    def _update_fps(self) -> None:
        now = time.time()
        elapsed = now - self._fps_window_start
        if elapsed >= 1.0:
            self.session.system_stats["fps"] = round(self._fps_window_frames / elapsed, 1)
            self._fps_window_start = now
            self._fps_window_frames = 0

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self._last_stats_log_time >= self.config.stats_log_interval:
            s = self.state
            logging.info(
                f"Preview stats: frames={s.frame_count}, idle={s.idle_ticks}, "
                f"not_ready={s.not_ready_ticks}, errors={s.error_count}, "
                f"size={s.last_size}, fps={self.session.system_stats.get('fps')}"
            )
            self._last_stats_log_time = now
