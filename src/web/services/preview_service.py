from __future__ import annotations

import logging
import time
from typing import Iterator, Optional

from models.errors import CaptureError
from pipeline.capture import encode_jpeg
from runtime.context import Session


class PreviewService:
    @staticmethod
    def snapshot_jpeg(session: Session, quality: int = 80) -> Optional[bytes]:
        """JPEG of the last frame rendered by the preview loop, or None before the first frame."""
        buffer = session.latest_frame()
        if buffer is None:
            return None
        return encode_jpeg(buffer, quality=quality).payload

    @staticmethod
    def mjpeg_stream(
        session: Session,
        fps: int = 10,
        quality: int = 80,
        keepalive_s: float = 1.0,
    ) -> Iterator[bytes]:
        """
        Yield MJPEG multipart chunks of the preview.

        Reads what the preview loop publishes; never touches the camera
        itself, so any number of viewers share one capture. When no new
        frame arrives for keepalive_s, the last chunk is sent again (or an
        empty chunk before the first frame) so each next() returns and a
        disconnected client is noticed.
        """
        fps = max(1, min(30, int(fps)))
        delay = 1.0 / fps

        last_key = None
        last_chunk = b""
        last_sent = time.monotonic()
        while True:
            buffer = session.latest_frame()
            key = (buffer.frame_index, buffer.timestamp) if buffer is not None else None
            jpg = None
            if buffer is not None and key != last_key:
                last_key = key
                try:
                    jpg = encode_jpeg(buffer, quality=quality).payload
                except CaptureError as e:
                    logging.warning(f"Preview frame skipped: {e}")

            if jpg is not None:
                last_chunk = b"--frame\r\nContent-Type: image/jpeg\r\n\r\n" + jpg + b"\r\n"
                last_sent = time.monotonic()
                yield last_chunk
            elif time.monotonic() - last_sent >= keepalive_s:
                last_sent = time.monotonic()
                yield last_chunk
            time.sleep(delay)
