"""
Tests for the capture-and-export pipeline.
"""

import threading
from unittest.mock import patch

import cv2
import numpy as np
import pytest

from models.errors import (
    CaptureError,
    SourceInactiveError,
    SourceNotReadyError,
    UploadError,
)
from models.filter_mode import FilterMode
from pipeline.capture import CaptureConfig, CaptureService, encode_jpeg
from pipeline.preview import PreviewLoop
from runtime.context import Session

from conftest import FakeSource, RecordingUploader, make_buffer


def _decode(payload):
    return cv2.imdecode(np.frombuffer(payload, dtype=np.uint8), cv2.IMREAD_COLOR)


class TestEncodeJpeg:
    def test_encodes_jpeg(self):
        image = encode_jpeg(make_buffer(16, 8, rgba=(200, 100, 50, 255)))

        assert image.payload[:2] == b"\xff\xd8"
        assert image.filename == "filtered-image.jpg"
        assert image.content_type == "image/jpeg"
        assert (image.width, image.height) == (16, 8)
        assert _decode(image.payload).shape == (8, 16, 3)

    def test_encode_failure(self):
        with patch("pipeline.capture.cv2.imencode", return_value=(False, None)):
            with pytest.raises(CaptureError):
                encode_jpeg(make_buffer(2, 2))

    def test_quality_is_clamped(self):
        image = encode_jpeg(make_buffer(4, 4), quality=500)
        assert image.payload[:2] == b"\xff\xd8"


class TestCaptureConfig:
    def test_from_config(self):
        config = CaptureConfig.from_config({"jpeg_quality": 70, "filename": "shot.jpg"})
        assert config.jpeg_quality == 70
        assert config.filename == "shot.jpg"

    def test_defaults(self):
        config = CaptureConfig.from_config(None)
        assert config.jpeg_quality == 92
        assert config.filename == "filtered-image.jpg"


class TestCaptureService:
    def test_inactive_source_makes_no_upload(self, session, uploader):
        service = CaptureService(session, uploader)

        with pytest.raises(SourceInactiveError):
            service.capture()

        assert uploader.calls == []

    def test_stopped_source_makes_no_upload(self, active_session, uploader):
        active_session.stop_source()
        service = CaptureService(active_session, uploader)

        with pytest.raises(SourceInactiveError):
            service.capture()

        assert len(uploader.calls) == 0

    def test_capture_uploads_filtered_jpeg(self, uploader):
        session = Session()
        session.attach_source(FakeSource([make_buffer(10, 6, rgba=(0, 0, 0, 255))]), kind="fake")
        session.select_filter("negative")
        service = CaptureService(session, uploader, CaptureConfig(jpeg_quality=95))

        result = service.capture()

        assert result.url == uploader.url
        assert (result.width, result.height) == (10, 6)
        assert result.filter_mode is FilterMode.NEGATIVE
        assert len(uploader.calls) == 1
        payload, filename, content_type = uploader.calls[0]
        assert filename == "filtered-image.jpg"
        assert content_type == "image/jpeg"
        assert result.size_bytes == len(payload)
        # Black frame through negative decodes as (near) white
        assert _decode(payload).min() >= 250

    def test_upload_failure_surfaces(self, active_session):
        failing = RecordingUploader(error=UploadError(500, "Error uploading image", "AccessDenied"))
        service = CaptureService(active_session, failing)

        with pytest.raises(UploadError) as exc_info:
            service.capture()

        assert exc_info.value.details == "AccessDenied"
        assert len(failing.calls) == 1

    def test_no_retry_on_failure(self, active_session):
        failing = RecordingUploader(error=UploadError(503, "Service unavailable"))
        service = CaptureService(active_session, failing)

        with pytest.raises(UploadError):
            service.capture()

        assert len(failing.calls) == 1

    def test_not_ready_source(self, uploader):
        session = Session()
        session.attach_source(FakeSource([]), kind="fake")
        service = CaptureService(session, uploader)

        with pytest.raises(SourceNotReadyError):
            service.capture()

        assert uploader.calls == []

    def test_result_to_dict(self, active_session, uploader):
        result = CaptureService(active_session, uploader).capture()
        body = result.to_dict()
        assert body["url"] == uploader.url
        assert body["filter"] == "none"
        assert body["width"] == 8

    def test_preview_keeps_ticking_during_upload(self):
        frames = [make_buffer(4, 4) for _ in range(10)]
        session = Session()
        session.attach_source(FakeSource(frames), kind="fake")
        started = threading.Event()
        release = threading.Event()

        class SlowUploader(RecordingUploader):
            def upload(self, payload, filename, content_type):
                started.set()
                release.wait(timeout=5)
                return super().upload(payload, filename, content_type)

        uploader = SlowUploader()
        service = CaptureService(session, uploader)
        worker = threading.Thread(target=service.capture)
        worker.start()
        assert started.wait(timeout=5)

        loop = PreviewLoop(session)
        loop.tick()
        loop.tick()

        release.set()
        worker.join(timeout=5)

        assert loop.state.frame_count == 2
        assert len(uploader.calls) == 1
