"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.frame import PixelBuffer  # noqa: E402
from observation.base import VideoSource, SourceConfig  # noqa: E402
from cloud.uploader import Uploader  # noqa: E402
from runtime.context import Session  # noqa: E402


def make_buffer(width, height, rgba=(128, 128, 128, 255)):
    """Uniform RGBA buffer."""
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[...] = rgba
    return PixelBuffer.from_numpy(pixels)


def random_buffer(width, height, seed=0):
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    return PixelBuffer.from_numpy(pixels)


class FakeSource(VideoSource):
    """In-memory video source yielding copies of the given buffers in order."""

    def __init__(self, buffers=None, source_id="fake"):
        super().__init__(SourceConfig(source_id=source_id))
        self._buffers = list(buffers or [])
        self._pos = 0
        self.stop_calls = 0
        self.open_calls = 0

    def open(self):
        self.open_calls += 1
        self._is_open = True
        self._pos = 0
        self._frame_index = 0

    def read(self):
        if not self._is_open or self._pos >= len(self._buffers):
            return None
        buffer = self._buffers[self._pos].copy()
        self._pos += 1
        self._frame_index += 1
        buffer.frame_index = self._frame_index
        buffer.source = self.source_id
        return buffer

    def stop(self):
        self.stop_calls += 1
        self._is_open = False


class RecordingUploader(Uploader):
    """Uploader double recording every call."""

    def __init__(self, url="https://bucket.example.com/image.jpg", error=None):
        self.url = url
        self.error = error
        self.calls = []

    def upload(self, payload, filename, content_type):
        self.calls.append((payload, filename, content_type))
        if self.error is not None:
            raise self.error
        return self.url


@pytest.fixture
def gray_buffer():
    return make_buffer(4, 4)


@pytest.fixture
def fake_source():
    return FakeSource([random_buffer(8, 6, seed=i) for i in range(3)])


@pytest.fixture
def session():
    return Session()


@pytest.fixture
def active_session(fake_source):
    s = Session()
    s.attach_source(fake_source, kind="fake")
    return s


@pytest.fixture
def uploader():
    return RecordingUploader()


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  source: "device"
  device_id: 0
  resolution: [640, 480]

preview:
  filter: "none"
  target_fps: 30

capture:
  jpeg_quality: 90

upload:
  backend: "s3"
  s3:
    bucket_name: "captures"
    region: "us-east-1"

server:
  host: "127.0.0.1"
  port: 3000

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "source": "device",
            "device_id": 0,
            "resolution": [1280, 720],
        },
        "preview": {
            "filter": "grayscale",
            "target_fps": 30,
        },
        "capture": {
            "jpeg_quality": 92,
        },
        "upload": {
            "backend": "s3",
            "s3": {"bucket_name": "captures", "region": "us-east-1"},
        },
        "server": {
            "host": "0.0.0.0",
            "port": 3000,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
