"""
Tests for typed models.
"""

import numpy as np
import pytest

from models import (
    FilterMode,
    PixelBuffer,
    SourceInactiveError,
    UnsupportedFilterModeError,
    UploadError,
)


class TestPixelBuffer:
    def test_from_numpy(self):
        pixels = np.zeros((480, 640, 4), dtype=np.uint8)
        buffer = PixelBuffer.from_numpy(pixels, timestamp=1.5, frame_index=3, source="cam")

        assert buffer.width == 640
        assert buffer.height == 480
        assert buffer.size == (640, 480)
        assert buffer.shape == (480, 640, 4)
        assert buffer.nbytes == 640 * 480 * 4
        assert buffer.timestamp == 1.5
        assert buffer.frame_index == 3
        assert buffer.source == "cam"

    def test_rejects_wrong_channel_count(self):
        with pytest.raises(ValueError):
            PixelBuffer(pixels=np.zeros((4, 4, 3), dtype=np.uint8), width=4, height=4)

    def test_rejects_mismatched_dimensions(self):
        with pytest.raises(ValueError):
            PixelBuffer(pixels=np.zeros((4, 5, 4), dtype=np.uint8), width=4, height=4)

    def test_rejects_non_uint8(self):
        with pytest.raises(ValueError):
            PixelBuffer(pixels=np.zeros((2, 2, 4), dtype=np.float32), width=2, height=2)

    def test_non_contiguous_made_contiguous(self):
        pixels = np.zeros((4, 8, 4), dtype=np.uint8)[:, ::2]
        buffer = PixelBuffer.from_numpy(pixels)
        assert buffer.pixels.flags["C_CONTIGUOUS"]

    def test_from_bgr_converts_channel_order(self):
        bgr = np.zeros((2, 3, 3), dtype=np.uint8)
        bgr[...] = (10, 20, 30)  # B, G, R

        buffer = PixelBuffer.from_bgr(bgr)

        assert buffer.size == (3, 2)
        assert tuple(buffer.pixels[0, 0]) == (30, 20, 10, 255)

    def test_from_bgr_grayscale_input(self):
        gray = np.full((2, 2), 77, dtype=np.uint8)
        buffer = PixelBuffer.from_bgr(gray)
        assert tuple(buffer.pixels[1, 1]) == (77, 77, 77, 255)

    def test_to_bgr_round_trip_drops_alpha(self):
        pixels = np.zeros((1, 1, 4), dtype=np.uint8)
        pixels[0, 0] = (30, 20, 10, 99)
        buffer = PixelBuffer.from_numpy(pixels)

        bgr = buffer.to_bgr()

        assert bgr.shape == (1, 1, 3)
        assert tuple(bgr[0, 0]) == (10, 20, 30)

    def test_copy_is_independent(self):
        buffer = PixelBuffer.from_numpy(np.zeros((2, 2, 4), dtype=np.uint8))
        clone = buffer.copy()
        clone.pixels[0, 0, 0] = 255
        assert buffer.pixels[0, 0, 0] == 0


class TestFilterMode:
    @pytest.mark.parametrize("value,expected", [
        ("none", FilterMode.NONE),
        ("grayscale", FilterMode.GRAYSCALE),
        ("Negative", FilterMode.NEGATIVE),
        (" sharpen ", FilterMode.SHARPEN),
        ("sharp", FilterMode.SHARPEN),
        (FilterMode.NEGATIVE, FilterMode.NEGATIVE),
    ])
    def test_parse(self, value, expected):
        assert FilterMode.parse(value) is expected

    @pytest.mark.parametrize("value", ["sepia", "", None])
    def test_unknown_defaults_to_none(self, value):
        assert FilterMode.parse(value) is FilterMode.NONE

    def test_strict_raises(self):
        with pytest.raises(UnsupportedFilterModeError, match="sepia"):
            FilterMode.parse("sepia", strict=True)

    def test_strict_still_accepts_alias(self):
        assert FilterMode.parse("sharp", strict=True) is FilterMode.SHARPEN


class TestErrors:
    def test_source_inactive_default_message(self):
        assert "not active" in str(SourceInactiveError())

    def test_upload_error_to_dict(self):
        err = UploadError(500, "Error uploading image", details="AccessDenied")
        assert err.status == 500
        assert err.to_dict() == {"error": "Error uploading image", "details": "AccessDenied"}

    def test_upload_error_without_details(self):
        assert UploadError(502, "Bad gateway").to_dict() == {"error": "Bad gateway"}
