"""
Per-pixel filter engine.

All filters operate on the R, G, B channels of an RGBA PixelBuffer in place
and return the same buffer. Width, height and alpha are never changed.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Union

import numpy as np

from models.filter_mode import FilterMode
from models.frame import PixelBuffer


SHARPEN_KERNEL = np.array(
    [
        [0, -1, 0],
        [-1, 5, -1],
        [0, -1, 0],
    ],
    dtype=np.int16,
)


def grayscale(pixels: np.ndarray) -> None:
    """Replace R, G, B with their unweighted mean (round half to even)."""
    rgb = pixels[..., :3]
    total = rgb.sum(axis=2, dtype=np.uint16)
    avg = np.rint(total / 3.0).astype(np.uint8)
    rgb[...] = avg[..., np.newaxis]


def negative(pixels: np.ndarray) -> None:
    rgb = pixels[..., :3]
    np.subtract(255, rgb, out=rgb)


def sharpen(pixels: np.ndarray) -> None:
    """
    3x3 sharpen convolution on interior pixels.

    Reads from a snapshot of the input so writes never feed into
    neighbouring sums. The 1-pixel border is left as-is.
    """
    height, width = pixels.shape[:2]
    if height < 3 or width < 3:
        return

    src = pixels[..., :3].astype(np.int16)
    acc = np.zeros((height - 2, width - 2, 3), dtype=np.int16)
    for ky in range(3):
        for kx in range(3):
            weight = SHARPEN_KERNEL[ky, kx]
            if weight == 0:
                continue
            acc += weight * src[ky:ky + height - 2, kx:kx + width - 2]

    pixels[1:-1, 1:-1, :3] = np.clip(acc, 0, 255).astype(np.uint8)


_FILTERS: Dict[FilterMode, Callable[[np.ndarray], None]] = {
    FilterMode.GRAYSCALE: grayscale,
    FilterMode.NEGATIVE: negative,
    FilterMode.SHARPEN: sharpen,
}


def apply_filter(buffer: PixelBuffer, mode: Union[FilterMode, str, None]) -> PixelBuffer:
    """
    Apply a filter to a PixelBuffer in place.

    Args:
        buffer: RGBA buffer to transform.
        mode: FilterMode or its name. Unknown names fall through to no-op.

    Returns:
        The same buffer, for chaining.
    """
    fn = _FILTERS.get(FilterMode.parse(mode))
    if fn is not None:
        fn(buffer.pixels)
    return buffer


def available_filters() -> List[str]:
    return [mode.value for mode in FilterMode]
