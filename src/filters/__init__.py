"""
Pixel filters applied to preview and captured frames.

Available modes:
- none: identity
- grayscale: mean of R, G, B on all three channels
- negative: 255 - value per channel
- sharpen: 3x3 sharpen kernel on interior pixels
"""

from .engine import SHARPEN_KERNEL, apply_filter, available_filters

__all__ = [
    "SHARPEN_KERNEL",
    "apply_filter",
    "available_filters",
]
