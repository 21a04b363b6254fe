"""
Filter mode selection.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

from .errors import UnsupportedFilterModeError


class FilterMode(str, Enum):
    NONE = "none"
    GRAYSCALE = "grayscale"
    NEGATIVE = "negative"
    SHARPEN = "sharpen"

    @classmethod
    def parse(cls, value: Optional[Union[str, "FilterMode"]], strict: bool = False) -> "FilterMode":
        """
        Map UI input to a FilterMode.

        Matching is case-insensitive and accepts the "sharp" alias used by
        older clients. Unknown or empty values map to NONE, or raise
        UnsupportedFilterModeError when strict is set.
        """
        if isinstance(value, FilterMode):
            return value
        key = (value or "").strip().lower()
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            if strict:
                raise UnsupportedFilterModeError(f"Unsupported filter mode: {value!r}")
            return cls.NONE


_ALIASES = {
    "": "none",
    "sharp": "sharpen",
    "gray": "grayscale",
    "greyscale": "grayscale",
}
