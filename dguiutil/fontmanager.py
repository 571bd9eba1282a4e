"""Font size levels T1..T10 relative to a base font."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Callable, List, Union

__all__ = ["SizeType", "Font", "FontManager", "pixel_size_of", "DEFAULT_PIXEL_SIZES"]


class SizeType(IntEnum):
    """System font size levels."""

    T1 = 0
    T2 = 1
    T3 = 2
    T4 = 3
    T5 = 4
    T6 = 5
    T7 = 6
    T8 = 7
    T9 = 8
    T10 = 9


DEFAULT_PIXEL_SIZES = (40, 30, 24, 20, 17, 14, 13, 12, 11, 10)
BASE_SIZE_TYPE = SizeType.T6
_N_SIZE_TYPES = len(SizeType)


def _qround(value: float) -> int:
    return int(value + 0.5) if value >= 0.0 else int(value - 0.5)


@dataclass(frozen=True)
class Font:
    """A font description: pixel_size is -1 when the size is given in points."""

    family: str = ""
    point_size: float = 12.0
    pixel_size: int = -1
    dpi: int = 96

    def with_pixel_size(self, pixel_size: int) -> "Font":
        """Return a copy sized in pixels; non-positive sizes are ignored."""
        if pixel_size <= 0:
            return self
        return replace(self, pixel_size=pixel_size, point_size=-1.0)


def pixel_size_of(font: Font) -> int:
    """Pixel size of ``font``, derived from its point size when needed."""
    px = font.pixel_size
    if px == -1:
        px = _qround(math.floor(((font.point_size * font.dpi) / 72) * 100 + 0.5) / 100)
    return px


class FontManager:
    """Keeps the pixel size of each level, shifted by the base font's offset."""

    def __init__(self) -> None:
        self._sizes: List[int] = list(DEFAULT_PIXEL_SIZES)
        self._diff = 0
        self._base_font = Font().with_pixel_size(self._sizes[BASE_SIZE_TYPE])
        self.font_changed: List[Callable[[], None]] = []

    @property
    def base_font(self) -> Font:
        return self._base_font

    def font_pixel_size(self, size_type: Union[SizeType, int]) -> int:
        """Pixel size of a level; 0 for a level out of range."""
        index = int(size_type)
        if index >= _N_SIZE_TYPES:
            return 0
        return self._sizes[index] + self._diff

    def set_font_pixel_size(self, size_type: Union[SizeType, int], size: int) -> None:
        """Set the unshifted pixel size of a level; out-of-range levels are ignored."""
        index = int(size_type)
        if index >= _N_SIZE_TYPES:
            return
        self._sizes[index] = size

    def set_base_font(self, font: Font) -> None:
        """Make ``font`` the base; the levels shift with its size."""
        if font == self._base_font:
            return
        self._base_font = font
        self._diff = pixel_size_of(font) - self._sizes[BASE_SIZE_TYPE]
        for callback in list(self.font_changed):
            callback()

    def reset_base_font(self) -> None:
        """Restore a default font at the base level's size."""
        self.set_base_font(Font().with_pixel_size(self._sizes[BASE_SIZE_TYPE]))

    @staticmethod
    def get(pixel_size: int, base: Font = Font()) -> Font:
        """Return ``base`` resized to ``pixel_size``."""
        return base.with_pixel_size(pixel_size)