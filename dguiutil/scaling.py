"""Device-pixel-ratio arithmetic for scaled icon pixmaps."""

from __future__ import annotations

from typing import Tuple

__all__ = ["pixmap_device_pixel_ratio"]

Size = Tuple[int, int]


def _qround(value: float) -> int:
    return int(value + 0.5) if value >= 0.0 else int(value - 0.5)


def pixmap_device_pixel_ratio(
    display_ratio: float, requested_size: Size, actual_size: Size
) -> float:
    """Ratio to tag a pixmap of ``actual_size`` with, for a request at ``display_ratio``.

    If the pixmap fills the scaled request along one side without
    exceeding it along the other, the display ratio is used; otherwise the
    ratio is scaled by the mean fill of both sides, and never below 1.0.
    """
    target_w = _qround(requested_size[0] * display_ratio)
    target_h = _qround(requested_size[1] * display_ratio)
    actual_w, actual_h = actual_size
    if (actual_w == target_w and actual_h <= target_h) or (
        actual_w <= target_w and actual_h == target_h
    ):
        return display_ratio
    scale = 0.5 * (actual_w / target_w + actual_h / target_h)
    return max(1.0, display_ratio * scale)