"""Target dimension planning.

Width is corrected first, then height. The corrections are sequential rather
than a single min() over both scale factors, so very tall or very wide sources
can still exceed one limit after planning. Persisted images were produced with
this exact order, so it must not change.
"""

from __future__ import annotations

import math


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def plan(
    original_width: int,
    original_height: int,
    max_width: int | None = 0,
    max_height: int | None = 0,
) -> tuple[int, int]:
    """Return ``(width, height)`` scaled down to the given limits.

    A limit of 0 (or None) means unconstrained. Aspect ratio is preserved and
    the result is never larger than the original.
    """
    max_width = max_width or 0
    max_height = max_height or 0
    if max_width == 0 and max_height == 0:
        return original_width, original_height

    width: float = original_width
    height: float = original_height
    aspect_ratio = original_width / original_height

    if max_width > 0 and width > max_width:
        width = max_width
        height = width / aspect_ratio

    if max_height > 0 and height > max_height:
        height = max_height
        width = height * aspect_ratio

    return _round_half_up(width), _round_half_up(height)


def fits(width: int, height: int, max_width: int | None = 0, max_height: int | None = 0) -> bool:
    """True when ``(width, height)`` respects every positive limit."""
    if max_width and max_width > 0 and width > max_width:
        return False
    if max_height and max_height > 0 and height > max_height:
        return False
    return True
