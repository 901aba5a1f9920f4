"""Input validation helpers for values coming from callers outside the core."""

import math
from typing import Any

MAX_CHANNEL_COUNT = 256


def clamp_count(value: Any, max_count: int = MAX_CHANNEL_COUNT) -> int:
    """
    Clamp a channel ``count`` argument to ``[0, max_count]``.

    NaN, None and non-numeric input become 0, infinity becomes ``max_count``,
    floats are floored.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float):
        if math.isnan(value):
            return 0
        if math.isinf(value):
            return max_count if value > 0 else 0
        value = math.floor(value)
    return min(max(0, value), max_count)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp ``value`` into ``[low, high]`` (bounds may be given in either order)."""
    if low > high:
        low, high = high, low
    return max(low, min(high, value))
